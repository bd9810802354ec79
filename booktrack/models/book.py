import uuid
from datetime import datetime

from sqlalchemy import (
    String, DateTime, Integer, LargeBinary, ForeignKey,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booktrack.database import Base


class Book(Base):
    __tablename__ = "books"
    __table_args__ = (
        UniqueConstraint("title", name="uq_books_title"),
        UniqueConstraint("isbn", name="uq_books_isbn"),
        CheckConstraint("available_copies >= 0", name="ck_books_available_copies"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    author: Mapped[str] = mapped_column(String(150), nullable=False)
    isbn: Mapped[str] = mapped_column(String(13), nullable=False)
    genre: Mapped[str] = mapped_column(String(50), nullable=False)
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    # 关联：封面图片与图书同一事务写入
    image = relationship(
        "BookImage", back_populates="book", uselist=False, cascade="all, delete-orphan"
    )


class BookImage(Base):
    __tablename__ = "book_images"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, unique=True
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    # 关联
    book = relationship("Book", back_populates="image")
