"""图书服务 — 新增图书的校验、唯一性检查与持久化"""

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from booktrack.config import settings
from booktrack.models.book import Book, BookImage
from booktrack.schemas.book import (
    AUTHOR_MAX_LENGTH,
    AUTHOR_TOO_LONG,
    BOOK_NOT_FOUND,
    COPIES_INVALID,
    GENRE_INVALID,
    GENRES,
    IMAGE_TOO_LARGE,
    ISBN_EXISTS,
    ISBN_INVALID,
    ISBN_PATTERN,
    MISSING_FIELDS,
    PERSIST_ERROR_MESSAGE,
    TITLE_EXISTS,
    TITLE_MAX_LENGTH,
    TITLE_TOO_LONG,
    BookSubmission,
)

logger = logging.getLogger(__name__)

_COPIES_PATTERN = re.compile(r"[0-9]+")
_COPIES_MAX = 2**63 - 1  # SQLite INTEGER 上限


class BookError(Exception):
    def __init__(self, code: str, status_code: int = 400):
        self.code = code
        self.status_code = status_code


# ─────────────────────── 校验 ───────────────────────


def validate_submission(
    title: str | None,
    author: str | None,
    isbn: str | None,
    genre: str | None,
    available_copies: str | None,
    image_filename: str | None,
    image_content_type: str | None,
    image_data: bytes | None,
) -> BookSubmission:
    """
    服务端重新校验表单（不信任客户端），按顺序返回第一个错误：
    缺字段 → 标题长度 → 作者长度 → ISBN 格式 → 类别 → 库存数 → 图片大小
    """
    title = (title or "").strip()
    author = (author or "").strip()
    isbn = (isbn or "").strip()
    genre = (genre or "").strip()
    copies = (available_copies or "").strip()

    if not (title and author and isbn and genre and copies and image_data):
        raise BookError(MISSING_FIELDS)
    if len(title) > TITLE_MAX_LENGTH:
        raise BookError(TITLE_TOO_LONG)
    if len(author) > AUTHOR_MAX_LENGTH:
        raise BookError(AUTHOR_TOO_LONG)
    if not ISBN_PATTERN.fullmatch(isbn):
        raise BookError(ISBN_INVALID)
    if genre not in GENRES:
        raise BookError(GENRE_INVALID)
    if (
        not _COPIES_PATTERN.fullmatch(copies)
        or len(copies) > len(str(_COPIES_MAX))
        or int(copies) > _COPIES_MAX
    ):
        raise BookError(COPIES_INVALID)
    if len(image_data) > settings.MAX_IMAGE_SIZE:
        raise BookError(IMAGE_TOO_LARGE)

    return BookSubmission(
        title=title,
        author=author,
        isbn=isbn,
        genre=genre,
        available_copies=int(copies),
        image_filename=image_filename or "image",
        image_content_type=image_content_type or "application/octet-stream",
        image_data=image_data,
    )


# ─────────────────────── 查询 ───────────────────────


async def get_book_by_title(db: AsyncSession, title: str) -> Book | None:
    result = await db.execute(select(Book).where(Book.title == title))
    return result.scalar_one_or_none()


async def get_book_by_isbn(db: AsyncSession, isbn: str) -> Book | None:
    result = await db.execute(select(Book).where(Book.isbn == isbn))
    return result.scalar_one_or_none()


async def get_book_by_id(db: AsyncSession, book_id: str) -> Book:
    result = await db.execute(
        select(Book).options(selectinload(Book.image)).where(Book.id == book_id)
    )
    book = result.scalar_one_or_none()
    if book is None:
        raise BookError(BOOK_NOT_FOUND, 404)
    return book


async def list_books(db: AsyncSession) -> list[Book]:
    result = await db.execute(
        select(Book).options(selectinload(Book.image)).order_by(Book.created_at)
    )
    return list(result.scalars().all())


async def get_book_image(db: AsyncSession, book_id: str) -> BookImage:
    result = await db.execute(select(BookImage).where(BookImage.book_id == book_id))
    image = result.scalar_one_or_none()
    if image is None:
        raise BookError(BOOK_NOT_FOUND, 404)
    return image


# ─────────────────────── 新增 ───────────────────────


async def find_conflict(db: AsyncSession, title: str, isbn: str) -> str | None:
    """先查标题再查 ISBN，返回冲突错误码"""
    if await get_book_by_title(db, title) is not None:
        return TITLE_EXISTS
    if await get_book_by_isbn(db, isbn) is not None:
        return ISBN_EXISTS
    return None


def _unique_violation_code(exc: IntegrityError) -> str | None:
    """将唯一约束冲突翻译为错误码（SQLite 报列名，PostgreSQL 报约束名）"""
    message = str(exc.orig).lower()
    if "uq_books_title" in message or "books.title" in message:
        return TITLE_EXISTS
    if "uq_books_isbn" in message or "books.isbn" in message:
        return ISBN_EXISTS
    return None


async def create_book(db: AsyncSession, submission: BookSubmission) -> Book:
    """
    新增图书（图书 + 封面同一事务）。
    读检查只是快速路径；并发重复由唯一索引兜底，提交时的冲突翻译为相同错误码。
    """
    try:
        conflict = await find_conflict(db, submission.title, submission.isbn)
        if conflict:
            raise BookError(conflict)

        book = Book(
            title=submission.title,
            author=submission.author,
            isbn=submission.isbn,
            genre=submission.genre,
            available_copies=submission.available_copies,
            image=BookImage(
                filename=submission.image_filename,
                content_type=submission.image_content_type,
                size=len(submission.image_data),
                data=submission.image_data,
            ),
        )
        db.add(book)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        code = _unique_violation_code(e)
        if code is None:
            logger.exception(f"[新增图书] 保存失败: {submission.title}")
            raise BookError(PERSIST_ERROR_MESSAGE, 500) from e
        logger.info(f"[新增图书] 提交时触发唯一约束: {code}")
        raise BookError(code) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"[新增图书] 保存失败: {submission.title}")
        raise BookError(PERSIST_ERROR_MESSAGE, 500) from e

    logger.info(f"[新增图书] 已保存: {book.id} 《{book.title}》")
    return book
