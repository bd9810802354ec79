import re
from datetime import datetime

from pydantic import BaseModel, Field

TITLE_MAX_LENGTH = 100
AUTHOR_MAX_LENGTH = 150
ISBN_PATTERN = re.compile(r"[0-9]{13}")

GENRES = (
    "Fiction",
    "Non-Fiction",
    "Science Fiction",
    "Fantasy",
    "Mystery",
    "Thriller",
    "Romance",
    "Biography",
    "History",
    "Drama",
    "Poetry",
    "Children",
)

# 错误码（与前端约定，前端按 error 字段映射提示语）
MISSING_FIELDS = "missing_fields"
TITLE_TOO_LONG = "title_too_long"
AUTHOR_TOO_LONG = "author_too_long"
ISBN_INVALID = "isbn_invalid"
GENRE_INVALID = "genre_invalid"
COPIES_INVALID = "copies_invalid"
IMAGE_TOO_LARGE = "image_too_large"
TITLE_EXISTS = "title_exists"
ISBN_EXISTS = "isbn_exists"
BOOK_NOT_FOUND = "book_not_found"
UNKNOWN_ERROR = "unknown_error"

BOOK_ADDED_MESSAGE = "Book added successfully!"
PERSIST_ERROR_MESSAGE = "An error occurred while adding the book."


class BookSubmission(BaseModel):
    """已通过服务端校验的新增图书请求"""

    title: str
    author: str
    isbn: str
    genre: str
    available_copies: int = Field(..., ge=0)
    image_filename: str
    image_content_type: str
    image_data: bytes


class AddBookResponse(BaseModel):
    message: str = BOOK_ADDED_MESSAGE
    book_id: str = Field(..., serialization_alias="bookId")


class BookResponse(BaseModel):
    id: str
    title: str
    author: str
    isbn: str
    genre: str
    available_copies: int = Field(..., serialization_alias="availableCopies")
    image_filename: str | None = Field(None, serialization_alias="imageFilename")
    image_size: int | None = Field(None, serialization_alias="imageSize")
    created_at: datetime = Field(..., serialization_alias="createdAt")


class ErrorResponse(BaseModel):
    error: str
