"""图书 API 路由"""

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from booktrack.database import get_db
from booktrack.models.book import Book
from booktrack.schemas.book import AddBookResponse, BookResponse, ErrorResponse
from booktrack.services.book_service import (
    create_book,
    get_book_by_id,
    get_book_image,
    list_books,
    validate_submission,
)

router = APIRouter(tags=["图书"])


def _to_response(book: Book) -> BookResponse:
    """将 ORM Book 转为响应模型（需预加载 image）"""
    return BookResponse(
        id=book.id,
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        genre=book.genre,
        available_copies=book.available_copies,
        image_filename=book.image.filename if book.image else None,
        image_size=book.image.size if book.image else None,
        created_at=book.created_at,
    )


@router.post(
    "/addBook",
    response_model=AddBookResponse,
    status_code=201,
    summary="新增图书",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def add_book(
    title: str | None = Form(None),
    author: str | None = Form(None),
    isbn: str | None = Form(None),
    genre: str | None = Form(None),
    available_copies: str | None = Form(None, alias="availableCopies"),
    image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    """
    multipart 表单新增图书。
    所有字段在框架层均为可选，缺失时由服务层返回 400 missing_fields，而不是 422。
    """
    image_data = await image.read() if image is not None else None
    submission = validate_submission(
        title,
        author,
        isbn,
        genre,
        available_copies,
        image.filename if image is not None else None,
        image.content_type if image is not None else None,
        image_data,
    )
    book = await create_book(db, submission)
    return AddBookResponse(book_id=book.id)


@router.get("/books", response_model=list[BookResponse], summary="获取图书列表")
async def list_all(db: AsyncSession = Depends(get_db)):
    books = await list_books(db)
    return [_to_response(b) for b in books]


@router.get(
    "/books/{book_id}",
    response_model=BookResponse,
    summary="获取图书详情",
    responses={404: {"model": ErrorResponse}},
)
async def get_one(book_id: str, db: AsyncSession = Depends(get_db)):
    book = await get_book_by_id(db, book_id)
    return _to_response(book)


@router.get(
    "/books/{book_id}/image",
    summary="获取图书封面",
    responses={404: {"model": ErrorResponse}},
)
async def get_image(book_id: str, db: AsyncSession = Depends(get_db)):
    """返回原始图片字节，Content-Type 为上传时的类型"""
    image = await get_book_image(db, book_id)
    return Response(content=image.data, media_type=image.content_type)
