"""测试公共 Fixtures —— 内存 SQLite + 独立 TestClient"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from booktrack.database import Base, get_db
from booktrack.models.book import Book, BookImage


# ──────────── 内存数据库引擎 ────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """每个测试前建表，测试后清表"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db():
    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ──────────── FastAPI TestClient ────────────

@pytest_asyncio.fixture
async def client():
    from booktrack.main import app

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ──────────── 表单数据 ────────────

FAKE_IMAGE = b"fake-image-content"


@pytest.fixture
def book_form() -> dict:
    """合法的 multipart 文本字段"""
    return {
        "title": "Testbook",
        "author": "John Doe",
        "isbn": "1234567890098",
        "genre": "Fiction",
        "availableCopies": "10",
    }


@pytest.fixture
def image_file() -> dict:
    return {"image": ("test-image.jpg", FAKE_IMAGE, "image/jpeg")}


# ──────────── 预置图书 ────────────

@pytest_asyncio.fixture
async def existing_book() -> Book:
    """预先入库的一本书：The Great Gatsby / 9786584956261"""
    async with TestSessionLocal() as db:
        book = Book(
            id=str(uuid.uuid4()),
            title="The Great Gatsby",
            author="F. Scott Fitzgerald",
            isbn="9786584956261",
            genre="Fiction",
            available_copies=3,
            image=BookImage(
                filename="gatsby.jpg",
                content_type="image/jpeg",
                size=len(FAKE_IMAGE),
                data=FAKE_IMAGE,
            ),
        )
        db.add(book)
        await db.commit()
        return book
