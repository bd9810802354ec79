import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from booktrack.config import settings
from booktrack.database import init_db
from booktrack.routers import books
from booktrack.schemas.book import UNKNOWN_ERROR
from booktrack.services.book_service import BookError

# 导入所有 model 使 SQLAlchemy 注册表结构
import booktrack.models  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：启动时建表"""
    await init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="BookTrack 图书目录后端 API - 新增图书与目录查询",
    lifespan=lifespan,
)

# CORS 中间件（表单页面与 API 不同源）
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 统一异常处理：错误体统一为 {"error": ...}
@app.exception_handler(BookError)
async def book_error_handler(request: Request, exc: BookError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": UNKNOWN_ERROR})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"未处理的异常: {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "internal_error"})


# 注册路由
app.include_router(books.router)


@app.get("/health", tags=["系统"])
async def health_check():
    """健康检查接口"""
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }
