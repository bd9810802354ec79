"""新增图书表单控制器 — 本地校验、提交、按服务端错误码提示

不依赖浏览器：提示 (notify) 与确认 (confirm) 均为可注入的回调，
表单状态（字段、是否显示、图片预览）保存在控制器上。
"""

import logging
import re
from dataclasses import dataclass, fields as dataclass_fields
from enum import Enum
from typing import Callable

import httpx

from .client import BookTrackAPIError, BookTrackClient, ImageFile, api_client

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100
AUTHOR_MAX_LENGTH = 150
MAX_IMAGE_SIZE = 16 * 1024 * 1024  # 16 MB
ISBN_PATTERN = re.compile(r"[0-9]{13}")

NO_IMAGE_SELECTED = "No Image Selected"

# ─── 提示语 ──────────────────────────────

REQUIRED_FIELDS_MESSAGE = "All fields are required. Please fill in the required fields."
TITLE_TOO_LONG_MESSAGE = "Title should not exceed 100 characters."
AUTHOR_TOO_LONG_MESSAGE = "Author's name should not exceed 150 characters."
INVALID_ISBN_MESSAGE = "Please enter a valid ISBN number."
IMAGE_TOO_LARGE_MESSAGE = "The image file size should not exceed 16 MB."
BOOK_ADDED_MESSAGE = "Book added successfully!"
TITLE_EXISTS_MESSAGE = "The title already exists. Please use a unique title."
ISBN_EXISTS_MESSAGE = "The ISBN already exists. Please use a unique ISBN."
FAILED_MESSAGE = "Failed to add book."
NETWORK_ERROR_MESSAGE = "An error occurred while adding the book."
CONFIRM_MESSAGE = "Are you sure you want to add this book?"

# 服务端错误码 → 提示语；未列出的错误码统一提示 FAILED_MESSAGE
ERROR_MESSAGES = {
    "title_exists": TITLE_EXISTS_MESSAGE,
    "isbn_exists": ISBN_EXISTS_MESSAGE,
    "isbn_invalid": INVALID_ISBN_MESSAGE,
}


class SubmitOutcome(str, Enum):
    INVALID = "invalid"
    CANCELLED = "cancelled"
    CREATED = "created"
    REJECTED = "rejected"
    NETWORK_ERROR = "network_error"


@dataclass
class BookFormFields:
    title: str = ""
    author: str = ""
    isbn: str = ""
    genre: str = ""  # 空串表示未选择
    copies: str = ""
    image: ImageFile | None = None


class AddBookForm:
    """新增图书表单"""

    def __init__(
        self,
        notify: Callable[[str], None],
        confirm: Callable[[str], bool] | None = None,
        client: BookTrackClient | None = None,
    ):
        self.notify = notify
        self.confirm = confirm or (lambda message: True)
        self.client = client or api_client
        self.visible = False
        self.fields = BookFormFields()
        self.image_preview = NO_IMAGE_SELECTED

    # ─── 打开 / 关闭 ──────────────────────────────

    def open(self) -> None:
        self.visible = True

    def reset(self) -> None:
        """所有字段恢复为空 / 默认值"""
        self.fields = BookFormFields()
        self.image_preview = NO_IMAGE_SELECTED

    def close(self) -> None:
        """关闭前先重置，保证再次打开时表单为空"""
        self.reset()
        self.visible = False

    def cancel(self) -> None:
        self.close()

    def click_outside(self) -> None:
        if self.visible:
            self.close()

    # ─── 输入 ──────────────────────────────

    def fill(self, **values: str) -> None:
        names = {f.name for f in dataclass_fields(BookFormFields)} - {"image"}
        for name, value in values.items():
            if name not in names:
                raise ValueError(f"未知字段: {name}")
            setattr(self.fields, name, value)

    def select_image(self, image: ImageFile | None) -> bool:
        """
        文件输入变化。清空或超过 16 MB 时预览恢复为 "No Image Selected"；
        返回图片是否被接受。
        """
        if image is None:
            self._clear_image()
            return False
        if image.size > MAX_IMAGE_SIZE:
            self.notify(IMAGE_TOO_LARGE_MESSAGE)
            self._clear_image()
            return False
        self.fields.image = image
        self.image_preview = image.filename
        return True

    def _clear_image(self) -> None:
        self.fields.image = None
        self.image_preview = NO_IMAGE_SELECTED

    # ─── 校验 / 提交 ──────────────────────────────

    def validate(self) -> str | None:
        """返回第一个校验失败的提示语，全部通过返回 None"""
        f = self.fields
        title = f.title.strip()
        author = f.author.strip()
        isbn = f.isbn.strip()

        if not (title and author and isbn and f.genre and f.copies and f.image):
            return REQUIRED_FIELDS_MESSAGE
        if len(title) > TITLE_MAX_LENGTH:
            return TITLE_TOO_LONG_MESSAGE
        if len(author) > AUTHOR_MAX_LENGTH:
            return AUTHOR_TOO_LONG_MESSAGE
        if not ISBN_PATTERN.fullmatch(isbn):
            return INVALID_ISBN_MESSAGE
        if f.image.size > MAX_IMAGE_SIZE:
            self._clear_image()
            return IMAGE_TOO_LARGE_MESSAGE
        return None

    def _payload(self) -> dict[str, str]:
        f = self.fields
        return {
            "title": f.title.strip(),
            "author": f.author.strip(),
            "isbn": f.isbn.strip(),
            "genre": f.genre,
            "availableCopies": f.copies,
        }

    async def submit(self) -> SubmitOutcome:
        error = self.validate()
        if error:
            self.notify(error)
            return SubmitOutcome.INVALID

        if not self.confirm(CONFIRM_MESSAGE):
            self.close()
            return SubmitOutcome.CANCELLED

        try:
            await self.client.add_book(self._payload(), self.fields.image)
        except BookTrackAPIError as e:
            logger.info(f"新增图书被拒绝: {e.status_code} {e.error}")
            self.notify(ERROR_MESSAGES.get(e.error, FAILED_MESSAGE))
            return SubmitOutcome.REJECTED
        except httpx.HTTPError as e:
            logger.error(f"新增图书请求失败: {e!r}")
            self.notify(NETWORK_ERROR_MESSAGE)
            return SubmitOutcome.NETWORK_ERROR

        self.notify(BOOK_ADDED_MESSAGE)
        self.close()
        return SubmitOutcome.CREATED
