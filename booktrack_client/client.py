import mimetypes
from dataclasses import dataclass
from pathlib import Path

import httpx
from .config import ClientConfig, config


@dataclass
class ImageFile:
    """待上传的封面图片"""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str | Path) -> "ImageFile":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )


class BookTrackAPIError(Exception):
    """服务端返回了 ≥400 响应；error 为响应体中的错误码（无法解析时为 None）"""

    def __init__(self, status_code: int, error: str | None):
        super().__init__(f"API 错误 ({status_code}): {error}")
        self.status_code = status_code
        self.error = error


def _error_code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


class BookTrackClient:
    """BookTrack REST API 客户端"""

    def __init__(
        self,
        client_config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = client_config or config
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._config.server_url.rstrip("/")

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._config.timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, path, **kwargs)
        if response.status_code >= 400:
            raise BookTrackAPIError(response.status_code, _error_code(response))
        return response

    # ─── 新增 ──────────────────────────────

    async def add_book(self, fields: dict[str, str], image: ImageFile) -> dict:
        """
        multipart 提交新书，成功返回 {"message", "bookId"}。
        2xx 即视为成功，响应体不是 JSON 对象时返回空 dict。
        """
        response = await self._request(
            "POST",
            "/addBook",
            data=fields,
            files={"image": (image.filename, image.content, image.content_type)},
        )
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    # ─── 查询 ──────────────────────────────

    async def list_books(self) -> list:
        response = await self._request("GET", "/books")
        return response.json()

    async def get_book(self, book_id: str) -> dict:
        response = await self._request("GET", f"/books/{book_id}")
        return response.json()

    async def get_book_image(self, book_id: str) -> bytes:
        response = await self._request("GET", f"/books/{book_id}/image")
        return response.content


api_client = BookTrackClient()
