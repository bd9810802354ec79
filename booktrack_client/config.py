import os
from dataclasses import dataclass


def _optional_float(value: str | None) -> float | None:
    return float(value) if value else None


@dataclass
class ClientConfig:
    server_url: str = os.getenv("BOOKTRACK_SERVER_URL", "http://localhost:5500")
    # 未配置时不设超时，提交请求一直等待服务端响应
    timeout: float | None = _optional_float(os.getenv("BOOKTRACK_TIMEOUT"))


config = ClientConfig()
