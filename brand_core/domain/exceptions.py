"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于调用方（UI / API 层）统一捕获并决定提示或重试策略。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "UNKNOWN_PROVIDER"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、model 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigurationError(BusinessError):
    """调用参数或配置错误（未知 Provider、空消息列表等），在任何网络请求之前抛出。"""


class TransportError(BusinessError):
    """Provider 返回非 2xx 状态码，或底层网络失败。

    status_code 为 None 表示请求没有拿到 HTTP 响应（DNS、连接、读超时等）。
    """

    def __init__(
        self,
        code: str,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        **extra,
    ):
        super().__init__(code=code, message=message, http_status=status_code or 502, **extra)
        self.provider = provider
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.provider} error {self.status_code}: {self.message}"
        return f"{self.provider} network error: {self.message}"


class StoreError(BusinessError):
    """存储读写失败。"""
