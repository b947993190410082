"""Provider 适配器抽象与公共读循环。

上层路由不直接依赖具体厂商的 wire 格式，而是依赖 StreamAdapter 协议：

- 每个厂商实现一个适配器（如 OpenAIAdapter）。
- 负责：把统一的 ChatMessage 列表转成厂商请求，再把字节流还原为增量文本序列。

HttpStreamAdapter 实现了三家共用的部分：发起 POST、检查状态码、跨读边界缓冲
半行、逐行交给子类解码。子类只需要实现 build_request / decode_line / health_request。
"""

import codecs
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Protocol, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from brand_core.domain.exceptions import TransportError
from brand_core.domain.models import ChatMessage
from brand_core.infrastructure.logging.logger import log_event
from brand_core.providers.registry import ProviderDescriptor


PayloadT = TypeVar("PayloadT", bound=BaseModel)


@dataclass
class HttpRequest:
    """一次待发出的 HTTP 请求描述。"""

    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


@dataclass
class LineResult:
    """单行解码结果：delta 为 None 表示本行没有增量；done 表示流已结束。"""

    delta: Optional[str] = None
    done: bool = False


class StreamAdapter(Protocol):
    """流式适配器协议。

    - stream(...): 发起请求并按到达顺序 yield 增量文本。
    - health_request(...): 连通性探测使用的 GET 请求。
    """

    def stream(
        self,
        client: httpx.AsyncClient,
        descriptor: ProviderDescriptor,
        credential: str,
        model: str,
        messages: List[ChatMessage],
    ) -> AsyncIterator[str]:
        ...

    def health_request(self, descriptor: ProviderDescriptor, credential: str) -> HttpRequest:
        ...


class LineBuffer:
    """把任意切分的字节块重新拼成完整的文本行。

    UTF-8 多字节字符被切开时由增量解码器暂存；最后一个没有换行结尾的片段
    保留到下一次 feed，直到 flush（传输关闭）时才作为完整行吐出。
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, chunk: bytes) -> List[str]:
        text = self._pending + self._decoder.decode(chunk)
        parts = text.split("\n")
        self._pending = parts.pop()
        return [line.rstrip("\r") for line in parts if line.strip()]

    def flush(self) -> List[str]:
        tail = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        tail = tail.rstrip("\r")
        return [tail] if tail.strip() else []


def sse_data(line: str) -> Optional[str]:
    """取出 SSE "data:" 行的负载，其它行返回 None。"""

    if not line.startswith("data:"):
        return None
    return line[5:].strip()


def decode_payload(model: Type[PayloadT], raw: str, provider: str) -> Optional[PayloadT]:
    """把一行 JSON 解码成类型化负载，失败返回 None（该行被跳过）。"""

    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        log_event(
            logging.DEBUG,
            "Skipped malformed stream line",
            provider=provider,
            line=raw[:200],
            errors=e.error_count(),
        )
        return None


class HttpStreamAdapter:
    """基于 httpx 流式响应的公共读循环。"""

    name = "base"

    def build_request(
        self,
        descriptor: ProviderDescriptor,
        credential: str,
        model: str,
        messages: List[ChatMessage],
    ) -> HttpRequest:
        raise NotImplementedError

    def decode_line(self, line: str) -> LineResult:
        raise NotImplementedError

    def health_request(self, descriptor: ProviderDescriptor, credential: str) -> HttpRequest:
        raise NotImplementedError

    async def stream(
        self,
        client: httpx.AsyncClient,
        descriptor: ProviderDescriptor,
        credential: str,
        model: str,
        messages: List[ChatMessage],
    ) -> AsyncIterator[str]:
        request = self.build_request(descriptor, credential, model, messages)
        buffer = LineBuffer()
        try:
            async with client.stream(
                "POST",
                request.url,
                json=request.body,
                headers=request.headers,
                params=request.params or None,
            ) as resp:
                if not resp.is_success:
                    body = await resp.aread()
                    raise TransportError(
                        code="API_ERROR",
                        message=body.decode("utf-8", errors="replace")[:500] or resp.reason_phrase,
                        provider=descriptor.id,
                        status_code=resp.status_code,
                    )
                async for chunk in resp.aiter_bytes():
                    deltas, done = self._decode_lines(buffer.feed(chunk))
                    for delta in deltas:
                        yield delta
                    if done:
                        return
                deltas, _ = self._decode_lines(buffer.flush())
                for delta in deltas:
                    yield delta
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时、读中断等
            raise TransportError(
                code="NETWORK_ERROR",
                message=str(e) or type(e).__name__,
                provider=descriptor.id,
            ) from e

    def _decode_lines(self, lines: Iterable[str]) -> Tuple[List[str], bool]:
        deltas: List[str] = []
        for line in lines:
            result = self.decode_line(line)
            if result.delta:
                deltas.append(result.delta)
            if result.done:
                return deltas, True
        return deltas, False
