"""统一的流式发送入口与连通性测试。

send_message 只做三件事：校验 Provider、拼装消息（可选 system 前言 + 历史 + 新消息）、
把请求交给对应适配器并把增量累加成最终文本。不重试、不切换 Provider，
错误原样抛给调用方。
"""

import logging
import time
from contextlib import aclosing, asynccontextmanager
from typing import AsyncIterator, Callable, List, Mapping, Optional, Sequence, Union

import httpx

from brand_core.config.settings import settings
from brand_core.domain.exceptions import ConfigurationError
from brand_core.domain.models import ROLES, ChatMessage, StreamAccumulator
from brand_core.infrastructure.logging.logger import log_event
from brand_core.providers import get_adapter, require
from brand_core.providers.registry import ProviderDescriptor


# on_chunk(delta, full_text)
OnChunk = Callable[[str, str], None]
MessageLike = Union[ChatMessage, Mapping[str, str]]


@asynccontextmanager
async def _client_scope(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    """调用方传入的 client 原样使用；否则为本次调用新建并负责关闭。"""

    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=settings.http_timeout, trust_env=False) as owned:
        yield owned


def _resolve_credential(descriptor: ProviderDescriptor, credential: Optional[str]) -> str:
    return credential or settings.api_key_for(descriptor.id) or ""


def _build_messages(messages: Sequence[MessageLike], system_prompt: Optional[str]) -> List[ChatMessage]:
    if not messages:
        raise ConfigurationError(code="EMPTY_MESSAGES", message="messages must not be empty")
    try:
        history = [ChatMessage.coerce(m) for m in messages]
    except (KeyError, TypeError, AttributeError) as e:
        raise ConfigurationError(code="INVALID_MESSAGE", message=f"Malformed message: {e!r}") from e
    for m in history:
        if m.role not in ROLES:
            raise ConfigurationError(code="INVALID_ROLE", message=f"Unsupported role: {m.role!r}")
        if m.role == "system":
            raise ConfigurationError(
                code="SYSTEM_IN_HISTORY",
                message="system content must be passed via system_prompt",
            )
    full: List[ChatMessage] = []
    if system_prompt:
        full.append(ChatMessage(role="system", content=system_prompt))
    full.extend(history)
    return full


async def send_message(
    provider: str,
    messages: Sequence[MessageLike],
    credential: str = "",
    model: Optional[str] = None,
    system_prompt: Optional[str] = None,
    on_chunk: Optional[OnChunk] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """向指定 Provider 发送对话并以流式方式接收回答。

    Args:
        provider: Provider id（openai / gemini / ollama）。
        messages: 按时间排序的历史 + 新消息，不能包含 system 角色。
        credential: API 密钥；为空时回退到配置中的密钥。
        model: 模型名；为空时使用 Provider 默认模型。
        system_prompt: 可选 system 前言，只会作为第一条消息出现一次。
        on_chunk: 每收到一个增量时同步调用 on_chunk(delta, full_text)。
        client: 可选的 httpx.AsyncClient，由调用方负责生命周期。

    Returns:
        流结束后的完整文本，与最后一次 on_chunk 收到的 full_text 相同。

    Raises:
        ConfigurationError: 未知 Provider 或消息非法，此时不会发出任何网络请求。
        TransportError: 适配器抛出的 HTTP / 网络错误，原样透传。
    """

    descriptor = require(provider)
    adapter = get_adapter(descriptor.id)
    full_messages = _build_messages(messages, system_prompt)
    final_model = model or descriptor.default_model
    key = _resolve_credential(descriptor, credential)

    start = time.monotonic()
    acc = StreamAccumulator()
    log_ctx = {"provider": descriptor.id, "model": final_model, "messages": len(full_messages)}
    try:
        async with _client_scope(client) as http:
            async with aclosing(adapter.stream(http, descriptor, key, final_model, full_messages)) as deltas:
                async for delta in deltas:
                    full_text = acc.append(delta)
                    if on_chunk is not None:
                        on_chunk(delta, full_text)
    except Exception as e:
        log_event(logging.ERROR, f"Send failed: {e}", error=type(e).__name__, chunks=len(acc.chunks), **log_ctx)
        raise

    log_event(
        logging.INFO,
        "Completed streaming send",
        elapsed_seconds=round(time.monotonic() - start, 2),
        chunks=len(acc.chunks),
        chars=len(acc.text),
        **log_ctx,
    )
    return acc.text


async def test_connection(
    provider: str,
    credential: str = "",
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """探测 Provider 是否可达、密钥是否可用。任何异常都返回 False，不会抛出。"""

    try:
        descriptor = require(provider)
        req = get_adapter(descriptor.id).health_request(descriptor, _resolve_credential(descriptor, credential))
        async with _client_scope(client) as http:
            resp = await http.get(req.url, headers=req.headers, params=req.params or None)
    except Exception as e:
        log_event(logging.WARNING, "Connection test failed", provider=provider, error=str(e))
        return False
    if not resp.is_success:
        log_event(logging.WARNING, "Connection test rejected", provider=provider, status_code=resp.status_code)
    return resp.is_success


# 名称以 test_ 开头，避免被 pytest 当作用例收集
test_connection.__test__ = False
