"""对外 API 服务模块。

提供简化的函数接口供上层应用调用：组装品牌上下文与历史、流式发送、
再把本轮的用户消息与助手回答写回存储。
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from brand_core.api.router import OnChunk, send_message
from brand_core.config.settings import settings
from brand_core.domain.entities import Store
from brand_core.domain.models import ChatMessage
from brand_core.infrastructure.logging.logger import logger
from brand_core.memory.context import build_brand_context, build_conversation_context, build_system_prompt


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def run_brand_chat(
    store: Store,
    user_input: str,
    brand_id: Optional[int] = None,
    conversation_id: Optional[int] = None,
    provider: Optional[str] = None,
    credential: str = "",
    model: Optional[str] = None,
    on_chunk: Optional[OnChunk] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """运行一轮品牌助手对话。

    Args:
        store: 存储协作方。
        user_input: 用户输入内容。
        brand_id: 品牌ID（可选，为空时不注入品牌上下文）。
        conversation_id: 会话ID（可选，不提供则创建新会话）。
        provider: Provider id，默认取配置中的 default_provider。
        credential / model / on_chunk / client: 透传给 send_message。

    Returns:
        包含会话ID、用户消息与助手消息的字典。

    Raises:
        各种 domain.exceptions 中定义的异常；发送失败时不会写入任何消息。
    """

    provider_name = provider or settings.default_provider
    system_prompt = build_system_prompt(build_brand_context(store, brand_id))
    history = []
    if conversation_id is not None:
        history = build_conversation_context(store, conversation_id, settings.max_context_messages)
    history.append(ChatMessage(role="user", content=user_input))

    try:
        reply = await send_message(
            provider_name,
            history,
            credential=credential,
            model=model,
            system_prompt=system_prompt,
            on_chunk=on_chunk,
            client=client,
        )
    except Exception:
        # 错误详情已由 send_message 记录，这里只补充会话上下文
        logger.info("Chat aborted, nothing stored", extra={"extra": {
            "conversation_id": conversation_id,
            "provider": provider_name,
        }})
        raise

    if conversation_id is None:
        conversation_id = store.add(
            "conversations",
            {
                "brand_id": brand_id,
                "title": user_input[:60],
                "type": "chat",
                "created_at": _utcnow(),
                "updated_at": _utcnow(),
            },
        )

    user_created = _utcnow()
    user_id = store.add(
        "messages",
        {"conversation_id": conversation_id, "role": "user", "content": user_input, "created_at": user_created},
    )
    assistant_created = _utcnow()
    assistant_id = store.add(
        "messages",
        {
            "conversation_id": conversation_id,
            "role": "assistant",
            "content": reply,
            "created_at": assistant_created,
            "provider": provider_name,
            "model": model,
        },
    )
    store.update("conversations", conversation_id, {"updated_at": assistant_created})

    return {
        "conversation_id": conversation_id,
        "user_message": {"id": user_id, "content": user_input, "created_at": user_created},
        "assistant_message": {"id": assistant_id, "content": reply, "created_at": assistant_created},
    }
