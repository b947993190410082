"""品牌与会话上下文组装。"""

from brand_core.memory.context import build_brand_context, build_conversation_context, build_system_prompt

__all__ = ["build_brand_context", "build_conversation_context", "build_system_prompt"]
