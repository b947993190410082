"""Brand Core 顶层包。

该包提供品牌助手的核心实现：与多家 LLM Provider 的流式对话路由、
连通性测试，以及把品牌资料与会话历史组装成 system 前言的上下文组装器。
"""

from brand_core.api.router import send_message, test_connection
from brand_core.api.service import run_brand_chat
from brand_core.memory.context import build_brand_context, build_conversation_context, build_system_prompt

__all__ = [
    "build_brand_context",
    "build_conversation_context",
    "build_system_prompt",
    "run_brand_chat",
    "send_message",
    "test_connection",
]
