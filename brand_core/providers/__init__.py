"""LLM Provider 集成层。

该包下的模块负责：
- 定义流式适配器协议与公共读循环 (base)。
- 维护 Provider 目录与默认模型 (registry)。
- 提供各 wire 协议的具体实现 (openai_adapter、gemini_adapter、ollama_adapter)。

新增 Provider 时：在 registry 中登记描述，在 ADAPTERS 中登记适配器即可，
路由与上下文组装代码无需改动。
"""

from typing import Mapping

from brand_core.domain.exceptions import ConfigurationError
from brand_core.providers.base import StreamAdapter
from brand_core.providers.gemini_adapter import GeminiAdapter
from brand_core.providers.ollama_adapter import OllamaAdapter
from brand_core.providers.openai_adapter import OpenAIAdapter
from brand_core.providers.registry import PROVIDER_REGISTRY, ProviderDescriptor, ProviderId, lookup, require


ADAPTERS: Mapping[str, StreamAdapter] = {
    "openai": OpenAIAdapter(),
    "gemini": GeminiAdapter(),
    "ollama": OllamaAdapter(),
}


def get_adapter(provider_id: str) -> StreamAdapter:
    """根据 Provider id 取适配器，未登记时抛 ConfigurationError。"""

    adapter = ADAPTERS.get(provider_id.lower())
    if adapter is None:
        raise ConfigurationError(
            code="NO_ADAPTER",
            message=f"No stream adapter registered for provider {provider_id!r}",
            provider=provider_id,
        )
    return adapter


__all__ = [
    "ADAPTERS",
    "PROVIDER_REGISTRY",
    "ProviderDescriptor",
    "ProviderId",
    "StreamAdapter",
    "get_adapter",
    "lookup",
    "require",
]
