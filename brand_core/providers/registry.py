"""Provider 目录。

每个 Provider 只在这里登记一次：显示名、请求端点（可带 {model} 模板）、
默认模型以及连通性探测地址。适配器逻辑不读取这里以外的厂商常量。"""

from dataclasses import dataclass
from typing import Literal, Mapping, Optional

from brand_core.domain.exceptions import ConfigurationError


ProviderId = Literal["openai", "gemini", "ollama"]


@dataclass(frozen=True)
class ProviderDescriptor:
    """单个 Provider 的静态描述。"""

    id: str
    name: str
    endpoint: str
    default_model: str
    health_url: str

    def endpoint_for(self, model: str) -> str:
        """展开端点模板（没有 {model} 占位符时原样返回）。"""

        return self.endpoint.format(model=model)


OPENAI = ProviderDescriptor(
    id="openai",
    name="OpenAI",
    endpoint="https://api.openai.com/v1/chat/completions",
    default_model="gpt-4o-mini",
    health_url="https://api.openai.com/v1/models",
)

GEMINI = ProviderDescriptor(
    id="gemini",
    name="Google Gemini",
    endpoint="https://generativelanguage.googleapis.com/v1beta/models/{model}:streamGenerateContent",
    default_model="gemini-2.0-flash",
    health_url="https://generativelanguage.googleapis.com/v1beta/models",
)

# 本地 Ollama 固定走回环地址与默认端口
OLLAMA = ProviderDescriptor(
    id="ollama",
    name="Ollama (Local)",
    endpoint="http://localhost:11434/api/chat",
    default_model="deepseek-v3.1:671b-cloud",
    health_url="http://localhost:11434/api/tags",
)


PROVIDER_REGISTRY: Mapping[str, ProviderDescriptor] = {
    "openai": OPENAI,
    "gemini": GEMINI,
    "ollama": OLLAMA,
}


def lookup(provider_id: Optional[str]) -> Optional[ProviderDescriptor]:
    """根据 id 查找 ProviderDescriptor，不区分大小写，找不到返回 None。"""

    if not provider_id:
        return None
    return PROVIDER_REGISTRY.get(provider_id.strip().lower())


def require(provider_id: Optional[str]) -> ProviderDescriptor:
    """同 lookup，但未知 id 直接抛 ConfigurationError。"""

    descriptor = lookup(provider_id)
    if descriptor is None:
        raise ConfigurationError(
            code="UNKNOWN_PROVIDER",
            message=f"Unknown provider: {provider_id!r}",
            provider=provider_id,
        )
    return descriptor
