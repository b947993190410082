"""Ollama /api/chat 适配器（NDJSON，每行一个 JSON 对象，连接关闭即结束）。"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from brand_core.domain.models import ChatMessage
from brand_core.providers.base import HttpRequest, HttpStreamAdapter, LineResult, decode_payload
from brand_core.providers.registry import ProviderDescriptor


class OllamaMessage(BaseModel):
    content: Optional[str] = None


class OllamaChunk(BaseModel):
    """message.content"""

    message: Optional[OllamaMessage] = None

    def delta_text(self) -> Optional[str]:
        return self.message.content if self.message else None


def _auth_headers(credential: str) -> Dict[str, str]:
    # 本地实例不需要密钥；Ollama Cloud 需要 Bearer token
    if credential:
        return {"Authorization": f"Bearer {credential.strip()}"}
    return {}


class OllamaAdapter(HttpStreamAdapter):
    name = "ollama"

    def build_request(
        self,
        descriptor: ProviderDescriptor,
        credential: str,
        model: str,
        messages: List[ChatMessage],
    ) -> HttpRequest:
        return HttpRequest(
            url=descriptor.endpoint_for(model),
            headers={"Content-Type": "application/json", **_auth_headers(credential)},
            body={
                "model": model,
                "messages": [m.to_payload() for m in messages],
                "stream": True,
            },
        )

    def decode_line(self, line: str) -> LineResult:
        chunk = decode_payload(OllamaChunk, line.strip(), self.name)
        return LineResult(delta=chunk.delta_text() if chunk else None)

    def health_request(self, descriptor: ProviderDescriptor, credential: str) -> HttpRequest:
        return HttpRequest(url=descriptor.health_url, headers=_auth_headers(credential))
