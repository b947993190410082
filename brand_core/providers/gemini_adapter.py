"""Gemini streamGenerateContent 适配器。

与 OpenAI 的差异：
- 模型名拼在 URL 里，API key 走查询参数 key=，alt=sse 让响应变成 SSE。
- 对话放在 contents 中，assistant 角色改名为 model；system 消息不进 contents，
  而是单独放到顶层 systemInstruction 字段。
- 没有结束哨兵，传输关闭即结束。
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from brand_core.domain.models import ChatMessage
from brand_core.providers.base import HttpRequest, HttpStreamAdapter, LineResult, decode_payload, sse_data
from brand_core.providers.registry import ProviderDescriptor


ROLE_MAP = {"assistant": "model", "user": "user"}


class GeminiPart(BaseModel):
    text: Optional[str] = None


class GeminiContent(BaseModel):
    parts: List[GeminiPart] = []


class GeminiCandidate(BaseModel):
    content: Optional[GeminiContent] = None


class GeminiChunk(BaseModel):
    """candidates[0].content.parts[0].text"""

    candidates: List[GeminiCandidate] = []

    def delta_text(self) -> Optional[str]:
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text


def build_gemini_body(messages: List[ChatMessage]) -> Dict[str, Any]:
    contents = [
        {"role": ROLE_MAP.get(m.role, "user"), "parts": [{"text": m.content}]}
        for m in messages
        if m.role != "system"
    ]
    body: Dict[str, Any] = {"contents": contents}
    system = next((m for m in messages if m.role == "system"), None)
    if system is not None:
        body["systemInstruction"] = {"parts": [{"text": system.content}]}
    return body


class GeminiAdapter(HttpStreamAdapter):
    name = "gemini"

    def build_request(
        self,
        descriptor: ProviderDescriptor,
        credential: str,
        model: str,
        messages: List[ChatMessage],
    ) -> HttpRequest:
        return HttpRequest(
            url=descriptor.endpoint_for(model),
            headers={"Content-Type": "application/json"},
            params={"key": credential, "alt": "sse"},
            body=build_gemini_body(messages),
        )

    def decode_line(self, line: str) -> LineResult:
        data = sse_data(line)
        if not data:
            return LineResult()
        chunk = decode_payload(GeminiChunk, data, self.name)
        return LineResult(delta=chunk.delta_text() if chunk else None)

    def health_request(self, descriptor: ProviderDescriptor, credential: str) -> HttpRequest:
        return HttpRequest(url=descriptor.health_url, params={"key": credential})
