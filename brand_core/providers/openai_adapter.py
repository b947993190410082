"""OpenAI Chat Completions 流式适配器。

- URL: descriptor.endpoint（/v1/chat/completions）
- 认证: Authorization: Bearer <api_key>
- 响应: SSE，每条 "data:" 行一个 JSON chunk，"data: [DONE]" 表示结束。
"""

from typing import List, Optional

from pydantic import BaseModel

from brand_core.domain.models import ChatMessage
from brand_core.providers.base import HttpRequest, HttpStreamAdapter, LineResult, decode_payload, sse_data
from brand_core.providers.registry import ProviderDescriptor


DONE_SENTINEL = "[DONE]"


class OpenAIDelta(BaseModel):
    content: Optional[str] = None


class OpenAIChoice(BaseModel):
    delta: Optional[OpenAIDelta] = None


class OpenAIChunk(BaseModel):
    """choices[0].delta.content"""

    choices: List[OpenAIChoice] = []

    def delta_text(self) -> Optional[str]:
        if not self.choices or self.choices[0].delta is None:
            return None
        return self.choices[0].delta.content


class OpenAIAdapter(HttpStreamAdapter):
    name = "openai"

    def build_request(
        self,
        descriptor: ProviderDescriptor,
        credential: str,
        model: str,
        messages: List[ChatMessage],
    ) -> HttpRequest:
        return HttpRequest(
            url=descriptor.endpoint_for(model),
            headers={
                "Authorization": f"Bearer {credential}",
                "Content-Type": "application/json",
            },
            body={
                "model": model,
                "messages": [m.to_payload() for m in messages],
                "stream": True,
            },
        )

    def decode_line(self, line: str) -> LineResult:
        data = sse_data(line)
        if not data:
            return LineResult()
        if data == DONE_SENTINEL:
            return LineResult(done=True)
        chunk = decode_payload(OpenAIChunk, data, self.name)
        return LineResult(delta=chunk.delta_text() if chunk else None)

    def health_request(self, descriptor: ProviderDescriptor, credential: str) -> HttpRequest:
        return HttpRequest(
            url=descriptor.health_url,
            headers={"Authorization": f"Bearer {credential}"},
        )
