"""统一的对话数据模型。

本模块定义了在不同 Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- StreamAccumulator: 单次发送调用独占的增量文本缓冲。

所有 Provider 适配器都只依赖这些模型，并负责在各自的 wire 格式与这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Union, get_args


# LLM 消息角色类型（与 OpenAI / Ollama 的 role 字段对应）
Role = Literal["system", "user", "assistant"]
ROLES = frozenset(get_args(Role))


@dataclass
class ChatMessage:
    """一条对话消息，序列内按时间先后排列。"""

    role: Role
    content: str

    def to_payload(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def coerce(cls, value: Union["ChatMessage", Mapping[str, Any]]) -> "ChatMessage":
        """接受 ChatMessage 或 {role, content} 字典。"""

        if isinstance(value, ChatMessage):
            return value
        return cls(role=value["role"], content=value.get("content") or "")


@dataclass
class StreamAccumulator:
    """单次流式调用的文本累加器，只追加、不回写。

    - text: 目前为止的完整文本。
    - chunks: 已追加的增量列表，按到达顺序。
    """

    text: str = ""
    chunks: List[str] = field(default_factory=list)

    def append(self, delta: str) -> str:
        self.chunks.append(delta)
        self.text += delta
        return self.text
