from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .models import Role


Record = Dict[str, Any]


class _FromRecord:
    @classmethod
    def from_record(cls, data: Mapping[str, Any]):
        """从存储记录构造实体，忽略未知字段。"""

        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class Brand(_FromRecord):
    id: int
    name: Optional[str] = None
    tagline: Optional[str] = None
    mission: Optional[str] = None
    vision: Optional[str] = None
    industry: Optional[str] = None
    audience: Optional[str] = None
    tone: Optional[str] = None
    colors: List[str] = field(default_factory=list)
    fonts: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Project(_FromRecord):
    id: int
    brand_id: int
    name: str
    status: str = "planning"


@dataclass
class Task(_FromRecord):
    id: int
    project_id: int
    title: str
    status: str = "todo"
    priority: str = "medium"


@dataclass
class Member(_FromRecord):
    id: int
    brand_id: int
    name: str
    role: str = ""


@dataclass
class Campaign(_FromRecord):
    id: int
    brand_id: int
    name: str
    status: str = "draft"


@dataclass
class Activity(_FromRecord):
    id: int
    brand_id: int
    type: str
    description: str
    created_at: Optional[str] = None


@dataclass
class StoredMessage(_FromRecord):
    id: int
    conversation_id: int
    role: Role
    content: str
    created_at: Optional[str] = None


class Store(Protocol):
    """上层依赖的存储协作方接口（按表名 + 主键的简单读写）。"""

    def get(self, table: str, record_id: Any) -> Optional[Record]:
        ...

    def where(
        self,
        table: str,
        field_name: str,
        value: Any,
        reverse: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        ...

    def add(self, table: str, record: Mapping[str, Any]) -> int:
        ...

    def update(self, table: str, record_id: Any, changes: Mapping[str, Any]) -> None:
        ...

    def delete(self, table: str, record_id: Any) -> None:
        ...
