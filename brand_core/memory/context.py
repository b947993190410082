"""上下文组装。

把品牌资料、项目、任务、团队、营销活动与最近动态渲染成一段注入到 system 前言的
文本，并截取会话最近 N 条消息作为历史。数据缺失只会让输出变短，不会抛错。
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Type, TypeVar

from brand_core.config.settings import settings
from brand_core.domain.entities import Activity, Brand, Campaign, Member, Project, Record, Store, StoredMessage, Task
from brand_core.domain.exceptions import StoreError
from brand_core.domain.models import ChatMessage
from brand_core.infrastructure.logging.logger import log_event
from brand_core.prompts import BRAND_CONTEXT_PLACEHOLDER, load_system_prompt


T = TypeVar("T")

DONE_STATUS = "done"

# (字段, 标签)；按此顺序输出
IDENTITY_FIELDS = (
    ("name", "Name"),
    ("tagline", "Tagline"),
    ("mission", "Mission"),
    ("vision", "Vision"),
    ("industry", "Industry"),
    ("audience", "Target Audience"),
    ("tone", "Tone of Voice"),
    ("colors", "Brand Colors"),
    ("fonts", "Typography"),
)


def _read(read: Callable[[], List[Record]], what: str, **ctx: Any) -> List[Record]:
    try:
        return read()
    except StoreError as e:
        log_event(logging.WARNING, f"Context read failed: {what}", error=e.code, **ctx)
        return []


def _entities(cls: Type[T], rows: Iterable[Record]) -> List[T]:
    items: List[T] = []
    for row in rows:
        try:
            items.append(cls.from_record(row))
        except TypeError:
            log_event(logging.WARNING, f"Skipped malformed {cls.__name__} record", record_id=row.get("id"))
    return items


def _identity_lines(brand: Brand) -> List[str]:
    lines = []
    for attr, label in IDENTITY_FIELDS:
        value = getattr(brand, attr)
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value if v)
        if value:
            lines.append(f"**{label}**: {value}\n")
    return lines


def _section(title: str, lines: List[str]) -> str:
    return f"\n## {title}\n" + "".join(lines)


def build_brand_context(store: Store, brand_id: Optional[Any]) -> str:
    """渲染品牌上下文块；brand_id 为空或品牌不存在时返回空字符串。

    区块顺序固定：身份字段 → 项目 → 活跃任务 → 团队 → 营销活动 → 最近动态，
    对应集合为空时整个区块（含标题）都不输出。
    """

    if not brand_id:
        return ""
    try:
        row = store.get("brands", brand_id)
    except StoreError as e:
        log_event(logging.WARNING, "Brand read failed", brand_id=brand_id, error=e.code)
        return ""
    if not row:
        return ""
    brand = Brand.from_record(row)

    projects = _entities(Project, _read(lambda: store.where("projects", "brand_id", brand_id), "projects", brand_id=brand_id))
    members = _entities(Member, _read(lambda: store.where("members", "brand_id", brand_id), "members", brand_id=brand_id))
    campaigns = _entities(Campaign, _read(lambda: store.where("campaigns", "brand_id", brand_id), "campaigns", brand_id=brand_id))
    activities = _entities(
        Activity,
        _read(
            lambda: store.where("activities", "brand_id", brand_id, reverse=True, limit=settings.max_recent_activities),
            "activities",
            brand_id=brand_id,
        ),
    )

    active_tasks: List[Task] = []
    for p in projects:
        tasks = _entities(Task, _read(lambda: store.where("tasks", "project_id", p.id), "tasks", project_id=p.id))
        active_tasks.extend(t for t in tasks if t.status != DONE_STATUS)

    context = "## Brand Context\n" + "".join(_identity_lines(brand))

    if projects:
        context += _section(
            f"Projects ({len(projects)})",
            [f"- **{p.name}** — Status: {p.status}\n" for p in projects],
        )
    if active_tasks:
        context += _section(
            f"Active Tasks ({len(active_tasks)})",
            [f"- [{t.status}] {t.title} (Priority: {t.priority})\n" for t in active_tasks[: settings.max_active_tasks]],
        )
    if members:
        context += _section(f"Team ({len(members)})", [f"- {m.name} — {m.role}\n" for m in members])
    if campaigns:
        context += _section(
            f"Marketing Campaigns ({len(campaigns)})",
            [f"- **{c.name}** — Status: {c.status}\n" for c in campaigns],
        )
    if activities:
        context += _section("Recent Activity", [f"- {a.description} ({a.type})\n" for a in activities])

    return context


def build_conversation_context(
    store: Store,
    conversation_id: Any,
    limit: Optional[int] = None,
) -> List[ChatMessage]:
    """返回会话最近 limit 条消息（默认 max_context_messages），按时间正序，只保留 role/content。"""

    if limit is None:
        limit = settings.max_context_messages
    if limit <= 0:
        return []
    rows = _read(
        lambda: store.where("messages", "conversation_id", conversation_id, reverse=True, limit=limit),
        "messages",
        conversation_id=conversation_id,
    )
    recent: List[StoredMessage] = _entities(StoredMessage, rows[:limit])
    recent.reverse()
    return [ChatMessage(role=m.role, content=m.content) for m in recent]


def build_system_prompt(brand_context: str) -> str:
    """固定的行为前言 + 品牌上下文块，纯字符串拼接。"""

    return load_system_prompt("brand-assistant").replace(BRAND_CONTEXT_PLACEHOLDER, brand_context or "")
