import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from brand_core.config.settings import settings
from brand_core.domain.entities import Brand, Record, Store
from brand_core.domain.exceptions import StoreError


TABLES = (
    "brands",
    "conversations",
    "messages",
    "projects",
    "tasks",
    "members",
    "campaigns",
    "activities",
)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class JsonStore(Store):
    """基于 JSON 文件的表存储，每张表一个文件，主键为自增整数。"""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ---- 通用读写 ----

    def get(self, table: str, record_id: Any) -> Optional[Record]:
        for row in self._read(table)["rows"]:
            if row.get("id") == record_id:
                return dict(row)
        return None

    def where(
        self,
        table: str,
        field_name: str,
        value: Any,
        reverse: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        rows = [dict(r) for r in self._read(table)["rows"] if r.get(field_name) == value]
        rows.sort(key=lambda r: r["id"], reverse=reverse)
        if limit is not None:
            rows = rows[: max(limit, 0)]
        return rows

    def add(self, table: str, record: Mapping[str, Any]) -> int:
        with self._lock:
            data = self._read(table)
            rid = data["next_id"]
            row = dict(record)
            row["id"] = rid
            data["rows"].append(row)
            data["next_id"] = rid + 1
            self._write(table, data)
        return rid

    def update(self, table: str, record_id: Any, changes: Mapping[str, Any]) -> None:
        with self._lock:
            data = self._read(table)
            for row in data["rows"]:
                if row.get("id") == record_id:
                    row.update({k: v for k, v in changes.items() if k != "id"})
                    self._write(table, data)
                    return
        raise StoreError(code="RECORD_NOT_FOUND", message=f"{table}/{record_id}")

    def delete(self, table: str, record_id: Any) -> None:
        with self._lock:
            data = self._read(table)
            remaining = [r for r in data["rows"] if r.get("id") != record_id]
            if len(remaining) == len(data["rows"]):
                raise StoreError(code="RECORD_NOT_FOUND", message=f"{table}/{record_id}")
            data["rows"] = remaining
            self._write(table, data)

    # ---- 键值设置 ----

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self._read_settings().get(key, default)

    def put_setting(self, key: str, value: Any) -> None:
        with self._lock:
            values = self._read_settings()
            values[key] = value
            self._atomic_write(self._root / "settings.json", values)

    # ---- 常用辅助 ----

    def get_current_brand(self) -> Optional[Brand]:
        brand_id = self.get_setting("current_brand_id")
        if brand_id is None:
            return None
        row = self.get("brands", brand_id)
        return Brand.from_record(row) if row else None

    def set_current_brand(self, brand_id: int) -> None:
        self.put_setting("current_brand_id", brand_id)

    def log_activity(self, brand_id: int, type_: str, description: str) -> int:
        return self.add(
            "activities",
            {"brand_id": brand_id, "type": type_, "description": description, "created_at": _utcnow()},
        )

    # ---- 内部 ----

    def _table_path(self, table: str) -> Path:
        if table not in TABLES:
            raise StoreError(code="UNKNOWN_TABLE", message=table)
        return self._root / f"{table}.json"

    def _read(self, table: str) -> Dict[str, Any]:
        path = self._table_path(table)
        if not path.exists():
            return {"next_id": 1, "rows": []}
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))

    def _write(self, table: str, data: Dict[str, Any]) -> None:
        self._atomic_write(self._table_path(table), data)

    def _read_settings(self) -> Dict[str, Any]:
        path = self._root / "settings.json"
        if not path.exists():
            return {}
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))

    def _atomic_write(self, path: Path, obj: Any) -> None:
        tmp_path = path.with_name(f"{path.stem}.{uuid4().hex}.json.tmp")
        try:
            tmp_path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StoreError(code="STORE_WRITE_ERROR", message=str(e))
