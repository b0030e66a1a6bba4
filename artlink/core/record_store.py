"""Record store: async keyed tables with filtered queries and unique columns.

`RecordStore` is the contract the core services talk to. Two implementations:
`InMemoryRecordStore` (tests, throwaway runs) and `JsonRecordStore`, which
persists the same tables to a JSON file after every write.
"""
import json
import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from artlink.core.errors import ConstraintError, StoreError

logger = logging.getLogger(__name__)

TABLES = ("artworks", "nfc_tags", "user_profiles", "certificates")

# table -> [(column, case_insensitive)]
UNIQUE_COLUMNS: Dict[str, List[Tuple[str, bool]]] = {
    "nfc_tags": [("nfc_uid", False)],
    "certificates": [("certificate_id", False)],
    "user_profiles": [("username", True), ("slug", True)],
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fold(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


@dataclass(frozen=True)
class Filter:
    """Immutable query description. Each builder method returns a new Filter."""
    equals: Tuple[Tuple[str, Any], ...] = ()
    not_equals: Tuple[Tuple[str, Any], ...] = ()
    iequals: Tuple[Tuple[str, str], ...] = ()
    within: Tuple[Tuple[str, Tuple[Any, ...]], ...] = ()
    order_by: Optional[str] = None
    descending: bool = False
    max_rows: Optional[int] = None

    def eq(self, column: str, value: Any) -> "Filter":
        return replace(self, equals=self.equals + ((column, value),))

    def neq(self, column: str, value: Any) -> "Filter":
        return replace(self, not_equals=self.not_equals + ((column, value),))

    def ieq(self, column: str, value: str) -> "Filter":
        """Case-insensitive equality."""
        return replace(self, iequals=self.iequals + ((column, value),))

    def in_(self, column: str, values) -> "Filter":
        return replace(self, within=self.within + ((column, tuple(values)),))

    def order(self, column: str, descending: bool = False) -> "Filter":
        return replace(self, order_by=column, descending=descending)

    def limit(self, n: int) -> "Filter":
        return replace(self, max_rows=n)

    def matches(self, row: dict) -> bool:
        for column, value in self.equals:
            if row.get(column) != value:
                return False
        for column, value in self.not_equals:
            if row.get(column) == value:
                return False
        for column, value in self.iequals:
            current = row.get(column)
            if current is None or _fold(current) != _fold(value):
                return False
        for column, values in self.within:
            if row.get(column) not in values:
                return False
        return True

    def apply(self, rows: List[dict]) -> List[dict]:
        out = [r for r in rows if self.matches(r)]
        if self.order_by is not None:
            column = self.order_by
            # None sorts first ascending, last descending
            present = [r for r in out if r.get(column) is not None]
            missing = [r for r in out if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=self.descending)
            out = missing + present if not self.descending else present + missing
        if self.max_rows is not None:
            out = out[: self.max_rows]
        return out


class RecordStore(ABC):
    """Async table store contract. Rows are plain dicts; callers convert at the boundary."""

    @abstractmethod
    async def find(self, table: str, flt: Optional[Filter] = None) -> List[dict]:
        raise NotImplementedError

    async def find_one(self, table: str, flt: Optional[Filter] = None) -> Optional[dict]:
        rows = await self.find(table, (flt or Filter()).limit(1))
        return rows[0] if rows else None

    @abstractmethod
    async def insert(self, table: str, fields: dict) -> dict:
        raise NotImplementedError

    @abstractmethod
    async def update(self, table: str, flt: Filter, fields: dict) -> List[dict]:
        """Apply `fields` to every matching row; return the updated rows (maybe empty)."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, table: str, flt: Filter) -> int:
        raise NotImplementedError

    @abstractmethod
    async def count(self, table: str, flt: Optional[Filter] = None) -> int:
        raise NotImplementedError


class InMemoryRecordStore(RecordStore):
    """Dict-of-tables store enforcing UNIQUE_COLUMNS. Returns copies, never live rows."""

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None) -> None:
        self._tables: Dict[str, List[dict]] = {name: [] for name in TABLES}
        for name, rows in (tables or {}).items():
            self._table(name).extend(dict(r) for r in rows)

    def _table(self, table: str) -> List[dict]:
        try:
            return self._tables[table]
        except KeyError:
            raise StoreError(f"unknown table {table!r}") from None

    def _check_unique(self, table: str, row: dict, ignore_id: Optional[str] = None) -> None:
        for column, folded in UNIQUE_COLUMNS.get(table, []):
            value = row.get(column)
            if value is None:
                continue
            key = _fold(value) if folded else value
            for other in self._tables[table]:
                if other.get("id") == ignore_id:
                    continue
                other_value = other.get(column)
                if other_value is None:
                    continue
                if (_fold(other_value) if folded else other_value) == key:
                    raise ConstraintError(table, column, value)

    def _committed(self) -> None:
        """Hook called after every write; raising StoreError undoes the write."""

    def _commit(self, rows: List[dict], snapshot: List[dict]) -> None:
        try:
            self._committed()
        except StoreError:
            rows[:] = snapshot
            raise

    async def find(self, table: str, flt: Optional[Filter] = None) -> List[dict]:
        rows = (flt or Filter()).apply(self._table(table))
        return [dict(r) for r in rows]

    async def insert(self, table: str, fields: dict) -> dict:
        rows = self._table(table)
        now = _now()
        row = dict(fields)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        if any(r.get("id") == row["id"] for r in rows):
            raise ConstraintError(table, "id", row["id"])
        self._check_unique(table, row)
        snapshot = [dict(r) for r in rows]
        rows.append(row)
        self._commit(rows, snapshot)
        return dict(row)

    async def update(self, table: str, flt: Filter, fields: dict) -> List[dict]:
        rows = self._table(table)
        targets = [r for r in rows if flt.matches(r)]
        if not targets:
            return []
        now = _now()
        staged = []
        for row in targets:
            new_row = {**row, **fields, "id": row["id"], "updated_at": now}
            self._check_unique(table, new_row, ignore_id=row["id"])
            staged.append((row, new_row))
        # A batch that would collide with itself is rejected as a whole
        for column, folded in UNIQUE_COLUMNS.get(table, []):
            if column in fields and fields[column] is not None and len(staged) > 1:
                raise ConstraintError(table, column, fields[column])
        snapshot = [dict(r) for r in rows]
        for row, new_row in staged:
            row.clear()
            row.update(new_row)
        self._commit(rows, snapshot)
        return [dict(r) for _, r in staged]

    async def delete(self, table: str, flt: Filter) -> int:
        rows = self._table(table)
        keep = [r for r in rows if not flt.matches(r)]
        removed = len(rows) - len(keep)
        if removed:
            snapshot = list(rows)
            rows[:] = keep
            self._commit(rows, snapshot)
        return removed

    async def count(self, table: str, flt: Optional[Filter] = None) -> int:
        flt = flt or Filter()
        return sum(1 for r in self._table(table) if flt.matches(r))


class JsonRecordStore(InMemoryRecordStore):
    """In-memory tables loaded from and rewritten to a single JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        super().__init__(self._load())

    def _load(self) -> Dict[str, List[dict]]:
        p = self._path
        if not p.exists():
            return {}
        if not p.is_file():
            logger.warning("Record store path %s is not a file, starting empty", p)
            return {}
        try:
            data = json.loads(p.read_text())
        except json.JSONDecodeError as e:
            aside = p.with_name(p.name + ".corrupt")
            logger.error("Record store %s is not valid JSON (%s); moved to %s, starting empty", p, e, aside)
            os.replace(p, aside)
            return {}
        except OSError as e:
            raise StoreError(f"could not read {p}: {e}") from e
        out: Dict[str, List[dict]] = {}
        for name in TABLES:
            rows = data.get(name, []) if isinstance(data, dict) else []
            out[name] = [r for r in rows if isinstance(r, dict) and "id" in r]
        return out

    def _committed(self) -> None:
        """Write all tables to a temp file beside the target, then swap it in."""
        p = self._path
        tmp_name = None
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=p.parent, prefix=f".{p.name}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                json.dump(self._tables, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, p)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"could not write {p}: {e}") from e
