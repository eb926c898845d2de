# src/taskdeck/core/models.py

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any

DEFAULT_CATEGORY_ID = "personal"
MAX_TAGS_PER_TASK = 3

_ID_ALPHABET = string.digits + string.ascii_lowercase


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


class RecurrenceType(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NONE = "none"

    @classmethod
    def parse(cls, raw: Any) -> RecurrenceType:
        if not raw:
            return cls.NONE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NONE


class _Unset:
    """Marker for "field not provided" in patch values."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_ID_ALPHABET[r])
    return "".join(reversed(out))


def generate_id(prefix: str) -> str:
    """Opaque unique id: <prefix>_<base36 ms timestamp>_<random suffix>."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{stamp}_{suffix}"


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(raw: Any) -> datetime | None:
    if not raw:
        return None
    if isinstance(raw, datetime):
        ts = raw
    else:
        text = str(raw).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def format_timestamp(ts: datetime | None) -> str | None:
    if ts is None:
        return None
    return ts.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso_date(raw: Any) -> date | None:
    if not raw:
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class RecurrenceData:
    """Extra rule data; only weekly rules use it (0=Sunday .. 6=Saturday)."""

    weekdays: tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, raw: Any) -> RecurrenceData | None:
        if not isinstance(raw, dict):
            return None
        days: list[int] = []
        for d in raw.get("weekdays") or []:
            try:
                n = int(d)
            except (TypeError, ValueError):
                continue
            if 0 <= n <= 6:
                days.append(n)
        return cls(weekdays=tuple(days))

    def to_dict(self) -> dict[str, Any]:
        return {"weekdays": list(self.weekdays)}


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    description: str = ""
    category_id: str = DEFAULT_CATEGORY_ID
    tag_ids: tuple[str, ...] = ()
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    due_time: str | None = None
    completed: bool = False
    created_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None

    is_recurring: bool = False
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_data: RecurrenceData | None = None
    parent_recurring_id: str | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_recurring_id is None

    @classmethod
    def new(cls, title: str, **kwargs: Any) -> Task:
        return cls(id=generate_id("task"), title=title, **kwargs)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        tags = raw.get("tags") or []
        return cls(
            id=str(raw.get("id") or generate_id("task")),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            category_id=str(raw.get("category") or DEFAULT_CATEGORY_ID),
            tag_ids=tuple(str(t) for t in tags if t),
            priority=Priority.parse(raw.get("priority")),
            due_date=_parse_iso_date(raw.get("dueDate")),
            due_time=(str(raw["dueTime"]) if raw.get("dueTime") else None),
            completed=bool(raw.get("completed", False)),
            created_at=parse_timestamp(raw.get("createdAt")) or utc_now(),
            completed_at=parse_timestamp(raw.get("completedAt")),
            is_recurring=bool(raw.get("isRecurring", False)),
            recurrence_type=RecurrenceType.parse(raw.get("recurrenceType")),
            recurrence_data=RecurrenceData.from_dict(raw.get("recurrenceData")),
            parent_recurring_id=(str(raw["parentRecurringId"]) if raw.get("parentRecurringId") else None),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category_id,
            "tags": list(self.tag_ids),
            "priority": self.priority.value,
            "dueDate": self.due_date.isoformat() if self.due_date else "",
            "dueTime": self.due_time or "",
            "completed": self.completed,
            "createdAt": format_timestamp(self.created_at),
            "completedAt": format_timestamp(self.completed_at),
            "isRecurring": self.is_recurring,
            "recurrenceType": (
                None if self.recurrence_type == RecurrenceType.NONE else self.recurrence_type.value
            ),
            "recurrenceData": self.recurrence_data.to_dict() if self.recurrence_data else None,
            "parentRecurringId": self.parent_recurring_id,
        }


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    color: str = "#007bff"
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Category:
        return cls(
            id=str(raw.get("id") or generate_id("cat")),
            name=str(raw.get("name") or ""),
            color=str(raw.get("color") or "#007bff"),
            created_at=parse_timestamp(raw.get("createdAt")) or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "createdAt": format_timestamp(self.created_at),
        }


@dataclass(frozen=True, slots=True)
class Tag:
    id: str
    name: str
    color: str = "#dc3545"
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Tag:
        return cls(
            id=str(raw.get("id") or generate_id("tag")),
            name=str(raw.get("name") or ""),
            color=str(raw.get("color") or "#dc3545"),
            created_at=parse_timestamp(raw.get("createdAt")) or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "createdAt": format_timestamp(self.created_at),
        }


def default_categories() -> list[Category]:
    return [
        Category(id="work", name="Work", color="#ff6b6b"),
        Category(id="personal", name="Personal", color="#4ecdc4"),
        Category(id="study", name="Study", color="#45b7d1"),
    ]


def default_tags() -> list[Tag]:
    return [
        Tag(id="urgent", name="Urgent", color="#dc3545"),
        Tag(id="important", name="Important", color="#ffc107"),
        Tag(id="meeting", name="Meeting", color="#17a2b8"),
        Tag(id="project", name="Project", color="#28a745"),
    ]


# ---- partial updates ----


@dataclass(frozen=True, slots=True)
class _Patch:
    """
    Base for explicit partial updates.

    Every field defaults to UNSET; only provided fields are copied onto the
    target record. The id of the target is never changed.
    """

    def changes(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def is_empty(self) -> bool:
        return not self.changes()

    def apply_to(self, record: Any) -> Any:
        changes = self.changes()
        if not changes:
            return record
        return replace(record, **changes)


@dataclass(frozen=True, slots=True)
class TaskPatch(_Patch):
    title: Any = UNSET
    description: Any = UNSET
    category_id: Any = UNSET
    tag_ids: Any = UNSET
    priority: Any = UNSET
    due_date: Any = UNSET
    due_time: Any = UNSET
    is_recurring: Any = UNSET
    recurrence_type: Any = UNSET
    recurrence_data: Any = UNSET

    def apply_to(self, record: Any) -> Any:
        changes = self.changes()
        if "tag_ids" in changes:
            # None clears the tags.
            changes["tag_ids"] = tuple(changes["tag_ids"] or ())
        if "priority" in changes:
            changes["priority"] = Priority.parse(changes["priority"])
        if "recurrence_type" in changes:
            changes["recurrence_type"] = RecurrenceType.parse(changes["recurrence_type"])
        if not changes:
            return record
        return replace(record, **changes)


@dataclass(frozen=True, slots=True)
class CategoryPatch(_Patch):
    name: Any = UNSET
    color: Any = UNSET


@dataclass(frozen=True, slots=True)
class TagPatch(_Patch):
    name: Any = UNSET
    color: Any = UNSET


@dataclass(slots=True)
class ValidationResult:
    valid: bool = True
    errors: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True, errors=[])

    @classmethod
    def fail(cls, *errors: str) -> ValidationResult:
        return cls(valid=False, errors=list(errors))

    def add(self, error: str) -> None:
        self.errors.append(error)
        self.valid = False

    def merge(self, other: ValidationResult) -> ValidationResult:
        for e in other.errors:
            self.add(e)
        return self

    def __bool__(self) -> bool:
        return self.valid
