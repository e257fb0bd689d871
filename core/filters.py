"""Search request record and the parsing of raw query parameters into it."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from core.errors import InvalidFilterError
from core.log import get_logger
from core.priorities import Priority, parse_priority


class DueDateBucket(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    THIS_WEEK = "this-week"
    THIS_MONTH = "this-month"


_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


@dataclass(frozen=True)
class SearchRequest:
    """Normalised search over one owner's tasks.

    Every field except ``owner_id`` is optional; ``None`` (or an empty
    ``tags`` tuple) means no constraint on that dimension.
    """

    owner_id: int
    text: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    tags: Tuple[str, ...] = ()
    due_bucket: Optional[DueDateBucket] = None

    def applied_filters(self) -> Dict[str, Any]:
        return {
            "completed": self.completed,
            "priority": self.priority.value if self.priority else None,
            "tags": list(self.tags) if self.tags else None,
            "dueDate": self.due_bucket.value if self.due_bucket else None,
        }


def parse_bucket(value: DueDateBucket | str | None) -> Optional[DueDateBucket]:
    if value is None:
        return None
    if isinstance(value, DueDateBucket):
        return value
    try:
        return DueDateBucket(str(value).strip().lower())
    except ValueError:
        return None


def parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    lowered = str(value).strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def split_tags(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    seen = []
    for part in parts:
        tag = str(part).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _unsupported(field: str, value: Any, strict: bool) -> None:
    if strict:
        raise InvalidFilterError(field, value)
    get_logger("filters").debug("Ignoring unsupported %s filter value %r", field, value)


def parse_search_params(
    params: Mapping[str, Any],
    owner_id: int,
    *,
    strict: bool = False,
) -> SearchRequest:
    """Build a :class:`SearchRequest` from ``q``/``completed``/``priority``/``tags``/``dueDate``."""

    text = params.get("q")
    text = text.strip() if isinstance(text, str) and text.strip() else None

    completed = None
    raw_completed = params.get("completed")
    if not _blank(raw_completed):
        completed = parse_bool(raw_completed)
        if completed is None:
            _unsupported("completed", raw_completed, strict)

    priority = None
    raw_priority = params.get("priority")
    if not _blank(raw_priority):
        priority = parse_priority(raw_priority)
        if priority is None:
            _unsupported("priority", raw_priority, strict)

    bucket = None
    raw_bucket = params.get("dueDate")
    if not _blank(raw_bucket):
        bucket = parse_bucket(raw_bucket)
        if bucket is None:
            _unsupported("dueDate", raw_bucket, strict)

    return SearchRequest(
        owner_id=owner_id,
        text=text,
        completed=completed,
        priority=priority,
        tags=split_tags(params.get("tags")),
        due_bucket=bucket,
    )


__all__ = [
    "DueDateBucket",
    "SearchRequest",
    "parse_bool",
    "parse_bucket",
    "parse_search_params",
    "split_tags",
]
