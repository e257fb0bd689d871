"""Utility helpers for task priorities."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_META: Dict[Priority, Dict[str, str]] = {
    Priority.LOW: {
        "label": "Low priority",
        "short": "Low",
        "marker": ".",
    },
    Priority.MEDIUM: {
        "label": "Medium priority",
        "short": "Medium",
        "marker": "!",
    },
    Priority.HIGH: {
        "label": "High priority",
        "short": "High",
        "marker": "!!",
    },
}

DEFAULT_PRIORITY = Priority.MEDIUM


def parse_priority(value: Priority | str | None) -> Optional[Priority]:
    """Map an external value onto the closed set; ``None`` when unsupported."""
    if value is None:
        return None
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).strip().lower())
    except ValueError:
        return None


def normalize_priority(value: Priority | str | None) -> Priority:
    """Like :func:`parse_priority` but falls back to the default level."""
    return parse_priority(value) or DEFAULT_PRIORITY


def priority_label(value: Priority | str, *, short: bool = False) -> str:
    meta = PRIORITY_META[normalize_priority(value)]
    return meta["short" if short else "label"]


def priority_marker(value: Priority | str) -> str:
    return PRIORITY_META[normalize_priority(value)]["marker"]


def priority_options() -> Dict[str, str]:
    """Return mapping of option values -> labels."""
    return {level.value: meta["label"] for level, meta in PRIORITY_META.items()}
