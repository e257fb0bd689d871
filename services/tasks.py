# todos/services/tasks.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from sqlmodel import select

from core.errors import ValidationError
from core.filters import parse_bool
from core.log import get_logger
from core.priorities import Priority, normalize_priority, parse_priority
from core.settings import VALIDATION
from models.task import Task
from storage.db import SessionFactory
from utils.datetime_utils import to_local_naive, utc_now_naive


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

BULK_ACTIONS = ("complete", "incomplete", "update")
BULK_UPDATE_FIELDS = ("priority", "tags")


def clean_title(title: Optional[str]) -> str:
    value = (title or "").strip()
    if not value:
        raise ValidationError("title", "Title is required")
    if len(value) > VALIDATION.title_max_length:
        raise ValidationError(
            "title", f"Title must be at most {VALIDATION.title_max_length} characters"
        )
    return value


def clean_description(description: Optional[str]) -> Optional[str]:
    value = (description or "").strip()
    if len(value) > VALIDATION.description_max_length:
        raise ValidationError(
            "description",
            f"Description must be at most {VALIDATION.description_max_length} characters",
        )
    return value or None


def clean_tags(tags: Optional[Iterable[str]]) -> List[str]:
    if tags is None:
        return []
    if not isinstance(tags, (list, tuple)):
        raise ValidationError("tags", "Tags must be a list of strings")
    result: List[str] = []
    for raw in tags:
        if not isinstance(raw, str):
            raise ValidationError("tags", "Tags must be a list of strings")
        tag = raw.strip()
        if not tag:
            raise ValidationError("tags", "Tag cannot be empty")
        if len(tag) > VALIDATION.tag_max_length:
            raise ValidationError(
                "tags", f"Tag must be at most {VALIDATION.tag_max_length} characters"
            )
        if tag not in result:
            result.append(tag)
    return result


def clean_completed(completed: Any) -> bool:
    value = parse_bool(completed)
    if value is None:
        raise ValidationError("completed", "Completed must be true or false")
    return value


def clean_priority(priority: Priority | str | None) -> str:
    if priority is None:
        return normalize_priority(None).value
    parsed = parse_priority(priority)
    if parsed is None:
        raise ValidationError("priority", f"Unsupported priority {priority!r}")
    return parsed.value


class TaskService:
    """Owner-scoped task writes and lookups."""

    _listeners: Dict[str, Set[Callable[[int], None]]] = {
        "after_create": set(),
        "after_update": set(),
        "after_delete": set(),
    }

    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory
        self.logger = get_logger("tasks")

    @classmethod
    def subscribe(cls, event: str, callback: Callable[[int], None]) -> None:
        if event not in cls._listeners:
            raise ValueError(f"Unsupported event: {event}")
        cls._listeners[event].add(callback)

    @classmethod
    def unsubscribe(cls, event: str, callback: Callable[[int], None]) -> None:
        if event not in cls._listeners:
            return
        cls._listeners[event].discard(callback)

    def _emit(self, event: str, task_id: int) -> None:
        listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            try:
                listener(task_id)
            except Exception:
                self.logger.exception("Listener %r failed on %s for task %s", listener, event, task_id)

    def create(
        self,
        owner_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        priority: Priority | str | None = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Task:
        task = Task(
            owner_id=owner_id,
            title=clean_title(title),
            description=clean_description(description),
            due_date=to_local_naive(due_date),
            priority=clean_priority(priority),
            tags=clean_tags(tags),
        )
        with self.session_factory() as s:
            s.add(task)
            s.commit()
            s.refresh(task)
        self.logger.debug("Task created: %s (owner %s)", task.id, owner_id)
        self._emit("after_create", task.id)
        return task

    def _owned(self, s, owner_id: int, task_id: int) -> Optional[Task]:
        stmt = select(Task).where(Task.id == task_id, Task.owner_id == owner_id)
        return s.exec(stmt).first()

    def get(self, owner_id: int, task_id: int) -> Optional[Task]:
        with self.session_factory() as s:
            return self._owned(s, owner_id, task_id)

    def list_for_owner(self, owner_id: int) -> List[Task]:
        with self.session_factory() as s:
            stmt = (
                select(Task)
                .where(Task.owner_id == owner_id)
                .order_by(Task.created_at.desc(), Task.id.desc())
            )
            return list(s.exec(stmt))

    def update(
        self,
        owner_id: int,
        task_id: int,
        *,
        title: Any = UNSET,
        description: Any = UNSET,
        due_date: Any = UNSET,
        priority: Any = UNSET,
        tags: Any = UNSET,
        completed: Any = UNSET,
    ) -> Optional[Task]:
        with self.session_factory() as s:
            t = self._owned(s, owner_id, task_id)
            if not t:
                return None
            if title is not UNSET:
                t.title = clean_title(title)
            if description is not UNSET:
                t.description = clean_description(description)
            if due_date is not UNSET:
                t.due_date = to_local_naive(due_date)
            if priority is not UNSET:
                t.priority = clean_priority(priority)
            if tags is not UNSET:
                t.tags = clean_tags(tags)
            if completed is not UNSET:
                t.completed = clean_completed(completed)
            t.updated_at = utc_now_naive()
            s.add(t)
            s.commit()
            s.refresh(t)
        self.logger.debug("Task updated: %s", task_id)
        self._emit("after_update", task_id)
        return t

    def toggle(self, owner_id: int, task_id: int, completed: Optional[bool] = None) -> Optional[Task]:
        """Set ``completed`` explicitly, or flip it when ``completed`` is ``None``."""
        if completed is None:
            current = self.get(owner_id, task_id)
            if current is None:
                return None
            completed = not current.completed
        return self.update(owner_id, task_id, completed=completed)

    def delete(self, owner_id: int, task_id: int) -> bool:
        with self.session_factory() as s:
            t = self._owned(s, owner_id, task_id)
            if not t:
                return False
            s.delete(t)
            s.commit()
        self.logger.debug("Task deleted: %s", task_id)
        self._emit("after_delete", task_id)
        return True

    # ---------- Bulk operations ----------
    def bulk_update(
        self,
        owner_id: int,
        task_ids: Iterable[int],
        action: str,
        updates: Optional[Dict[str, Any]] = None,
    ) -> int:
        ids = self._validate_ids(task_ids)
        if action not in BULK_ACTIONS:
            raise ValidationError("action", f"Invalid action {action!r}")

        changes: Dict[str, Any] = {}
        if action == "complete":
            changes["completed"] = True
        elif action == "incomplete":
            changes["completed"] = False
        else:
            for key, value in (updates or {}).items():
                if key not in BULK_UPDATE_FIELDS:
                    raise ValidationError(key, "Field cannot be bulk updated")
                changes[key] = clean_priority(value) if key == "priority" else clean_tags(value)

        now = utc_now_naive()
        with self.session_factory() as s:
            stmt = select(Task).where(Task.owner_id == owner_id, Task.id.in_(ids))
            tasks = list(s.exec(stmt))
            for t in tasks:
                for key, value in changes.items():
                    setattr(t, key, value)
                t.updated_at = now
                s.add(t)
            s.commit()
            updated_ids = [t.id for t in tasks]

        self.logger.debug("Bulk %s on %d tasks for owner %s", action, len(updated_ids), owner_id)
        for task_id in updated_ids:
            self._emit("after_update", task_id)
        return len(updated_ids)

    def bulk_delete(self, owner_id: int, task_ids: Iterable[int]) -> int:
        ids = self._validate_ids(task_ids)
        with self.session_factory() as s:
            stmt = select(Task).where(Task.owner_id == owner_id, Task.id.in_(ids))
            owned = []
            for t in s.exec(stmt).all():
                owned.append(t.id)
                s.delete(t)
            if owned:
                s.commit()

        self.logger.debug("Bulk delete of %d tasks for owner %s", len(owned), owner_id)
        for task_id in owned:
            self._emit("after_delete", task_id)
        return len(owned)

    def _validate_ids(self, task_ids: Iterable[int]) -> List[int]:
        try:
            ids = [int(task_id) for task_id in (task_ids or [])]
        except (TypeError, ValueError):
            raise ValidationError("todoIds", "Invalid todo IDs") from None
        if not ids:
            raise ValidationError("todoIds", "At least one todo must be selected")
        return ids


__all__ = ["TaskService", "UNSET", "BULK_ACTIONS", "clean_completed", "clean_tags", "clean_title"]
