from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.errors import ValidationError
from models.task import Task
from models.user import ROLE_ADMIN, User
from utils.datetime_utils import ensure_utc, to_iso


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as established by the auth layer."""

    user_id: int
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass
class Response:
    status: int
    body: Dict[str, Any] = field(default_factory=dict)


def error(status: int, message: str, **extra: Any) -> Response:
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    return Response(status, body)


def unauthorized() -> Response:
    return error(401, "Unauthorized")


def forbidden() -> Response:
    return error(403, "Forbidden - Admin access required")


def server_error() -> Response:
    return error(500, "Internal server error")


def validation_failed(exc: ValidationError) -> Response:
    return error(400, "Validation failed", field=exc.field, details=exc.details())


def task_payload(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "userId": task.owner_id,
        "title": task.title,
        "description": task.description,
        "completed": task.completed,
        "dueDate": to_iso(task.due_date),
        "priority": task.priority,
        "tags": list(task.tags or []),
        "createdAt": to_iso(ensure_utc(task.created_at)),
        "updatedAt": to_iso(ensure_utc(task.updated_at)),
    }


def tasks_payload(tasks: List[Task]) -> List[Dict[str, Any]]:
    return [task_payload(task) for task in tasks]


def user_payload(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "approved": user.approved,
        "rejected": user.rejected,
        "status": user.status,
        "createdAt": to_iso(ensure_utc(user.created_at)),
    }


def parse_id(raw: Optional[Any]) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


__all__ = [
    "Identity",
    "Response",
    "error",
    "forbidden",
    "parse_id",
    "server_error",
    "task_payload",
    "tasks_payload",
    "unauthorized",
    "user_payload",
    "validation_failed",
]
