"""Cross-owner views for the admin dashboard."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import select

from models.task import Task
from models.user import STATUSES, User
from storage.db import SessionFactory


@dataclass
class AdminTodo:
    id: int
    title: str
    description: Optional[str]
    completed: bool
    created_at: datetime
    updated_at: datetime
    user_email: Optional[str]


class AdminService:
    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    def all_todos(self) -> List[AdminTodo]:
        """Every todo with its owner's email, oldest first."""
        with self.session_factory() as s:
            stmt = (
                select(Task, User.email)
                .join(User, Task.owner_id == User.id, isouter=True)
                .order_by(Task.created_at.asc(), Task.id.asc())
            )
            rows = list(s.exec(stmt))
        return [
            AdminTodo(
                id=task.id,
                title=task.title,
                description=task.description,
                completed=task.completed,
                created_at=task.created_at,
                updated_at=task.updated_at,
                user_email=email,
            )
            for task, email in rows
        ]

    def summary(self) -> Dict[str, int]:
        counts: Dict[str, int] = {status: 0 for status in STATUSES}
        with self.session_factory() as s:
            for user in s.exec(select(User)):
                counts[user.status] += 1
            total = int(s.exec(select(func.count()).select_from(Task)).one())
            done = int(
                s.exec(
                    select(func.count()).select_from(Task).where(Task.completed == True)  # noqa: E712
                ).one()
            )
        counts["users"] = sum(counts[status] for status in STATUSES)
        counts["todos"] = total
        counts["completed_todos"] = done
        return counts


__all__ = ["AdminService", "AdminTodo"]
