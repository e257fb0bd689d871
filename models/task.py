# todos/models/task.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from core.priorities import DEFAULT_PRIORITY
from utils.datetime_utils import utc_now_naive


class Task(SQLModel, table=True):
    __tablename__ = "todos"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="users.id", index=True)
    title: str
    description: Optional[str] = None
    completed: bool = False
    # naive, server local time
    due_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False), nullable=True)
    )
    priority: str = DEFAULT_PRIORITY.value  # low / medium / high
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # naive UTC
    created_at: datetime = Field(
        default_factory=utc_now_naive,
        sa_column=Column(DateTime(timezone=False), nullable=False, index=True),
    )
    updated_at: datetime = Field(
        default_factory=utc_now_naive,
        sa_column=Column(DateTime(timezone=False), nullable=False),
    )
