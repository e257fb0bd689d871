"""SQLModel table for application accounts and their approval state."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from utils.datetime_utils import utc_now_naive

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    role: str = Field(default=ROLE_USER)
    approved: bool = Field(default=False)
    rejected: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=utc_now_naive,
        sa_column=Column(DateTime(timezone=False), nullable=False),
    )

    @property
    def status(self) -> str:
        if self.rejected:
            return STATUS_REJECTED
        if self.approved:
            return STATUS_APPROVED
        return STATUS_PENDING

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


__all__ = [
    "User",
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_USER",
    "STATUSES",
    "STATUS_APPROVED",
    "STATUS_PENDING",
    "STATUS_REJECTED",
]
