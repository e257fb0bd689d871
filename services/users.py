# todos/services/users.py
from __future__ import annotations

import re
from typing import List, Optional

from sqlmodel import select

from core.errors import ConflictError, ValidationError
from core.log import get_logger
from models.task import Task
from models.user import (
    ROLE_ADMIN,
    ROLE_USER,
    ROLES,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUSES,
    User,
)
from storage.db import SessionFactory


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
APPROVAL_ACTIONS = ("approve", "reject")


def normalize_email(email: Optional[str]) -> str:
    value = (email or "").strip().lower()
    if not EMAIL_RE.match(value):
        raise ValidationError("email", "Please enter a valid email address")
    return value


def can_sign_in(user: Optional[User]) -> bool:
    """Admins always; everyone else only once approved and not rejected."""
    if user is None:
        return False
    if user.is_admin:
        return True
    return user.approved and not user.rejected


class UserService:
    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory
        self.logger = get_logger("users")

    def signup(self, email: str, role: str = ROLE_USER) -> User:
        email = normalize_email(email)
        self._validate_role(role)
        with self.session_factory() as session:
            if self._by_email(session, email) is not None:
                raise ConflictError("User already exists")
            is_admin = role == ROLE_ADMIN
            user = User(email=email, role=role, approved=is_admin, rejected=False)
            session.add(user)
            session.commit()
            session.refresh(user)
        self.logger.info("New %s signed up: %s (status %s)", role, email, user.status)
        return user

    def get(self, user_id: int) -> Optional[User]:
        with self.session_factory() as session:
            return session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with self.session_factory() as session:
            return self._by_email(session, (email or "").strip().lower())

    def list_all(self) -> List[User]:
        with self.session_factory() as session:
            stmt = select(User).order_by(User.created_at.asc(), User.id.asc())
            return list(session.exec(stmt))

    def list_by_status(self, status: str) -> List[User]:
        if status not in STATUSES:
            raise ValidationError("status", f"Status must be one of {', '.join(STATUSES)}")
        stmt = select(User)
        if status == STATUS_PENDING:
            stmt = stmt.where(User.approved == False, User.rejected == False)  # noqa: E712
        elif status == STATUS_APPROVED:
            stmt = stmt.where(User.approved == True, User.rejected == False)  # noqa: E712
        else:
            stmt = stmt.where(User.rejected == True)  # noqa: E712
        stmt = stmt.order_by(User.created_at.asc(), User.id.asc())
        with self.session_factory() as session:
            return list(session.exec(stmt))

    # ---------- Approval workflow ----------
    def approve(self, user_id: int) -> Optional[User]:
        return self._set_flags(user_id, approved=True, rejected=False)

    def reject(self, user_id: int) -> Optional[User]:
        return self._set_flags(user_id, approved=False, rejected=True)

    def set_approval(self, user_id: int, action: str) -> Optional[User]:
        if action not in APPROVAL_ACTIONS:
            raise ValidationError("action", "Invalid action")
        if action == "approve":
            return self.approve(user_id)
        return self.reject(user_id)

    def _set_flags(self, user_id: int, *, approved: bool, rejected: bool) -> Optional[User]:
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            user.approved = approved
            user.rejected = rejected
            session.add(user)
            session.commit()
            session.refresh(user)
        self.logger.info("User %s is now %s", user.email, user.status)
        return user

    # ---------- Admin management ----------
    def update(self, user_id: int, email: str, role: str) -> Optional[User]:
        email = normalize_email(email)
        self._validate_role(role)
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            if email != user.email:
                other = self._by_email(session, email)
                if other is not None:
                    raise ConflictError("Email already exists")
            user.email = email
            user.role = role
            user.approved = True
            user.rejected = False
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    def delete(self, user_id: int) -> bool:
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if not user:
                return False
            # Todos reference the user; remove them first
            for task in session.exec(select(Task).where(Task.owner_id == user_id)).all():
                session.delete(task)
            session.delete(user)
            session.commit()
        self.logger.info("Deleted user %s", user_id)
        return True

    def ensure_admin(self, email: str) -> User:
        """Create an approved admin, or promote and approve an existing account."""
        email = normalize_email(email)
        with self.session_factory() as session:
            user = self._by_email(session, email)
            if user is None:
                user = User(email=email, role=ROLE_ADMIN, approved=True, rejected=False)
            else:
                user.role = ROLE_ADMIN
                user.approved = True
                user.rejected = False
            session.add(user)
            session.commit()
            session.refresh(user)
        self.logger.info("Admin account ready: %s", email)
        return user

    # ------------------------------------------------------------------
    def _by_email(self, session, email: str) -> Optional[User]:
        return session.exec(select(User).where(User.email == email)).first()

    def _validate_role(self, role: str) -> None:
        if role not in ROLES:
            raise ValidationError("role", 'Invalid role. Must be "user" or "admin"')


__all__ = ["APPROVAL_ACTIONS", "UserService", "can_sign_in", "normalize_email"]
