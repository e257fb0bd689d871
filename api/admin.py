"""Handlers behind the ``/api/admin`` endpoints."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from api.responses import (
    Identity,
    Response,
    error,
    forbidden,
    parse_id,
    server_error,
    unauthorized,
    user_payload,
    validation_failed,
)
from core.errors import ConflictError, ValidationError
from core.log import get_logger
from services.admin import AdminService
from services.users import UserService
from storage.db import SessionFactory
from utils.datetime_utils import ensure_utc, to_iso


class AdminApi:
    def __init__(self, session_factory: SessionFactory) -> None:
        self.users = UserService(session_factory)
        self.admin = AdminService(session_factory)
        self.logger = get_logger("api.admin")

    def _guard(self, identity: Optional[Identity]) -> Optional[Response]:
        if identity is None:
            return unauthorized()
        if not identity.is_admin:
            return forbidden()
        return None

    def list_users(self, identity: Optional[Identity]) -> Response:
        denied = self._guard(identity)
        if denied:
            return denied
        try:
            users = self.users.list_all()
            summary = self.admin.summary()
        except SQLAlchemyError:
            self.logger.exception("Listing users failed")
            return server_error()
        return Response(200, {"users": [user_payload(u) for u in users], "summary": summary})

    def get_user(self, identity: Optional[Identity], user_id: Any) -> Response:
        denied = self._guard(identity)
        if denied:
            return denied
        ident = parse_id(user_id)
        try:
            user = self.users.get(ident) if ident is not None else None
        except SQLAlchemyError:
            self.logger.exception("Loading user %s failed", user_id)
            return server_error()
        if user is None:
            return error(404, "User not found")
        return Response(200, {"user": user_payload(user)})

    def set_user_approval(
        self,
        identity: Optional[Identity],
        user_id: Any,
        body: Mapping[str, Any],
    ) -> Response:
        """Apply ``{"action": "approve" | "reject"}`` to an account."""
        denied = self._guard(identity)
        if denied:
            return denied
        ident = parse_id(user_id)
        try:
            user = self.users.set_approval(ident, body.get("action")) if ident is not None else None
        except ValidationError as exc:
            return error(400, exc.message)
        except SQLAlchemyError:
            self.logger.exception("Changing approval of user %s failed", user_id)
            return server_error()
        if user is None:
            return error(404, "User not found")
        return Response(200, {"user": user_payload(user)})

    def update_user(
        self,
        identity: Optional[Identity],
        user_id: Any,
        body: Mapping[str, Any],
    ) -> Response:
        denied = self._guard(identity)
        if denied:
            return denied
        email, role = body.get("email"), body.get("role")
        if not email or not role:
            return error(400, "Email and role are required")
        ident = parse_id(user_id)
        try:
            user = self.users.update(ident, email, role) if ident is not None else None
        except ValidationError as exc:
            return validation_failed(exc)
        except ConflictError as exc:
            return error(400, str(exc))
        except SQLAlchemyError:
            self.logger.exception("Updating user %s failed", user_id)
            return server_error()
        if user is None:
            return error(404, "User not found")
        return Response(200, {"user": user_payload(user)})

    def delete_user(self, identity: Optional[Identity], user_id: Any) -> Response:
        denied = self._guard(identity)
        if denied:
            return denied
        ident = parse_id(user_id)
        if ident is not None and ident == identity.user_id:
            return error(400, "Cannot delete your own account")
        try:
            deleted = ident is not None and self.users.delete(ident)
        except SQLAlchemyError:
            self.logger.exception("Deleting user %s failed", user_id)
            return server_error()
        if not deleted:
            return error(404, "User not found")
        return Response(200, {"message": "User deleted successfully"})

    def todos(self, identity: Optional[Identity]) -> Response:
        denied = self._guard(identity)
        if denied:
            return denied
        try:
            rows = self.admin.all_todos()
        except SQLAlchemyError:
            self.logger.exception("Listing all todos failed")
            return server_error()
        return Response(
            200,
            {
                "todos": [
                    {
                        "id": row.id,
                        "title": row.title,
                        "description": row.description,
                        "completed": row.completed,
                        "createdAt": to_iso(ensure_utc(row.created_at)),
                        "updatedAt": to_iso(ensure_utc(row.updated_at)),
                        "userEmail": row.user_email,
                    }
                    for row in rows
                ]
            },
        )


__all__ = ["AdminApi"]
