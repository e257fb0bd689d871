"""Handlers behind the ``/api/todos`` endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from api.responses import (
    Identity,
    Response,
    error,
    parse_id,
    server_error,
    task_payload,
    tasks_payload,
    unauthorized,
    validation_failed,
)
from core.errors import InvalidFilterError, QueryFailedError, ValidationError
from core.filters import parse_search_params
from core.log import get_logger
from core.settings import SEARCH
from services.search import TaskSearch
from services.tasks import UNSET, TaskService, clean_completed
from storage.db import SessionFactory
from utils.datetime_utils import parse_iso_datetime

UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "completed": "completed",
    "dueDate": "due_date",
    "priority": "priority",
    "tags": "tags",
}


def _parse_due(raw: Any) -> Optional[datetime]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, datetime):
        return raw
    parsed = parse_iso_datetime(str(raw))
    if parsed is None:
        raise ValidationError("dueDate", "Please enter a valid date")
    return parsed


class TodosApi:
    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        strict_filters: Optional[bool] = None,
    ) -> None:
        self.tasks = TaskService(session_factory)
        self.search_service = TaskSearch(session_factory)
        self.strict_filters = SEARCH.strict_filters if strict_filters is None else strict_filters
        self.logger = get_logger("api.todos")

    def search(
        self,
        identity: Optional[Identity],
        params: Mapping[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> Response:
        if identity is None:
            return unauthorized()
        try:
            request = parse_search_params(params, identity.user_id, strict=self.strict_filters)
            result = self.search_service.search(request, now=now)
        except InvalidFilterError as exc:
            return error(400, str(exc), field=exc.field)
        except QueryFailedError:
            return server_error()
        return Response(
            200,
            {
                "todos": tasks_payload(result.todos),
                "totalCount": result.total_count,
                "searchQuery": result.search_query,
                "filters": result.filters,
            },
        )

    def list_todos(self, identity: Optional[Identity]) -> Response:
        if identity is None:
            return unauthorized()
        try:
            todos = self.tasks.list_for_owner(identity.user_id)
        except SQLAlchemyError:
            self.logger.exception("Listing todos failed for %s", identity.user_id)
            return server_error()
        return Response(200, {"todos": tasks_payload(todos)})

    def create(self, identity: Optional[Identity], body: Mapping[str, Any]) -> Response:
        if identity is None:
            return unauthorized()
        try:
            task = self.tasks.create(
                identity.user_id,
                title=body.get("title"),
                description=body.get("description"),
                due_date=_parse_due(body.get("dueDate")),
                priority=body.get("priority"),
                tags=body.get("tags") or [],
            )
        except ValidationError as exc:
            return validation_failed(exc)
        except SQLAlchemyError:
            self.logger.exception("Creating todo failed for %s", identity.user_id)
            return server_error()
        return Response(201, {"todo": task_payload(task)})

    def update(self, identity: Optional[Identity], todo_id: Any, body: Mapping[str, Any]) -> Response:
        if identity is None:
            return unauthorized()
        task_id = parse_id(todo_id)
        if task_id is None:
            return error(404, "Todo not found")

        changes: Dict[str, Any] = {}
        for key, name in UPDATABLE_FIELDS.items():
            if key in body:
                changes[name] = body[key]
        try:
            if "due_date" in changes:
                changes["due_date"] = _parse_due(changes["due_date"])
            task = self.tasks.update(identity.user_id, task_id, **changes)
        except ValidationError as exc:
            return validation_failed(exc)
        except SQLAlchemyError:
            self.logger.exception("Updating todo %s failed", task_id)
            return server_error()
        if task is None:
            return error(404, "Todo not found")
        return Response(200, {"todo": task_payload(task)})

    def toggle(self, identity: Optional[Identity], todo_id: Any, completed: Any = UNSET) -> Response:
        if identity is None:
            return unauthorized()
        task_id = parse_id(todo_id)
        if task_id is None:
            return error(404, "Todo not found")
        try:
            task = self.tasks.toggle(
                identity.user_id,
                task_id,
                None if completed is UNSET else clean_completed(completed),
            )
        except ValidationError as exc:
            return validation_failed(exc)
        except SQLAlchemyError:
            self.logger.exception("Toggling todo %s failed", task_id)
            return server_error()
        if task is None:
            return error(404, "Todo not found")
        return Response(200, {"todo": task_payload(task)})

    def delete(self, identity: Optional[Identity], todo_id: Any) -> Response:
        if identity is None:
            return unauthorized()
        task_id = parse_id(todo_id)
        try:
            deleted = task_id is not None and self.tasks.delete(identity.user_id, task_id)
        except SQLAlchemyError:
            self.logger.exception("Deleting todo %s failed", task_id)
            return server_error()
        if not deleted:
            return error(404, "Todo not found")
        return Response(200, {"message": "Todo deleted successfully"})

    def bulk(self, identity: Optional[Identity], body: Mapping[str, Any]) -> Response:
        """``action`` is one of ``complete``, ``incomplete``, ``update`` or ``delete``."""
        if identity is None:
            return unauthorized()
        action = body.get("action")
        todo_ids = body.get("todoIds")
        if not isinstance(todo_ids, list) or not todo_ids:
            return error(400, "Invalid todo IDs")
        try:
            if action == "delete":
                count = self.tasks.bulk_delete(identity.user_id, todo_ids)
                return Response(
                    200,
                    {
                        "success": True,
                        "deletedCount": count,
                        "message": f"Successfully deleted {count} todos",
                    },
                )
            count = self.tasks.bulk_update(identity.user_id, todo_ids, action, body.get("updates"))
        except ValidationError as exc:
            return validation_failed(exc)
        except SQLAlchemyError:
            self.logger.exception("Bulk %s failed for %s", action, identity.user_id)
            return server_error()
        return Response(
            200,
            {
                "success": True,
                "updatedCount": count,
                "message": f"Successfully updated {count} todos",
            },
        )


__all__ = ["TodosApi"]
