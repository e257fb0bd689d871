# todos/services/search.py
"""Search over one owner's tasks.

A :class:`~core.filters.SearchRequest` becomes a list of SQLAlchemy
conditions that are AND-ed together. Inside the text filter the title and
description matches are OR-ed, and so are the per-tag matches inside the
tag filter. Absent fields add no condition.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, literal, or_, select as sa_select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.functions import FunctionElement
from sqlmodel import select

from core.errors import QueryFailedError
from core.filters import DueDateBucket, SearchRequest
from core.log import get_logger
from models.task import Task
from storage.db import SessionFactory
from utils.datetime_utils import end_of_month, local_now, start_of_day, to_local_naive


@dataclass
class SearchResult:
    todos: List[Task]
    total_count: int
    search_query: str
    filters: Dict[str, Any] = field(default_factory=dict)


def bucket_window(bucket: DueDateBucket, now: datetime) -> Tuple[Optional[datetime], datetime]:
    """Return the inclusive ``(lower, upper)`` due-date bounds for ``bucket``.

    ``overdue`` has no lower bound and an exclusive upper bound of ``now``.
    """

    today = start_of_day(now)
    if bucket is DueDateBucket.OVERDUE:
        return None, now
    if bucket is DueDateBucket.TODAY:
        return today, today + timedelta(days=1)
    if bucket is DueDateBucket.THIS_WEEK:
        return today, today + timedelta(days=7)
    return today, end_of_month(now)


def _text_condition(text: str) -> ColumnElement:
    return or_(
        Task.title.icontains(text, autoescape=True),
        Task.description.icontains(text, autoescape=True),
    )


class json_array_values(FunctionElement):
    """Rows of the text elements of a JSON array, in a ``value`` column."""

    inherit_cache = True


@compiles(json_array_values)
def _json_array_values_sqlite(element, compiler, **kw):
    return "json_each(%s)" % compiler.process(element.clauses, **kw)


@compiles(json_array_values, "postgresql")
def _json_array_values_postgresql(element, compiler, **kw):
    return "json_array_elements_text(%s)" % compiler.process(element.clauses, **kw)


def _tags_condition(tags: Sequence[str]) -> ColumnElement:
    # Any stored element equal to one of the requested tags.
    values = json_array_values(Task.tags).table_valued("value")
    return sa_select(literal(1)).select_from(values).where(values.c.value.in_(tags)).exists()


def _bucket_condition(bucket: DueDateBucket, now: datetime) -> ColumnElement:
    lower, upper = bucket_window(bucket, now)
    if bucket is DueDateBucket.OVERDUE:
        return and_(Task.due_date < upper, Task.completed == False)  # noqa: E712
    return and_(Task.due_date >= lower, Task.due_date <= upper)


def build_conditions(request: SearchRequest, now: datetime) -> List[ColumnElement]:
    conditions: List[ColumnElement] = [Task.owner_id == request.owner_id]

    if request.text:
        conditions.append(_text_condition(request.text))

    if request.completed is not None:
        conditions.append(Task.completed == request.completed)

    if request.priority is not None:
        conditions.append(Task.priority == request.priority.value)

    if request.tags:
        conditions.append(_tags_condition(request.tags))

    if request.due_bucket is not None:
        conditions.append(_bucket_condition(request.due_bucket, now))

    return conditions


class TaskSearch:
    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory
        self.logger = get_logger("search")

    def find_tasks(self, owner_id: int, conditions: Sequence[ColumnElement]) -> List[Task]:
        stmt = (
            select(Task)
            .where(Task.owner_id == owner_id, *conditions)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        try:
            with self.session_factory() as s:
                return list(s.exec(stmt))
        except SQLAlchemyError as exc:
            self.logger.exception("Task query failed for owner %s", owner_id)
            raise QueryFailedError("query failed") from exc

    def search(self, request: SearchRequest, *, now: Optional[datetime] = None) -> SearchResult:
        moment = to_local_naive(now) if now is not None else local_now()
        conditions = build_conditions(request, moment)
        todos = self.find_tasks(request.owner_id, conditions)
        self.logger.debug(
            "Search for owner %s matched %d tasks (filters=%s)",
            request.owner_id,
            len(todos),
            request.applied_filters(),
        )
        return SearchResult(
            todos=todos,
            total_count=len(todos),
            search_query=request.text or "",
            filters=request.applied_filters(),
        )


__all__ = ["SearchResult", "TaskSearch", "bucket_window", "build_conditions"]
