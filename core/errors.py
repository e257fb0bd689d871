"""Exception types raised by the services and mapped to responses in ``api``."""
from __future__ import annotations

from typing import Any, Dict, List


class TodosError(Exception):
    """Base class for application errors."""


class ValidationError(TodosError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def details(self) -> List[Dict[str, str]]:
        return [{"field": self.field, "message": self.message}]


class InvalidFilterError(ValidationError):
    """A search filter carried a value outside its closed set."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(field, f"Unsupported value {value!r}")
        self.value = value


class ConflictError(TodosError):
    pass


class QueryFailedError(TodosError):
    """The persistence layer could not answer a read."""


__all__ = [
    "TodosError",
    "ValidationError",
    "InvalidFilterError",
    "ConflictError",
    "QueryFailedError",
]
