"""ORM models exposed by the Todos application."""
from .task import Task
from .user import User

__all__ = ["Task", "User"]
