"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``TODOS_DATA_DIR`` in ``env`` wins over the platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    override = environ.get("TODOS_DATA_DIR")
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


APP_NAME = "Todos"


DATA_DIR = get_default_data_dir(APP_NAME)
LOG_DIR = DATA_DIR / "logs"

DB_PATH = DATA_DIR / "app.db"
LOG_PATH = LOG_DIR / "todos.log"


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = field(
        default_factory=lambda: os.environ.get("TODOS_DATABASE_URL")
        or f"sqlite:///{DB_PATH.as_posix()}"
    )
    echo: bool = field(default_factory=lambda: _env_flag("TODOS_DATABASE_ECHO", False))


DATABASE = DatabaseSettings()


@dataclass(frozen=True)
class SearchSettings:
    # Unsupported filter values are dropped unless strict mode is on.
    strict_filters: bool = field(default_factory=lambda: _env_flag("TODOS_STRICT_FILTERS", False))


SEARCH = SearchSettings()


@dataclass(frozen=True)
class ValidationSettings:
    title_max_length: int = 100
    description_max_length: int = 500
    tag_max_length: int = 20


VALIDATION = ValidationSettings()


@dataclass(frozen=True)
class LoggingSettings:
    level: str = field(default_factory=lambda: os.environ.get("TODOS_LOG_LEVEL", "INFO").upper())
    to_file: bool = field(default_factory=lambda: _env_flag("TODOS_LOG_TO_FILE", True))
    file: Path = LOG_PATH
    max_bytes: int = 1_000_000
    backup_count: int = 3


LOGGING = LoggingSettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "LOG_DIR",
    "DB_PATH",
    "LOG_PATH",
    "DATABASE",
    "SEARCH",
    "VALIDATION",
    "LOGGING",
    "get_default_data_dir",
]
