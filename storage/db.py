# todos/storage/db.py
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from core.settings import DATABASE

# Ensure SQLModel metadata is populated
import models.task  # noqa: F401
import models.user  # noqa: F401
from storage import migrations

SessionFactory = Callable[[], Session]


def create_db_engine(url: Optional[str] = None, *, echo: Optional[bool] = None) -> Engine:
    target = url or DATABASE.url
    connect_args = {}
    if target.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        target,
        echo=DATABASE.echo if echo is None else echo,
        connect_args=connect_args,
    )


def _sqlite_file(engine: Engine) -> Optional[Path]:
    url = engine.url
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def init_db(engine: Engine) -> None:
    db_file = _sqlite_file(engine)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    migrations.run_all(engine)


def make_session_factory(engine: Engine) -> SessionFactory:
    def factory() -> Session:
        return Session(engine)

    return factory


__all__ = ["SessionFactory", "create_db_engine", "init_db", "make_session_factory"]
