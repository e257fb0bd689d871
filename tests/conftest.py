import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; keep test runs out of the real data dir.
os.environ.setdefault("TODOS_DATA_DIR", tempfile.mkdtemp(prefix="todos-tests-"))
os.environ.setdefault("TODOS_LOG_TO_FILE", "0")

import pytest  # noqa: E402

from models import Task, User  # noqa: E402
from storage.db import create_db_engine, init_db, make_session_factory  # noqa: E402


@pytest.fixture()
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{(tmp_path / 'test.db').as_posix()}", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def make_user(session_factory):
    def factory(email="owner@example.com", role="user", approved=True, rejected=False):
        with session_factory() as session:
            user = User(email=email, role=role, approved=approved, rejected=rejected)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    return factory


@pytest.fixture()
def make_task(session_factory):
    """Insert a task row directly so tests control ``created_at``."""

    def factory(owner_id, title="Task", **fields):
        fields.setdefault("created_at", datetime(2024, 1, 1, 9, 0, 0))
        fields.setdefault("updated_at", fields["created_at"])
        with session_factory() as session:
            task = Task(owner_id=owner_id, title=title, **fields)
            session.add(task)
            session.commit()
            session.refresh(task)
            return task

    return factory
