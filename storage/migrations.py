"""Ad-hoc database migrations for Todos."""

from __future__ import annotations

from sqlalchemy import inspect, text


def _column_exists(conn, table: str, column: str) -> bool:
    return any(col["name"] == column for col in inspect(conn).get_columns(table))


def _table_exists(conn, table: str) -> bool:
    return inspect(conn).has_table(table)


def ensure_todo_columns(conn) -> None:
    if not _table_exists(conn, "todos"):
        return
    columns = {
        "priority": "TEXT NOT NULL DEFAULT 'medium'",
        "tags": "TEXT NOT NULL DEFAULT '[]'",
        "updated_at": "DATETIME",
    }
    for name, ddl_type in columns.items():
        if not _column_exists(conn, "todos", name):
            conn.execute(text(f"ALTER TABLE todos ADD COLUMN {name} {ddl_type}"))

    conn.execute(
        text(
            """
            UPDATE todos
            SET updated_at = created_at
            WHERE updated_at IS NULL
            """
        )
    )
    conn.execute(
        text(
            """
            UPDATE todos
            SET tags = '[]'
            WHERE tags IS NULL OR tags = ''
            """
        )
    )


def ensure_user_columns(conn) -> None:
    if not _table_exists(conn, "users"):
        return
    if not _column_exists(conn, "users", "rejected"):
        conn.execute(text("ALTER TABLE users ADD COLUMN rejected BOOLEAN NOT NULL DEFAULT 0"))


def ensure_todo_indexes(conn) -> None:
    if not _table_exists(conn, "todos"):
        return
    conn.execute(
        text(
            """
            CREATE INDEX IF NOT EXISTS ix_todos_owner_created
            ON todos (owner_id, created_at)
            """
        )
    )


def run_all(engine) -> None:
    with engine.begin() as conn:
        ensure_todo_columns(conn)
        ensure_user_columns(conn)
        ensure_todo_indexes(conn)


__all__ = ["run_all"]
