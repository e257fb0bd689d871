"""Console entry point for the Todos application."""
from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List, Optional

from api import Identity
from api.todos import TodosApi
from core.errors import TodosError
from core.filters import DueDateBucket
from core.priorities import priority_label, priority_marker, priority_options
from core.settings import APP_NAME, DATABASE, LOGGING
from services.tasks import TaskService
from services.users import UserService
from storage.db import create_db_engine, init_db, make_session_factory
from utils.datetime_utils import parse_iso_datetime


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOGGING.level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def cmd_init_db(args, factory) -> int:
    print(f"Database ready: {args.db or DATABASE.url}")
    return 0


def cmd_signup(args, factory) -> int:
    users = UserService(factory)
    user = users.signup(args.email, role="admin" if args.admin else "user")
    print(f"Created {user.role} #{user.id} {user.email} ({user.status})")
    return 0


def cmd_approve(args, factory) -> int:
    users = UserService(factory)
    user = users.reject(args.user_id) if args.reject else users.approve(args.user_id)
    if user is None:
        print(f"User #{args.user_id} not found.")
        return 1
    print(f"User #{user.id} {user.email} is now {user.status}")
    return 0


def cmd_users(args, factory) -> int:
    users = UserService(factory)
    rows = users.list_by_status(args.status) if args.status else users.list_all()
    if not rows:
        print("No users found.")
        return 0
    for user in rows:
        print(f"{user.id:>4}  {user.role:<5}  {user.status:<8}  {user.email}")
    return 0


def cmd_add(args, factory) -> int:
    due = parse_iso_datetime(args.due) if args.due else None
    if args.due and due is None:
        print(f"Invalid due date '{args.due}'. Use YYYY-MM-DD or an ISO timestamp.")
        return 2
    tags: List[str] = [t for t in (args.tags or "").split(",") if t.strip()]
    task = TaskService(factory).create(
        args.owner_id,
        title=args.title,
        description=args.description,
        due_date=due,
        priority=args.priority,
        tags=tags,
    )
    print(
        f"Added todo #{task.id} [{priority_marker(task.priority)}] {task.title} "
        f"({priority_label(task.priority)})"
    )
    return 0


def cmd_search(args, factory) -> int:
    params = {
        "q": args.q,
        "completed": args.completed,
        "priority": args.priority,
        "tags": args.tags,
        "dueDate": args.due,
    }
    api = TodosApi(factory, strict_filters=args.strict or None)
    response = api.search(Identity(user_id=args.owner_id), {k: v for k, v in params.items() if v})
    _print_json(response.body)
    return 0 if response.status == 200 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todos", description=f"{APP_NAME} console")
    parser.add_argument("--db", help="Database URL (default: TODOS_DATABASE_URL or app.db in the data dir)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    s = sub.add_parser("init-db", help="Create tables and run migrations.")
    s.set_defaults(func=cmd_init_db)

    s = sub.add_parser("signup", help="Register an account (pending approval).")
    s.add_argument("email")
    s.add_argument("--admin", action="store_true", help="Create an approved admin.")
    s.set_defaults(func=cmd_signup)

    s = sub.add_parser("approve", help="Approve (or reject) an account.")
    s.add_argument("user_id", type=int)
    s.add_argument("--reject", action="store_true")
    s.set_defaults(func=cmd_approve)

    s = sub.add_parser("users", help="List accounts.")
    s.add_argument("--status", choices=["pending", "approved", "rejected"])
    s.set_defaults(func=cmd_users)

    s = sub.add_parser("add", help="Add a todo for an owner.")
    s.add_argument("owner_id", type=int)
    s.add_argument("title")
    s.add_argument("-d", "--description")
    s.add_argument("-p", "--priority", choices=list(priority_options()), default="medium")
    s.add_argument("--due", help="Due date (YYYY-MM-DD or ISO timestamp).")
    s.add_argument("--tags", help="Comma-separated tags.")
    s.set_defaults(func=cmd_add)

    s = sub.add_parser("search", help="Search an owner's todos.")
    s.add_argument("owner_id", type=int)
    s.add_argument("--q", help="Text to find in title or description.")
    s.add_argument("--completed", choices=["true", "false"])
    s.add_argument("--priority")
    s.add_argument("--tags", help="Comma-separated tags (any match).")
    s.add_argument("--due", help=f"One of: {', '.join(b.value for b in DueDateBucket)}")
    s.add_argument("--strict", action="store_true", help="Reject unsupported filter values.")
    s.set_defaults(func=cmd_search)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    engine = create_db_engine(args.db)
    try:
        init_db(engine)
        return int(args.func(args, make_session_factory(engine)))
    except TodosError as exc:
        print(f"Error: {exc}")
        return 2
    finally:
        engine.dispose()


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
