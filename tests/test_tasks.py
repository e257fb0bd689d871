from datetime import datetime, timedelta, timezone

import pytest

from core.errors import ValidationError
from models import Task, User
from services.tasks import TaskService


@pytest.fixture()
def service(session_factory):
    return TaskService(session_factory)


@pytest.fixture()
def owners(make_user):
    return make_user("a@example.com"), make_user("b@example.com")


def test_create_normalizes_fields(service, owners):
    owner, _ = owners
    task = service.create(
        owner.id,
        title="  Write report  ",
        description="   ",
        priority="HIGH",
        tags=[" work ", "work", "q3"],
    )
    assert task.id is not None
    assert task.title == "Write report"
    assert task.description is None
    assert task.priority == "high"
    assert task.tags == ["work", "q3"]
    assert task.completed is False


def test_create_defaults_priority_to_medium(service, owners):
    task = service.create(owners[0].id, title="Plain")
    assert task.priority == "medium"
    assert task.tags == []


def test_create_stores_aware_due_date_as_local_naive(service, owners):
    due = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
    task = service.create(owners[0].id, title="Call", due_date=due)
    assert task.due_date.tzinfo is None
    assert task.due_date == due.astimezone().replace(tzinfo=None)


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"title": ""}, "title"),
        ({"title": "x" * 101}, "title"),
        ({"title": "ok", "description": "d" * 501}, "description"),
        ({"title": "ok", "tags": ["a" * 21]}, "tags"),
        ({"title": "ok", "tags": ["  "]}, "tags"),
        ({"title": "ok", "priority": "urgent"}, "priority"),
    ],
)
def test_create_validation(service, owners, kwargs, field):
    with pytest.raises(ValidationError) as info:
        service.create(owners[0].id, **kwargs)
    assert info.value.field == field


def test_get_is_owner_scoped(service, owners):
    a, b = owners
    task = service.create(a.id, title="Mine")
    assert service.get(a.id, task.id).title == "Mine"
    assert service.get(b.id, task.id) is None


def test_list_for_owner_newest_first(service, owners, make_task):
    a, b = owners
    old = make_task(a.id, "Old", created_at=datetime(2024, 1, 1))
    new = make_task(a.id, "New", created_at=datetime(2024, 2, 1))
    make_task(b.id, "Other")
    assert [t.id for t in service.list_for_owner(a.id)] == [new.id, old.id]


def test_update_only_touches_supplied_fields(service, owners):
    a, _ = owners
    task = service.create(a.id, title="Draft", description="Keep me", tags=["x"])
    updated = service.update(a.id, task.id, title="Final", priority="low")
    assert updated.title == "Final"
    assert updated.priority == "low"
    assert updated.description == "Keep me"
    assert updated.tags == ["x"]
    assert updated.updated_at >= task.updated_at.replace(tzinfo=None)


def test_update_can_clear_nullable_fields(service, owners):
    a, _ = owners
    task = service.create(
        a.id, title="Due", description="Text", due_date=datetime.now() + timedelta(days=1)
    )
    updated = service.update(a.id, task.id, description=None, due_date=None)
    assert updated.description is None
    assert updated.due_date is None


def test_update_other_owner_returns_none(service, owners):
    a, b = owners
    task = service.create(a.id, title="Private")
    assert service.update(b.id, task.id, title="Hijack") is None
    assert service.get(a.id, task.id).title == "Private"


def test_toggle_flips_and_sets(service, owners):
    a, _ = owners
    task = service.create(a.id, title="Flip")
    assert service.toggle(a.id, task.id).completed is True
    assert service.toggle(a.id, task.id).completed is False
    assert service.toggle(a.id, task.id, completed=False).completed is False
    assert service.toggle(a.id, 9999) is None


def test_delete_is_owner_scoped(service, owners):
    a, b = owners
    task = service.create(a.id, title="Remove")
    assert service.delete(b.id, task.id) is False
    assert service.delete(a.id, task.id) is True
    assert service.get(a.id, task.id) is None


def test_bulk_complete_only_owned(service, owners):
    a, b = owners
    mine = [service.create(a.id, title=f"T{i}") for i in range(3)]
    theirs = service.create(b.id, title="Theirs")
    ids = [t.id for t in mine] + [theirs.id]
    assert service.bulk_update(a.id, ids, "complete") == 3
    assert all(t.completed for t in service.list_for_owner(a.id))
    assert service.get(b.id, theirs.id).completed is False

    assert service.bulk_update(a.id, ids, "incomplete") == 3
    assert not any(t.completed for t in service.list_for_owner(a.id))


def test_bulk_update_priority_and_tags(service, owners):
    a, _ = owners
    task = service.create(a.id, title="Tag me")
    count = service.bulk_update(a.id, [task.id], "update", {"priority": "high", "tags": ["x", "y"]})
    assert count == 1
    refreshed = service.get(a.id, task.id)
    assert refreshed.priority == "high"
    assert refreshed.tags == ["x", "y"]


@pytest.mark.parametrize(
    "ids, action, updates",
    [
        ([], "complete", None),
        ([1], "archive", None),
        ([1], "update", {"title": "nope"}),
        (["abc"], "complete", None),
    ],
)
def test_bulk_update_validation(service, owners, ids, action, updates):
    with pytest.raises(ValidationError):
        service.bulk_update(owners[0].id, ids, action, updates)


def test_bulk_delete_only_owned(service, owners):
    a, b = owners
    mine = service.create(a.id, title="Mine")
    theirs = service.create(b.id, title="Theirs")
    assert service.bulk_delete(a.id, [mine.id, theirs.id]) == 1
    assert service.get(a.id, mine.id) is None
    assert service.get(b.id, theirs.id) is not None


def test_listeners_receive_events_and_failures_do_not_abort(service, owners):
    a, _ = owners
    seen = []

    def record(task_id):
        seen.append(task_id)

    def explode(task_id):
        raise RuntimeError("listener bug")

    TaskService.subscribe("after_create", record)
    TaskService.subscribe("after_create", explode)
    TaskService.subscribe("after_delete", record)
    try:
        task = service.create(a.id, title="Observed")
        service.delete(a.id, task.id)
    finally:
        TaskService.unsubscribe("after_create", record)
        TaskService.unsubscribe("after_create", explode)
        TaskService.unsubscribe("after_delete", record)

    assert seen == [task.id, task.id]


def test_subscribe_rejects_unknown_event():
    with pytest.raises(ValueError):
        TaskService.subscribe("after_archive", lambda task_id: None)


@pytest.mark.parametrize("tags", ["work", {"work": 1}, ["ok", 3]])
def test_tags_must_be_a_list_of_strings(service, owners, tags):
    a, _ = owners
    with pytest.raises(ValidationError) as info:
        service.create(a.id, title="Tags", tags=tags)
    assert info.value.field == "tags"

    task = service.create(a.id, title="Tags", tags=["keep"])
    with pytest.raises(ValidationError):
        service.update(a.id, task.id, tags=tags)
    assert service.get(a.id, task.id).tags == ["keep"]


def test_update_parses_completed_strings(service, owners):
    a, _ = owners
    task = service.create(a.id, title="Done?")
    assert service.update(a.id, task.id, completed="true").completed is True
    assert service.update(a.id, task.id, completed="false").completed is False
    with pytest.raises(ValidationError):
        service.update(a.id, task.id, completed="later")


def test_timestamps_are_stored_naive(service, owners):
    for name in ("due_date", "created_at", "updated_at"):
        assert Task.__table__.c[name].type.timezone is False
    assert User.__table__.c["created_at"].type.timezone is False

    due = datetime(2030, 3, 1, 9, 30)
    task = service.create(owners[0].id, title="Stored", due_date=due)
    stored = service.get(owners[0].id, task.id)
    assert stored.due_date == due
    assert stored.created_at.tzinfo is None
    assert stored.updated_at.tzinfo is None
