import pytest

from core.errors import ConflictError, ValidationError
from services.admin import AdminService
from services.tasks import TaskService
from services.users import UserService, can_sign_in


@pytest.fixture()
def users(session_factory):
    return UserService(session_factory)


def test_signup_creates_pending_user(users):
    user = users.signup("  New@Example.com ")
    assert user.email == "new@example.com"
    assert user.role == "user"
    assert user.status == "pending"
    assert can_sign_in(user) is False


def test_signup_admin_is_approved(users):
    admin = users.signup("root@example.com", role="admin")
    assert admin.approved is True
    assert can_sign_in(admin) is True


def test_signup_rejects_duplicates_and_bad_input(users):
    users.signup("dup@example.com")
    with pytest.raises(ConflictError):
        users.signup("DUP@example.com")
    with pytest.raises(ValidationError):
        users.signup("not-an-email")
    with pytest.raises(ValidationError):
        users.signup("x@example.com", role="owner")


def test_approval_workflow(users):
    user = users.signup("flow@example.com")
    approved = users.approve(user.id)
    assert approved.status == "approved"
    assert can_sign_in(approved) is True

    rejected = users.set_approval(user.id, "reject")
    assert rejected.approved is False
    assert rejected.rejected is True
    assert can_sign_in(rejected) is False

    assert users.set_approval(user.id, "approve").status == "approved"
    assert users.approve(9999) is None
    with pytest.raises(ValidationError):
        users.set_approval(user.id, "ban")


def test_list_by_status(users):
    pending = users.signup("p@example.com")
    approved = users.signup("a@example.com")
    rejected = users.signup("r@example.com")
    users.approve(approved.id)
    users.reject(rejected.id)

    assert [u.id for u in users.list_by_status("pending")] == [pending.id]
    assert [u.id for u in users.list_by_status("approved")] == [approved.id]
    assert [u.id for u in users.list_by_status("rejected")] == [rejected.id]
    assert [u.id for u in users.list_all()] == [pending.id, approved.id, rejected.id]
    with pytest.raises(ValidationError):
        users.list_by_status("archived")


def test_update_keeps_user_approved_and_checks_email(users):
    one = users.signup("one@example.com")
    users.signup("two@example.com")
    updated = users.update(one.id, "uno@example.com", "admin")
    assert updated.email == "uno@example.com"
    assert updated.role == "admin"
    assert updated.approved is True
    with pytest.raises(ConflictError):
        users.update(one.id, "two@example.com", "user")
    assert users.update(9999, "x@example.com", "user") is None


def test_delete_removes_user_and_todos(users, session_factory):
    user = users.signup("gone@example.com")
    tasks = TaskService(session_factory)
    tasks.create(user.id, title="Orphan")
    assert users.delete(user.id) is True
    assert users.get(user.id) is None
    assert tasks.list_for_owner(user.id) == []
    assert users.delete(user.id) is False


def test_ensure_admin_creates_and_promotes(users):
    created = users.ensure_admin("admin@example.com")
    assert created.is_admin and created.approved

    plain = users.signup("promote@example.com")
    users.reject(plain.id)
    promoted = users.ensure_admin("promote@example.com")
    assert promoted.id == plain.id
    assert promoted.is_admin
    assert promoted.status == "approved"


def test_admin_overview(users, session_factory):
    a = users.signup("a@example.com")
    b = users.signup("b@example.com")
    users.approve(a.id)
    tasks = TaskService(session_factory)
    first = tasks.create(a.id, title="First")
    tasks.create(b.id, title="Second")
    tasks.toggle(a.id, first.id, completed=True)

    admin = AdminService(session_factory)
    rows = admin.all_todos()
    assert [(r.title, r.user_email) for r in rows] == [
        ("First", "a@example.com"),
        ("Second", "b@example.com"),
    ]
    summary = admin.summary()
    assert summary["users"] == 2
    assert summary["approved"] == 1
    assert summary["pending"] == 1
    assert summary["rejected"] == 0
    assert summary["todos"] == 2
    assert summary["completed_todos"] == 1
