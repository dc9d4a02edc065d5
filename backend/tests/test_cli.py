"""Tests for the operator command line"""
import pytest

from storefront_admin import cli
from storefront_admin.services.accounts import find_by_email, list_admins
from storefront_admin.services.session_store import InMemorySessionStore
from storefront_admin.utils.passwords import verify_password
from storefront_admin.utils.timestamps import to_epoch_ms
from conftest import ADMIN_PASSWORD, TestingSessionLocal


def scripted(*answers):
    """Prompt stand-in that returns the given answers in order"""
    remaining = iter(answers)
    return lambda _message: next(remaining)


def run(command, store=None, prompt=None, secret=None):
    return cli.main(
        [command],
        session_factory=TestingSessionLocal,
        store=store or InMemorySessionStore(),
        prompt=prompt or scripted(),
        secret=secret or scripted(),
    )


def test_create(db, capsys):
    code = run("create", prompt=scripted("Morning Shift", "Morning@Grocery.test"), secret=scripted("sunny-side-7"))

    assert code == 0
    admin = find_by_email(db, "morning@grocery.test")
    assert admin is not None
    assert verify_password("sunny-side-7", admin.password_hash)
    assert "Admin created successfully" in capsys.readouterr().out


def test_create_duplicate_email(db, admin, capsys):
    code = run("create", prompt=scripted("Copy", "admin@grocery.test"), secret=scripted("whatever-1"))

    assert code == 1
    assert "already exists" in capsys.readouterr().err


def test_create_requires_all_fields(db, capsys):
    code = run("create", prompt=scripted("", "x@grocery.test"), secret=scripted("whatever-1"))

    assert code == 1
    assert "required" in capsys.readouterr().err


def test_list(db, admin, other_admin, capsys):
    assert run("list") == 0

    out = capsys.readouterr().out
    assert "Found 2 admin user(s)" in out
    assert out.index("Store Admin") < out.index("Night Shift")


def test_list_empty(db, capsys):
    assert run("list") == 0
    assert "No admin users found" in capsys.readouterr().out


def test_edit_sets_force_logout(db, admin, capsys):
    store = InMemorySessionStore()
    store.track(admin.admin_id)
    before = to_epoch_ms(admin.last_updated)

    code = run("edit", store=store, prompt=scripted("1", "Day Manager", "", "yes"), secret=scripted(""))

    assert code == 0
    db.refresh(admin)
    assert admin.name == "Day Manager"
    assert admin.email == "admin@grocery.test"
    assert verify_password(ADMIN_PASSWORD, admin.password_hash)
    assert to_epoch_ms(admin.last_updated) > before
    assert store.is_flagged(admin.admin_id) is True

    out = capsys.readouterr().out
    assert "A force logout flag has been set" in out
    assert "An active session was found" in out


def test_edit_password(db, admin):
    code = run("edit", prompt=scripted("1", "", "", "yes"), secret=scripted("rotated-pass"))

    assert code == 0
    db.refresh(admin)
    assert verify_password("rotated-pass", admin.password_hash)


@pytest.mark.parametrize("answers", [("0",), ("7",), ("abc",), ("1", "New", "", "no")])
def test_edit_cancelled(db, admin, capsys, answers):
    store = InMemorySessionStore()
    before = admin.last_updated

    code = run("edit", store=store, prompt=scripted(*answers), secret=scripted(""))

    assert code == 0
    assert "Operation cancelled" in capsys.readouterr().out
    db.refresh(admin)
    assert admin.last_updated == before
    assert store.is_flagged(admin.admin_id) is False


def test_edit_email_in_use(db, admin, other_admin, capsys):
    code = run("edit", prompt=scripted("1", "", "night@grocery.test", "yes"), secret=scripted(""))

    assert code == 1
    assert "already in use" in capsys.readouterr().err


def test_edit_interrupted(db, admin, capsys):
    def interrupted(_message):
        raise EOFError

    assert run("edit", prompt=interrupted) == 1
    assert "Operation cancelled" in capsys.readouterr().out


def test_delete(db, admin, other_admin, capsys):
    code = run("delete", prompt=scripted("2", "yes"))

    assert code == 0
    assert [a.admin_id for a in list_admins(db)] == [admin.admin_id]
    assert "deleted successfully" in capsys.readouterr().out


def test_delete_last_admin_refused(db, admin, capsys):
    code = run("delete", prompt=scripted("1", "yes"))

    assert code == 1
    assert "Cannot delete the last admin user" in capsys.readouterr().err
    assert len(list_admins(db)) == 1


def test_sessions(db, admin, other_admin, capsys):
    store = InMemorySessionStore()
    store.track(admin.admin_id)
    store.mark_force_logout(other_admin.admin_id)

    assert run("sessions", store=store) == 0

    lines = capsys.readouterr().out.splitlines()
    assert any(admin.admin_id in line and line.endswith("active") for line in lines)
    assert any(other_admin.admin_id in line and "FORCE LOGOUT PENDING" in line for line in lines)


def test_release_clears_pending_force_logout(db, admin):
    store = InMemorySessionStore()
    store.mark_force_logout(admin.admin_id)

    assert run("release", store=store, prompt=scripted("1")) == 0

    assert store.is_flagged(admin.admin_id) is False
    assert store.list_sessions() == []


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        cli.main(["rename"], session_factory=TestingSessionLocal, store=InMemorySessionStore())
