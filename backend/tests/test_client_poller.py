"""Tests for the admin client and its session poller, run against the API"""
import logging

import pytest
import requests
from fastapi.testclient import TestClient

from storefront_admin.services.accounts import delete_admin, edit_credential
from storefront_admin_client import AdminSessionClient, LoginRejectedError, PollOutcome, SessionPoller
from storefront_admin_client.poller import CREDENTIALS_UPDATED_NOTICE
from conftest import ADMIN_PASSWORD, OTHER_PASSWORD


class UnreachableSession:
    """Session stand-in whose every request fails to connect"""

    def request(self, method, url, **kwargs):
        raise requests.ConnectionError(f"cannot reach {url}")


@pytest.fixture
def api_client(client: TestClient) -> AdminSessionClient:
    return AdminSessionClient("http://testserver", session=client)


@pytest.fixture
def logged_in(api_client: AdminSessionClient, admin) -> AdminSessionClient:
    api_client.login("admin@grocery.test", ADMIN_PASSWORD)
    return api_client


class Recorder:
    def __init__(self):
        self.notices = []
        self.reauth_calls = 0

    def notice(self, payload):
        self.notices.append(payload)

    def reauth(self):
        self.reauth_calls += 1


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


def make_poller(api_client, recorder, reload_delay=0.01):
    return SessionPoller(
        api_client,
        interval=0.01,
        reload_delay=reload_delay,
        on_credentials_updated=recorder.notice,
        on_reauth_required=recorder.reauth,
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

def test_login_keeps_token(logged_in: AdminSessionClient, admin):
    assert logged_in.has_well_formed_token()
    assert logged_in.admin["id"] == admin.admin_id
    assert logged_in.validate_token()["name"] == "Store Admin"


def test_login_rejected(api_client: AdminSessionClient, admin):
    with pytest.raises(LoginRejectedError) as exc_info:
        api_client.login("admin@grocery.test", "wrong-password")

    assert exc_info.value.status_code == 401
    assert exc_info.value.code == "INVALID_CREDENTIALS"
    assert exc_info.value.credentials_updated is False
    assert api_client.token is None


def test_login_rejected_while_flagged(api_client: AdminSessionClient, db, admin, session_store):
    edit_credential(db, session_store, admin.admin_id, name="Flagged")

    with pytest.raises(LoginRejectedError) as exc_info:
        api_client.login("admin@grocery.test", ADMIN_PASSWORD)

    assert exc_info.value.credentials_updated is True


@pytest.mark.parametrize("token", [None, "", "only.two", "a.!!!.c", "a.eyJmb28iOiAiYmFyIn0.c"])
def test_malformed_tokens_are_detected(token):
    assert AdminSessionClient("http://testserver", token=token).has_well_formed_token() is False


def test_logout_discards_token(logged_in: AdminSessionClient, session_store):
    assert logged_in.logout() is True
    assert logged_in.token is None
    assert session_store.list_sessions() == []


# ---------------------------------------------------------------------------
# Poller
# ---------------------------------------------------------------------------

def test_tick_valid(logged_in: AdminSessionClient, recorder):
    poller = make_poller(logged_in, recorder)

    assert poller.tick() == PollOutcome.VALID
    assert logged_in.token is not None
    assert recorder.reauth_calls == 0


def test_tick_credentials_updated(logged_in: AdminSessionClient, db, admin, session_store, recorder):
    poller = make_poller(logged_in, recorder)
    edit_credential(db, session_store, admin.admin_id, password="brand-new-pass")

    assert poller.tick() == PollOutcome.CREDENTIALS_UPDATED

    # Token dropped and the notice shown before the reload
    assert logged_in.token is None
    assert len(recorder.notices) == 1
    assert recorder.notices[0]["message"] == CREDENTIALS_UPDATED_NOTICE
    assert "reason" in recorder.notices[0]["details"]

    poller.wait_for_reload(timeout=5)
    assert recorder.reauth_calls == 1

    # The stale-token logout acknowledged the flag, so the new password works
    assert session_store.is_flagged(admin.admin_id) is False
    logged_in.login("admin@grocery.test", "brand-new-pass")
    assert poller.tick() == PollOutcome.VALID


def test_tick_reload_waits_for_delay(logged_in: AdminSessionClient, db, admin, session_store, recorder):
    poller = make_poller(logged_in, recorder, reload_delay=30)
    edit_credential(db, session_store, admin.admin_id, name="Renamed")

    poller.tick()

    assert len(recorder.notices) == 1
    assert recorder.reauth_calls == 0
    poller._reload_timer.cancel()


def test_tick_unreachable_keeps_token(admin, recorder):
    api_client = AdminSessionClient("http://testserver", session=UnreachableSession())
    api_client.token = "a.eyJpZCI6ICJhZG1fMSJ9.c"
    poller = make_poller(api_client, recorder)

    assert poller.tick() == PollOutcome.UNREACHABLE
    assert api_client.token is not None
    assert recorder.reauth_calls == 0


def test_tick_without_token(api_client: AdminSessionClient, recorder):
    poller = make_poller(api_client, recorder)

    assert poller.tick() == PollOutcome.NO_TOKEN
    assert recorder.reauth_calls == 1


def test_tick_rejected_for_deleted_admin(api_client: AdminSessionClient, db, admin, other_admin, session_store, recorder):
    api_client.login("night@grocery.test", OTHER_PASSWORD)
    delete_admin(db, session_store, other_admin.admin_id)
    poller = make_poller(api_client, recorder)

    assert poller.tick() == PollOutcome.REJECTED
    assert api_client.token is None
    assert recorder.reauth_calls == 1
    assert recorder.notices == []


def test_background_poller_stops_after_forced_logout(logged_in: AdminSessionClient, db, admin, session_store, recorder):
    poller = make_poller(logged_in, recorder)
    edit_credential(db, session_store, admin.admin_id, email="moved@grocery.test")

    poller.start()
    poller._thread.join(timeout=5)
    assert not poller._thread.is_alive()
    poller.wait_for_reload(timeout=5)
    poller.stop()

    assert len(recorder.notices) == 1
    assert recorder.reauth_calls == 1


def test_failing_callback_is_logged(api_client: AdminSessionClient, caplog):
    def broken_reauth():
        raise RuntimeError("login screen unavailable")

    poller = SessionPoller(api_client, on_reauth_required=broken_reauth)

    with caplog.at_level(logging.ERROR, logger="storefront_admin_client.poller"):
        assert poller.tick() == PollOutcome.NO_TOKEN

    assert any("callback failed" in record.getMessage() for record in caplog.records)


def test_failing_callbacks_do_not_stop_forced_logout(logged_in: AdminSessionClient, db, admin, session_store, caplog):
    def broken(*_):
        raise RuntimeError("view already closed")

    poller = SessionPoller(
        logged_in,
        interval=0.01,
        reload_delay=0.01,
        on_credentials_updated=broken,
        on_reauth_required=broken,
    )
    edit_credential(db, session_store, admin.admin_id, name="Renamed")

    with caplog.at_level(logging.ERROR, logger="storefront_admin_client.poller"):
        poller.start()
        poller._thread.join(timeout=5)
        poller.wait_for_reload(timeout=5)
        poller.stop()

    assert logged_in.token is None
    assert session_store.is_flagged(admin.admin_id) is False
    assert sum("callback failed" in record.getMessage() for record in caplog.records) == 2
