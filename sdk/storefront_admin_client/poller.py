"""Periodic admin session check.

While an admin view is open, :class:`SessionPoller` re-validates the stored
token every few seconds. When the server answers ``CREDENTIALS_UPDATED`` the
poller acknowledges the forced logout, drops the token, shows a persistent
notice and only then sends the admin back to the login screen, after a short
delay so the notice can be read.
"""
import enum
import logging
import threading
from typing import Any, Callable, Dict, Optional

import requests

from storefront_admin_client.client import AdminClientError, AdminSessionClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_RELOAD_DELAY = 3.0

CREDENTIALS_UPDATED_NOTICE = (
    "Your admin credentials were changed. You have been logged out; "
    "please log in again with the new credentials."
)


class PollOutcome(enum.Enum):
    VALID = "valid"
    NO_TOKEN = "no_token"
    CREDENTIALS_UPDATED = "credentials_updated"
    REJECTED = "rejected"
    UNREACHABLE = "unreachable"


def _noop(*_: Any) -> None:
    pass


class SessionPoller:
    """Background re-validation of an :class:`AdminSessionClient` token.

    Args:
        client: Client holding the token to check.
        interval: Seconds between checks.
        reload_delay: Seconds between showing the credentials-changed notice
            and calling ``on_reauth_required``.
        on_credentials_updated: Called with ``{"message", "details"}`` when the
            server reports changed credentials.
        on_reauth_required: Called when the admin must log in again.
    """

    def __init__(
        self,
        client: AdminSessionClient,
        interval: float = DEFAULT_POLL_INTERVAL,
        reload_delay: float = DEFAULT_RELOAD_DELAY,
        on_credentials_updated: Callable[[Dict[str, Any]], None] = _noop,
        on_reauth_required: Callable[[], None] = _noop,
    ):
        self.client = client
        self.interval = interval
        self.reload_delay = reload_delay
        self.on_credentials_updated = on_credentials_updated
        self.on_reauth_required = on_reauth_required

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._reload_timer: Optional[threading.Timer] = None

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="admin-session-poller", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join()
            self._thread = None

    def wait_for_reload(self, timeout: Optional[float] = None) -> None:
        """Block until a scheduled re-authentication callback has run."""
        if self._reload_timer:
            self._reload_timer.join(timeout)

    def _notify(self, callback: Callable[..., None], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception(f"Admin session callback failed: {callback!r}")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                outcome = self.tick()
            except Exception:
                logger.exception("Admin session check crashed; polling stopped")
                break
            if outcome not in (PollOutcome.VALID, PollOutcome.UNREACHABLE):
                # Session is over; nothing left to poll
                break

    # ---------------------------------------------------------------------------
    # One check
    # ---------------------------------------------------------------------------

    def tick(self) -> PollOutcome:
        """Run a single session check and react to the result."""
        if not self.client.has_well_formed_token():
            self.client.discard_token()
            self._notify(self.on_reauth_required)
            return PollOutcome.NO_TOKEN

        try:
            self.client.validate_token()
        except requests.RequestException as exc:
            # Server unreachable: keep the session, try again next tick
            logger.warning(f"Admin session check failed to reach server: {exc}")
            return PollOutcome.UNREACHABLE
        except AdminClientError as exc:
            if exc.credentials_updated:
                self._handle_credentials_updated(exc)
                return PollOutcome.CREDENTIALS_UPDATED
            logger.info(f"Admin session rejected ({exc.code}): {exc.message}")
            self.client.discard_token()
            self._notify(self.on_reauth_required)
            return PollOutcome.REJECTED

        return PollOutcome.VALID

    def _handle_credentials_updated(self, exc: AdminClientError) -> None:
        stale_token = self.client.token
        try:
            self.client.logout(token=stale_token)
        except requests.RequestException as logout_exc:
            logger.warning(f"Could not acknowledge forced logout: {logout_exc}")
        self.client.discard_token()

        logger.warning("Admin credentials were updated; session ended")
        self._notify(self.on_credentials_updated, {"message": CREDENTIALS_UPDATED_NOTICE, "details": exc.details})

        self._reload_timer = threading.Timer(self.reload_delay, self._notify, args=(self.on_reauth_required,))
        self._reload_timer.daemon = True
        self._reload_timer.start()
