"""Storefront admin client implementation"""
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

CREDENTIALS_UPDATED = "CREDENTIALS_UPDATED"


class AdminClientError(Exception):
    """Raised when the admin API rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}

    @property
    def credentials_updated(self) -> bool:
        return self.code == CREDENTIALS_UPDATED


class LoginRejectedError(AdminClientError):
    """Login refused (bad credentials, or the account awaits a forced logout)."""


class AdminSessionClient:
    """Client for the storefront admin session API.

    Holds the admin token returned by ``login`` and sends it as
    ``Authorization: Bearer <token>`` on authenticated calls. The token lives
    only in this object; ``discard_token`` forgets it.
    """

    def __init__(self, base_url: str, session: Optional[Any] = None, token: Optional[str] = None):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the admin API (e.g. ``http://localhost:4000``).
            session:  Object with a ``requests.Session``-style ``request`` method.
            token:    Previously stored admin token, if any.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token = token
        self.admin: Optional[Dict[str, Any]] = None

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _request(self, method: str, endpoint: str, token: Optional[str] = None, **kwargs: Any):
        url = f"{self.base_url}{endpoint}"
        headers = kwargs.pop("headers", {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return self.session.request(method, url, headers=headers, **kwargs)

    @staticmethod
    def _error_from(response, error_cls=AdminClientError) -> AdminClientError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        return error_cls(
            body.get("message") or f"Request failed with status {response.status_code}",
            status_code=response.status_code,
            code=body.get("code"),
            details=body.get("details"),
        )

    # ---------------------------------------------------------------------------
    # Token handling
    # ---------------------------------------------------------------------------

    def discard_token(self) -> None:
        self.token = None
        self.admin = None

    def has_well_formed_token(self) -> bool:
        """Local sanity check: three JWT segments with a JSON payload naming an admin."""
        if not self.token:
            return False
        parts = self.token.split(".")
        if len(parts) != 3:
            return False
        payload_segment = parts[1] + "=" * (-len(parts[1]) % 4)
        try:
            payload = json.loads(base64.urlsafe_b64decode(payload_segment))
        except (binascii.Error, ValueError):
            return False
        return isinstance(payload, dict) and bool(payload.get("id"))

    # ---------------------------------------------------------------------------
    # API calls
    # ---------------------------------------------------------------------------

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and keep the returned token.

        Raises:
            LoginRejectedError: the server refused the login; check
                ``credentials_updated`` to tell a pending forced logout apart
                from wrong credentials.
        """
        response = self._request("POST", "/admin/login", json={"email": email, "password": password})
        if response.status_code != 200:
            raise self._error_from(response, LoginRejectedError)

        data = response.json()
        self.token = data["token"]
        self.admin = data["admin"]
        return data["admin"]

    def logout(self, token: Optional[str] = None) -> bool:
        """Tell the server the session is over, then forget the token.

        ``token`` defaults to the current one; a stale token is accepted by
        the server, which is how a forced logout is acknowledged.
        """
        token = token or self.token
        response = self._request("POST", "/admin/logout", token=token)
        self.discard_token()
        return response.status_code == 200

    def validate_token(self) -> Dict[str, Any]:
        """Ask the server whether the current token is still accepted.

        Returns the admin identity on success.

        Raises:
            AdminClientError: on rejection (``code`` tells why).
            requests.RequestException: when the server cannot be reached.
        """
        response = self._request("GET", "/admin/validate-token", token=self.token)
        if response.status_code != 200:
            raise self._error_from(response)
        data = response.json()
        self.admin = data["admin"]
        return data["admin"]
