"""API dependencies for admin authentication.

The raw token is read from ``Authorization: Bearer <token>`` first and from
the ``adminToken`` cookie otherwise (see :func:`extract_token`).

- :func:`require_admin` runs the full gate and attaches the identity to
  ``request.state.admin``.
- :func:`get_token_claims` only checks signature, expiry and the admin marker.
  Logout uses it so that an admin whose credentials were changed can still
  acknowledge the forced logout with their now-stale token.
"""
from typing import Any, Dict, Optional

from fastapi import Cookie, Depends, Header, Request
from sqlalchemy.orm import Session

from storefront_admin.config import settings
from storefront_admin.database import get_db
from storefront_admin.errors import AdminAuthError
from storefront_admin.services.authenticator import (
    AdminIdentity,
    authenticate,
    extract_token,
    verify_admin_claims,
)
from storefront_admin.services.session_store import SessionStore


def get_session_store(request: Request) -> SessionStore:
    """Return the session registry built for this application."""
    return request.app.state.session_store


def get_raw_token(
    authorization: Optional[str] = Header(None),
    admin_token: Optional[str] = Cookie(None, alias=settings.ADMIN_COOKIE_NAME),
) -> Optional[str]:
    return extract_token(authorization, admin_token)


def require_admin(
    request: Request,
    token: Optional[str] = Depends(get_raw_token),
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> AdminIdentity:
    """Require a valid, current admin session."""
    identity = authenticate(token, db, store)
    request.state.admin = identity
    return identity


def get_token_claims(token: Optional[str] = Depends(get_raw_token)) -> Optional[Dict[str, Any]]:
    """Return the claims of a signature-valid admin token, or None.

    Freshness is not checked here, and a missing or invalid token yields None
    instead of an error.
    """
    try:
        return verify_admin_claims(token)
    except AdminAuthError:
        return None
