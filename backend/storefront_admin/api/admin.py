"""Admin session endpoints: login, logout, token validation, session listing"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from storefront_admin.api.deps import get_session_store, get_token_claims, require_admin
from storefront_admin.config import settings
from storefront_admin.database import get_db
from storefront_admin.errors import (
    CredentialsUpdatedError,
    InvalidCredentialsError,
    MissingCredentialsError,
)
from storefront_admin.middleware.monitoring import record_login
from storefront_admin.middleware.rate_limit import limiter
from storefront_admin.schemas.admin_user import (
    AdminOut,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    SessionEntryOut,
    SessionListResponse,
    ValidateTokenResponse,
)
from storefront_admin.services.accounts import find_by_email
from storefront_admin.services.authenticator import AdminIdentity
from storefront_admin.services.session_store import SessionStore
from storefront_admin.utils.jwt_utils import create_admin_token
from storefront_admin.utils.logger import logger
from storefront_admin.utils.passwords import verify_password

router = APIRouter(prefix="/admin", tags=["admin"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.ADMIN_COOKIE_NAME,
        value=token,
        max_age=settings.ADMIN_TOKEN_EXPIRE_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.ADMIN_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )


# ---------------------------------------------------------------------------
# POST /admin/login
# ---------------------------------------------------------------------------

@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """
    Exchange admin email and password for a session token.

    The token is returned in the body and also set as the HTTP-only
    ``adminToken`` cookie. An admin flagged for forced logout is refused with
    ``CREDENTIALS_UPDATED`` until a logout has been processed for them.
    """
    if not data.email or not data.password:
        raise MissingCredentialsError()

    admin = find_by_email(db, data.email)
    if admin is None or not verify_password(data.password, admin.password_hash):
        record_login("invalid_credentials")
        logger.warning("Admin login failed: invalid email or password", extra={"action": "login"})
        raise InvalidCredentialsError()

    token, issued_at = create_admin_token(admin)

    if store.track(admin.admin_id, issued_at):
        record_login("credentials_updated")
        logger.warning(
            f"Admin login refused for {admin.admin_id}: force logout pending",
            extra={"admin_id": admin.admin_id, "action": "login", "reason": "force_logout"},
        )
        raise CredentialsUpdatedError(reason="Account flagged for forced logout; log out to acknowledge")

    _set_session_cookie(response, token)
    record_login("success")
    logger.info(f"Admin logged in: {admin.admin_id}", extra={"admin_id": admin.admin_id, "action": "login"})

    return LoginResponse(
        admin=AdminOut(id=admin.admin_id, name=admin.name, email=admin.email),
        token=token,
    )


# ---------------------------------------------------------------------------
# POST /admin/logout
# ---------------------------------------------------------------------------

@router.post("/logout", response_model=LogoutResponse)
def logout(
    response: Response,
    claims: Optional[Dict[str, Any]] = Depends(get_token_claims),
    store: SessionStore = Depends(get_session_store),
):
    """
    End the caller's admin session.

    Clears the force-logout flag and the registry entry for the admin named by
    the token, even if that token is no longer fresh. Always succeeds.
    """
    if claims is not None:
        admin_id = str(claims["id"])
        store.clear_flag(admin_id)
        store.remove(admin_id)
        logger.info(f"Admin logged out: {admin_id}", extra={"admin_id": admin_id, "action": "logout"})

    _clear_session_cookie(response)
    return LogoutResponse(message="Admin logged out successfully")


# ---------------------------------------------------------------------------
# GET /admin/validate-token
# ---------------------------------------------------------------------------

@router.get("/validate-token", response_model=ValidateTokenResponse)
def validate_token(admin: AdminIdentity = Depends(require_admin)):
    """Confirm the caller's token is still valid (polled by admin clients)."""
    return ValidateTokenResponse(admin=AdminOut(id=admin.id, name=admin.name, email=admin.email))


# ---------------------------------------------------------------------------
# GET /admin/sessions
# ---------------------------------------------------------------------------

@router.get("/sessions", response_model=SessionListResponse)
def list_sessions(
    _: AdminIdentity = Depends(require_admin),
    store: SessionStore = Depends(get_session_store),
):
    """Snapshot of the session registry, for diagnostics."""
    return SessionListResponse(
        sessions=[SessionEntryOut(**entry._asdict()) for entry in store.list_sessions()]
    )
