"""Admin token gate.

Admits a request only while the token's signature and expiry verify, it
carries the ``isAdmin`` marker, the admin still exists, the session registry
has not flagged the admin for forced logout, and the credential record has not
been edited since the token was issued.
"""
from typing import Any, Dict, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront_admin.errors import (
    AdminNotFoundError,
    AuthenticationFailedError,
    CredentialsUpdatedError,
    InvalidTokenError,
    NoTokenError,
    NotAdminError,
)
from storefront_admin.models.admin_user import AdminUser
from storefront_admin.services.session_store import SessionStore
from storefront_admin.utils.jwt_utils import decode_admin_token
from storefront_admin.utils.logger import logger
from storefront_admin.utils.timestamps import to_epoch_ms


class AdminIdentity(NamedTuple):
    """Authenticated admin attached to the request."""
    id: str
    name: str
    email: str


def extract_token(authorization: Optional[str], cookie: Optional[str]) -> Optional[str]:
    """Pick the raw token from the request.

    The ``Authorization`` header wins over the ``adminToken`` cookie when both
    are present. The header may carry ``Bearer <token>`` or the bare token.
    """
    if authorization and authorization.strip():
        value = authorization.strip()
        scheme, _, rest = value.partition(" ")
        if scheme.lower() == "bearer":
            value = rest.strip()
        if value:
            return value
    if cookie and cookie.strip():
        return cookie.strip()
    return None


def verify_admin_claims(token: Optional[str]) -> Dict[str, Any]:
    """Run the stateless checks: presence, signature/expiry and admin marker."""
    if not token:
        raise NoTokenError()

    payload = decode_admin_token(token)

    if not payload.get("isAdmin"):
        raise NotAdminError()

    if not payload.get("id"):
        raise InvalidTokenError()

    return payload


def authenticate(token: Optional[str], db: Session, store: SessionStore) -> AdminIdentity:
    """Validate ``token`` against current credential and session state.

    Raises one of the :class:`~storefront_admin.errors.AdminAuthError`
    subclasses on rejection.
    """
    payload = verify_admin_claims(token)
    admin_id = str(payload["id"])

    # The registry may be database-backed too; both lookups fail closed
    try:
        admin = db.query(AdminUser).filter(AdminUser.admin_id == admin_id).first()
        flagged = admin is not None and store.is_flagged(admin_id)
    except SQLAlchemyError:
        logger.error(
            "Credential or session lookup failed during token check",
            extra={"admin_id": admin_id, "action": "authenticate"},
            exc_info=True,
        )
        raise AuthenticationFailedError()

    if admin is None:
        raise AdminNotFoundError()

    if flagged:
        logger.info(
            f"Rejecting token for {admin_id}: force logout flag set",
            extra={"admin_id": admin_id, "reason": "force_logout"},
        )
        raise CredentialsUpdatedError(reason="Account flagged for forced logout after a credential change")

    token_last_updated = payload.get("lastUpdated")
    if not isinstance(token_last_updated, int):
        raise InvalidTokenError()

    if token_last_updated < to_epoch_ms(admin.last_updated):
        logger.info(
            f"Rejecting token for {admin_id}: credentials changed after issuance",
            extra={"admin_id": admin_id, "reason": "stale_credentials"},
        )
        raise CredentialsUpdatedError(reason="Credentials were updated after this token was issued")

    return AdminIdentity(id=admin.admin_id, name=admin.name, email=admin.email)
