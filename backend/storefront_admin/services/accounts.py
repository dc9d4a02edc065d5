"""Admin account operations, including the credential edit tool.

Every successful :func:`edit_credential` bumps ``last_updated`` and flags the
admin for forced logout, whichever fields changed. Together these make every
token issued before the edit unusable: the flag takes effect immediately in
the registry, and the timestamp check still holds if the registry is lost.
"""
import secrets
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import Session

from storefront_admin.config import settings
from storefront_admin.errors import (
    AccountNotFoundError,
    EmailInUseError,
    InvalidAccountDataError,
    LastAdminError,
)
from storefront_admin.middleware.monitoring import record_forced_logout
from storefront_admin.models.admin_user import AdminUser
from storefront_admin.services.session_store import SessionStore
from storefront_admin.utils.logger import logger
from storefront_admin.utils.passwords import hash_password
from storefront_admin.utils.timestamps import next_timestamp, utcnow

MIN_PASSWORD_LENGTH = 6


class EditResult(NamedTuple):
    admin: AdminUser
    had_active_session: bool


def _generate_admin_id() -> str:
    return f"{settings.ADMIN_ID_PREFIX}{secrets.token_urlsafe(10)}"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise InvalidAccountDataError("Name is required")
    return name


def _clean_email(email: str) -> str:
    email = normalize_email(email)
    if not email or "@" not in email:
        raise InvalidAccountDataError(f"Invalid email address: '{email}'")
    return email


def _check_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidAccountDataError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password


def get_admin(db: Session, admin_id: str) -> AdminUser:
    admin = db.query(AdminUser).filter(AdminUser.admin_id == admin_id).first()
    if not admin:
        raise AccountNotFoundError(f"Admin {admin_id} not found")
    return admin


def find_by_email(db: Session, email: str) -> Optional[AdminUser]:
    return db.query(AdminUser).filter(AdminUser.email == normalize_email(email)).first()


def list_admins(db: Session) -> List[AdminUser]:
    return db.query(AdminUser).order_by(AdminUser.created_at, AdminUser.id).all()


def create_admin(db: Session, name: str, email: str, password: str) -> AdminUser:
    """Create an admin account. Email must not already be registered."""
    name = _clean_name(name)
    email = _clean_email(email)
    _check_password(password)

    if find_by_email(db, email):
        raise EmailInUseError(f"Admin with email {email} already exists")

    now = utcnow()
    admin = AdminUser(
        admin_id=_generate_admin_id(),
        name=name,
        email=email,
        password_hash=hash_password(password),
        created_at=now,
        last_updated=now,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)

    logger.info(f"Created admin user: {admin.admin_id}", extra={"admin_id": admin.admin_id, "action": "create_admin"})
    return admin


def edit_credential(
    db: Session,
    store: SessionStore,
    admin_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> EditResult:
    """Apply the provided changes to an admin and force their sessions out.

    Fields left as ``None`` are kept. ``last_updated`` moves forward on every
    call, even when only the name changes.

    Raises:
        AccountNotFoundError: no admin with ``admin_id``.
        EmailInUseError: ``email`` belongs to another admin.
        InvalidAccountDataError: a provided field fails validation.
    """
    admin = get_admin(db, admin_id)

    if name is not None:
        name = _clean_name(name)
    if email is not None:
        email = _clean_email(email)
        if email != admin.email:
            other = find_by_email(db, email)
            if other is not None and other.id != admin.id:
                raise EmailInUseError(f"Email {email} is already in use by another admin")
    if password is not None:
        _check_password(password)

    if name is not None:
        admin.name = name
    if email is not None:
        admin.email = email
    if password is not None:
        admin.password_hash = hash_password(password)
    admin.last_updated = next_timestamp(admin.last_updated)

    db.commit()
    db.refresh(admin)

    had_active_session = store.mark_force_logout(admin.admin_id)
    record_forced_logout()

    changed = [field for field, value in (("name", name), ("email", email), ("password", password)) if value is not None]
    logger.info(
        f"Admin {admin.admin_id} credentials updated "
        f"(fields: {', '.join(changed) or 'none'}; active session: {had_active_session})",
        extra={"admin_id": admin.admin_id, "action": "edit_admin"},
    )
    return EditResult(admin=admin, had_active_session=had_active_session)


def delete_admin(db: Session, store: SessionStore, admin_id: str) -> None:
    """Delete an admin account. The last remaining admin cannot be deleted."""
    admin = get_admin(db, admin_id)

    if db.query(AdminUser).count() <= 1:
        raise LastAdminError("Cannot delete the last admin user")

    db.delete(admin)
    db.commit()
    store.remove(admin_id)

    logger.info(f"Deleted admin user: {admin_id}", extra={"admin_id": admin_id, "action": "delete_admin"})
