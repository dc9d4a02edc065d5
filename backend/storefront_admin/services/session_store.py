"""Admin session registry.

Tracks, per admin id, when a token was last issued and whether every
outstanding token for that admin must be rejected (the force-logout flag).
The flag survives re-login: only an explicit logout clears it.

Two backends share the :class:`SessionStore` interface:

- :class:`InMemorySessionStore`: a dict guarded by a ``threading.Lock``;
  FastAPI runs sync endpoints in a worker thread pool, so concurrent login and
  credential edits can touch the same entry.
- :class:`DatabaseSessionStore`: rows in ``admin_sessions`` so that several
  server processes and the operator CLI observe the same flags.
"""
import threading
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront_admin.models.admin_session import AdminSession
from storefront_admin.utils.logger import logger
from storefront_admin.utils.timestamps import utcnow


class SessionEntry(NamedTuple):
    """Snapshot of one tracked admin session."""
    admin_id: str
    issued_at: datetime
    force_logout: bool = False
    logout_time: Optional[datetime] = None


class SessionStore:
    """Interface for session registry backends."""

    def track(self, admin_id: str, issued_at: Optional[datetime] = None) -> bool:
        """Create or refresh the entry for ``admin_id``.

        Preserves an existing force-logout flag and returns its value so the
        login flow can refuse to hand out a token for a flagged admin.
        """
        raise NotImplementedError

    def remove(self, admin_id: str) -> bool:
        """Delete the entry. Returns whether one existed."""
        raise NotImplementedError

    def mark_force_logout(self, admin_id: str) -> bool:
        """Flag ``admin_id`` for forced logout, creating the entry if needed.

        Returns whether an entry already existed (operator feedback only).
        """
        raise NotImplementedError

    def is_flagged(self, admin_id: str) -> bool:
        raise NotImplementedError

    def clear_flag(self, admin_id: str) -> None:
        raise NotImplementedError

    def list_sessions(self) -> List[SessionEntry]:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    """Process-local registry. Lost on restart."""

    def __init__(self) -> None:
        self._entries: Dict[str, SessionEntry] = {}
        self._lock = threading.Lock()

    def track(self, admin_id: str, issued_at: Optional[datetime] = None) -> bool:
        admin_id = str(admin_id)
        with self._lock:
            existing = self._entries.get(admin_id)
            force_logout = existing.force_logout if existing else False
            self._entries[admin_id] = SessionEntry(
                admin_id=admin_id,
                issued_at=issued_at or utcnow(),
                force_logout=force_logout,
                logout_time=existing.logout_time if existing else None,
            )
        logger.debug(
            f"Admin session tracked: {admin_id} (forceLogout: {force_logout})",
            extra={"admin_id": admin_id, "action": "track_session"},
        )
        return force_logout

    def remove(self, admin_id: str) -> bool:
        admin_id = str(admin_id)
        with self._lock:
            removed = self._entries.pop(admin_id, None) is not None
        if removed:
            logger.debug(f"Admin session removed: {admin_id}", extra={"admin_id": admin_id})
        return removed

    def mark_force_logout(self, admin_id: str) -> bool:
        admin_id = str(admin_id)
        now = utcnow()
        with self._lock:
            existing = self._entries.get(admin_id)
            if existing:
                self._entries[admin_id] = existing._replace(force_logout=True, logout_time=now)
            else:
                self._entries[admin_id] = SessionEntry(
                    admin_id=admin_id, issued_at=now, force_logout=True, logout_time=now
                )
        if existing:
            logger.info(f"Forcing logout for active admin session: {admin_id}", extra={"admin_id": admin_id})
        else:
            logger.info(f"Creating force logout entry for admin: {admin_id}", extra={"admin_id": admin_id})
        return existing is not None

    def is_flagged(self, admin_id: str) -> bool:
        with self._lock:
            entry = self._entries.get(str(admin_id))
        return bool(entry and entry.force_logout)

    def clear_flag(self, admin_id: str) -> None:
        admin_id = str(admin_id)
        with self._lock:
            entry = self._entries.get(admin_id)
            if entry and entry.force_logout:
                self._entries[admin_id] = entry._replace(force_logout=False)
                logger.debug(f"Cleared force logout for admin: {admin_id}", extra={"admin_id": admin_id})

    def list_sessions(self) -> List[SessionEntry]:
        with self._lock:
            return list(self._entries.values())


class DatabaseSessionStore(SessionStore):
    """Registry persisted in the ``admin_sessions`` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def _get(self, db: Session, admin_id: str) -> Optional[AdminSession]:
        return db.query(AdminSession).filter(AdminSession.admin_id == admin_id).first()

    def _upsert(self, admin_id: str, apply: Callable[[Optional[AdminSession], Session], bool]) -> bool:
        # A concurrent insert for the same admin loses on the unique index; retry once as an update.
        for attempt in range(2):
            db = self._session_factory()
            try:
                result = apply(self._get(db, admin_id), db)
                db.commit()
                return result
            except IntegrityError:
                db.rollback()
                if attempt:
                    raise
            finally:
                db.close()
        return False

    def track(self, admin_id: str, issued_at: Optional[datetime] = None) -> bool:
        admin_id = str(admin_id)

        def apply(row: Optional[AdminSession], db: Session) -> bool:
            if row is None:
                db.add(AdminSession(admin_id=admin_id, issued_at=issued_at or utcnow(), force_logout=False))
                return False
            row.issued_at = issued_at or utcnow()
            return bool(row.force_logout)

        force_logout = self._upsert(admin_id, apply)
        logger.debug(
            f"Admin session tracked: {admin_id} (forceLogout: {force_logout})",
            extra={"admin_id": admin_id, "action": "track_session"},
        )
        return force_logout

    def remove(self, admin_id: str) -> bool:
        db = self._session_factory()
        try:
            deleted = db.query(AdminSession).filter(AdminSession.admin_id == str(admin_id)).delete()
            db.commit()
        finally:
            db.close()
        return bool(deleted)

    def mark_force_logout(self, admin_id: str) -> bool:
        admin_id = str(admin_id)

        def apply(row: Optional[AdminSession], db: Session) -> bool:
            now = utcnow()
            if row is None:
                db.add(AdminSession(admin_id=admin_id, issued_at=now, force_logout=True, logout_time=now))
                return False
            row.force_logout = True
            row.logout_time = now
            return True

        had_entry = self._upsert(admin_id, apply)
        logger.info(
            f"Force logout flag set for admin: {admin_id} (active session: {had_entry})",
            extra={"admin_id": admin_id},
        )
        return had_entry

    def is_flagged(self, admin_id: str) -> bool:
        db = self._session_factory()
        try:
            row = self._get(db, str(admin_id))
            return bool(row and row.force_logout)
        finally:
            db.close()

    def clear_flag(self, admin_id: str) -> None:
        db = self._session_factory()
        try:
            db.query(AdminSession).filter(
                AdminSession.admin_id == str(admin_id),
                AdminSession.force_logout.is_(True),
            ).update({AdminSession.force_logout: False})
            db.commit()
        finally:
            db.close()

    def list_sessions(self) -> List[SessionEntry]:
        db = self._session_factory()
        try:
            rows = db.query(AdminSession).order_by(AdminSession.issued_at).all()
            return [
                SessionEntry(
                    admin_id=row.admin_id,
                    issued_at=row.issued_at,
                    force_logout=bool(row.force_logout),
                    logout_time=row.logout_time,
                )
                for row in rows
            ]
        finally:
            db.close()


def build_session_store(kind: str, session_factory: Optional[Callable[[], Session]] = None) -> SessionStore:
    """Create the registry backend named by the ``SESSION_STORE`` setting."""
    if kind == "memory":
        return InMemorySessionStore()
    if kind == "database":
        if session_factory is None:
            from storefront_admin.database import SessionLocal
            session_factory = SessionLocal
        return DatabaseSessionStore(session_factory)
    raise ValueError(f"Unknown SESSION_STORE '{kind}' (expected 'memory' or 'database')")
