"""AdminSession model: shared session registry rows"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from storefront_admin.database import Base
from storefront_admin.utils.timestamps import utcnow


class AdminSession(Base):
    """One row per tracked admin, used when ``SESSION_STORE=database``.

    Lets the operator CLI and every server worker see the same force-logout
    flags. Rows are keyed by ``admin_id`` and carry no token material.
    """

    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True)
    admin_id = Column(String(50), unique=True, nullable=False, index=True)
    issued_at = Column(DateTime, default=utcnow, nullable=False)
    force_logout = Column(Boolean, default=False, nullable=False)
    logout_time = Column(DateTime, nullable=True)
