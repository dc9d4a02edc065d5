"""AdminUser model: persisted admin credentials"""
from sqlalchemy import Column, DateTime, Integer, String

from storefront_admin.database import Base
from storefront_admin.utils.timestamps import utcnow


class AdminUser(Base):
    """An admin account able to sign in to the storefront back office.

    ``last_updated`` is bumped by every credential edit; tokens embed the value
    current at issuance and are rejected once the record moves past it.
    """

    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True)
    admin_id = Column(String(50), unique=True, nullable=False, index=True)   # "adm_xxx"
    email = Column(String(255), unique=True, nullable=False, index=True)     # stored lower-cased
    password_hash = Column(String(255), nullable=False)                      # bcrypt
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_updated = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<AdminUser {self.admin_id} {self.email}>"
