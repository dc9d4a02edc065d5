"""Database models"""
from storefront_admin.models.admin_session import AdminSession
from storefront_admin.models.admin_user import AdminUser

__all__ = ["AdminSession", "AdminUser"]
