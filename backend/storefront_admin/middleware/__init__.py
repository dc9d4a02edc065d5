"""Middleware modules for production-ready features"""
from storefront_admin.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_forced_logout,
    record_login,
)
from storefront_admin.middleware.rate_limit import limiter

__all__ = [
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_forced_logout",
    "record_login",
    "limiter",
]
