"""Pydantic schemas for request/response validation"""
from storefront_admin.schemas.admin_user import (
    AdminOut,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    SessionEntryOut,
    SessionListResponse,
    ValidateTokenResponse,
)

__all__ = [
    "AdminOut",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "SessionEntryOut",
    "SessionListResponse",
    "ValidateTokenResponse",
]
