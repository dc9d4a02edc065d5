"""Admin auth schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    # Optional so a missing field gets the 400 envelope instead of a 422
    email: Optional[str] = Field(None, description="Admin email (case-insensitive)")
    password: Optional[str] = Field(None, description="Admin password")


class AdminOut(BaseModel):
    id: str
    name: str
    email: str


class LoginResponse(BaseModel):
    success: bool = True
    admin: AdminOut
    token: str


class ValidateTokenResponse(BaseModel):
    success: bool = True
    admin: AdminOut


class LogoutResponse(BaseModel):
    success: bool = True
    message: str


class SessionEntryOut(BaseModel):
    admin_id: str
    issued_at: datetime
    force_logout: bool
    logout_time: Optional[datetime] = None


class SessionListResponse(BaseModel):
    success: bool = True
    sessions: List[SessionEntryOut]
