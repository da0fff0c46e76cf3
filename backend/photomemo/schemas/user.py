"""
Request/response schemas for the auth endpoints.

Request fields are all optional at the schema level: a missing email or
password is a 400 raised by AuthService (ValidationError), not FastAPI's 422.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from photomemo.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    display_name: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(CamelModel):
    """Sanitized profile. The password hash never leaves the service."""
    id: uuid.UUID
    email: str
    display_name: str = ""
    role: str
    is_active: bool
    is_logged_in: bool
    login_attempts: int
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserEnvelope(CamelModel):
    user: UserResponse


class LoginResponse(CamelModel):
    user: UserResponse
    token: str = Field(description="Signed session token (also set as the `token` cookie)")
