"""
PhotoMemo Backend: Auth Route Handlers
======================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
How:   Thin handlers; AuthService raises the application exceptions that the
       global handlers turn into 400/401/403/404/409 responses.

Login sets the session token twice: in the JSON body (the SPA keeps it in
local storage and sends it as a Bearer header) and as an http-only cookie.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from photomemo.config import settings
from photomemo.database import get_db_session
from photomemo.dependencies import TOKEN_COOKIE, get_token
from photomemo.schemas.common import ErrorResponse
from photomemo.schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserEnvelope,
    UserResponse,
)
from photomemo.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=UserEnvelope,
    responses={
        400: {"description": "Missing email/password or malformed email", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    user = await auth_service.register(
        db=db,
        email=body.email,
        password=body.password,
        display_name=body.display_name,
        role=body.role,
    )
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing email or password", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        403: {"description": "Account locked", "model": ErrorResponse},
    },
    summary="Log in and receive a session token",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    user, token = await auth_service.login(db=db, email=body.email, password=body.password)

    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        httponly=True,
        samesite=settings.cookie_samesite,
        secure=settings.cookie_secure,
        max_age=settings.jwt_expire_minutes * 60,
    )
    return LoginResponse(user=UserResponse.model_validate(user), token=token)


@router.get(
    "/me",
    response_model=UserEnvelope,
    responses={
        401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
        404: {"description": "User no longer exists", "model": ErrorResponse},
    },
    summary="Current user's profile",
)
async def me(
    token: Optional[str] = Depends(get_token),
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    user = await auth_service.who_am_i(db=db, token=token)
    return UserEnvelope(user=UserResponse.model_validate(user))
