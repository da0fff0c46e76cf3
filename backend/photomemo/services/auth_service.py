"""
PhotoMemo Backend: Auth Service (Session Issuer)
================================================

What:  Registration, login with attempt throttling, and token → profile lookup.
Who:   Called by the /api/auth route handlers.

Login state machine:
    Active ──(wrong password, attempts < ceiling)──▶ Active (attempts + 1)
    Active ──(wrong password, attempts reaches ceiling)──▶ Locked (is_active=False)
    Active ──(correct password)──▶ Active (is_logged_in=True, last_login_at=now)
    Locked ──(any password)──▶ AccountLockedError

    Locked is terminal for every exposed operation; reactivation is an
    administrative action outside this API. login_attempts is cumulative and
    is not reset by a successful login.

Role assignment:
    The client may ask for role "admin" at registration and it is honored
    without any authorization check. Any other value becomes "user".
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photomemo.config import settings
from photomemo.exceptions import (
    AccountLockedError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from photomemo.models.user import ROLE_ADMIN, ROLE_USER, User
from photomemo.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

VALID_ROLES = {ROLE_USER, ROLE_ADMIN}


@dataclass(frozen=True)
class TokenIdentity:
    """Claims of a verified session token. Building one never touches the database."""
    id: uuid.UUID
    role: str
    email: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def identity_from_token(token: Optional[str]) -> TokenIdentity:
    """
    Verify a session token and return its identity claims.

    Raises:
        UnauthorizedError: token missing, malformed, tampered with, expired,
                           or carrying an unusable `id` claim
    """
    if not token:
        raise UnauthorizedError()

    payload = decode_access_token(token)
    if payload is None:
        raise UnauthorizedError(message="Invalid or expired token")

    try:
        user_id = uuid.UUID(str(payload.get("id")))
    except (TypeError, ValueError):
        raise UnauthorizedError(message="Invalid or expired token")

    return TokenIdentity(
        id=user_id,
        role=str(payload.get("role") or ROLE_USER),
        email=str(payload.get("email") or ""),
    )


def make_token(user: User) -> str:
    return create_access_token({"id": str(user.id), "role": user.role, "email": user.email})


class AuthService:
    """Credential store operations. Stateless; the session is passed per call."""

    async def register(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
        display_name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> User:
        """
        Create an account.

        Raises:
            ValidationError: email or password missing, or email malformed (→ 400)
            ConflictError:   email already registered, case-insensitively (→ 409)
        """
        if not email or not password:
            raise ValidationError(message="Email and password are required.")

        email = normalize_email(email)
        if not EMAIL_REGEX.match(email):
            raise ValidationError(message="A valid email address is required.", field="email")

        existing = await self._find_by_email(db, email)
        if existing is not None:
            raise ConflictError(message="This email is already registered.")

        safe_role = role if role in VALID_ROLES else ROLE_USER

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            display_name=(display_name or "").strip(),
            role=safe_role,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Two registrations for the same email raced past the check above
            await db.rollback()
            raise ConflictError(message="This email is already registered.")

        logger.info("Registered user %s (role=%s)", user.id, user.role)
        return user

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> Tuple[User, str]:
        """
        Verify credentials and issue a session token.

        Returns:
            (user, token) on success

        Raises:
            ValidationError:          email or password missing (→ 400)
            InvalidCredentialsError:  unknown email or wrong password (→ 401)
            AccountLockedError:       account inactive, or this failure reached
                                      the attempt ceiling (→ 403)
        """
        if not email or not password:
            raise ValidationError(message="Email and password are required.")

        user = await self._find_by_email(db, normalize_email(email))
        if user is None:
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning("Login attempt on locked account %s", user.id)
            raise AccountLockedError()

        if not verify_password(password, user.password_hash):
            await self._record_failed_attempt(db, user)
            # _record_failed_attempt raises when the ceiling is reached
            attempts_left = settings.max_login_attempts - user.login_attempts
            raise InvalidCredentialsError(attempts_left=attempts_left)

        user.is_logged_in = True
        user.last_login_at = datetime.now(timezone.utc)
        await db.flush()

        logger.info("User %s logged in", user.id)
        return user, make_token(user)

    async def who_am_i(self, db: AsyncSession, token: Optional[str]) -> User:
        """
        Resolve a bearer token to the current user record.

        Raises:
            UnauthorizedError: token missing/invalid/expired (→ 401)
            NotFoundError:     the user in the token no longer exists (→ 404)
        """
        identity = identity_from_token(token)
        user = await db.get(User, identity.id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(identity.id))
        return user

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _record_failed_attempt(self, db: AsyncSession, user: User) -> None:
        """
        Count a wrong password; lock the account at the ceiling.

        The counter must be durable even though the request ends in an
        error response, so this commits instead of flushing: the per-request
        session rolls back whenever an exception escapes the handler.
        """
        user.login_attempts = (user.login_attempts or 0) + 1
        locked = user.login_attempts >= settings.max_login_attempts
        if locked:
            user.is_active = False
        await db.commit()

        if locked:
            logger.warning(
                "Account %s locked after %d failed logins", user.id, user.login_attempts
            )
            raise AccountLockedError(max_attempts=settings.max_login_attempts)

        logger.info("Failed login for %s (%d attempts)", user.id, user.login_attempts)


auth_service = AuthService()
