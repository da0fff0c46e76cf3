"""
Password hashing and session token primitives.

bcrypt (through passlib) for password digests, python-jose for HS256 JWTs.
Nothing here touches the database.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from photomemo.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh salt; the same password never hashes the same twice."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time comparison of a plaintext password against a stored digest."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    claims: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign a session token carrying `claims` plus an `exp` claim.

    The default lifetime is settings.jwt_expire_minutes, which is also the
    max-age of the session cookie.
    """
    to_encode = claims.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expire_minutes)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the verified claims, or None if the token is invalid, tampered with or expired."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
