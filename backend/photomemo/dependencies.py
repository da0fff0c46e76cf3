"""
FastAPI dependencies for authenticated routes.

The session token is read from `Authorization: Bearer <token>` and, when that
header is absent, from the http-only `token` cookie set at login. Post routes
trust the verified claims without loading the user row.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from photomemo.services.auth_service import TokenIdentity, identity_from_token

# tokenUrl only feeds the Swagger UI; auto_error=False lets the cookie fallback run
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)

TOKEN_COOKIE = "token"


async def get_token(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
) -> Optional[str]:
    return bearer or request.cookies.get(TOKEN_COOKIE)


async def get_current_identity(
    token: Optional[str] = Depends(get_token),
) -> TokenIdentity:
    """Raises UnauthorizedError (→ 401) when the token is missing or invalid."""
    return identity_from_token(token)
