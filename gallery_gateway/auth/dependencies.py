"""
FastAPI dependencies for authentication.
Provides require_admin, which checks the static admin secret.
"""
from typing import Optional

from fastapi import Header

from gallery_gateway.config import settings
from gallery_gateway.errors import UnauthorizedError


def is_admin_token(authorization: Optional[str]) -> bool:
    """True when the raw header equals the configured admin token."""
    return bool(settings.admin_token) and authorization == settings.admin_token


async def require_admin(
    authorization: Optional[str] = Header(default=None),
) -> None:
    """
    FastAPI dependency guarding mutating endpoints.

    The raw `authorization` header must equal the configured admin token.
    No Bearer scheme, no hashing: a direct comparison against configuration.

    Raises:
        UnauthorizedError (403): header missing, wrong, or no token configured
    """
    if not is_admin_token(authorization):
        raise UnauthorizedError()
