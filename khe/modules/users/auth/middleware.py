"""
Authentication Middleware

FastAPI dependencies for authentication and role checks.

Clients authenticate with the key/token pair returned by registration or
POST /users/token, sent as HTTP Basic credentials:

    Authorization: Basic base64("<key>:<token>")
"""
import base64
import binascii
import logging
from typing import Optional, Tuple
from fastapi import Depends, Header
from khe.modules.errors import AuthenticationError, ForbiddenError
from khe.modules.users.domain.user import User, ROLE_ADMIN, ROLE_STAFF
from khe.modules.users.services.user_service import UserService

logger = logging.getLogger("khe.users.auth")


# Singleton instance
_user_service = UserService()


def get_user_service() -> UserService:
    """FastAPI dependency providing the shared UserService."""
    return _user_service


def parse_credentials(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split a Basic Authorization header into (key, token); None if malformed."""
    if not authorization:
        return None
    scheme, _, encoded = authorization.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    key, sep, token = decoded.partition(":")
    if not sep or not key or not token:
        return None
    return key, token


async def get_current_user(
    authorization: Optional[str] = Header(None),
    service: UserService = Depends(get_user_service)
) -> User:
    """
    FastAPI dependency to get current authenticated user.

    Raises AuthenticationError if credentials are missing or do not match.
    """
    credentials = parse_credentials(authorization)
    if not credentials:
        raise AuthenticationError("Authentication required")

    key, token = credentials
    user = await service.authenticate(key, token)
    if not user:
        logger.debug(f"[auth] rejected credentials for key={key}")
        raise AuthenticationError("Invalid credentials")
    return user


def require_roles(*roles: str):
    """
    Build a dependency that admits only users holding one of `roles`.
    With no roles, any authenticated user is admitted.
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_role(*roles):
            logger.info(f"[auth] user {current_user.id} ({current_user.role}) denied, requires {roles}")
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return dependency


require_admin = require_roles(ROLE_ADMIN)
require_admin_or_staff = require_roles(ROLE_ADMIN, ROLE_STAFF)
