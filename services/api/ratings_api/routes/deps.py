"""Shared route dependencies: DB session, current user, role checks."""

from collections.abc import AsyncGenerator, Callable, Coroutine
import logging
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ratings_api.models import User, UserRole
from ratings_api.services.errors import AuthenticationFailed, PermissionDenied
from ratings_api.services.tokens import TokenClaims, decode_access_token
from ratings_api.stores.postgres import get_session
from ratings_api.stores.redis import is_token_revoked

logger = logging.getLogger("uvicorn.error")

bearer_scheme = HTTPBearer(auto_error=False, description="JWT access token from /v1/auth/login")


async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; committed when the handler returns normally."""
    async with get_session() as session:
        yield session


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenClaims:
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("Access denied. No token provided.", code="NO_TOKEN")

    claims = decode_access_token(credentials.credentials)
    if await is_token_revoked(claims.jti):
        raise AuthenticationFailed("Access denied. Token revoked.", code="TOKEN_REVOKED")
    return claims


async def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    session: AsyncSession = Depends(db_session),
) -> User:
    """Resolve the caller; deactivated or deleted accounts are rejected."""
    user = await session.get(User, claims.user_id)
    if user is None or not user.is_active:
        raise AuthenticationFailed(
            "Access denied. User not found or inactive.",
            code="USER_NOT_FOUND",
        )
    return user


def require_roles(*roles: UserRole) -> Callable[..., Coroutine[Any, Any, User]]:
    """Dependency factory: allow only callers whose role is in `roles`."""

    async def role_dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.info("[auth] forbidden user_id=%s role=%s", user.id, user.role.value)
            raise PermissionDenied(
                "Access denied. Insufficient permissions.",
                code="INSUFFICIENT_PERMISSIONS",
                detail={
                    "requiredRoles": [r.value for r in roles],
                    "userRole": user.role.value,
                },
            )
        return user

    return role_dependency


require_admin = require_roles(UserRole.ADMIN)
require_normal_user = require_roles(UserRole.USER)
require_admin_or_owner = require_roles(UserRole.ADMIN, UserRole.STORE_OWNER)
