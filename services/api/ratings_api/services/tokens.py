"""JWT access tokens.

Tokens are HS256-signed with python-jose and carry:
sub (user id), role, iat, exp, iss, aud, jti.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt

from ratings_api.services.errors import AuthenticationFailed
from ratings_api.settings import get_settings

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: str
    jti: str
    expires_at: int  # Unix seconds

    def seconds_left(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        return max(0, self.expires_at - int(now.timestamp()))


def create_access_token(
    user_id: int,
    role: str,
    *,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """Issue a signed access token for a user."""
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    claims = {
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "jti": uuid4().hex,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """Verify signature, expiry, issuer and audience; return the claims.

    Raises:
        AuthenticationFailed: TOKEN_EXPIRED or INVALID_TOKEN.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise AuthenticationFailed("Access denied. Token expired.", code="TOKEN_EXPIRED")
    except JWTError:
        raise AuthenticationFailed("Access denied. Invalid token.", code="INVALID_TOKEN")

    try:
        return TokenClaims(
            user_id=int(payload["sub"]),
            role=str(payload["role"]),
            jti=str(payload["jti"]),
            expires_at=int(payload["exp"]),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("[auth] token with malformed claims rejected")
        raise AuthenticationFailed("Access denied. Invalid token.", code="INVALID_TOKEN")
