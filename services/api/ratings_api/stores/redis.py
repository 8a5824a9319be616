"""Redis store for the access-token denylist.

Handles:
- Revoked token ids (jti) with a TTL matching the token's remaining lifetime
- Connectivity check on startup

Redis is optional: when it is not configured or not connected, revocation
is disabled and every token is treated as not revoked.
"""

import logging

import redis.asyncio as redis

from ratings_api.settings import get_settings

# Key prefixes
PREFIX_REVOKED = "revoked:"

# Lower bound so a token revoked seconds before expiry still gets a key
MIN_REVOCATION_TTL = 1

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    if not settings.redis_url:
        logger.warning("[redis] REDIS_URL empty; token revocation disabled")
        return
    client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    await client.ping()
    _redis = client
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


# ============================================================
# Token denylist
# ============================================================


async def revoke_token(jti: str, ttl: int) -> bool:
    """Add a token id to the denylist.

    Args:
        jti: Token identifier claim.
        ttl: Seconds until the token would expire on its own.

    Returns:
        True if stored, False if revocation is disabled.
    """
    if _redis is None:
        logger.warning("[redis] revocation disabled; jti=%s not stored", jti)
        return False
    await _redis.set(f"{PREFIX_REVOKED}{jti}", "1", ex=max(ttl, MIN_REVOCATION_TTL))
    return True


async def is_token_revoked(jti: str) -> bool:
    """Check whether a token id is on the denylist.

    Args:
        jti: Token identifier claim.

    Returns:
        True if revoked, False otherwise (including when revocation is disabled).
    """
    if _redis is None:
        return False
    return await _redis.exists(f"{PREFIX_REVOKED}{jti}") > 0
