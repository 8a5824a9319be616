"""Tests for the Redis access-token denylist, against an in-memory Redis."""

import fakeredis.aioredis
import pytest
from httpx import AsyncClient

from conftest import auth_headers
from ratings_api.services.tokens import create_access_token, decode_access_token
from ratings_api.settings import get_settings
from ratings_api.stores import redis as redis_store


@pytest.fixture
async def fake_redis(monkeypatch: pytest.MonkeyPatch):
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(redis_store, "_redis", client)
    yield client
    await client.aclose()


@pytest.mark.asyncio
async def test_revoke_stores_prefixed_key_with_ttl(fake_redis):
    assert await redis_store.revoke_token("abc123", 120) is True

    assert await fake_redis.get("revoked:abc123") == "1"
    ttl = await fake_redis.ttl("revoked:abc123")
    assert 0 < ttl <= 120
    assert await redis_store.is_token_revoked("abc123") is True
    assert await redis_store.is_token_revoked("other") is False


@pytest.mark.asyncio
async def test_revoke_expired_token_keeps_minimum_ttl(fake_redis):
    await redis_store.revoke_token("late", 0)
    assert await fake_redis.ttl("revoked:late") == redis_store.MIN_REVOCATION_TTL


@pytest.mark.asyncio
async def test_revocation_disabled_without_client(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(redis_store, "_redis", None)
    assert await redis_store.revoke_token("abc", 60) is False
    assert await redis_store.is_token_revoked("abc") is False


@pytest.mark.asyncio
async def test_init_and_close_redis(monkeypatch: pytest.MonkeyPatch):
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(redis_store.redis, "from_url", lambda url, **kwargs: client)
    monkeypatch.setattr(redis_store, "_redis", None)
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    get_settings.cache_clear()

    await redis_store.init_redis()
    assert redis_store._redis is client

    await redis_store.close_redis()
    assert redis_store._redis is None


@pytest.mark.asyncio
async def test_init_redis_skipped_when_url_empty(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(redis_store, "_redis", None)
    await redis_store.init_redis()
    assert redis_store._redis is None


@pytest.mark.asyncio
async def test_logout_then_token_is_rejected(client: AsyncClient, make_user, fake_redis):
    user = await make_user()
    token = create_access_token(user.id, user.role.value)
    headers = {"Authorization": f"Bearer {token}"}
    jti = decode_access_token(token).jti

    assert (await client.get("/v1/auth/verify", headers=headers)).status_code == 200

    response = await client.post("/v1/auth/logout", headers=headers)
    assert response.status_code == 200

    assert await fake_redis.exists(f"revoked:{jti}") == 1
    ttl = await fake_redis.ttl(f"revoked:{jti}")
    assert 0 < ttl <= get_settings().jwt_expire_minutes * 60

    rejected = await client.get("/v1/auth/verify", headers=headers)
    assert rejected.status_code == 401
    assert rejected.json()["error"]["code"] == "TOKEN_REVOKED"

    # A fresh login token is unaffected
    fresh = await client.get("/v1/auth/verify", headers=auth_headers(user))
    assert fresh.status_code == 200
