from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from ratings_api.services.errors import AuthenticationFailed
from ratings_api.services.tokens import TokenClaims, create_access_token, decode_access_token


def test_round_trip_claims():
    token = create_access_token(42, "storeOwner")
    claims = decode_access_token(token)
    assert claims.user_id == 42
    assert claims.role == "storeOwner"
    assert len(claims.jti) == 32


def test_each_token_gets_a_unique_jti():
    a = decode_access_token(create_access_token(1, "user"))
    b = decode_access_token(create_access_token(1, "user"))
    assert a.jti != b.jti


def test_expired_token():
    past = datetime.now(timezone.utc) - timedelta(days=2)
    token = create_access_token(1, "user", now=past, expires_delta=timedelta(hours=1))
    with pytest.raises(AuthenticationFailed) as exc_info:
        decode_access_token(token)
    assert exc_info.value.code == "TOKEN_EXPIRED"
    assert exc_info.value.status_code == 401


def test_wrong_signature_is_invalid():
    token = jwt.encode({"sub": "1", "role": "user"}, "other-secret", algorithm="HS256")
    with pytest.raises(AuthenticationFailed) as exc_info:
        decode_access_token(token)
    assert exc_info.value.code == "INVALID_TOKEN"


def test_garbage_token_is_invalid():
    with pytest.raises(AuthenticationFailed) as exc_info:
        decode_access_token("not.a.jwt")
    assert exc_info.value.code == "INVALID_TOKEN"


def test_missing_claims_are_invalid(test_settings):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": "not-a-number",
            "exp": int((now + timedelta(hours=1)).timestamp()),
            "iss": test_settings.jwt_issuer,
            "aud": test_settings.jwt_audience,
        },
        test_settings.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationFailed) as exc_info:
        decode_access_token(token)
    assert exc_info.value.code == "INVALID_TOKEN"


def test_seconds_left():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    claims = TokenClaims(user_id=1, role="user", jti="x", expires_at=int(now.timestamp()) + 90)
    assert claims.seconds_left(now) == 90
    assert claims.seconds_left(now + timedelta(minutes=5)) == 0
