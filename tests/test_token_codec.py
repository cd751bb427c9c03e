"""Token codec: issue/verify round trip, expiry, tampering."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from taskboard.auth.jwt import (
    TokenCodec,
    TokenExpired,
    TokenInvalidSignature,
    TokenMalformed,
)
from taskboard.config import Settings
from taskboard.db.models import Role

from factories import TEST_SETTINGS

OTHER_SETTINGS = Settings(
    environment="test", jwt_secret="some-other-secret-that-is-long-enough"
)


def test_round_trip_preserves_claims(codec):
    token = codec.issue("u1", "u1@example.com", Role.USER)
    claims = codec.verify(token)
    assert (claims.sub, claims.email, claims.role) == ("u1", "u1@example.com", Role.USER)


def test_round_trip_admin_role(codec):
    claims = codec.verify(codec.issue("a", "a@example.com", Role.ADMIN))
    assert claims.role is Role.ADMIN


def test_default_ttl_is_seven_days(codec):
    claims = codec.verify(codec.issue("u1", "u1@example.com", Role.USER))
    assert claims.exp - claims.iat == 7 * 24 * 3600


def test_wire_claims_shape(codec):
    token = codec.issue("u1", "u1@example.com", Role.USER, ttl=timedelta(hours=1))
    payload = jwt.decode(token, options={"verify_signature": False})
    assert set(payload) == {"sub", "email", "role", "iat", "exp"}
    assert payload["role"] == "USER"
    assert payload["exp"] - payload["iat"] == 3600


def test_expired_token_rejected():
    eight_days_ago = datetime.now(timezone.utc) - timedelta(days=8)
    past = TokenCodec(TEST_SETTINGS, clock=lambda: eight_days_ago)
    token = past.issue("u1", "u1@example.com", Role.USER)

    with pytest.raises(TokenExpired):
        TokenCodec(TEST_SETTINGS).verify(token)


def test_token_valid_until_ttl_passes(codec):
    token = codec.issue("u1", "u1@example.com", Role.USER, ttl=timedelta(minutes=5))
    assert codec.verify(token).sub == "u1"


def test_wrong_secret_is_invalid_signature(codec):
    other = TokenCodec(OTHER_SETTINGS)
    token = other.issue("u1", "u1@example.com", Role.ADMIN)

    with pytest.raises(TokenInvalidSignature):
        codec.verify(token)


def test_tampered_payload_is_invalid_signature(codec):
    token = codec.issue("u1", "u1@example.com", Role.USER)
    header, _, signature = token.split(".")
    forged = jwt.encode(
        {"sub": "u1", "email": "u1@example.com", "role": "ADMIN", "iat": 0, "exp": 2**40},
        "attacker-key-of-reasonable-length-xx",
        algorithm="HS256",
    ).split(".")[1]

    with pytest.raises(TokenInvalidSignature):
        codec.verify(f"{header}.{forged}.{signature}")


def test_signature_checked_before_expiry(codec):
    """An expired token with a bad signature is rejected for the signature."""
    old = datetime.now(timezone.utc) - timedelta(days=30)
    other = TokenCodec(OTHER_SETTINGS, clock=lambda: old)
    with pytest.raises(TokenInvalidSignature):
        codec.verify(other.issue("u1", "u1@example.com", Role.USER))


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c", "a.b"])
def test_garbage_is_malformed(codec, garbage):
    with pytest.raises(TokenMalformed):
        codec.verify(garbage)


def test_missing_claim_is_malformed(codec):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"sub": "u1", "role": "USER", "iat": now, "exp": now + 60},
        TEST_SETTINGS.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(TokenMalformed):
        codec.verify(token)


def test_unknown_role_is_malformed(codec):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"sub": "u1", "email": "e@x.io", "role": "ROOT", "iat": now, "exp": now + 60},
        TEST_SETTINGS.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(TokenMalformed):
        codec.verify(token)


def test_fallback_secret_rejected_outside_development():
    with pytest.raises(ValueError, match="TASKBOARD_JWT_SECRET"):
        Settings(environment="production")


def test_fallback_secret_allowed_in_development():
    assert Settings(environment="development").jwt_secret


def test_expiry_follows_injected_clock():
    issued = datetime(2020, 1, 1, tzinfo=timezone.utc)
    clock = {"now": issued}
    codec = TokenCodec(TEST_SETTINGS, clock=lambda: clock["now"])
    token = codec.issue("u1", "u1@example.com", Role.USER)

    # Long past by the wall clock, but still valid on the codec's clock.
    assert codec.verify(token).sub == "u1"

    clock["now"] = issued + timedelta(days=7) - timedelta(seconds=1)
    assert codec.verify(token).sub == "u1"

    clock["now"] = issued + timedelta(days=7)
    with pytest.raises(TokenExpired):
        codec.verify(token)


def test_non_integer_exp_is_malformed(codec):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"sub": "u1", "email": "e@x.io", "role": "USER", "iat": now, "exp": "soon"},
        TEST_SETTINGS.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(TokenMalformed):
        codec.verify(token)
