"""
BillSense AI Backend — Credential Helper Tests
==============================================

What we test:
    ✅ bcrypt hash/verify round trip, wrong password, malformed hash
    ✅ Token claims (sub, type, exp) and expiry window
    ✅ Forged, expired, wrong-type and subject-less tokens are rejected
"""

import time

import jwt
import pytest

from billsense.config import Settings
from billsense.security import (
    TokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


@pytest.fixture
def settings():
    return Settings(environment="test", jwt_secret="unit-test-secret", jwt_expire_days=7)


class TestPasswords:

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("hunter22")
        assert hashed != "hunter22"
        assert verify_password("hunter22", hashed) is True

    def test_wrong_password_fails(self):
        assert verify_password("wrong", hash_password("hunter22")) is False

    def test_malformed_hash_fails_without_raising(self):
        assert verify_password("hunter22", "not-a-bcrypt-hash") is False

    def test_empty_inputs_fail(self):
        assert verify_password("", hash_password("hunter22")) is False
        assert verify_password("hunter22", "") is False

    def test_empty_password_cannot_be_hashed(self):
        with pytest.raises(ValueError):
            hash_password("")


class TestAccessTokens:

    def test_claims(self, settings):
        token = create_access_token("user-123", settings)
        claims = decode_access_token(token, settings)
        assert claims["sub"] == "user-123"
        assert claims["type"] == "access"
        assert claims["exp"] - claims["iat"] == 7 * 86400

    def test_wrong_secret_rejected(self, settings):
        token = create_access_token("user-123", settings)
        other = Settings(environment="test", jwt_secret="another-secret")
        with pytest.raises(TokenError):
            decode_access_token(token, other)

    def test_expired_token_rejected(self, settings):
        now = int(time.time())
        token = jwt.encode(
            {"sub": "user-123", "type": "access", "iat": now - 100, "exp": now - 10},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenError):
            decode_access_token(token, settings)

    def test_wrong_token_type_rejected(self, settings):
        token = jwt.encode(
            {"sub": "user-123", "type": "refresh", "exp": int(time.time()) + 60},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenError):
            decode_access_token(token, settings)

    def test_missing_subject_rejected(self, settings):
        token = jwt.encode(
            {"type": "access", "exp": int(time.time()) + 60},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenError):
            decode_access_token(token, settings)

    @pytest.mark.parametrize("token", ["", "   ", "garbage", "a.b.c"])
    def test_garbage_rejected(self, settings, token):
        with pytest.raises(TokenError):
            decode_access_token(token, settings)
