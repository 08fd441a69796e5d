"""
Unit tests for core.security module.
Tests password hashing, JWT token creation/validation.
"""
import datetime as dt

import jwt
import pytest

from legalai.core.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Tests for argon2 hashing and verification."""

    def test_hash_is_salted(self):
        assert hash_password("TestPassword123") != hash_password("TestPassword123")

    def test_hash_is_argon2_and_not_plain_text(self):
        hashed = hash_password("TestPassword123")
        assert hashed.startswith("$argon2")
        assert "TestPassword123" not in hashed

    def test_verify_password(self):
        hashed = hash_password("TestPassword123")
        assert verify_password("TestPassword123", hashed) is True
        assert verify_password("WrongPassword456", hashed) is False


class TestJWTTokens:
    """Tests for JWT token creation and validation."""

    @pytest.mark.parametrize("role", ["free", "paid", "admin"])
    def test_token_carries_subject_and_role(self, role):
        token = create_access_token("user-123", role)
        payload = decode_access_token(token)
        assert payload["sub"] == "user-123"
        assert payload["role"] == role

    def test_token_expires_after_configured_minutes(self):
        payload = decode_access_token(create_access_token("user-exp", "free"))
        assert payload["exp"] > dt.datetime.now(dt.timezone.utc).timestamp()
        diff_minutes = (payload["exp"] - payload["iat"]) / 60
        assert abs(diff_minutes - ACCESS_TOKEN_EXPIRE_MINUTES) < 1

    def test_decode_invalid_token(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token("invalid.token.here")

    def test_wrong_secret_rejected(self):
        token = create_access_token("user-secret", "free")
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(token, "wrong-secret", algorithms=["HS256"])

    def test_expired_token_rejected(self, monkeypatch):
        from legalai.core import security

        monkeypatch.setattr(security, "ACCESS_TOKEN_EXPIRE_MINUTES", -1)
        token = security.create_access_token("user-old", "free")
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(token)
