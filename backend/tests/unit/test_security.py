"""
Unit Tests - Security
Tests for bearer token verification.
"""
from datetime import timedelta

from jose import jwt

from tradeledger.core.security import create_access_token, decode_token, verify_token


class TestAccessTokens:

    def test_valid_token_returns_subject(self, valid_access_token):
        assert verify_token(valid_access_token) == "user-123"

    def test_token_claims(self):
        payload = decode_token(create_access_token(subject=42))
        assert payload["sub"] == "42"
        assert payload["type"] == "access"
        assert "jti" in payload

    def test_expired_token_rejected(self, expired_access_token):
        assert verify_token(expired_access_token) is None

    def test_wrong_token_type_rejected(self):
        token = create_access_token(subject="user-123", additional_claims={"type": "refresh"})
        assert verify_token(token, token_type="access") is None

    def test_token_signed_with_other_key_rejected(self):
        token = jwt.encode({"sub": "user-123", "type": "access"}, "another-key", algorithm="HS256")
        assert decode_token(token) is None

    def test_garbage_rejected(self):
        assert verify_token("not-a-jwt") is None

    def test_custom_expiry(self):
        token = create_access_token(subject="user-123", expires_delta=timedelta(hours=2))
        payload = decode_token(token)
        assert payload["exp"] - payload["iat"] == 7200
