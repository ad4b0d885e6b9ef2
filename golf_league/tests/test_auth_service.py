"""
Unit tests for authentication service JWT tokens.
"""
from datetime import timedelta
from golf_league.services import auth_service


class TestJWTTokens:
    """Tests for JWT token creation and verification."""

    def test_create_and_verify_token(self):
        token = auth_service.create_access_token({"user_id": 7})

        payload = auth_service.verify_token(token)
        assert payload is not None
        assert payload["user_id"] == 7
        assert "exp" in payload

    def test_expired_token_is_rejected(self):
        token = auth_service.create_access_token({"user_id": 7}, expires_delta=timedelta(seconds=-60))

        assert auth_service.verify_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = auth_service.create_access_token({"user_id": 7})

        assert auth_service.verify_token(token + "x") is None

    def test_token_signed_with_other_secret_is_rejected(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET_KEY", "first-secret")
        token = auth_service.create_access_token({"user_id": 7})

        monkeypatch.setenv("JWT_SECRET_KEY", "second-secret")
        assert auth_service.verify_token(token) is None

    def test_garbage_is_rejected(self):
        assert auth_service.verify_token("not-a-jwt") is None
