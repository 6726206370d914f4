# backend/tests/services/test_jwt_handler.py
"""
Tests for JWT token handling.

Tests:
- Access token creation with correct claims
- Token validation (valid, expired, invalid)
- Token type verification
- User id extraction
"""

from datetime import timedelta

import pytest
from jose import jwt

from app.config import settings
from app.services.auth.jwt_handler import JWTHandler
from app.services.exceptions import TokenExpiredError, InvalidCredentialsError


class TestCreateAccessToken:

    def test_token_contains_correct_claims(self):
        """Token should contain user_id, email, and type claims."""
        token = JWTHandler.create_access_token(user_id=123, email="user@example.com")

        payload = JWTHandler.validate_access_token(token)

        assert payload["sub"] == "123"
        assert payload["email"] == "user@example.com"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]


class TestValidateAccessToken:

    def test_expired(self):
        token = JWTHandler.create_access_token(1, "a@example.com", expires_delta=timedelta(seconds=-1))

        with pytest.raises(TokenExpiredError):
            JWTHandler.validate_access_token(token)

    def test_wrong_signature(self):
        token = jwt.encode(
            {"sub": "1", "type": "access"},
            "another-secret-key-that-is-long-enough",
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(InvalidCredentialsError):
            JWTHandler.validate_access_token(token)

    def test_wrong_type(self):
        token = jwt.encode(
            {"sub": "1", "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(InvalidCredentialsError, match="Invalid token type"):
            JWTHandler.validate_access_token(token)


class TestUserIdFromToken:

    def test_returns_int(self):
        token = JWTHandler.create_access_token(user_id=7, email="u@example.com")

        assert JWTHandler.user_id_from_token(token) == 7

    def test_non_numeric_subject(self):
        token = jwt.encode(
            {"sub": "abc", "type": "access"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(InvalidCredentialsError, match="subject"):
            JWTHandler.user_id_from_token(token)
