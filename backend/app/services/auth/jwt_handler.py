"""
Bearer token handling.

Accounts and logins are managed by the identity service that issues the
tokens; this API only verifies them. Tokens are HS256 JWTs signed with
the shared `jwt_secret_key`.

Claims read here:
- sub: User ID (string)
- email: User's email
- exp / iat: Expiry and issue timestamps
- type: must be "access"
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.config import settings
from app.services.exceptions import TokenExpiredError, InvalidCredentialsError


class JWTHandler:
    """Creates and validates access tokens."""

    @staticmethod
    def create_access_token(
        user_id: int,
        email: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Issue an access token.

        Used by tests, scripts and local development; production tokens come
        from the identity service and carry the same claims.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "exp": now + expires_delta,
            "iat": now,
            "type": "access",
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    @staticmethod
    def validate_access_token(token: str) -> dict[str, Any]:
        """
        Validate an access token and return its payload.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidCredentialsError: If the token is invalid, malformed or
                not an access token
        """
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Access token has expired")
        except JWTError as e:
            raise InvalidCredentialsError(f"Invalid token: {str(e)}")

        if payload.get("type") != "access":
            raise InvalidCredentialsError("Invalid token type")
        return payload

    @staticmethod
    def user_id_from_token(token: str) -> int:
        """
        Validate a token and return the user id in its `sub` claim.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidCredentialsError: If the token or its subject is invalid
        """
        payload = JWTHandler.validate_access_token(token)
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise InvalidCredentialsError("Invalid token subject")
