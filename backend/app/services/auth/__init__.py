"""
Authentication for the Trade Journal API.

Users sign in with an external identity service; this package only
verifies the bearer tokens it issues.

Usage:
    from app.services.auth import JWTHandler

    user_id = JWTHandler.user_id_from_token(token)
"""

from app.services.auth.jwt_handler import JWTHandler

__all__ = ["JWTHandler"]
