"""
JWT Service - signing and verification of access and refresh tokens.

Both token types embed the user profile (never the password hash) under the
"user" claim and a "type" discriminator. Access tokens are trusted purely by
signature and expiry; refresh tokens are additionally checked against the
user_sessions table by the Auth Gate.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import current_app

JWT_ALGORITHM = "HS256"

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class TokenError(Exception):
    """Base exception for token errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TokenExpiredError(TokenError):
    """Signature is valid but the token has expired."""

    def __init__(self):
        super().__init__("Token expired")


class InvalidTokenError(TokenError):
    """Token is malformed, tampered with, or of the wrong type."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


def get_signing_secret() -> str:
    secret = current_app.config.get("JWT_SECRET") or current_app.config.get("SECRET_KEY")
    if not secret:
        raise RuntimeError("JWT_SECRET or SECRET_KEY must be configured")
    return secret


def _sign(profile: dict[str, Any], token_type: str, expires_in: timedelta, extra: dict | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": profile.get("unique_id"),
        "iat": now,
        "exp": now + expires_in,
        "type": token_type,
        "user": profile,
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, get_signing_secret(), algorithm=JWT_ALGORITHM)


def create_access_token(profile: dict[str, Any], expires_in: timedelta | None = None) -> str:
    """
    Create a short-lived access token.

    Args:
        profile: User profile without password (see auth_service.build_profile)
        expires_in: Lifetime override (default: ACCESS_TOKEN_EXPIRES)
    """
    if expires_in is None:
        expires_in = current_app.config["ACCESS_TOKEN_EXPIRES"]
    return _sign(profile, TOKEN_TYPE_ACCESS, expires_in)


def create_refresh_token(profile: dict[str, Any], expires_in: timedelta | None = None) -> str:
    """
    Create a long-lived refresh token.

    A random jti keeps tokens distinct even when two are issued for the same
    profile within the same second.
    """
    if expires_in is None:
        expires_in = current_app.config["REFRESH_TOKEN_EXPIRES"]
    return _sign(profile, TOKEN_TYPE_REFRESH, expires_in, extra={"jti": secrets.token_hex(16)})


def decode_token(token: str, verify_type: str | None = None) -> dict[str, Any]:
    """
    Decode and validate a token.

    Args:
        token: Encoded JWT
        verify_type: Expected token type ('access' or 'refresh')

    Returns:
        Decoded payload

    Raises:
        TokenExpiredError: If the token has expired
        InvalidTokenError: If the token is invalid or of the wrong type
    """
    try:
        payload = jwt.decode(token, get_signing_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e))

    if verify_type and payload.get("type") != verify_type:
        raise InvalidTokenError(f"Expected {verify_type} token")
    if not isinstance(payload.get("user"), dict):
        raise InvalidTokenError("Token carries no user profile")

    return payload
