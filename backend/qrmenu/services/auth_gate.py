# Overview: Per-request authentication state machine over the accessToken/refreshToken cookies.

"""
Auth Gate

Evaluated once per protected request:

    NO_TOKENS                    -> UNAUTHORIZED
    ACCESS_VALID                 -> AUTHORIZED (signature + expiry only, no lookup)
    ACCESS_INVALID               -> UNAUTHORIZED ("Invalid access token")
    ACCESS_EXPIRED_NO_REFRESH    -> UNAUTHORIZED
    ACCESS_EXPIRED_WITH_REFRESH  -> refresh verified and its session live
                                    -> AUTHORIZED with a renewed access token
                                 -> otherwise REFRESH_INVALID_OR_REVOKED -> UNAUTHORIZED

A request carrying only a refresh cookie is treated like one whose access
token expired. Renewal never rotates the refresh token or its session row.
Every UNAUTHORIZED outcome asks the caller to clear both auth cookies.
"""

import enum
import logging
from dataclasses import dataclass

from . import session_service, token_service
from .token_service import InvalidTokenError, TokenExpiredError

logger = logging.getLogger(__name__)


class GateState(enum.Enum):
    NO_TOKENS = "NO_TOKENS"
    ACCESS_VALID = "ACCESS_VALID"
    ACCESS_EXPIRED_WITH_REFRESH = "ACCESS_EXPIRED_WITH_REFRESH"
    ACCESS_EXPIRED_NO_REFRESH = "ACCESS_EXPIRED_NO_REFRESH"
    ACCESS_INVALID = "ACCESS_INVALID"
    REFRESH_INVALID_OR_REVOKED = "REFRESH_INVALID_OR_REVOKED"
    AUTHORIZED = "AUTHORIZED"
    UNAUTHORIZED = "UNAUTHORIZED"


MSG_NO_TOKENS = "Unauthorized: no authentication tokens provided"
MSG_ACCESS_INVALID = "Invalid access token"
MSG_EXPIRED_NO_REFRESH = "Access token expired, no refresh token provided"
MSG_REFRESH_INVALID = "Invalid or expired refresh token"


@dataclass
class GateDecision:
    state: GateState
    via: GateState
    user: dict | None = None
    renewed_access_token: str | None = None
    message: str | None = None

    @property
    def authorized(self) -> bool:
        return self.state is GateState.AUTHORIZED

    @property
    def clear_cookies(self) -> bool:
        return self.state is GateState.UNAUTHORIZED


def _deny(via: GateState, message: str) -> GateDecision:
    return GateDecision(state=GateState.UNAUTHORIZED, via=via, message=message)


def _renew(refresh_cookie: str) -> GateDecision:
    try:
        payload = token_service.decode_token(refresh_cookie, verify_type=token_service.TOKEN_TYPE_REFRESH)
    except (TokenExpiredError, InvalidTokenError):
        return _deny(GateState.REFRESH_INVALID_OR_REVOKED, MSG_REFRESH_INVALID)

    if session_service.find_active_session_by_refresh_token(refresh_cookie) is None:
        return _deny(GateState.REFRESH_INVALID_OR_REVOKED, MSG_REFRESH_INVALID)

    profile = payload["user"]
    return GateDecision(
        state=GateState.AUTHORIZED,
        via=GateState.ACCESS_EXPIRED_WITH_REFRESH,
        user=profile,
        renewed_access_token=token_service.create_access_token(profile),
    )


def authenticate(access_cookie: str | None, refresh_cookie: str | None) -> GateDecision:
    """Run the state machine for one request's cookies."""
    if not access_cookie and not refresh_cookie:
        return _deny(GateState.NO_TOKENS, MSG_NO_TOKENS)

    if not access_cookie:
        return _renew(refresh_cookie)

    try:
        payload = token_service.decode_token(access_cookie, verify_type=token_service.TOKEN_TYPE_ACCESS)
    except TokenExpiredError:
        if not refresh_cookie:
            return _deny(GateState.ACCESS_EXPIRED_NO_REFRESH, MSG_EXPIRED_NO_REFRESH)
        return _renew(refresh_cookie)
    except InvalidTokenError:
        return _deny(GateState.ACCESS_INVALID, MSG_ACCESS_INVALID)

    return GateDecision(state=GateState.AUTHORIZED, via=GateState.ACCESS_VALID, user=payload["user"])
