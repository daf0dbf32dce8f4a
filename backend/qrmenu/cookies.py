# Overview: Auth and OTP cookie helpers (httpOnly, SameSite=Strict, path=/, secure in production).

from flask import current_app

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
OTP_COOKIE = "otp_session_id"


def _set(response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        secure=current_app.config.get("AUTH_COOKIE_SECURE", False),
        httponly=True,
        samesite="Strict",
    )


def _clear(response, name: str) -> None:
    response.delete_cookie(
        name,
        path="/",
        secure=current_app.config.get("AUTH_COOKIE_SECURE", False),
        httponly=True,
        samesite="Strict",
    )


def set_access_cookie(response, access_token: str) -> None:
    _set(response, ACCESS_COOKIE, access_token, current_app.config["ACCESS_COOKIE_MAX_AGE"])


def set_auth_cookies(response, access_token: str, refresh_token: str) -> None:
    set_access_cookie(response, access_token)
    _set(response, REFRESH_COOKIE, refresh_token, current_app.config["REFRESH_COOKIE_MAX_AGE"])


def clear_auth_cookies(response) -> None:
    _clear(response, ACCESS_COOKIE)
    _clear(response, REFRESH_COOKIE)


def set_otp_cookie(response, otp_session_id: str) -> None:
    _set(response, OTP_COOKIE, otp_session_id, current_app.config["OTP_COOKIE_MAX_AGE"])


def clear_otp_cookie(response) -> None:
    _clear(response, OTP_COOKIE)
