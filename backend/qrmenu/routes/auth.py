# Overview: Flask API routes for login, OTP, password reset and device sessions.

"""
Authentication API routes

- Password and OTP login both end in a device session: accessToken and
  refreshToken cookies (httpOnly, SameSite=Strict)
- Logging in again from the same device revokes that device's earlier sessions
- Password reset revokes every session of the account
"""

from flask import Blueprint, current_app, g, make_response, request
from sqlalchemy.exc import SQLAlchemyError

from ..cookies import OTP_COOKIE, REFRESH_COOKIE, clear_auth_cookies, clear_otp_cookie, set_auth_cookies, set_otp_cookie
from ..decorators import require_auth, current_user_id
from ..extensions import db
from ..responses import error_response, server_error, success_response
from ..services import auth_service, email_service, otp_service, password_reset_service, session_service
from ..services.auth_service import LOGIN_TYPES, PasswordValidationError
from ..services.password_reset_service import InvalidResetTokenError


auth_bp = Blueprint("auth", __name__, url_prefix="/v1/auth")


def _device():
    return request.headers.get("User-Agent"), request.remote_addr


def _login_request(data: dict):
    login_id = data.get("loginId")
    login_type = data.get("loginType")
    if not isinstance(login_id, str) or not login_id.strip() or login_type not in LOGIN_TYPES:
        return None, None
    return login_id.strip(), login_type


@auth_bp.post("/user/check")
def check_user_route():
    """Tell the login form whether an account exists for an email or mobile."""
    try:
        data = request.get_json(silent=True) or {}
        login_id = data.get("loginId")
        if not isinstance(login_id, str) or not login_id.strip():
            return error_response("INVALID_REQUEST", "loginId is required", 400)

        if auth_service.find_user_by_login_id(login_id.strip()) is None:
            return error_response("USER_NOT_FOUND", "User not found", 404)

        return success_response("USER_EXISTS", "User exists")

    except Exception as e:
        return server_error(e, "check_user")


@auth_bp.post("/user/verify-password")
def verify_password_route():
    """
    Password login.

    On success sets accessToken and refreshToken cookies and returns the
    profile as userData. A wrong password sets no cookies.
    """
    try:
        data = request.get_json(silent=True) or {}
        login_id, login_type = _login_request(data)
        password = data.get("password")
        if not login_id or not isinstance(password, str) or not password:
            return error_response("INVALID_REQUEST", "loginId, loginType and password are required", 400)

        user = auth_service.find_user_by_login_id(login_id)
        if user is None:
            return error_response("USER_NOT_FOUND", "User not found", 404)

        if not auth_service.verify_password(password, user.password_hash):
            return error_response("INVALID_CREDENTIALS", "Invalid credentials", 401)

        profile = auth_service.build_profile(user, login_type, login_id)
        user_agent, ip_address = _device()
        issued = session_service.create_session(profile, user_agent, ip_address)
        if issued is None:
            return error_response("SESSION_NOT_CREATED", "Failed to create session", 500)

        response = make_response(*success_response("PASSWORD_VERIFIED", "Password verified", userData=profile))
        set_auth_cookies(response, issued.access_token, issued.refresh_token)
        return response

    except Exception as e:
        return server_error(e, "verify_password")


@auth_bp.post("/user/send-otp")
def send_otp_route():
    """
    Start an OTP login: store the code, email it, set the otp_session_id cookie.

    Mobile logins receive the code at the account's email address.
    """
    try:
        data = request.get_json(silent=True) or {}
        login_id, login_type = _login_request(data)
        if not login_id:
            return error_response("INVALID_REQUEST", "loginId and loginType are required", 400)

        user = auth_service.find_user_by_login_id(login_id)
        if user is None:
            return error_response("USER_NOT_FOUND", "User not found", 404)

        code = otp_service.generate_code()
        try:
            otp_session_id = otp_service.store_otp(code, login_type, login_id)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Failed to store OTP for %s", login_id)
            return error_response("OTP_STORE_FAILED", "Failed to store OTP", 500)

        if not email_service.send_otp_email(user.email, code):
            return error_response("OTP_SEND_FAILED", "Failed to send OTP", 500)

        response = make_response(*success_response("OTP_SENT", "OTP sent successfully"))
        set_otp_cookie(response, otp_session_id)
        return response

    except Exception as e:
        return server_error(e, "send_otp")


@auth_bp.post("/user/verify-otp")
def verify_otp_route():
    """
    Finish an OTP login.

    Expired OTPs never match. On success the auth cookies are set and the
    otp_session_id cookie is cleared.
    """
    try:
        data = request.get_json(silent=True) or {}
        code = data.get("OTP")
        otp_session_id = request.cookies.get(OTP_COOKIE)
        if code is None or str(code).strip() == "" or not otp_session_id:
            return error_response("INVALID_REQUEST", "OTP and an OTP session are required", 400)

        otp = otp_service.verify_otp(otp_session_id, str(code).strip())
        if otp is None:
            return error_response("INVALID_OTP", "Invalid or expired OTP", 401)

        user = auth_service.find_user_by_login_id(otp.login_id)
        if user is None:
            return error_response("USER_NOT_FOUND", "User not found", 404)

        profile = auth_service.build_profile(user, otp.login_type, otp.login_id)
        user_agent, ip_address = _device()
        issued = session_service.create_session(profile, user_agent, ip_address)
        if issued is None:
            return error_response("SESSION_NOT_CREATED", "Failed to create session", 500)

        response = make_response(*success_response(
            "OTP_VERIFIED", "OTP verified", sessionId=issued.session_id, userData=profile,
        ))
        set_auth_cookies(response, issued.access_token, issued.refresh_token)
        clear_otp_cookie(response)
        return response

    except Exception as e:
        return server_error(e, "verify_otp")


@auth_bp.get("/password/forgot/<email>")
def forgot_password_route(email: str):
    """Email a reset link; any earlier reset token for the account stops working."""
    try:
        email = email.strip()
        if "@" not in email:
            return error_response("INVALID_REQUEST", "A valid email is required", 400)

        user = auth_service.find_user_by_login_id(email)
        if user is None or user.email != email:
            return error_response("USER_NOT_FOUND", "User not found", 404)

        token = password_reset_service.create_reset_token(user)
        if not email_service.send_password_reset_email(user.email, token):
            return error_response("EMAIL_SEND_FAILED", "Failed to send reset email", 500)

        return success_response("RESET_EMAIL_SENT", "Password reset email sent")

    except Exception as e:
        return server_error(e, "forgot_password")


@auth_bp.post("/password/reset")
def reset_password_route():
    """
    Set a new password with a reset token.

    An unknown or expired token answers 401 INVALID_TOKEN and leaves the
    stored token as it is.
    """
    try:
        data = request.get_json(silent=True) or {}
        token = data.get("token")
        new_password = data.get("newPassword")
        if not isinstance(token, str) or not token or not isinstance(new_password, str) or not new_password:
            return error_response("INVALID_REQUEST", "token and newPassword are required", 400)

        try:
            password_reset_service.reset_password(token, new_password)
        except InvalidResetTokenError as e:
            return error_response("INVALID_TOKEN", str(e), 401)
        except PasswordValidationError as e:
            return error_response("INVALID_PASSWORD", str(e), 400)

        return success_response("PASSWORD_RESET", "Password reset successfully")

    except Exception as e:
        return server_error(e, "reset_password")


@auth_bp.get("/password/check-reset-token/<token>")
def check_reset_token_route(token: str):
    try:
        if password_reset_service.find_valid_token(token) is None:
            return error_response("INVALID_TOKEN", "Invalid or expired token", 401)
        return success_response("VALID_TOKEN", "Token is valid")

    except Exception as e:
        return server_error(e, "check_reset_token")


@auth_bp.get("/session/active")
@require_auth
def active_session_route():
    """Confirm this device still holds a live session."""
    try:
        user_agent, _ = _device()
        active = session_service.is_session_active(
            current_user_id(), user_agent, request.cookies.get(REFRESH_COOKIE)
        )
        if not active:
            response = make_response(*error_response("UNAUTHORIZED", "No active session", 401))
            clear_auth_cookies(response)
            return response

        return success_response("AUTHORIZED", "Session is active", userData=g.current_user)

    except Exception as e:
        return server_error(e, "active_session")


@auth_bp.get("/session/logout")
@require_auth
def logout_route():
    """Revoke this device's sessions and clear the auth cookies."""
    try:
        user_agent, _ = _device()
        if not session_service.revoke_session(current_user_id(), user_agent):
            return error_response("LOGOUT_FAILED", "Logout failed", 400)

        response = make_response(*success_response("LOGOUT_SUCCESS", "Logged out successfully"))
        clear_auth_cookies(response)
        return response

    except Exception as e:
        return server_error(e, "logout")
