# Overview: Request decorators for API routes.

from functools import wraps
from flask import after_this_request, current_app, g, jsonify, make_response, request

from .cookies import ACCESS_COOKIE, REFRESH_COOKIE, clear_auth_cookies, set_access_cookie
from .services import auth_gate


def require_auth(f):
    """
    Require an authenticated cafe owner.

    Runs the Auth Gate over the accessToken/refreshToken cookies and sets:
    - g.current_user: profile dict embedded in the token (no password)
    - g.auth_via: the GateState the request was authorized through

    When the gate renewed an expired access token, the new token is set as
    the accessToken cookie on the handler's response.

    Returns 401 UNAUTHORIZED (and clears both auth cookies) when the gate
    rejects the request, 500 INTERNAL_SERVER_ERROR if the gate itself fails.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            decision = auth_gate.authenticate(
                request.cookies.get(ACCESS_COOKIE),
                request.cookies.get(REFRESH_COOKIE),
            )
        except Exception:
            current_app.logger.exception("Auth gate failed for %s", request.path)
            return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Internal server error"}), 500

        if not decision.authorized:
            response = make_response(jsonify({"code": "UNAUTHORIZED", "message": decision.message}), 401)
            if decision.clear_cookies:
                clear_auth_cookies(response)
            return response

        g.current_user = decision.user
        g.auth_via = decision.via

        if decision.renewed_access_token:
            renewed = decision.renewed_access_token

            @after_this_request
            def attach_renewed_token(response):
                set_access_cookie(response, renewed)
                return response

        return f(*args, **kwargs)

    return decorated_function


def current_user_id() -> str:
    return g.current_user["unique_id"]
