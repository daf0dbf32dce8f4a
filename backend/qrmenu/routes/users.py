# Overview: Flask API routes for account registration.

from flask import Blueprint, request

from ..responses import error_response, server_error, success_response
from ..services import auth_service
from ..services.auth_service import DuplicateUserError, PasswordValidationError


users_bp = Blueprint("users", __name__, url_prefix="/v1/user")

REQUIRED_FIELDS = ("firstName", "lastName", "email", "mobileNo", "password")


@users_bp.post("/register")
def register_route():
    """
    Register a cafe account.

    Body: {firstName, lastName, email, mobileNo, password}
    """
    try:
        data = request.get_json(silent=True) or {}
        missing = [f for f in REQUIRED_FIELDS if not isinstance(data.get(f), str) or not data.get(f).strip()]
        if missing:
            return error_response("INVALID_REQUEST", f"Missing required fields: {', '.join(missing)}", 400)

        mobile = data["mobileNo"].strip()
        if len(mobile) > 15:
            return error_response("INVALID_REQUEST", "Mobile number must be at most 15 characters", 400)

        try:
            user = auth_service.create_user(
                first_name=data["firstName"].strip(),
                last_name=data["lastName"].strip(),
                email=data["email"].strip().lower(),
                mobile=mobile,
                password=data["password"],
            )
        except PasswordValidationError as e:
            return error_response("INVALID_PASSWORD", str(e), 400)
        except DuplicateUserError as e:
            return error_response("USER_EXISTS", str(e), 400)

        return success_response("USER_CREATED", "User created successfully", 201, userId=user.unique_id)

    except Exception as e:
        return server_error(e, "register_user")
