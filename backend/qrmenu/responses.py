# Overview: Shared JSON response builders for route handlers.

from flask import current_app, jsonify

from .validation import ConflictError, NotFoundError, ValidationError


def success_response(code: str, message: str, status: int = 200, **extra):
    body = {"code": code, "message": message}
    body.update(extra)
    return jsonify(body), status


def error_response(code: str, message: str, status: int = 400, **extra):
    body = {"status": "error", "code": code, "message": message}
    body.update(extra)
    return jsonify(body), status


def service_error_response(exc: Exception):
    """Render a typed service-layer error with its HTTP status."""
    if isinstance(exc, NotFoundError):
        return error_response(exc.code, exc.message, 404)
    if isinstance(exc, (ValidationError, ConflictError)):
        return error_response(exc.code, exc.message, 400)
    raise TypeError(f"Not a service error: {exc!r}")


def server_error(exc: Exception, operation: str, message: str = "Internal server error"):
    """
    Log an unexpected failure and answer 500.

    The raw exception text is included only when EXPOSE_ERROR_DETAILS is on.
    """
    current_app.logger.exception("Error in %s", operation)
    body = {"code": "SERVER_ERROR", "success": False, "message": message}
    if current_app.config.get("EXPOSE_ERROR_DETAILS"):
        body["error"] = str(exc)
    return jsonify(body), 500
