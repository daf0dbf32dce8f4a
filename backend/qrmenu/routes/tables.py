# Overview: Flask API routes for dining tables and their QR codes.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, current_user_id
from ..responses import server_error, service_error_response
from ..services import table_service
from ..validation import NotFoundError, ValidationError


tables_bp = Blueprint("tables", __name__, url_prefix="/v1/tables")


@tables_bp.route("/", methods=["GET"], strict_slashes=False)
@require_auth
def list_tables_route():
    try:
        tables = [t.to_dict() for t in table_service.list_tables(current_user_id())]
        return jsonify({"status": "success", "message": "Tables retrieved successfully.", "data": tables}), 200
    except Exception as e:
        return server_error(e, "list_tables", "An unexpected error occurred while retrieving tables.")


@tables_bp.get("/<table_id>")
@require_auth
def get_table_route(table_id: str):
    try:
        table = table_service.get_table(current_user_id(), table_id)
        return jsonify({"status": "success", "message": "Table retrieved successfully.", "data": table.to_dict()}), 200
    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "get_table", "An unexpected error occurred while retrieving the table.")


@tables_bp.route("/", methods=["POST"], strict_slashes=False)
@require_auth
def create_tables_route():
    """
    Body: {table_number: "T1" | ["T1", "T2"], template_id}

    Always 200 once the template is valid; the body lists which numbers were
    added, already existed or failed.
    """
    try:
        data = request.get_json(silent=True) or {}
        result = table_service.create_tables(current_user_id(), data.get("table_number"), data.get("template_id"))
        return jsonify({"status": "success", "message": result.message, "data": result.to_dict()}), 200
    except ValidationError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "create_tables", "An unexpected error occurred while creating tables.")


@tables_bp.put("/<table_id>")
@require_auth
def update_table_route(table_id: str):
    try:
        data = request.get_json(silent=True) or {}
        table = table_service.update_table(current_user_id(), table_id, data)
        return jsonify({
            "status": "success",
            "message": f'Table "{table.table_number}" updated successfully.',
        }), 200
    except ValidationError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "update_table", "An unexpected error occurred while updating the table.")
