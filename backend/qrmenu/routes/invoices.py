# Overview: Flask API routes for invoice templates and invoice snapshots.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, current_user_id
from ..responses import server_error, service_error_response
from ..services import invoice_service
from ..validation import ConflictError, NotFoundError, ValidationError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/v1/invoice")

SERVICE_ERRORS = (ValidationError, ConflictError, NotFoundError)


@invoices_bp.route("/", methods=["POST"], strict_slashes=False)
@require_auth
def create_template_route():
    """
    Create an invoice template.

    Body: {name, headerText, footerText, logoUrl, isDefault,
           tax_configurations: [...], additional_charges: [...]}
    """
    try:
        data = request.get_json(silent=True) or {}
        summary = invoice_service.create_template(current_user_id(), data)
        return jsonify({
            "status": "success",
            "message": "Invoice template created successfully",
            "data": summary,
        }), 201

    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "create_invoice_template")


@invoices_bp.put("/<template_id>")
@require_auth
def update_template_route(template_id: str):
    """
    Update a template and reconcile its line items.

    Items carrying unique_id are updated, items without one are inserted and
    stored items missing from the lists are deleted.
    """
    try:
        data = request.get_json(silent=True) or {}
        summary = invoice_service.update_template(current_user_id(), template_id, data)
        return jsonify({
            "status": "success",
            "message": "Invoice template updated successfully",
            "data": summary,
        }), 200

    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "update_invoice_template")


@invoices_bp.route("/", methods=["GET"], strict_slashes=False)
@require_auth
def list_templates_route():
    try:
        return jsonify({"status": "success", "data": invoice_service.list_templates(current_user_id())}), 200
    except Exception as e:
        return server_error(e, "list_invoice_templates")


@invoices_bp.get("/items")
@require_auth
def list_templates_with_items_route():
    try:
        data = invoice_service.list_templates_with_items(current_user_id())
        return jsonify({"status": "success", "data": data}), 200
    except Exception as e:
        return server_error(e, "list_invoice_templates_with_items")


@invoices_bp.get("/items/<template_id>")
@require_auth
def get_template_with_items_route(template_id: str):
    try:
        data = invoice_service.get_template_with_items(current_user_id(), template_id)
        return jsonify({"status": "success", "data": data}), 200
    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "get_invoice_template_with_items")


@invoices_bp.get("/<template_id>")
@require_auth
def get_template_route(template_id: str):
    try:
        data = invoice_service.get_template(current_user_id(), template_id)
        return jsonify({"status": "success", "data": data}), 200
    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "get_invoice_template")


@invoices_bp.put("/default/<template_id>")
@require_auth
def set_default_route(template_id: str):
    """Make this template the owner's only default."""
    try:
        invoice_service.set_default(current_user_id(), template_id)
        return jsonify({"status": "success", "message": "Default invoice template set successfully"}), 200
    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "set_default_invoice_template")


@invoices_bp.post("/capture-snapshot/<order_id>/<restaurant_id>")
def capture_snapshot_route(order_id: str, restaurant_id: str):
    """
    Render the order's invoice from the restaurant's default template.

    Public (called from the customer flow). Idempotent: an existing invoice
    is returned with 200, a new one with 201.
    """
    try:
        invoice, created = invoice_service.capture_snapshot(order_id, restaurant_id)
        return jsonify({
            "status": "success",
            "message": "Invoice snapshot captured" if created else "Invoice snapshot already exists",
            "data": invoice.to_dict(),
        }), 201 if created else 200

    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "capture_invoice_snapshot")


@invoices_bp.get("/check-snapshot/<order_id>")
@require_auth
def check_snapshot_route(order_id: str):
    try:
        invoice = invoice_service.check_snapshot(current_user_id(), order_id)
        return jsonify({
            "status": "success",
            "exists": invoice is not None,
            "data": invoice.to_dict() if invoice is not None else None,
        }), 200
    except Exception as e:
        return server_error(e, "check_invoice_snapshot")
