# Overview: Flask API routes for order submission (public) and order management (owner).

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, current_user_id
from ..responses import server_error, service_error_response
from ..services import order_service
from ..validation import NotFoundError, ValidationError


orders_bp = Blueprint("orders", __name__, url_prefix="/v1/order")


@orders_bp.post("/add/<restaurant_id>")
def submit_order_route(restaurant_id: str):
    """
    Customer order from a table's menu.

    Body: {tableId, items: [{unique_id, quantity, special_instructions}]}
    Prices and the total are taken from the menu, never from the body.
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.submit_order(restaurant_id, data)
        return jsonify({
            "success": True,
            "message": "Order created successfully.",
            "orderId": order.unique_id,
        }), 201
    except ValidationError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "submit_order", "An unexpected error occurred while creating the order.")


@orders_bp.post("/all")
@require_auth
def list_orders_route():
    """Query: offset, limit. Body: {filter: {status, table, id}}."""
    try:
        data = request.get_json(silent=True) or {}
        filters = data.get("filter") or {}
        if not isinstance(filters, dict):
            filters = {}
        orders, total = order_service.list_orders(
            current_user_id(),
            filters,
            offset=request.args.get("offset", 0),
            limit=request.args.get("limit", order_service.DEFAULT_PAGE_SIZE),
        )
        return jsonify({
            "status": "success",
            "data": [o.to_dict(include_items=True) for o in orders],
            "total": total,
        }), 200
    except ValidationError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "list_orders")


@orders_bp.put("/status")
@require_auth
def update_status_route():
    """Body: {orderId, status}. completed and cancelled orders cannot change."""
    try:
        data = request.get_json(silent=True) or {}
        order_id = data.get("orderId")
        if not isinstance(order_id, str) or not order_id:
            raise ValidationError("orderId is required", code="INVALID_REQUEST")
        order = order_service.update_status(current_user_id(), order_id, data.get("status"))
        return jsonify({"status": "success", "message": "Order status updated", "data": order.to_dict()}), 200
    except (ValidationError, NotFoundError) as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "update_order_status")


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(current_user_id(), order_id)
        return jsonify({"status": "success", "data": order.to_dict(include_items=True)}), 200
    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "get_order")
