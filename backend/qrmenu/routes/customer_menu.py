# Overview: Public Flask API routes behind a table's QR code (no authentication).

from flask import Blueprint, jsonify

from ..responses import server_error, service_error_response
from ..services import menu_service, table_service
from ..validation import NotFoundError


customer_menu_bp = Blueprint("customer_menu", __name__, url_prefix="/v1/customer-menu")


@customer_menu_bp.get("/template/<user_id>/<table_id>")
def table_template_route(user_id: str, table_id: str):
    try:
        template = table_service.get_customer_template(user_id, table_id)
        return jsonify({
            "status": "success",
            "message": "Menu retrieved successfully.",
            "menuTemplate": template.to_dict(),
        }), 200
    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "customer_menu_template", "An unexpected error occurred while retrieving the menu.")


@customer_menu_bp.get("/category/<user_id>")
def categories_route(user_id: str):
    """Active categories only."""
    try:
        categories = [c.to_dict() for c in menu_service.list_categories(user_id, active_only=True)]
        return jsonify({
            "status": "success",
            "success": True,
            "message": "Categories fetched successfully" if categories else "No categories found.",
            "categories": categories,
        }), 200
    except Exception as e:
        return server_error(e, "customer_menu_categories")


@customer_menu_bp.get("/items/<user_id>")
def menu_items_route(user_id: str):
    """Active items of active categories, each with its category_name."""
    try:
        items = [i.to_dict() for i in menu_service.list_menu_items(user_id, active_only=True)]
        return jsonify({
            "status": "success",
            "success": True,
            "message": "Menu items fetched successfully" if items else "No menu items found.",
            "menuItems": items,
        }), 200
    except Exception as e:
        return server_error(e, "customer_menu_items")
