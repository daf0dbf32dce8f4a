# Overview: Flask API routes for menu categories, menu items and menu templates.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, current_user_id
from ..responses import server_error, service_error_response
from ..services import menu_service
from ..validation import ConflictError, NotFoundError, ValidationError


menu_bp = Blueprint("menu", __name__, url_prefix="/v1/menu")

SERVICE_ERRORS = (ValidationError, ConflictError, NotFoundError)


# -- Categories ----------------------------------------------------------------

@menu_bp.get("/category")
@require_auth
def list_categories_route():
    try:
        categories = [c.to_dict() for c in menu_service.list_categories(current_user_id())]
        return jsonify({
            "status": "success",
            "success": True,
            "message": "Categories fetched successfully" if categories else "No categories found.",
            "categories": categories,
        }), 200
    except Exception as e:
        return server_error(e, "list_categories", "An unexpected error occurred while fetching categories.")


@menu_bp.post("/category")
@require_auth
def create_category_route():
    try:
        data = request.get_json(silent=True) or {}
        category = menu_service.create_category(current_user_id(), data)
        return jsonify({
            "status": "success",
            "message": f"Category {category.name} added successfully",
            "data": {"categoryId": category.unique_id},
        }), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "create_category", "An unexpected error occurred while adding the category")


@menu_bp.put("/category/<category_id>")
@require_auth
def update_category_route(category_id: str):
    """Body: {name, status} where status is 0 (hidden) or 1 (active)."""
    try:
        data = request.get_json(silent=True) or {}
        menu_service.update_category(current_user_id(), category_id, data)
        return jsonify({"status": "success", "message": "Category updated successfully"}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "update_category", "An unexpected error occurred while updating the category")


# -- Menu items ------------------------------------------------------------------

@menu_bp.get("/menu-items")
@require_auth
def list_menu_items_route():
    """Optional query parameter: categoryId."""
    try:
        items = menu_service.list_menu_items(current_user_id(), category_id=request.args.get("categoryId"))
        data = [item.to_dict() for item in items]
        return jsonify({
            "status": "success",
            "success": True,
            "message": "Menu items fetched successfully" if data else "No menu items found.",
            "menuItems": data,
        }), 200
    except Exception as e:
        return server_error(e, "list_menu_items", "An unexpected error occurred while fetching menu items.")


@menu_bp.post("/menu-items")
@require_auth
def create_menu_item_route():
    """
    Body: {category_id, name, description, price, image_url, availability, status}

    image_url is stored as given.
    """
    try:
        data = request.get_json(silent=True) or {}
        item = menu_service.create_menu_item(current_user_id(), data)
        return jsonify({
            "status": "success",
            "message": f"Menu item {item.name} added successfully",
            "data": {"menuItemId": item.unique_id},
        }), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "create_menu_item", "An unexpected error occurred while adding the menu item")


@menu_bp.put("/menu-items/<menu_item_id>")
@require_auth
def update_menu_item_route(menu_item_id: str):
    try:
        data = request.get_json(silent=True) or {}
        item = menu_service.update_menu_item(current_user_id(), menu_item_id, data)
        return jsonify({"status": "success", "message": "Menu item updated successfully", "data": item.to_dict()}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "update_menu_item", "An unexpected error occurred while updating the menu item")


# -- Menu templates ----------------------------------------------------------------

@menu_bp.get("/template")
@require_auth
def list_templates_route():
    try:
        templates = [t.to_dict(include_config=False) for t in menu_service.list_templates(current_user_id())]
        return jsonify({"status": "success", "data": templates}), 200
    except Exception as e:
        return server_error(e, "list_menu_templates")


@menu_bp.get("/template/<template_id>")
@require_auth
def get_template_route(template_id: str):
    try:
        template = menu_service.get_template(current_user_id(), template_id)
        return jsonify({"status": "success", "data": template.to_dict()}), 200
    except NotFoundError as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "get_menu_template")


@menu_bp.post("/template")
@require_auth
def create_template_route():
    """Body: {name, config} where config is a JSON object (colors, fonts, layout)."""
    try:
        data = request.get_json(silent=True) or {}
        template = menu_service.create_template(current_user_id(), data)
        return jsonify({
            "status": "success",
            "message": "Template created successfully",
            "data": {"templateId": template.unique_id},
        }), 201
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "create_menu_template")


@menu_bp.put("/template/<template_id>")
@require_auth
def update_template_route(template_id: str):
    try:
        data = request.get_json(silent=True) or {}
        menu_service.update_template(current_user_id(), template_id, data)
        return jsonify({"status": "success", "message": "Template updated successfully"}), 200
    except SERVICE_ERRORS as e:
        return service_error_response(e)
    except Exception as e:
        return server_error(e, "update_menu_template")
