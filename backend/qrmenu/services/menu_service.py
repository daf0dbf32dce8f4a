# Overview: Service-layer operations for menu categories, menu items and menu templates.

from __future__ import annotations

import logging

from sqlalchemy import func

from ..extensions import db
from ..models import Category, MenuItem, MenuTemplate
from ..models.menu import AVAILABILITY_VALUES
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    clean_name,
    coerce_decimal,
    require_choice,
    require_status_flag,
)
from .identifier_service import IdFactory, new_unique_id

logger = logging.getLogger(__name__)


def _pick(payload: dict, *keys: str):
    for key in keys:
        if key in payload:
            return payload[key]
    return None


# -- Categories ----------------------------------------------------------------

def list_categories(owner_id: str, active_only: bool = False) -> list[Category]:
    query = db.session.query(Category).filter(Category.user_id == owner_id)
    if active_only:
        query = query.filter(Category.status == 1)
    return query.order_by(Category.position, Category.id).all()


def _category_name_taken(owner_id: str, name: str, exclude_id: str | None = None) -> bool:
    query = db.session.query(Category.id).filter(Category.user_id == owner_id, Category.name == name)
    if exclude_id:
        query = query.filter(Category.unique_id != exclude_id)
    return query.first() is not None


def _get_category(owner_id: str, category_id) -> Category:
    category = None
    if isinstance(category_id, str) and category_id:
        category = db.session.query(Category).filter_by(unique_id=category_id, user_id=owner_id).first()
    if category is None:
        raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND")
    return category


def create_category(owner_id: str, payload: dict, id_factory: IdFactory = new_unique_id) -> Category:
    """New categories are appended: position = current count + 1."""
    name = clean_name(payload.get("name"), label="Category name")
    if _category_name_taken(owner_id, name):
        raise ConflictError(f"Category {name} already exists", code="CATEGORY_EXISTS")

    count = db.session.query(func.count(Category.id)).filter(Category.user_id == owner_id).scalar() or 0
    category = Category(
        unique_id=id_factory(),
        user_id=owner_id,
        name=name,
        status=1,
        position=count + 1,
    )
    db.session.add(category)
    db.session.commit()
    return category


def update_category(owner_id: str, category_id: str, payload: dict) -> Category:
    name = clean_name(payload.get("name"), label="Category name")
    status = require_status_flag(payload.get("status"))
    category = _get_category(owner_id, category_id)
    if _category_name_taken(owner_id, name, exclude_id=category_id):
        raise ConflictError(f"Another category with name {name} already exists", code="CATEGORY_EXISTS")

    category.name = name
    category.status = status
    db.session.commit()
    return category


# -- Menu items ------------------------------------------------------------------

def list_menu_items(owner_id: str, category_id: str | None = None, active_only: bool = False) -> list[MenuItem]:
    query = db.session.query(MenuItem).filter(MenuItem.user_id == owner_id)
    if category_id:
        query = query.filter(MenuItem.category_id == category_id)
    if active_only:
        query = query.join(Category, Category.unique_id == MenuItem.category_id).filter(
            MenuItem.status == 1, Category.status == 1
        )
    return query.order_by(MenuItem.position, MenuItem.id).all()


def _menu_item_fields(owner_id: str, payload: dict) -> dict:
    name = clean_name(payload.get("name"), label="Menu item name")
    price = coerce_decimal(payload.get("price"), label="Price", code="INVALID_PRICE")
    availability = require_choice(
        payload.get("availability"), AVAILABILITY_VALUES,
        label="Availability", default="in_stock", code="INVALID_AVAILABILITY",
    )
    status = payload.get("status")
    status = 1 if status is None else require_status_flag(status)
    category = _get_category(owner_id, _pick(payload, "category_id", "categoryId"))

    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("Description must be a string", code="INVALID_INPUT")
    image_url = _pick(payload, "image_url", "imageUrl")
    if image_url is not None and (not isinstance(image_url, str) or len(image_url) > 255):
        raise ValidationError("Image URL must be a string of at most 255 characters", code="INVALID_INPUT")

    return {
        "name": name,
        "price": price,
        "availability": availability,
        "status": status,
        "category_id": category.unique_id,
        "description": description,
        "image_url": image_url,
    }


def _menu_item_name_taken(owner_id: str, category_id: str, name: str, exclude_id: str | None = None) -> bool:
    query = db.session.query(MenuItem.id).filter(
        MenuItem.user_id == owner_id,
        MenuItem.category_id == category_id,
        MenuItem.name == name,
    )
    if exclude_id:
        query = query.filter(MenuItem.unique_id != exclude_id)
    return query.first() is not None


def create_menu_item(owner_id: str, payload: dict, id_factory: IdFactory = new_unique_id) -> MenuItem:
    """Names are unique within a category; position appends to the category."""
    fields = _menu_item_fields(owner_id, payload)
    if _menu_item_name_taken(owner_id, fields["category_id"], fields["name"]):
        raise ConflictError(f"Menu item {fields['name']} already exists in this category", code="MENU_ITEM_EXISTS")

    count = db.session.query(func.count(MenuItem.id)).filter(
        MenuItem.user_id == owner_id, MenuItem.category_id == fields["category_id"]
    ).scalar() or 0
    item = MenuItem(unique_id=id_factory(), user_id=owner_id, position=count + 1, **fields)
    db.session.add(item)
    db.session.commit()
    return item


def update_menu_item(owner_id: str, menu_item_id: str, payload: dict) -> MenuItem:
    item = db.session.query(MenuItem).filter_by(unique_id=menu_item_id, user_id=owner_id).first()
    if item is None:
        raise NotFoundError("Menu item not found", code="MENU_ITEM_NOT_FOUND")

    fields = _menu_item_fields(owner_id, payload)
    if _menu_item_name_taken(owner_id, fields["category_id"], fields["name"], exclude_id=menu_item_id):
        raise ConflictError(f"Menu item {fields['name']} already exists in this category", code="MENU_ITEM_EXISTS")

    for key, value in fields.items():
        setattr(item, key, value)
    db.session.commit()
    return item


# -- Menu templates ----------------------------------------------------------------

def _template_config(payload: dict) -> dict:
    config = payload.get("config", {})
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ValidationError("Template config must be a JSON object", code="INVALID_CONFIG")
    return config


def _template_name_taken(owner_id: str, name: str, exclude_id: str | None = None) -> bool:
    query = db.session.query(MenuTemplate.id).filter(MenuTemplate.user_id == owner_id, MenuTemplate.name == name)
    if exclude_id:
        query = query.filter(MenuTemplate.unique_id != exclude_id)
    return query.first() is not None


def list_templates(owner_id: str) -> list[MenuTemplate]:
    return db.session.query(MenuTemplate).filter_by(user_id=owner_id).order_by(MenuTemplate.id).all()


def get_template(owner_id: str, template_id: str) -> MenuTemplate:
    template = db.session.query(MenuTemplate).filter_by(unique_id=template_id, user_id=owner_id).first()
    if template is None:
        raise NotFoundError("Template not found", code="TEMPLATE_NOT_FOUND")
    return template


def create_template(owner_id: str, payload: dict, id_factory: IdFactory = new_unique_id) -> MenuTemplate:
    name = clean_name(payload.get("name"), label="Template name")
    config = _template_config(payload)
    if _template_name_taken(owner_id, name):
        raise ConflictError(f"Template {name} already exists", code="TEMPLATE_EXISTS")

    template = MenuTemplate(unique_id=id_factory(), user_id=owner_id, name=name, config=config)
    db.session.add(template)
    db.session.commit()
    return template


def update_template(owner_id: str, template_id: str, payload: dict) -> MenuTemplate:
    name = clean_name(payload.get("name"), label="Template name")
    config = _template_config(payload)
    template = get_template(owner_id, template_id)
    if _template_name_taken(owner_id, name, exclude_id=template_id):
        raise ConflictError(f"Template {name} already exists", code="TEMPLATE_EXISTS")

    template.name = name
    template.config = config
    db.session.commit()
    return template
