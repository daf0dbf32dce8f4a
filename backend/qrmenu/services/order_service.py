# Overview: Service-layer operations for customer orders; submission, listing and status changes.

"""
Order Service

Customers submit orders anonymously from a table's QR menu. Prices are
snapshotted from the menu at submission and the total is computed here; the
client never supplies amounts. The order and its lines are written as one
unit of work retried on transient storage failures.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import DiningTable, MenuItem, Order, OrderItem
from ..models.orders import ORDER_STATUSES, TERMINAL_ORDER_STATUSES
from ..validation import NotFoundError, ValidationError
from .concurrency import run_with_retry
from .identifier_service import IdFactory, new_unique_id

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _validate_lines(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Order items are required and must be an array", code="INVALID_ITEMS")

    lines = []
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get("unique_id"), str) or not item["unique_id"]:
            raise ValidationError("Each order item needs a menu item unique_id", code="INVALID_ITEMS")
        quantity = item.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer", code="INVALID_QUANTITY")
        instructions = item.get("special_instructions")
        if instructions is not None and not isinstance(instructions, str):
            raise ValidationError("Special instructions must be a string", code="INVALID_ITEMS")
        lines.append({
            "menu_item_id": item["unique_id"],
            "quantity": quantity,
            "special_instructions": instructions or None,
        })
    return lines


def submit_order(restaurant_id: str, payload: dict, id_factory: IdFactory = new_unique_id) -> Order:
    """
    Create a pending order for a table.

    Raises:
        ValidationError: INVALID_ITEMS / INVALID_QUANTITY / TABLE_NOT_FOUND / INVALID_MENU_ITEMS
    """
    table_id = payload.get("tableId")
    if not isinstance(table_id, str) or not table_id:
        raise ValidationError("Table ID is required", code="INVALID_REQUEST")
    lines = _validate_lines(payload.get("items"))

    table = db.session.query(DiningTable).filter_by(unique_id=table_id, user_id=restaurant_id).first()
    if table is None:
        raise ValidationError(
            "Table does not exist or does not belong to the restaurant.", code="TABLE_NOT_FOUND"
        )

    wanted = {line["menu_item_id"] for line in lines}
    prices = dict(
        db.session.query(MenuItem.unique_id, MenuItem.price).filter(
            MenuItem.unique_id.in_(wanted),
            MenuItem.user_id == restaurant_id,
        ).all()
    )
    if len(prices) != len(wanted):
        raise ValidationError(
            "Some menu items do not exist or do not belong to the restaurant", code="INVALID_MENU_ITEMS"
        )

    total = sum((Decimal(prices[line["menu_item_id"]]) * line["quantity"] for line in lines), Decimal("0"))

    def write():
        order = Order(
            unique_id=id_factory(),
            restaurant_id=restaurant_id,
            table_id=table_id,
            status="pending",
            total_amount=total,
        )
        order.items = [
            OrderItem(
                unique_id=id_factory(),
                menu_item_id=line["menu_item_id"],
                quantity=line["quantity"],
                price=prices[line["menu_item_id"]],
                special_instructions=line["special_instructions"],
            )
            for line in lines
        ]
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_retry(write)
    logger.info("Order %s submitted for table %s", order.unique_id, table_id)
    return order


def _page_bounds(offset, limit) -> tuple[int, int]:
    try:
        offset = max(int(offset or 0), 0)
        limit = int(limit or DEFAULT_PAGE_SIZE)
    except (TypeError, ValueError):
        raise ValidationError("offset and limit must be integers", code="INVALID_REQUEST")
    return offset, min(max(limit, 1), MAX_PAGE_SIZE)


def list_orders(owner_id: str, filters: dict | None = None, offset=0, limit=DEFAULT_PAGE_SIZE) -> tuple[list[Order], int]:
    """
    Page through the owner's orders, newest first.

    filters: status (str or list), table (table unique_id), id (order unique_id).
    Returns (orders, total matching).
    """
    offset, limit = _page_bounds(offset, limit)
    filters = filters or {}

    query = db.session.query(Order).filter(Order.restaurant_id == owner_id)
    status = filters.get("status")
    if status:
        statuses = status if isinstance(status, list) else [status]
        query = query.filter(Order.status.in_(statuses))
    if filters.get("table"):
        query = query.filter(Order.table_id == filters["table"])
    if filters.get("id"):
        query = query.filter(Order.unique_id == filters["id"])

    total = query.with_entities(func.count(Order.id)).scalar() or 0
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit).all()
    return orders, total


def get_order(owner_id: str, order_id: str) -> Order:
    order = db.session.query(Order).filter_by(unique_id=order_id, restaurant_id=owner_id).first()
    if order is None:
        raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")
    return order


def update_status(owner_id: str, order_id: str, status) -> Order:
    """
    Move an order to a new status.

    completed and cancelled are terminal; any other status may move to any
    status.
    """
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(ORDER_STATUSES)}", code="INVALID_STATUS")
    order = get_order(owner_id, order_id)
    if order.status in TERMINAL_ORDER_STATUSES:
        raise ValidationError(
            f"Order is already {order.status} and cannot change status", code="INVALID_STATUS_TRANSITION"
        )

    order.status = status
    db.session.commit()
    logger.info("Order %s moved to %s", order_id, status)
    return order
