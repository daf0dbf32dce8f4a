from __future__ import annotations

from ..extensions import db
from qrmenu.time_utils import to_utc_z


ORDER_STATUSES = ("pending", "confirmed", "preparing", "ready", "completed", "cancelled")
TERMINAL_ORDER_STATUSES = ("completed", "cancelled")


class Order(db.Model):
    """
    Customer order placed from a table's menu.

    restaurant_id is the owning user's unique_id. total_amount is computed
    from the price snapshots on the order items.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_restaurant_created", "restaurant_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    restaurant_id = db.Column(db.String(36), db.ForeignKey("users.unique_id"), nullable=False)
    table_id = db.Column(db.String(36), db.ForeignKey("tables.unique_id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    table = db.relationship("DiningTable", backref=db.backref("orders", lazy=True))
    items = db.relationship("OrderItem", backref="order", cascade="all, delete-orphan", lazy=True)

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "unique_id": self.unique_id,
            "restaurant_id": self.restaurant_id,
            "table_id": self.table_id,
            "table_number": self.table.table_number if self.table else None,
            "status": self.status,
            "total_amount": float(self.total_amount),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.unique_id"), nullable=False, index=True)
    menu_item_id = db.Column(db.String(36), db.ForeignKey("menu_items.unique_id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)  # Snapshot of price at order time
    special_instructions = db.Column(db.Text, nullable=True)

    menu_item = db.relationship("MenuItem")

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "menu_item_id": self.menu_item_id,
            "name": self.menu_item.name if self.menu_item else None,
            "quantity": self.quantity,
            "price": float(self.price),
            "special_instructions": self.special_instructions,
        }
