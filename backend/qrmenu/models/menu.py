from __future__ import annotations

from ..extensions import db
from qrmenu.time_utils import to_utc_z


AVAILABILITY_VALUES = ("in_stock", "out_of_stock")


class Category(db.Model):
    """Menu category. Position drives drag-and-drop ordering in the dashboard."""
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.Integer, nullable=False, default=1)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "name": self.name,
            "status": self.status,
            "position": self.position,
            "created_at": to_utc_z(self.created_at),
        }


class MenuItem(db.Model):
    __tablename__ = "menu_items"
    __table_args__ = (
        db.Index("ix_menu_items_user_category", "user_id", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id = db.Column(
        db.String(36), db.ForeignKey("categories.unique_id", ondelete="CASCADE"), nullable=False
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_url = db.Column(db.String(255), nullable=True)
    availability = db.Column(db.String(16), nullable=False, default="in_stock")
    status = db.Column(db.Integer, nullable=False, default=1)
    position = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    category = db.relationship("Category", backref=db.backref("menu_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "image_url": self.image_url,
            "availability": self.availability,
            "status": self.status,
            "position": self.position,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class MenuTemplate(db.Model):
    """
    Customer-facing menu layout (colors, fonts, sections) as a JSON document.

    Tables point at a template; the customer menu viewer renders it.
    """
    __tablename__ = "templates"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_templates_user_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    config = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    def to_dict(self, include_config: bool = True) -> dict:
        data = {
            "unique_id": self.unique_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_config:
            data["config"] = self.config
        return data
