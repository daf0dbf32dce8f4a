from __future__ import annotations

from ..extensions import db
from qrmenu.time_utils import to_utc_z


class DiningTable(db.Model):
    """A physical table; its QR code encodes (user_id, unique_id)."""
    __tablename__ = "tables"
    __table_args__ = (
        db.UniqueConstraint("user_id", "table_number", name="uq_tables_user_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    template_id = db.Column(
        db.String(36), db.ForeignKey("templates.unique_id", ondelete="CASCADE"), nullable=False
    )
    table_number = db.Column(db.String(50), nullable=False)
    status = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    template = db.relationship("MenuTemplate", backref=db.backref("tables", lazy=True))

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "user_id": self.user_id,
            "template_id": self.template_id,
            "table_number": self.table_number,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
