from __future__ import annotations

from ..extensions import db
from qrmenu.time_utils import to_utc_z


TAX_TYPES = ("percentage", "fixed")
TAX_APPLIES_TO = ("all", "food", "beverage", "specific_items")
CHARGE_TYPES = ("fixed", "percentage")
CHARGE_APPLIES_TO = ("all", "delivery", "dine_in", "takeaway")
PAYMENT_STATUSES = ("pending", "paid", "partially_paid")


def _money(value):
    return float(value) if value is not None else None


class InvoiceTemplate(db.Model):
    """
    Reusable invoice layout owned by a user.

    Name is unique per owner; at most one template per owner has
    is_default set. Tax configurations and additional charges are child
    rows written only through the reconciliation service.
    """
    __tablename__ = "invoice_templates"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_invoice_templates_user_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    header_content = db.Column(db.Text, nullable=True)
    footer_content = db.Column(db.Text, nullable=True)
    logo_url = db.Column(db.String(255), nullable=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    tax_configurations = db.relationship(
        "TaxConfiguration",
        backref="template",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TaxConfiguration.id",
        lazy=True,
    )
    additional_charges = db.relationship(
        "AdditionalCharge",
        backref="template",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AdditionalCharge.id",
        lazy=True,
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "unique_id": self.unique_id,
            "name": self.name,
            "header_content": self.header_content,
            "footer_content": self.footer_content,
            "logo_url": self.logo_url,
            "is_default": self.is_default,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["tax_configurations"] = [t.to_dict() for t in self.tax_configurations]
            data["additional_charges"] = [c.to_dict() for c in self.additional_charges]
        return data


class TaxConfiguration(db.Model):
    __tablename__ = "tax_configurations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    invoice_template_id = db.Column(
        db.String(36),
        db.ForeignKey("invoice_templates.unique_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    rate = db.Column(db.Numeric(5, 2), nullable=False)
    tax_type = db.Column(db.String(16), nullable=False, default="percentage")
    applies_to = db.Column(db.String(16), nullable=False, default="all")
    is_additional = db.Column(db.Boolean, nullable=False, default=False)
    is_compound = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "name": self.name,
            "rate": _money(self.rate),
            "tax_type": self.tax_type,
            "applies_to": self.applies_to,
            "is_additional": self.is_additional,
            "is_compound": self.is_compound,
            "is_active": self.is_active,
        }


class AdditionalCharge(db.Model):
    __tablename__ = "additional_charges"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    invoice_template_id = db.Column(
        db.String(36),
        db.ForeignKey("invoice_templates.unique_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.String(36), db.ForeignKey("users.unique_id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    charge_type = db.Column(db.String(16), nullable=False, default="fixed")
    applies_to = db.Column(db.String(16), nullable=False, default="all")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now()
    )

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "name": self.name,
            "amount": _money(self.amount),
            "charge_type": self.charge_type,
            "applies_to": self.applies_to,
            "is_active": self.is_active,
        }


class Invoice(db.Model):
    """
    Invoice rendered for an order.

    Header, footer, logo and the applied tax/charge lines are copied from the
    template at capture time so later template edits do not alter it.
    """
    __tablename__ = "invoices"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    unique_id = db.Column(db.String(36), nullable=False, unique=True, index=True)
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.unique_id", ondelete="CASCADE"), nullable=False, unique=True
    )
    invoice_template_id = db.Column(db.String(36), nullable=False)
    invoice_number = db.Column(db.String(50), nullable=False)
    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    additional_charges = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    header_content = db.Column(db.Text, nullable=True)
    footer_content = db.Column(db.Text, nullable=True)
    logo_url = db.Column(db.String(255), nullable=True)
    payment_method = db.Column(db.String(50), nullable=True)
    payment_status = db.Column(db.String(16), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    taxes = db.relationship("InvoiceTax", backref="invoice", cascade="all, delete-orphan", lazy=True)
    charges = db.relationship("InvoiceAdditionalCharge", backref="invoice", cascade="all, delete-orphan", lazy=True)

    def to_dict(self) -> dict:
        return {
            "unique_id": self.unique_id,
            "order_id": self.order_id,
            "invoice_template_id": self.invoice_template_id,
            "invoice_number": self.invoice_number,
            "invoice_date": to_utc_z(self.invoice_date),
            "subtotal": _money(self.subtotal),
            "tax_amount": _money(self.tax_amount),
            "additional_charges": _money(self.additional_charges),
            "discount_amount": _money(self.discount_amount),
            "total_amount": _money(self.total_amount),
            "header_content": self.header_content,
            "footer_content": self.footer_content,
            "logo_url": self.logo_url,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "notes": self.notes,
            "taxes": [t.to_dict() for t in self.taxes],
            "charges": [c.to_dict() for c in self.charges],
        }


class InvoiceTax(db.Model):
    __tablename__ = "invoice_taxes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.String(36), db.ForeignKey("invoices.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    tax_name = db.Column(db.String(100), nullable=False)
    tax_rate = db.Column(db.Numeric(5, 2), nullable=False)
    tax_type = db.Column(db.String(16), nullable=False)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "tax_name": self.tax_name,
            "tax_rate": _money(self.tax_rate),
            "tax_type": self.tax_type,
            "tax_amount": _money(self.tax_amount),
        }


class InvoiceAdditionalCharge(db.Model):
    __tablename__ = "invoice_additional_charges"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.String(36), db.ForeignKey("invoices.unique_id", ondelete="CASCADE"), nullable=False, index=True
    )
    charge_name = db.Column(db.String(100), nullable=False)
    charge_type = db.Column(db.String(16), nullable=False)
    charge_rate = db.Column(db.Numeric(5, 2), nullable=True)  # percentage charges only
    charge_amount = db.Column(db.Numeric(10, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "charge_name": self.charge_name,
            "charge_type": self.charge_type,
            "charge_rate": _money(self.charge_rate),
            "charge_amount": _money(self.charge_amount),
        }
