# Overview: Service-layer operations for invoice templates and invoice snapshots.

"""
Invoice templates and invoice snapshots.

Template writes (scalar fields, default flag, both line-item families) run in
one transaction: any failure rolls the whole write back. Line items are only
written through the reconciliation service.

A snapshot renders an order into an invoice using the owner's default
template (or the newest one) and copies the template's presentation fields
and the applied tax and charge lines, so later template edits leave issued
invoices untouched.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Invoice, InvoiceAdditionalCharge, InvoiceTax, InvoiceTemplate, Order
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError, clean_name
from . import reconciliation_service
from .concurrency import execute_with_retry, run_with_retry
from .identifier_service import IdFactory, new_unique_id
from .reconciliation_service import CHARGE_FAMILY, TAX_FAMILY

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
SNAPSHOT_CHARGE_SCOPES = ("all", "dine_in")


def _template_fields(payload: dict) -> dict:
    """Validate the scalar part of a create/update payload."""
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip() or len(name.strip()) > 255:
        raise ValidationError("Invalid invoice template name", code="INVALID_NAME")

    taxes = payload.get("tax_configurations", [])
    charges = payload.get("additional_charges", [])
    if taxes is None:
        taxes = []
    if charges is None:
        charges = []
    reconciliation_service.validate_items(TAX_FAMILY, taxes)
    reconciliation_service.validate_items(CHARGE_FAMILY, charges)

    return {
        "name": clean_name(name),
        "header_content": payload.get("headerText"),
        "footer_content": payload.get("footerText"),
        "logo_url": payload.get("logoUrl"),
        "is_default": bool(payload.get("isDefault")),
        "tax_configurations": taxes,
        "additional_charges": charges,
    }


def _name_taken(owner_id: str, name: str, exclude_id: str | None = None) -> bool:
    query = db.session.query(InvoiceTemplate.id).filter(
        InvoiceTemplate.user_id == owner_id,
        InvoiceTemplate.name == name,
    )
    if exclude_id:
        query = query.filter(InvoiceTemplate.unique_id != exclude_id)
    return query.first() is not None


def _get_owned(owner_id: str, template_id: str) -> InvoiceTemplate:
    template = db.session.query(InvoiceTemplate).filter_by(unique_id=template_id, user_id=owner_id).first()
    if template is None:
        raise NotFoundError("Template not found or access denied", code="NOT_FOUND")
    return template


def _make_default(owner_id: str, template_id: str) -> None:
    """Single statement: the chosen template gets the flag, every sibling loses it."""
    execute_with_retry(
        update(InvoiceTemplate)
        .where(InvoiceTemplate.user_id == owner_id)
        .values(is_default=case((InvoiceTemplate.unique_id == template_id, True), else_=False))
        .execution_options(synchronize_session=False)
    )


def _summary(template_id: str, fields: dict) -> dict:
    return {
        "templateId": template_id,
        "name": fields["name"],
        "taxCount": len(fields["tax_configurations"]),
        "chargeCount": len(fields["additional_charges"]),
    }


def create_template(owner_id: str, payload: dict, id_factory: IdFactory = new_unique_id) -> dict:
    """
    Create a template with its tax configurations and additional charges.

    A new template has no line items yet, so every incoming item is inserted
    under a fresh id; any unique_id sent with an item is ignored.

    Raises:
        ValidationError: INVALID_NAME / INVALID_INPUT
        ConflictError: DUPLICATE_NAME
    """
    fields = _template_fields(payload)
    if _name_taken(owner_id, fields["name"]):
        raise ConflictError("Template name already exists", code="DUPLICATE_NAME")

    families = [
        (family, [{k: v for k, v in item.items() if k != "unique_id"} for item in items])
        for family, items in (
            (TAX_FAMILY, fields["tax_configurations"]),
            (CHARGE_FAMILY, fields["additional_charges"]),
        )
    ]

    def write():
        template_id = id_factory()
        db.session.add(InvoiceTemplate(
            unique_id=template_id,
            user_id=owner_id,
            name=fields["name"],
            header_content=fields["header_content"],
            footer_content=fields["footer_content"],
            logo_url=fields["logo_url"],
            is_default=False,
        ))
        db.session.flush()

        if fields["is_default"]:
            _make_default(owner_id, template_id)

        for family, items in families:
            plan = reconciliation_service.plan_reconciliation(
                family, [], items, template_id, owner_id, id_factory
            )
            if plan.inserts:
                reconciliation_service.batch_insert(family, plan.inserts)

        db.session.commit()
        return template_id

    try:
        template_id = run_with_retry(write)
    except Exception:
        db.session.rollback()
        raise

    logger.info("Created invoice template %s for user %s", template_id, owner_id)
    return _summary(template_id, fields)


def update_template(owner_id: str, template_id: str, payload: dict, id_factory: IdFactory = new_unique_id) -> dict:
    """
    Update scalar fields and reconcile both line-item families.

    The whole write is one unit of work: a transient failure in any statement
    rolls everything back and the unit is replayed from the top.

    Raises:
        ValidationError: INVALID_NAME / INVALID_INPUT
        NotFoundError: template missing or owned by someone else
        ConflictError: DUPLICATE_NAME
        ReconciliationError, BatchWriteError, OperationalError: storage failures
    """
    fields = _template_fields(payload)
    _get_owned(owner_id, template_id)
    if _name_taken(owner_id, fields["name"], exclude_id=template_id):
        raise ConflictError("Template name already exists", code="DUPLICATE_NAME")

    def write():
        template = _get_owned(owner_id, template_id)
        template.name = fields["name"]
        template.header_content = fields["header_content"]
        template.footer_content = fields["footer_content"]
        template.logo_url = fields["logo_url"]
        db.session.flush()

        if fields["is_default"]:
            _make_default(owner_id, template_id)

        # Families are independent; the order between them is not significant
        reconciliation_service.reconcile(TAX_FAMILY, template_id, owner_id, fields["tax_configurations"], id_factory)
        reconciliation_service.reconcile(CHARGE_FAMILY, template_id, owner_id, fields["additional_charges"], id_factory)

        db.session.commit()

    try:
        run_with_retry(write)
    except Exception:
        db.session.rollback()
        raise

    return _summary(template_id, fields)


def list_templates(owner_id: str) -> list[dict]:
    templates = db.session.query(InvoiceTemplate).filter_by(user_id=owner_id).order_by(InvoiceTemplate.id).all()
    return [t.to_dict() for t in templates]


def get_template(owner_id: str, template_id: str) -> dict:
    return _get_owned(owner_id, template_id).to_dict()


def get_template_with_items(owner_id: str, template_id: str) -> dict:
    return _get_owned(owner_id, template_id).to_dict(include_items=True)


def list_templates_with_items(owner_id: str) -> list[dict]:
    templates = db.session.query(InvoiceTemplate).filter_by(user_id=owner_id).order_by(InvoiceTemplate.id).all()
    return [t.to_dict(include_items=True) for t in templates]


def set_default(owner_id: str, template_id: str) -> None:
    """Make one owned template the default; NotFoundError if it is not the owner's."""
    _get_owned(owner_id, template_id)

    def write():
        _make_default(owner_id, template_id)
        db.session.commit()

    try:
        run_with_retry(write)
    except Exception:
        db.session.rollback()
        raise


# -- Snapshots ---------------------------------------------------------------

def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _snapshot_template(owner_id: str) -> InvoiceTemplate | None:
    return (
        db.session.query(InvoiceTemplate)
        .filter(InvoiceTemplate.user_id == owner_id)
        .order_by(InvoiceTemplate.is_default.desc(), InvoiceTemplate.created_at.desc(), InvoiceTemplate.id.desc())
        .first()
    )


def compute_lines(subtotal: Decimal, template: InvoiceTemplate) -> tuple[list[dict], list[dict]]:
    """
    Apply the template's active taxes and charges to a subtotal.

    Percentage taxes use the subtotal; compound taxes use the subtotal plus
    all non-compound taxes. Fixed taxes and charges add their amount.
    """
    active_taxes = [t for t in template.tax_configurations if t.is_active]
    tax_lines = []
    base_taxes = Decimal("0")

    for tax in (t for t in active_taxes if not t.is_compound):
        rate = Decimal(tax.rate)
        amount = _round(subtotal * rate / HUNDRED) if tax.tax_type == "percentage" else _round(rate)
        base_taxes += amount
        tax_lines.append({"tax_name": tax.name, "tax_rate": rate, "tax_type": tax.tax_type, "tax_amount": amount})

    for tax in (t for t in active_taxes if t.is_compound):
        rate = Decimal(tax.rate)
        if tax.tax_type == "percentage":
            amount = _round((subtotal + base_taxes) * rate / HUNDRED)
        else:
            amount = _round(rate)
        tax_lines.append({"tax_name": tax.name, "tax_rate": rate, "tax_type": tax.tax_type, "tax_amount": amount})

    charge_lines = []
    for charge in template.additional_charges:
        if not charge.is_active or charge.applies_to not in SNAPSHOT_CHARGE_SCOPES:
            continue
        value = Decimal(charge.amount)
        if charge.charge_type == "percentage":
            charge_lines.append({
                "charge_name": charge.name,
                "charge_type": "percentage",
                "charge_rate": value,
                "charge_amount": _round(subtotal * value / HUNDRED),
            })
        else:
            charge_lines.append({
                "charge_name": charge.name,
                "charge_type": "fixed",
                "charge_rate": None,
                "charge_amount": _round(value),
            })

    return tax_lines, charge_lines


def _invoice_number(now) -> str:
    return f"INV-{now:%Y%m%d}-{new_unique_id()[:8].upper()}"


def capture_snapshot(order_id: str, restaurant_id: str) -> tuple[Invoice, bool]:
    """
    Return the order's invoice, creating it on first call.

    Returns (invoice, created).

    Raises:
        NotFoundError: ORDER_NOT_FOUND / TEMPLATE_NOT_FOUND
    """
    order = db.session.query(Order).filter_by(unique_id=order_id, restaurant_id=restaurant_id).first()
    if order is None:
        raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")

    existing = db.session.query(Invoice).filter_by(order_id=order_id).first()
    if existing is not None:
        return existing, False

    template = _snapshot_template(restaurant_id)
    if template is None:
        raise NotFoundError("No invoice template configured", code="TEMPLATE_NOT_FOUND")

    subtotal = _round(Decimal(order.total_amount))
    tax_lines, charge_lines = compute_lines(subtotal, template)
    tax_total = sum((line["tax_amount"] for line in tax_lines), Decimal("0"))
    charge_total = sum((line["charge_amount"] for line in charge_lines), Decimal("0"))
    discount = Decimal("0")
    now = utcnow()

    invoice = Invoice(
        unique_id=new_unique_id(),
        order_id=order_id,
        invoice_template_id=template.unique_id,
        invoice_number=_invoice_number(now),
        invoice_date=now,
        subtotal=subtotal,
        tax_amount=tax_total,
        additional_charges=charge_total,
        discount_amount=discount,
        total_amount=subtotal + tax_total + charge_total - discount,
        header_content=template.header_content,
        footer_content=template.footer_content,
        logo_url=template.logo_url,
        payment_status="pending",
    )
    invoice.taxes = [InvoiceTax(**line) for line in tax_lines]
    invoice.charges = [InvoiceAdditionalCharge(**line) for line in charge_lines]

    db.session.add(invoice)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent capture for the same order won the unique order_id
        db.session.rollback()
        existing = db.session.query(Invoice).filter_by(order_id=order_id).first()
        if existing is None:
            raise
        return existing, False

    logger.info("Captured invoice %s for order %s", invoice.invoice_number, order_id)
    return invoice, True


def check_snapshot(owner_id: str, order_id: str) -> Invoice | None:
    return (
        db.session.query(Invoice)
        .join(Order, Order.unique_id == Invoice.order_id)
        .filter(Invoice.order_id == order_id, Order.restaurant_id == owner_id)
        .first()
    )
