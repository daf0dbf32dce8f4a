# Overview: Diff-based reconciliation of invoice template line items (tax configurations, additional charges).

"""
Reconciliation Engine

Converges the stored child rows of one invoice template to an incoming list:

    incoming items with a unique_id  -> UPDATE (editable columns only)
    incoming items without one       -> INSERT with a pre-allocated id
    stored ids not re-submitted      -> DELETE (single IN statement)

Planning is a pure function over ids and payloads; applying the plan issues
one statement per step through execute_with_retry. Inserts are chunked to at
most MAX_BATCH_SIZE rows per statement and every write checks its affected
row count. The caller owns the transaction and replays it as a whole when a
transient failure surfaces mid-way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import delete, select, update

from ..models import AdditionalCharge, TaxConfiguration
from ..models.invoices import CHARGE_APPLIES_TO, CHARGE_TYPES, TAX_APPLIES_TO, TAX_TYPES
from ..validation import MAX_AMOUNT, MAX_RATE, ValidationError, clean_name, coerce_decimal, coerce_flag, require_choice
from .concurrency import execute_with_retry
from .identifier_service import IdFactory, allocate_ids, new_unique_id

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50


class ReconciliationError(RuntimeError):
    """An update matched no row (unknown id or foreign template)."""


class BatchWriteError(RuntimeError):
    """A batch insert affected a different number of rows than it carried."""


def _pick(item: dict, *keys: str) -> Any:
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return None


def _normalize_tax(item: dict) -> dict:
    return {
        "name": clean_name(item.get("name"), label="Tax name", max_length=100, code="INVALID_INPUT"),
        "rate": coerce_decimal(item.get("rate"), label="Tax rate", code="INVALID_INPUT", maximum=MAX_RATE),
        "tax_type": require_choice(
            _pick(item, "tax_type", "type"), TAX_TYPES, label="Tax type", default="percentage"
        ),
        "applies_to": require_choice(
            _pick(item, "applies_to", "appliesTo"), TAX_APPLIES_TO, label="Tax applies_to", default="all"
        ),
        "is_additional": coerce_flag(_pick(item, "is_additional", "isAdditional"), False),
        "is_compound": coerce_flag(_pick(item, "is_compound", "isCompound"), False),
        "is_active": coerce_flag(_pick(item, "is_active", "isActive"), True),
    }


def _normalize_charge(item: dict) -> dict:
    return {
        "name": clean_name(item.get("name"), label="Charge name", max_length=100, code="INVALID_INPUT"),
        "amount": coerce_decimal(item.get("amount"), label="Charge amount", code="INVALID_INPUT", maximum=MAX_AMOUNT),
        "charge_type": require_choice(
            _pick(item, "charge_type", "type"), CHARGE_TYPES, label="Charge type", default="fixed"
        ),
        "applies_to": require_choice(
            _pick(item, "applies_to", "appliesTo"), CHARGE_APPLIES_TO, label="Charge applies_to", default="all"
        ),
        "is_active": coerce_flag(_pick(item, "is_active", "isActive"), True),
    }


@dataclass(frozen=True)
class LineItemFamily:
    """One kind of template child row and how its payloads map to columns."""
    label: str
    model: Any
    normalize: Callable[[dict], dict]
    update_columns: tuple[str, ...]

    @property
    def table(self):
        return self.model.__table__


TAX_FAMILY = LineItemFamily(
    label="tax configuration",
    model=TaxConfiguration,
    normalize=_normalize_tax,
    update_columns=("name", "rate", "applies_to"),
)

CHARGE_FAMILY = LineItemFamily(
    label="additional charge",
    model=AdditionalCharge,
    normalize=_normalize_charge,
    update_columns=("name", "amount", "charge_type"),
)


@dataclass
class ReconciliationPlan:
    to_delete: list[str] = field(default_factory=list)
    updates: list[dict] = field(default_factory=list)
    inserts: list[dict] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.to_delete or self.updates or self.inserts)


@dataclass
class ReconciliationResult:
    deleted: int = 0
    updated: int = 0
    inserted_ids: list[str] = field(default_factory=list)


def validate_items(family: LineItemFamily, items: Any) -> list[dict]:
    """Reject non-list payloads and non-object entries before any write."""
    if not isinstance(items, list):
        raise ValidationError(
            "Tax configurations and additional charges must be arrays", code="INVALID_INPUT"
        )
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError(f"Each {family.label} must be an object", code="INVALID_INPUT")
        family.normalize(item)
    return items


def plan_reconciliation(
    family: LineItemFamily,
    existing_ids,
    incoming: list[dict],
    parent_id: str,
    owner_id: str,
    id_factory: IdFactory = new_unique_id,
) -> ReconciliationPlan:
    """
    Compute the deletes, updates and inserts that make the stored set match
    the incoming list.

    Deletes are existing ids that were not re-submitted; the order of
    existing_ids is kept so the plan is deterministic.
    """
    existing_ids = list(existing_ids)
    to_update = [item for item in incoming if item.get("unique_id")]
    to_insert = [item for item in incoming if not item.get("unique_id")]

    incoming_ids = {item["unique_id"] for item in to_update}
    plan = ReconciliationPlan(to_delete=[uid for uid in existing_ids if uid not in incoming_ids])

    for item in to_update:
        values = family.normalize(item)
        row = {column: values[column] for column in family.update_columns}
        row["unique_id"] = item["unique_id"]
        plan.updates.append(row)

    new_ids = allocate_ids(len(to_insert), id_factory)
    for new_id, item in zip(new_ids, to_insert):
        row = family.normalize(item)
        row.update(unique_id=new_id, invoice_template_id=parent_id, user_id=owner_id)
        plan.inserts.append(row)

    return plan


def get_existing_ids(family: LineItemFamily, parent_id: str) -> list[str]:
    table = family.table
    result = execute_with_retry(
        select(table.c.unique_id)
        .where(table.c.invoice_template_id == parent_id)
        .order_by(table.c.id)
    )
    return [row[0] for row in result]


def batch_insert(family: LineItemFamily, rows: list[dict], batch_size: int = MAX_BATCH_SIZE) -> int:
    """Insert rows as multi-row INSERT statements of at most batch_size rows."""
    table = family.table
    inserted = 0
    for start in range(0, len(rows), batch_size):
        chunk = rows[start:start + batch_size]
        result = execute_with_retry(table.insert().values(chunk))
        if result.rowcount != len(chunk):
            raise BatchWriteError(
                f"Batch insert failed: Expected {len(chunk)} rows, got {result.rowcount}"
            )
        inserted += len(chunk)
    return inserted


def apply_plan(family: LineItemFamily, plan: ReconciliationPlan, parent_id: str) -> ReconciliationResult:
    """
    Execute a plan: delete, then update row by row, then insert in batches.

    Raises:
        ReconciliationError: If an update matched no row
        BatchWriteError: If an insert batch wrote fewer rows than expected
        OperationalError: If a transient storage failure hit a statement inside
            the caller's transaction
    """
    table = family.table
    result = ReconciliationResult()

    if plan.to_delete:
        deleted = execute_with_retry(
            delete(table).where(
                table.c.unique_id.in_(plan.to_delete),
                table.c.invoice_template_id == parent_id,
            )
        )
        result.deleted = deleted.rowcount

    for row in plan.updates:
        values = {column: row[column] for column in family.update_columns}
        updated = execute_with_retry(
            update(table)
            .where(table.c.unique_id == row["unique_id"], table.c.invoice_template_id == parent_id)
            .values(**values)
        )
        if updated.rowcount == 0:
            raise ReconciliationError(f"Failed to update {family.label}: No rows affected")
        result.updated += 1

    if plan.inserts:
        batch_insert(family, plan.inserts)
        result.inserted_ids = [row["unique_id"] for row in plan.inserts]

    logger.debug(
        "Reconciled %s rows for template %s: deleted=%d updated=%d inserted=%d",
        family.label, parent_id, result.deleted, result.updated, len(result.inserted_ids),
    )
    return result


def reconcile(
    family: LineItemFamily,
    parent_id: str,
    owner_id: str,
    incoming: list[dict],
    id_factory: IdFactory = new_unique_id,
) -> ReconciliationResult:
    """Fetch the stored ids, plan against the incoming list and apply."""
    existing_ids = get_existing_ids(family, parent_id)
    plan = plan_reconciliation(family, existing_ids, incoming, parent_id, owner_id, id_factory)
    return apply_plan(family, plan, parent_id)
