# Overview: Service-layer operations for dining tables (the rows behind printed QR codes).

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DiningTable, MenuTemplate
from ..validation import NotFoundError, ValidationError, clean_name
from .identifier_service import IdFactory, new_unique_id

logger = logging.getLogger(__name__)


@dataclass
class TableBatchResult:
    existing_tables: list[str] = field(default_factory=list)
    added_tables: list[str] = field(default_factory=list)
    failed_tables: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        message = "Tables processed successfully."
        if self.existing_tables:
            message += f" {len(self.existing_tables)} table(s) already exist: {', '.join(self.existing_tables)}."
        if self.added_tables:
            message += f" {len(self.added_tables)} table(s) added successfully: {', '.join(self.added_tables)}."
        if self.failed_tables:
            message += f" {len(self.failed_tables)} table(s) failed to add: {', '.join(self.failed_tables)}."
        return message

    def to_dict(self) -> dict:
        return {
            "existingTables": self.existing_tables,
            "addedTables": self.added_tables,
            "failedTables": self.failed_tables,
        }


def _require_template(owner_id: str, template_id) -> MenuTemplate:
    template = None
    if isinstance(template_id, str) and template_id:
        template = db.session.query(MenuTemplate).filter_by(unique_id=template_id, user_id=owner_id).first()
    if template is None:
        raise ValidationError("Template does not exist.", code="INVALID_TEMPLATE")
    return template


def _table_number(value) -> str:
    return clean_name(value, label="Table number", max_length=50, code="INVALID_TABLE_NUMBER")


def list_tables(owner_id: str) -> list[DiningTable]:
    return db.session.query(DiningTable).filter_by(user_id=owner_id).order_by(DiningTable.id).all()


def get_table(owner_id: str, table_id: str) -> DiningTable:
    table = db.session.query(DiningTable).filter_by(unique_id=table_id, user_id=owner_id).first()
    if table is None:
        raise NotFoundError("Table not found.", code="TABLE_NOT_FOUND")
    return table


def create_tables(owner_id: str, table_numbers, template_id: str, id_factory: IdFactory = new_unique_id) -> TableBatchResult:
    """
    Add one or many tables under a menu template.

    Numbers already used by the owner are reported as existing; each new table
    is committed on its own so one failure does not discard the others.
    """
    _require_template(owner_id, template_id)
    if not isinstance(table_numbers, list):
        table_numbers = [table_numbers]
    numbers = [_table_number(value) for value in table_numbers]

    result = TableBatchResult()
    for number in numbers:
        exists = db.session.query(DiningTable.id).filter_by(user_id=owner_id, table_number=number).first()
        if exists is not None or number in result.added_tables:
            result.existing_tables.append(number)
            continue

        db.session.add(DiningTable(
            unique_id=id_factory(),
            user_id=owner_id,
            template_id=template_id,
            table_number=number,
            status=1,
        ))
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("Failed to add table %s for user %s", number, owner_id)
            result.failed_tables.append(number)
        else:
            result.added_tables.append(number)

    return result


def update_table(owner_id: str, table_id: str, payload: dict) -> DiningTable:
    """Renumber a table or move it to another template."""
    number = _table_number(payload.get("table_number"))
    template_id = payload.get("template_id")
    _require_template(owner_id, template_id)

    table = db.session.query(DiningTable).filter_by(unique_id=table_id, user_id=owner_id).first()
    if table is None:
        raise ValidationError("Table does not exist.", code="TABLE_NOT_FOUND")

    duplicate = db.session.query(DiningTable.id).filter(
        DiningTable.user_id == owner_id,
        DiningTable.table_number == number,
        DiningTable.unique_id != table_id,
    ).first()
    if duplicate is not None:
        raise ValidationError(f'A table with the name "{number}" already exists.', code="TABLE_EXISTS")

    table.table_number = number
    table.template_id = template_id
    db.session.commit()
    return table


def get_customer_template(owner_id: str, table_id: str) -> MenuTemplate:
    """Public lookup used by the QR landing page."""
    table = db.session.query(DiningTable).filter_by(unique_id=table_id, user_id=owner_id).first()
    if table is None:
        raise NotFoundError("Table not found.", code="TABLE_NOT_FOUND")
    template = db.session.query(MenuTemplate).filter_by(unique_id=table.template_id, user_id=owner_id).first()
    if template is None:
        raise NotFoundError("Menu template not found.", code="TEMPLATE_NOT_FOUND")
    return template
