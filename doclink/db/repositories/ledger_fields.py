from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from doclink.db.errors import map_database_error
from doclink.db.repositories.base import _commit_or_raise, _execute_or_raise
from doclink.models.models import ResourceFieldValues
from doclink.services.contracts import FieldValue

LOGGER = logging.getLogger(__name__)


class SqlLedgerFieldStore:
    """Per-resource text fields with a version column used as a write token."""

    def __init__(self, db: Session):
        self.db = db

    def get_field(self, resource_id: int, key: str) -> FieldValue | None:
        row = _execute_or_raise(
            self.db,
            select(ResourceFieldValues.value, ResourceFieldValues.version)
            .where(ResourceFieldValues.resource_id == int(resource_id))
            .where(ResourceFieldValues.field_key == key),
        ).first()
        if row is None:
            return None
        return FieldValue(raw=row.value or "", version=int(row.version or 0))

    def set_field(self, resource_id: int, key: str, raw: str, expected_version: int | None) -> bool:
        if expected_version is None:
            self.db.add(ResourceFieldValues(resource_id=int(resource_id), field_key=key, value=raw, version=1))
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                LOGGER.info(
                    "ledger_field_insert_conflict",
                    extra={"event": "ledger_field_insert_conflict", "resource_id": resource_id, "field_key": key},
                )
                return False
            except SQLAlchemyError as exc:
                self.db.rollback()
                raise map_database_error(exc) from exc
            return True

        result = _execute_or_raise(
            self.db,
            update(ResourceFieldValues)
            .where(ResourceFieldValues.resource_id == int(resource_id))
            .where(ResourceFieldValues.field_key == key)
            .where(ResourceFieldValues.version == int(expected_version))
            .values(value=raw, version=ResourceFieldValues.version + 1)
            .execution_options(synchronize_session=False),
        )
        _commit_or_raise(self.db)
        return int(result.rowcount or 0) == 1

    def find_candidates(self, key: str, needle: str, resource_ids: list[int] | None = None) -> list[int]:
        if not needle:
            return []
        stmt = (
            select(ResourceFieldValues.resource_id)
            .where(ResourceFieldValues.field_key == key)
            .where(ResourceFieldValues.value.contains(needle, autoescape=True))
        )
        if resource_ids is not None:
            if not resource_ids:
                return []
            stmt = stmt.where(ResourceFieldValues.resource_id.in_([int(rid) for rid in resource_ids]))
        rows = _execute_or_raise(self.db, stmt.order_by(ResourceFieldValues.resource_id.asc())).scalars().all()
        return [int(rid) for rid in rows]
