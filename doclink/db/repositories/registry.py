from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from doclink.db.repositories.base import _commit_or_raise, _execute_or_raise
from doclink.models.models import RegistryRows
from doclink.services.contracts import RegistryRecord


class RegistryRepository:
    """Attach history keyed by article, vendor and ``(folder, document_name)``.

    The table is an audit index, not a set: repeated attaches of the same file
    produce several rows and readers get them newest first.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, record: RegistryRecord) -> int:
        row = RegistryRows(
            resource_id=int(record.resource_id or 0),
            article=record.article or "",
            vendor_id=int(record.vendor_id or 0),
            vendor_name=record.vendor_name or "",
            folder=record.folder or "",
            document_name=record.document_name or "",
            preview_name=record.preview_name or "",
            document_url=record.document_url or "",
            preview_url=record.preview_url or "",
            created_at=record.created_at or datetime.now(timezone.utc),
        )
        self.db.add(row)
        _commit_or_raise(self.db)
        return int(row.id)

    def delete_by_id(self, row_id: int) -> int:
        result = _execute_or_raise(self.db, delete(RegistryRows).where(RegistryRows.id == int(row_id)))
        _commit_or_raise(self.db)
        return int(result.rowcount or 0)

    def delete_by_identity(self, folder: str, name: str) -> int:
        result = _execute_or_raise(
            self.db,
            delete(RegistryRows).where(RegistryRows.folder == folder).where(RegistryRows.document_name == name),
        )
        _commit_or_raise(self.db)
        return int(result.rowcount or 0)

    def find_by_article(self, article: str, vendor_id: int | None = None) -> list[RegistryRecord]:
        stmt = select(RegistryRows).where(RegistryRows.article == article)
        if vendor_id:
            stmt = stmt.where(RegistryRows.vendor_id == int(vendor_id))
        return self._fetch(stmt)

    def find_by_identity(self, folder: str, name: str) -> list[RegistryRecord]:
        stmt = select(RegistryRows).where(RegistryRows.folder == folder).where(RegistryRows.document_name == name)
        return self._fetch(stmt)

    def find_by_resource(self, resource_id: int) -> list[RegistryRecord]:
        return self._fetch(select(RegistryRows).where(RegistryRows.resource_id == int(resource_id)))

    def _fetch(self, stmt) -> list[RegistryRecord]:
        stmt = stmt.order_by(RegistryRows.created_at.desc(), RegistryRows.id.desc())
        rows = _execute_or_raise(self.db, stmt).scalars().all()
        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: RegistryRows) -> RegistryRecord:
        return RegistryRecord(
            id=int(row.id),
            resource_id=int(row.resource_id or 0),
            article=row.article or "",
            vendor_id=int(row.vendor_id or 0),
            vendor_name=row.vendor_name or "",
            folder=row.folder or "",
            document_name=row.document_name or "",
            preview_name=row.preview_name or "",
            document_url=row.document_url or "",
            preview_url=row.preview_url or "",
            created_at=row.created_at,
        )
