from __future__ import annotations

import re
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from doclink.db.repositories.base import _execute_or_raise
from doclink.services.contracts import CatalogMatch, Vendor

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _checked_identifier(name: str) -> str:
    if not _IDENTIFIER_RE.match(name or ""):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


class SqlCatalogResolver:
    """Read-only product/vendor lookups against the shop tables."""

    def __init__(self, db: Session, products_table: str = "ms2_products", vendors_table: str = "ms2_vendors"):
        self.db = db
        self.products_table = _checked_identifier(products_table)
        self.vendors_table = _checked_identifier(vendors_table)

    def _product_select(self) -> str:
        return f"""
            SELECT p.id AS resource_id, p.pagetitle AS pagetitle, p.article AS article,
                   p.vendor AS vendor_id, v.name AS vendor_name
            FROM {self.products_table} p
            LEFT JOIN {self.vendors_table} v ON v.id = p.vendor
        """

    @staticmethod
    def _to_match(row: Any) -> CatalogMatch:
        return CatalogMatch(
            resource_id=int(row["resource_id"]),
            article=str(row["article"] or ""),
            vendor_id=int(row["vendor_id"] or 0),
            vendor_name=str(row["vendor_name"] or ""),
            pagetitle=str(row["pagetitle"] or ""),
        )

    def resolve_by_article(self, article: str, vendor_id: int | None = None) -> CatalogMatch | None:
        matches = self.lookup_products(article, vendor_id, limit=1)
        return matches[0] if matches else None

    def resolve_by_resource_id(self, resource_id: int) -> CatalogMatch | None:
        if int(resource_id) <= 0:
            return None
        row = _execute_or_raise(
            self.db,
            text(self._product_select() + " WHERE p.id = :resource_id"),
            {"resource_id": int(resource_id)},
        ).mappings().first()
        return self._to_match(row) if row else None

    def lookup_products(self, article: str, vendor_id: int | None = None, limit: int = 50) -> list[CatalogMatch]:
        article = (article or "").strip()
        if not article:
            return []
        sql = self._product_select() + " WHERE p.article = :article"
        params: dict[str, Any] = {"article": article, "limit_n": int(limit)}
        if vendor_id:
            sql += " AND p.vendor = :vendor_id"
            params["vendor_id"] = int(vendor_id)
        sql += " ORDER BY p.id ASC LIMIT :limit_n"
        rows = _execute_or_raise(self.db, text(sql), params).mappings().all()
        return [self._to_match(row) for row in rows]

    def lookup_many(self, resource_ids: list[int]) -> dict[int, CatalogMatch]:
        ids = sorted({int(rid) for rid in resource_ids if int(rid) > 0})
        if not ids:
            return {}
        stmt = text(self._product_select() + " WHERE p.id IN :ids").bindparams(bindparam("ids", expanding=True))
        rows = _execute_or_raise(self.db, stmt, {"ids": ids}).mappings().all()
        return {int(row["resource_id"]): self._to_match(row) for row in rows}

    def vendor_name(self, vendor_id: int) -> str:
        if int(vendor_id or 0) <= 0:
            return ""
        value = _execute_or_raise(
            self.db,
            text(f"SELECT name FROM {self.vendors_table} WHERE id = :vendor_id"),
            {"vendor_id": int(vendor_id)},
        ).scalar()
        return str(value or "")

    def list_vendors(self) -> list[Vendor]:
        rows = _execute_or_raise(self.db, text(f"SELECT id, name FROM {self.vendors_table} ORDER BY name ASC")).mappings().all()
        return [Vendor(vendor_id=int(row["id"]), name=str(row["name"] or "")) for row in rows]
