from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


@dataclass(frozen=True)
class CatalogMatch:
    resource_id: int
    article: str = ""
    vendor_id: int = 0
    vendor_name: str = ""
    pagetitle: str = ""


@dataclass(frozen=True)
class Vendor:
    vendor_id: int
    name: str


class CatalogResolver(Protocol):
    def resolve_by_article(self, article: str, vendor_id: int | None = None) -> CatalogMatch | None:
        ...

    def resolve_by_resource_id(self, resource_id: int) -> CatalogMatch | None:
        ...

    def lookup_many(self, resource_ids: list[int]) -> dict[int, CatalogMatch]:
        ...

    def vendor_name(self, vendor_id: int) -> str:
        ...

    def list_vendors(self) -> list[Vendor]:
        ...

    def lookup_products(self, article: str, vendor_id: int | None = None, limit: int = 50) -> list[CatalogMatch]:
        ...


@dataclass(frozen=True)
class FieldValue:
    raw: str
    version: int


class LedgerFieldStore(Protocol):
    def get_field(self, resource_id: int, key: str) -> FieldValue | None:
        ...

    def set_field(self, resource_id: int, key: str, raw: str, expected_version: int | None) -> bool:
        ...

    def find_candidates(self, key: str, needle: str, resource_ids: list[int] | None = None) -> list[int]:
        ...


@dataclass
class RegistryRecord:
    resource_id: int = 0
    article: str = ""
    vendor_id: int = 0
    vendor_name: str = ""
    folder: str = ""
    document_name: str = ""
    preview_name: str = ""
    document_url: str = ""
    preview_url: str = ""
    created_at: datetime | None = None
    id: int | None = None


@dataclass
class LedgerEntry:
    file: str
    title: str = ""
    image: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    # stored item as read; written back verbatim unless the entry is changed
    source: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    def to_json(self) -> dict[str, Any]:
        if self.source is not None:
            return dict(self.source)
        return {**self.extra, "title": self.title, "file": self.file, "image": self.image}
