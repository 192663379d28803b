from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class OperationResult(BaseModel):
    success: bool
    payload: Any = None
    diagnostics: list[str] = []
    error_code: str | None = None
    message: str | None = None
    retryable: bool = False


class AttachTarget(BaseModel):
    article: str = ""
    resource_id: int = Field(default=0, ge=0)
    vendor_id: int = Field(default=0, ge=0)


class AttachRequest(AttachTarget):
    payload: bytes
    folder: str = ""
    display_name: str = ""
    title: str = ""


class BulkAttachRequest(BaseModel):
    targets: list[AttachTarget]
    payload: bytes
    folder: str = ""
    display_name: str = ""
    title: str = ""


class UploadFile(BaseModel):
    name: str
    payload: bytes


class DetachScope(str, Enum):
    LEDGER = "ledger"
    REGISTRY = "registry"
    BULK_LEDGER = "bulk_ledger"
    FILESYSTEM_AND_ALL = "filesystem_and_all"


class DetachRequest(BaseModel):
    file: str
    scope: DetachScope
    resource_id: int = Field(default=0, ge=0)
    delete_files: bool = False


class ProductView(BaseModel):
    resource_id: int
    article: str = ""
    vendor_id: int = 0
    vendor_name: str = ""
    pagetitle: str = ""


class VendorView(BaseModel):
    vendor_id: int
    name: str


class RegistryRowView(BaseModel):
    id: int | None = None
    resource_id: int
    article: str
    vendor_id: int
    vendor_name: str
    identity: str
    folder: str
    document_name: str
    preview_name: str
    document_url: str
    preview_url: str
    created_at: datetime | None = None


class LedgerEntryView(BaseModel):
    file: str
    title: str
    image: str
    document_url: str
    preview_url: str


class AttachResult(BaseModel):
    identity: str
    folder: str
    file: str
    image: str = ""
    resource_id: int = 0
    article: str = ""
    vendor_id: int = 0
    vendor_name: str = ""
    document_url: str
    preview_url: str = ""
    preview_created: bool = False
    ledger_updated: bool = False
    ledger_outcome: str | None = None
    registry_row_id: int | None = None


class BulkTargetResult(BaseModel):
    article: str = ""
    resource_id: int = 0
    vendor_id: int = 0
    status: str
    ledger_outcome: str | None = None
    registry_row_id: int | None = None
    error_code: str | None = None
    message: str | None = None


class BulkAttachResult(BaseModel):
    identity: str
    document_url: str
    preview_url: str = ""
    preview_created: bool = False
    items: list[BulkTargetResult] = []
    attached: int = 0
    not_found: int = 0
    errors: int = 0
    cancelled: int = 0


class UploadItemResult(BaseModel):
    name: str
    status: str
    identity: str = ""
    document_url: str = ""
    preview_url: str = ""
    preview_created: bool = False
    error_code: str | None = None
    message: str | None = None


class UploadResult(BaseModel):
    folder: str
    items: list[UploadItemResult] = []
    stored: int = 0
    errors: int = 0


class DetachResult(BaseModel):
    scope: DetachScope
    identity: str
    checked: int = 0
    removed_from: list[int] = []
    items_removed: int = 0
    registry_rows_deleted: int = 0
    files_deleted: list[str] = []
    errors: list[str] = []
    cancelled: bool = False


class Divergence(BaseModel):
    only_in_registry: list[str] = []
    only_in_ledger: list[str] = []

    @property
    def consistent(self) -> bool:
        return not self.only_in_registry and not self.only_in_ledger


class SearchResult(BaseModel):
    resource: ProductView | None = None
    registry: list[RegistryRowView] = []
    ledger: list[LedgerEntryView] = []
    divergence: Divergence = Field(default_factory=Divergence)


class UsageResult(BaseModel):
    identity: str
    document_exists: bool
    registry: list[RegistryRowView] = []
    ledger_resources: list[ProductView] = []


class FileView(BaseModel):
    name: str
    identity: str
    document_url: str
    preview_name: str
    preview_url: str = ""
    has_preview: bool = False


class FileListing(BaseModel):
    folder: str
    files: list[FileView] = []


class ServiceDescription(BaseModel):
    service: str
    version: str
    docs_base_path: str
    docs_base_url: str
    previews_base_path: str
    previews_base_url: str
    default_folder: str
    ledger_field_key: str
    registry_enabled: bool
    preview_enabled: bool
    preview_format: str
