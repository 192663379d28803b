"""Attach/detach coordination across the object store, registry and ledgers.

There is no transaction spanning the three stores. Attach writes the file
first and treats the registry as best effort; detach removes references
before files so a failure never leaves a ledger pointing at a deleted file.
Every public method returns an :class:`OperationResult` and never raises.
"""

from __future__ import annotations

import logging
import tempfile
import uuid
from collections.abc import Callable
from pathlib import Path

from doclink.core.config import Settings
from doclink.core.errors import CatalogNotFound, DocLinkError, InvalidRequest, NotFound, PreviewFailed, RegistryWriteFailed
from doclink.core.identity import FileIdentity, normalize, sanitize_folder
from doclink.core.logging import clear_request_context, log_event, set_log_subject, set_request_context
from doclink.db.errors import DatabaseOperationError
from doclink.db.repositories.registry import RegistryRepository
from doclink.schemas.results import (
    AttachRequest,
    AttachResult,
    BulkAttachRequest,
    BulkAttachResult,
    BulkTargetResult,
    DetachRequest,
    DetachResult,
    DetachScope,
    Divergence,
    FileListing,
    FileView,
    LedgerEntryView,
    OperationResult,
    ProductView,
    RegistryRowView,
    SearchResult,
    ServiceDescription,
    UploadFile,
    UploadItemResult,
    UploadResult,
    UsageResult,
    VendorView,
)
from doclink.services.cancellation import CancellationToken, is_cancelled
from doclink.services.contracts import CatalogMatch, CatalogResolver, LedgerEntry, RegistryRecord
from doclink.services.ledger import AttachmentLedger
from doclink.services.preview import PreviewRenderer, preview_name_for
from doclink.services.startup_guards import validate_storage_settings
from doclink.services.storage import DOCUMENTS, PREVIEWS, ObjectStore, slugify_filename

LOGGER = logging.getLogger(__name__)

ATTACHED = "attached"
NOT_FOUND = "notFound"
ERROR = "error"
CANCELLED = "cancelled"


def _diagnostic(exc: DocLinkError) -> str:
    return f"{exc.error_code}: {exc}"


class _StoredDocument:
    def __init__(self, document: FileIdentity, preview: FileIdentity | None, diagnostics: list[str]):
        self.document = document
        self.preview = preview
        self.diagnostics = diagnostics


class SyncOrchestrator:
    def __init__(
        self,
        settings: Settings,
        store: ObjectStore,
        renderer: PreviewRenderer,
        ledger: AttachmentLedger,
        registry: RegistryRepository | None,
        catalog: CatalogResolver,
    ):
        validate_storage_settings(settings)
        self.settings = settings
        self.store = store
        self.renderer = renderer
        self.ledger = ledger
        self.registry = registry
        self.catalog = catalog

    @property
    def registry_enabled(self) -> bool:
        return bool(self.settings.REGISTRY_ENABLED and self.registry is not None)

    def _run(self, operation: str, func: Callable[[], OperationResult]) -> OperationResult:
        set_request_context(request_id=str(uuid.uuid4()), operation=operation)
        try:
            return func()
        except DocLinkError as exc:
            log_event(
                f"{operation}.failed",
                level=logging.WARNING,
                payload={"error_code": exc.error_code, "error_message": str(exc), "retryable": exc.retryable},
            )
            return OperationResult(success=False, error_code=exc.error_code, message=str(exc), retryable=exc.retryable)
        except DatabaseOperationError as exc:
            log_event(
                f"{operation}.failed",
                level=logging.WARNING,
                payload={"error_code": exc.error_code, "sqlstate": exc.sqlstate, "retryable": exc.retryable},
            )
            return OperationResult(success=False, error_code=exc.error_code, message=str(exc), retryable=exc.retryable)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("orchestrator_unexpected_error", extra={"event": "orchestrator_unexpected_error", "operation": operation})
            return OperationResult(success=False, error_code="INTERNAL_ERROR", message=str(exc))
        finally:
            clear_request_context()

    def _folder_or_default(self, folder: str) -> str:
        return sanitize_folder(folder) or sanitize_folder(self.settings.DEFAULT_FOLDER)

    def _identity(self, raw: str) -> FileIdentity:
        identity = self.ledger.identity_of(raw)
        if identity.is_empty:
            raise InvalidRequest("Specify a file as folder/name, URL or filename")
        return identity

    def _resolve(self, article: str, resource_id: int, vendor_id: int) -> CatalogMatch | None:
        if resource_id > 0:
            return self.catalog.resolve_by_resource_id(resource_id)
        if article:
            return self.catalog.resolve_by_article(article, vendor_id or None)
        return None

    def _preview_identity(self, document: FileIdentity) -> FileIdentity:
        return FileIdentity(folder=document.folder, name=preview_name_for(document.name, self.settings.PREVIEW_FORMAT))

    def _store_document(self, folder: str, display_name: str, payload: bytes) -> _StoredDocument:
        if not payload:
            raise InvalidRequest("Document payload is empty")
        if len(payload) > self.settings.max_upload_bytes:
            raise InvalidRequest(f"Document exceeds {self.settings.MAX_UPLOAD_MB} MB")

        name = slugify_filename(Path(display_name.replace("\\", "/")).name or "file.pdf")
        extension = Path(name).suffix.lower()
        if extension not in self.settings.allowed_document_extensions:
            raise InvalidRequest(f"Only {self.settings.ALLOWED_DOCUMENT_EXTENSIONS} documents are accepted, got '{extension}'")

        requested = FileIdentity(folder=self._folder_or_default(folder), name=name)
        document = self.store.put(DOCUMENTS, requested, payload, force_extension=extension)
        diagnostics: list[str] = []
        preview = self._render_preview(document, diagnostics) if self.settings.PREVIEW_ENABLED else None
        return _StoredDocument(document, preview, diagnostics)

    def _render_preview(self, document: FileIdentity, diagnostics: list[str]) -> FileIdentity | None:
        wanted = self._preview_identity(document)
        with tempfile.TemporaryDirectory(prefix="doclink-") as workdir:
            target = Path(workdir) / wanted.name
            rendered = self.renderer.render(self.store.path_for(DOCUMENTS, document), target)
            diagnostics.extend(rendered.diagnostics)
            if not rendered.ok:
                diagnostics.append(_diagnostic(PreviewFailed(f"No preview for {document.rel}")))
                log_event("preview.failed", level=logging.WARNING, payload={"file": document.rel, "diagnostics": rendered.diagnostics})
                return None
            try:
                return self.store.put_file(PREVIEWS, wanted, target, force_extension=self.settings.PREVIEW_FORMAT)
            except DocLinkError as exc:
                diagnostics.append(_diagnostic(exc))
                return None

    def _registry_insert(self, record: RegistryRecord, diagnostics: list[str]) -> int | None:
        if not self.registry_enabled:
            return None
        try:
            return self.registry.insert(record)
        except (DocLinkError, DatabaseOperationError) as exc:
            failure = RegistryWriteFailed(f"Registry insert failed for {record.folder}/{record.document_name}: {exc}")
            diagnostics.append(_diagnostic(failure))
            log_event("registry.insert_failed", level=logging.WARNING, payload={"file": f"{record.folder}/{record.document_name}"})
            return None

    def _record_for(
        self, stored: _StoredDocument, match: CatalogMatch | None, resource_id: int, article: str, vendor_id: int, vendor_name: str
    ) -> RegistryRecord:
        preview = stored.preview
        return RegistryRecord(
            resource_id=resource_id,
            article=(match.article if match and match.article else article),
            vendor_id=(match.vendor_id if match and match.vendor_id else vendor_id),
            vendor_name=vendor_name,
            folder=stored.document.folder,
            document_name=stored.document.name,
            preview_name=preview.name if preview else "",
            document_url=self.store.url_for(DOCUMENTS, stored.document),
            preview_url=self.store.url_for(PREVIEWS, preview) if preview else "",
        )

    def _row_view(self, record: RegistryRecord) -> RegistryRowView:
        document = FileIdentity(folder=record.folder, name=record.document_name)
        preview = FileIdentity(folder=record.folder, name=record.preview_name)
        return RegistryRowView(
            id=record.id,
            resource_id=record.resource_id,
            article=record.article,
            vendor_id=record.vendor_id,
            vendor_name=record.vendor_name,
            identity=document.rel,
            folder=record.folder,
            document_name=record.document_name,
            preview_name=record.preview_name,
            document_url=self.store.url_for(DOCUMENTS, document),
            preview_url=self.store.url_for(PREVIEWS, preview),
            created_at=record.created_at,
        )

    def _entry_view(self, entry: LedgerEntry) -> LedgerEntryView:
        document = normalize(entry.file)
        preview = normalize(entry.image, document.folder) if entry.image else FileIdentity("", "")
        return LedgerEntryView(
            file=entry.file,
            title=entry.title,
            image=entry.image,
            document_url=self.store.url_for(DOCUMENTS, document),
            preview_url=self.store.url_for(PREVIEWS, preview),
        )

    @staticmethod
    def _product_view(match: CatalogMatch) -> ProductView:
        return ProductView(
            resource_id=match.resource_id,
            article=match.article,
            vendor_id=match.vendor_id,
            vendor_name=match.vendor_name,
            pagetitle=match.pagetitle,
        )

    def _vendor_name(self, match: CatalogMatch | None, vendor_id: int) -> str:
        if match is not None and match.vendor_name:
            return match.vendor_name
        vendor_id = match.vendor_id if match is not None and match.vendor_id else vendor_id
        return self.catalog.vendor_name(vendor_id) if vendor_id > 0 else ""

    def attach(self, request: AttachRequest) -> OperationResult:
        return self._run("attach", lambda: self._attach(request))

    def _attach(self, request: AttachRequest) -> OperationResult:
        article = request.article.strip()
        if not article and request.resource_id <= 0:
            raise InvalidRequest("Specify an article or a resource id")

        diagnostics: list[str] = []
        match = self._resolve(article, request.resource_id, request.vendor_id)
        if match is None:
            diagnostics.append(_diagnostic(CatalogNotFound(f"No product for article '{article}' resource {request.resource_id}")))
        vendor_name = self._vendor_name(match, request.vendor_id)

        try:
            stored = self._store_document(request.folder, request.display_name or f"{article or 'file'}.pdf", request.payload)
        except DocLinkError as exc:
            log_event("attach.storage_failed", level=logging.WARNING, payload={"error_code": exc.error_code, "article": article})
            raise
        diagnostics.extend(stored.diagnostics)

        # an explicit resource id is authoritative; the catalog only enriches it
        resource_id = request.resource_id if request.resource_id > 0 else (match.resource_id if match else 0)
        set_log_subject(file=stored.document.rel, resource_id=resource_id)
        ledger_outcome = None
        if resource_id > 0:
            entry = LedgerEntry(
                file=stored.document.rel,
                title=request.title or (match.pagetitle if match else "") or stored.document.name,
                image=stored.preview.rel if stored.preview else "",
            )
            try:
                ledger_outcome = self.ledger.append(resource_id, entry)
            except DocLinkError as exc:
                diagnostics.append(_diagnostic(exc))
                log_event("attach.ledger_failed", level=logging.WARNING, payload={"resource_id": resource_id, "error_code": exc.error_code})

        record = self._record_for(stored, match, resource_id, article, request.vendor_id, vendor_name)
        row_id = self._registry_insert(record, diagnostics)

        result = AttachResult(
            identity=stored.document.rel,
            folder=stored.document.folder,
            file=stored.document.name,
            image=stored.preview.rel if stored.preview else "",
            resource_id=resource_id,
            article=record.article,
            vendor_id=record.vendor_id,
            vendor_name=vendor_name,
            document_url=record.document_url,
            preview_url=record.preview_url,
            preview_created=stored.preview is not None,
            ledger_updated=ledger_outcome is not None,
            ledger_outcome=ledger_outcome,
            registry_row_id=row_id,
        )
        log_event(
            "attach.completed",
            payload={
                "file": result.identity,
                "resource_id": resource_id,
                "ledger_outcome": ledger_outcome,
                "registry_row_id": row_id,
                "preview_created": result.preview_created,
            },
        )
        return OperationResult(success=True, payload=result, diagnostics=diagnostics)

    def bulk_attach(self, request: BulkAttachRequest, cancel_token: CancellationToken | None = None) -> OperationResult:
        return self._run("bulk_attach", lambda: self._bulk_attach(request, cancel_token))

    def _bulk_attach(self, request: BulkAttachRequest, cancel_token: CancellationToken | None) -> OperationResult:
        if not request.targets:
            raise InvalidRequest("Bulk attach needs at least one target")

        first_article = next((target.article.strip() for target in request.targets if target.article.strip()), "")
        stored = self._store_document(request.folder, request.display_name or f"{first_article or 'file'}.pdf", request.payload)
        diagnostics = list(stored.diagnostics)
        result = BulkAttachResult(
            identity=stored.document.rel,
            document_url=self.store.url_for(DOCUMENTS, stored.document),
            preview_url=self.store.url_for(PREVIEWS, stored.preview) if stored.preview else "",
            preview_created=stored.preview is not None,
        )

        for target in request.targets:
            item = BulkTargetResult(article=target.article.strip(), resource_id=target.resource_id, vendor_id=target.vendor_id, status=ERROR)
            result.items.append(item)
            if is_cancelled(cancel_token):
                item.status = CANCELLED
                result.cancelled += 1
                continue
            try:
                match = self._resolve(item.article, target.resource_id, target.vendor_id)
                if match is None and target.resource_id <= 0:
                    item.status = NOT_FOUND
                    item.error_code = CatalogNotFound.error_code
                    result.not_found += 1
                    continue
                item_diagnostics: list[str] = []
                if match is None:
                    item_diagnostics.append(_diagnostic(CatalogNotFound(f"Resource {target.resource_id} is not in the catalog")))
                item.resource_id = target.resource_id if target.resource_id > 0 else match.resource_id
                item.vendor_id = (match.vendor_id if match else 0) or target.vendor_id
                item.ledger_outcome = self.ledger.append(
                    item.resource_id,
                    LedgerEntry(
                        file=stored.document.rel,
                        title=request.title or (match.pagetitle if match else "") or stored.document.name,
                        image=stored.preview.rel if stored.preview else "",
                    ),
                )
                record = self._record_for(
                    stored, match, item.resource_id, item.article, target.vendor_id, self._vendor_name(match, target.vendor_id)
                )
                item.registry_row_id = self._registry_insert(record, item_diagnostics)
                if item_diagnostics:
                    item.message = "; ".join(item_diagnostics)
                item.status = ATTACHED
                result.attached += 1
            except (DocLinkError, DatabaseOperationError) as exc:
                item.error_code = exc.error_code
                item.message = str(exc)
                result.errors += 1

        log_event(
            "bulk_attach.completed",
            payload={
                "file": result.identity,
                "targets": len(request.targets),
                "attached": result.attached,
                "not_found": result.not_found,
                "errors": result.errors,
                "cancelled": result.cancelled,
            },
        )
        return OperationResult(success=True, payload=result, diagnostics=diagnostics)

    def upload_documents(
        self, folder: str, files: list[UploadFile], cancel_token: CancellationToken | None = None
    ) -> OperationResult:
        return self._run("upload_documents", lambda: self._upload_documents(folder, files, cancel_token))

    def _upload_documents(self, folder: str, files: list[UploadFile], cancel_token: CancellationToken | None) -> OperationResult:
        if not files:
            raise InvalidRequest("No files received")
        result = UploadResult(folder=self._folder_or_default(folder))
        diagnostics: list[str] = []
        for upload in files:
            if is_cancelled(cancel_token):
                result.items.append(UploadItemResult(name=upload.name, status=CANCELLED))
                continue
            try:
                stored = self._store_document(result.folder, upload.name, upload.payload)
            except DocLinkError as exc:
                result.items.append(UploadItemResult(name=upload.name, status=ERROR, error_code=exc.error_code, message=str(exc)))
                result.errors += 1
                continue
            diagnostics.extend(f"{upload.name}: {line}" for line in stored.diagnostics)
            result.items.append(
                UploadItemResult(
                    name=upload.name,
                    status="stored",
                    identity=stored.document.rel,
                    document_url=self.store.url_for(DOCUMENTS, stored.document),
                    preview_url=self.store.url_for(PREVIEWS, stored.preview) if stored.preview else "",
                    preview_created=stored.preview is not None,
                )
            )
            result.stored += 1
        log_event("upload_documents.completed", payload={"folder": result.folder, "stored": result.stored, "errors": result.errors})
        return OperationResult(success=True, payload=result, diagnostics=diagnostics)

    def detach(self, request: DetachRequest, cancel_token: CancellationToken | None = None) -> OperationResult:
        return self._run("detach", lambda: self._detach(request, cancel_token))

    def _detach(self, request: DetachRequest, cancel_token: CancellationToken | None) -> OperationResult:
        identity = self._identity(request.file)
        set_log_subject(file=identity.rel, resource_id=request.resource_id if request.resource_id > 0 else None)
        result = DetachResult(scope=request.scope, identity=identity.rel)

        if request.scope == DetachScope.LEDGER:
            if request.resource_id <= 0:
                raise InvalidRequest("Ledger detach needs a resource id")
            result.checked = 1
            result.items_removed = self.ledger.remove_by_identity(request.resource_id, identity)
            if result.items_removed:
                result.removed_from.append(request.resource_id)
        elif request.scope == DetachScope.REGISTRY:
            preview_names = self._registry_preview_names(identity)
            result.registry_rows_deleted = self._registry_delete(identity)
            if request.delete_files:
                result.files_deleted = self._delete_files(identity, preview_names)
        elif request.scope == DetachScope.BULK_LEDGER:
            self._bulk_ledger_detach(identity, result, cancel_token)
        else:
            preview_names = self._registry_preview_names(identity)
            self._bulk_ledger_detach(identity, result, cancel_token)
            if result.errors or result.cancelled:
                return self._detach_aborted(result, "ledger removal incomplete; files kept")
            result.registry_rows_deleted = self._registry_delete(identity)
            result.files_deleted = self._delete_files(identity, preview_names)

        log_event(
            "detach.completed",
            payload={
                "scope": request.scope.value,
                "file": identity.rel,
                "removed_from": result.removed_from,
                "items_removed": result.items_removed,
                "registry_rows_deleted": result.registry_rows_deleted,
                "files_deleted": result.files_deleted,
                "errors": len(result.errors),
            },
        )
        if result.errors:
            return OperationResult(
                success=False,
                payload=result,
                diagnostics=list(result.errors),
                error_code="DETACH_PARTIAL",
                message=f"{len(result.errors)} ledger(s) could not be updated",
            )
        return OperationResult(success=True, payload=result)

    def _detach_aborted(self, result: DetachResult, reason: str) -> OperationResult:
        log_event("detach.aborted", level=logging.WARNING, payload={"file": result.identity, "reason": reason, "errors": result.errors})
        return OperationResult(
            success=False,
            payload=result,
            diagnostics=list(result.errors),
            error_code="DETACH_ABORTED",
            message=reason,
        )

    def _bulk_ledger_detach(self, identity: FileIdentity, result: DetachResult, cancel_token: CancellationToken | None) -> None:
        usages = self.ledger.find_usages(identity, cancel_token=cancel_token)
        for resource_id in usages:
            if is_cancelled(cancel_token):
                result.cancelled = True
                break
            result.checked += 1
            try:
                removed = self.ledger.remove_by_identity(resource_id, identity)
            except DocLinkError as exc:
                result.errors.append(f"{resource_id}: {_diagnostic(exc)}")
                continue
            if removed:
                result.removed_from.append(resource_id)
                result.items_removed += removed
        if is_cancelled(cancel_token):
            result.cancelled = True

    def _registry_preview_names(self, identity: FileIdentity) -> set[str]:
        names = {self._preview_identity(identity).name}
        if self.registry_enabled:
            names.update(row.preview_name for row in self.registry.find_by_identity(identity.folder, identity.name) if row.preview_name)
        return names

    def _registry_delete(self, identity: FileIdentity) -> int:
        if not self.registry_enabled:
            return 0
        return self.registry.delete_by_identity(identity.folder, identity.name)

    def _delete_files(self, identity: FileIdentity, preview_names: set[str]) -> list[str]:
        deleted: list[str] = []
        if self.store.delete(DOCUMENTS, identity):
            deleted.append(f"{DOCUMENTS}:{identity.rel}")
        for name in sorted(preview_names):
            preview = FileIdentity(folder=identity.folder, name=name)
            if self.store.delete(PREVIEWS, preview):
                deleted.append(f"{PREVIEWS}:{preview.rel}")
        return deleted

    def delete_registry_row(self, row_id: int) -> OperationResult:
        return self._run("delete_registry_row", lambda: self._delete_registry_row(row_id))

    def _delete_registry_row(self, row_id: int) -> OperationResult:
        if int(row_id) <= 0:
            raise InvalidRequest("Specify a registry row id")
        if not self.registry_enabled:
            raise InvalidRequest("Registry is disabled")
        deleted = self.registry.delete_by_id(row_id)
        if not deleted:
            raise NotFound(f"Registry row {row_id} does not exist")
        log_event("registry.row_deleted", payload={"row_id": int(row_id)})
        return OperationResult(success=True, payload={"deleted": deleted})

    def search(self, article: str = "", vendor_id: int = 0, resource_id: int = 0) -> OperationResult:
        return self._run("search", lambda: self._search(article, vendor_id, resource_id))

    def _search(self, article: str, vendor_id: int, resource_id: int) -> OperationResult:
        article = (article or "").strip()
        if not article and resource_id <= 0:
            raise InvalidRequest("Specify an article or a resource id")

        diagnostics: list[str] = []
        match = self._resolve(article, resource_id, vendor_id)
        if match is None:
            diagnostics.append(_diagnostic(CatalogNotFound(f"No product for article '{article}' resource {resource_id}")))
            return OperationResult(success=True, payload=SearchResult(), diagnostics=diagnostics)

        article = article or match.article
        vendor_id = vendor_id or match.vendor_id

        records: list[RegistryRecord] = []
        if not self.registry_enabled:
            diagnostics.append("registry disabled")
        elif article:
            records = self.registry.find_by_article(article, vendor_id or None)
        else:
            records = self.registry.find_by_resource(match.resource_id)
            diagnostics.append("registry: no article, matched by resource id")

        set_log_subject(resource_id=match.resource_id)
        entries = self.ledger.read(match.resource_id)

        # rows recorded against other products sharing the article are shown but not compared
        registry_files = {
            FileIdentity(folder=row.folder, name=row.document_name).rel
            for row in records
            if row.resource_id in (0, match.resource_id)
        }
        ledger_files = {entry.file for entry in entries}
        divergence = Divergence(
            only_in_registry=sorted(registry_files - ledger_files),
            only_in_ledger=sorted(ledger_files - registry_files) if self.registry_enabled else [],
        )
        if not divergence.consistent:
            log_event(
                "search.divergence",
                payload={
                    "resource_id": match.resource_id,
                    "only_in_registry": divergence.only_in_registry,
                    "only_in_ledger": divergence.only_in_ledger,
                },
            )

        result = SearchResult(
            resource=self._product_view(match),
            registry=[self._row_view(row) for row in records],
            ledger=[self._entry_view(entry) for entry in entries],
            divergence=divergence,
        )
        return OperationResult(success=True, payload=result, diagnostics=diagnostics)

    def file_usage(self, file: str, cancel_token: CancellationToken | None = None) -> OperationResult:
        return self._run("file_usage", lambda: self._file_usage(file, cancel_token))

    def _file_usage(self, file: str, cancel_token: CancellationToken | None) -> OperationResult:
        identity = self._identity(file)
        set_log_subject(file=identity.rel)
        diagnostics: list[str] = []
        records: list[RegistryRecord] = []
        if self.registry_enabled:
            records = self.registry.find_by_identity(identity.folder, identity.name)
        else:
            diagnostics.append("registry disabled")

        usages = self.ledger.find_usages(identity, cancel_token=cancel_token)
        products = self.catalog.lookup_many(usages) if usages else {}
        resources = [
            self._product_view(products[rid]) if rid in products else ProductView(resource_id=rid)
            for rid in usages
        ]
        missing = [rid for rid in usages if rid not in products]
        if missing:
            diagnostics.append(f"ledger references resources missing from catalog: {missing}")

        result = UsageResult(
            identity=identity.rel,
            document_exists=self.store.exists(DOCUMENTS, identity),
            registry=[self._row_view(row) for row in records],
            ledger_resources=resources,
        )
        log_event("file_usage.completed", payload={"file": identity.rel, "registry_rows": len(records), "ledger_resources": len(usages)})
        return OperationResult(success=True, payload=result, diagnostics=diagnostics)

    def list_folders(self) -> OperationResult:
        return self._run("list_folders", lambda: OperationResult(success=True, payload=self.store.list_folders(DOCUMENTS)))

    def list_files(self, folder: str = "") -> OperationResult:
        return self._run("list_files", lambda: self._list_files(folder))

    def _list_files(self, folder: str) -> OperationResult:
        folder = self._folder_or_default(folder)
        listing = FileListing(folder=folder)
        for name in self.store.list(DOCUMENTS, folder):
            document = FileIdentity(folder=folder, name=name)
            preview = self._preview_identity(document)
            has_preview = self.store.exists(PREVIEWS, preview)
            listing.files.append(
                FileView(
                    name=name,
                    identity=document.rel,
                    document_url=self.store.url_for(DOCUMENTS, document),
                    preview_name=preview.name,
                    preview_url=self.store.url_for(PREVIEWS, preview) if has_preview else "",
                    has_preview=has_preview,
                )
            )
        return OperationResult(success=True, payload=listing)

    def lookup_product(self, article: str = "", vendor_id: int = 0, resource_id: int = 0) -> OperationResult:
        return self._run("lookup_product", lambda: self._lookup_product(article, vendor_id, resource_id))

    def _lookup_product(self, article: str, vendor_id: int, resource_id: int) -> OperationResult:
        article = (article or "").strip()
        if resource_id > 0:
            match = self.catalog.resolve_by_resource_id(resource_id)
            matches = [match] if match else []
        elif article:
            matches = self.catalog.lookup_products(article, vendor_id or None)
        else:
            raise InvalidRequest("Specify an article or a resource id")
        return OperationResult(success=True, payload=[self._product_view(match) for match in matches])

    def list_vendors(self) -> OperationResult:
        return self._run(
            "list_vendors",
            lambda: OperationResult(
                success=True,
                payload=[VendorView(vendor_id=vendor.vendor_id, name=vendor.name) for vendor in self.catalog.list_vendors()],
            ),
        )

    def describe(self) -> OperationResult:
        cfg = self.settings
        return OperationResult(
            success=True,
            payload=ServiceDescription(
                service=cfg.APP_NAME,
                version=cfg.APP_VERSION,
                docs_base_path=cfg.DOCS_BASE_PATH,
                docs_base_url=cfg.DOCS_BASE_URL,
                previews_base_path=cfg.PREVIEWS_BASE_PATH,
                previews_base_url=cfg.PREVIEWS_BASE_URL,
                default_folder=sanitize_folder(cfg.DEFAULT_FOLDER),
                ledger_field_key=cfg.LEDGER_FIELD_KEY,
                registry_enabled=self.registry_enabled,
                preview_enabled=cfg.PREVIEW_ENABLED,
                preview_format=cfg.PREVIEW_FORMAT,
            ),
        )
