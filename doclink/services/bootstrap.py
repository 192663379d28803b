from __future__ import annotations

from sqlalchemy.orm import Session

from doclink.core.config import Settings, settings
from doclink.db.repositories.catalog import SqlCatalogResolver
from doclink.db.repositories.ledger_fields import SqlLedgerFieldStore
from doclink.db.repositories.registry import RegistryRepository
from doclink.services.ledger import AttachmentLedger
from doclink.services.preview import PreviewRenderer
from doclink.services.storage import ObjectStore
from doclink.services.sync_orchestrator import SyncOrchestrator


def strip_prefixes_for(cfg: Settings) -> tuple[str, ...]:
    """Public base URLs whose path part is dropped when normalizing references."""
    return tuple(value for value in (cfg.DOCS_BASE_URL, cfg.PREVIEWS_BASE_URL) if value)


def build_ledger(cfg: Settings, db: Session) -> AttachmentLedger:
    return AttachmentLedger(
        SqlLedgerFieldStore(db),
        cfg.LEDGER_FIELD_KEY,
        default_folder=cfg.DEFAULT_FOLDER,
        strip_prefixes=strip_prefixes_for(cfg),
        max_attempts=cfg.LEDGER_WRITE_MAX_ATTEMPTS,
    )


def build_orchestrator(db: Session, cfg: Settings | None = None) -> SyncOrchestrator:
    cfg = cfg or settings
    return SyncOrchestrator(
        cfg,
        ObjectStore.from_settings(cfg),
        PreviewRenderer.from_settings(cfg),
        build_ledger(cfg, db),
        RegistryRepository(db) if cfg.REGISTRY_ENABLED else None,
        SqlCatalogResolver(db, cfg.CATALOG_PRODUCTS_TABLE, cfg.CATALOG_VENDORS_TABLE),
    )
