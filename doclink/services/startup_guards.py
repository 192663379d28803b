from __future__ import annotations

import logging

from doclink.core.config import Settings
from doclink.core.errors import ConfigurationMissing

logger = logging.getLogger(__name__)

REQUIRED_STORAGE_SETTINGS = ("DOCS_BASE_PATH", "DOCS_BASE_URL", "PREVIEWS_BASE_PATH", "PREVIEWS_BASE_URL")


def missing_storage_settings(cfg: Settings) -> list[str]:
    return [key for key in REQUIRED_STORAGE_SETTINGS if not str(getattr(cfg, key, "") or "").strip()]


def validate_storage_settings(cfg: Settings) -> None:
    missing = missing_storage_settings(cfg)
    if missing:
        logger.error("startup_storage_settings_missing", extra={"event": "startup_storage_settings_missing", "missing": missing})
        raise ConfigurationMissing(missing)
    logger.info(
        "startup_storage_settings_ok",
        extra={
            "event": "startup_storage_settings_ok",
            "docs_base_path": cfg.DOCS_BASE_PATH,
            "previews_base_path": cfg.PREVIEWS_BASE_PATH,
            "registry_enabled": cfg.REGISTRY_ENABLED,
        },
    )
