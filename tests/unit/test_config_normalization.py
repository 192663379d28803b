import pytest

pytest.importorskip("pydantic")

from doclink.core.config import Settings


def test_defaults_match_catalog_conventions():
    cfg = Settings()
    assert cfg.DEFAULT_FOLDER == "manuals"
    assert cfg.LEDGER_FIELD_KEY == "sertif"
    assert cfg.PREVIEW_FORMAT == "webp"
    assert cfg.allowed_document_extensions == {".pdf"}
    assert cfg.max_upload_bytes == 50 * 1024 * 1024


def test_base_paths_and_urls_are_trimmed():
    cfg = Settings(DOCS_BASE_PATH="/srv/docs/", DOCS_BASE_URL="/assets/docs/", SITE_URL="https://shop.example/")
    assert cfg.DOCS_BASE_PATH == "/srv/docs"
    assert cfg.DOCS_BASE_URL == "/assets/docs"
    assert cfg.SITE_URL == "https://shop.example"


def test_root_base_path_is_kept():
    assert Settings(DOCS_BASE_PATH="/").DOCS_BASE_PATH == "/"


def test_from_mapping_accepts_namespaced_lowercase_keys():
    cfg = Settings.from_mapping(
        {
            "doclink.docs_base_path": "/srv/docs",
            "doclink.docs_base_url": "assets/docs",
            "PREVIEWS_BASE_PATH": "/srv/thumbs",
            "previews_base_url": "assets/thumbs",
            "doclink.registry_enabled": "false",
        }
    )
    assert cfg.DOCS_BASE_PATH == "/srv/docs"
    assert cfg.PREVIEWS_BASE_URL == "assets/thumbs"
    assert cfg.REGISTRY_ENABLED is False


def test_unknown_option_is_rejected():
    with pytest.raises(ValueError):
        Settings.from_mapping({"doclink.unknown_option": "1"})


def test_preview_format_is_validated(monkeypatch):
    assert Settings(PREVIEW_FORMAT=".JPEG").PREVIEW_FORMAT == "jpeg"
    monkeypatch.setenv("PREVIEW_FORMAT", "tiff")
    with pytest.raises(ValueError, match="PREVIEW_FORMAT"):
        Settings()


def test_attempt_limits_must_be_positive():
    with pytest.raises(ValueError):
        Settings(LEDGER_WRITE_MAX_ATTEMPTS=0)


def test_allowed_extensions_are_parsed():
    cfg = Settings(ALLOWED_DOCUMENT_EXTENSIONS=".PDF, .pdfa ,")
    assert cfg.allowed_document_extensions == {".pdf", ".pdfa"}
