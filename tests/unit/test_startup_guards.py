import pytest

from doclink.core.config import Settings
from doclink.core.errors import ConfigurationMissing
from doclink.services.startup_guards import missing_storage_settings, validate_storage_settings


def _complete(**overrides) -> Settings:
    values = {
        "DOCS_BASE_PATH": "/srv/docs",
        "DOCS_BASE_URL": "assets/docs",
        "PREVIEWS_BASE_PATH": "/srv/thumbs",
        "PREVIEWS_BASE_URL": "assets/thumbs",
    }
    values.update(overrides)
    return Settings(**values)


def test_startup_succeeds_with_all_storage_settings():
    validate_storage_settings(_complete())


def test_startup_fails_when_storage_settings_are_blank():
    with pytest.raises(ConfigurationMissing) as exc:
        validate_storage_settings(Settings())
    assert exc.value.error_code == "CONFIGURATION_MISSING"
    assert exc.value.missing_keys == ["DOCS_BASE_PATH", "DOCS_BASE_URL", "PREVIEWS_BASE_PATH", "PREVIEWS_BASE_URL"]


def test_whitespace_only_url_counts_as_missing():
    assert missing_storage_settings(_complete(PREVIEWS_BASE_URL="   ")) == ["PREVIEWS_BASE_URL"]


def test_environment_values_are_picked_up(monkeypatch):
    monkeypatch.setenv("DOCS_BASE_PATH", "/env/docs")
    monkeypatch.setenv("DOCS_BASE_URL", "assets/docs")
    monkeypatch.setenv("PREVIEWS_BASE_PATH", "/env/thumbs")
    monkeypatch.setenv("PREVIEWS_BASE_URL", "https://cdn.example/thumbs/")
    cfg = Settings()
    validate_storage_settings(cfg)
    assert cfg.PREVIEWS_BASE_URL == "https://cdn.example/thumbs"
