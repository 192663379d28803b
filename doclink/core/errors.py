from __future__ import annotations


class DocLinkError(RuntimeError):
    error_code = "DOCLINK_ERROR"
    retryable = False

    def __init__(self, message: str, *, error_code: str | None = None, retryable: bool | None = None) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code
        if retryable is not None:
            self.retryable = retryable


class ConfigurationMissing(DocLinkError):
    error_code = "CONFIGURATION_MISSING"

    def __init__(self, missing_keys: list[str]) -> None:
        super().__init__(f"Required settings are blank: {', '.join(missing_keys)}")
        self.missing_keys = list(missing_keys)


class InvalidRequest(DocLinkError):
    error_code = "INVALID_REQUEST"


class CatalogNotFound(DocLinkError):
    error_code = "CATALOG_NOT_FOUND"


class StorageUnavailable(DocLinkError):
    error_code = "STORAGE_UNAVAILABLE"


class PreviewFailed(DocLinkError):
    error_code = "PREVIEW_FAILED"


class LedgerWriteFailed(DocLinkError):
    error_code = "LEDGER_WRITE_FAILED"


class RegistryWriteFailed(DocLinkError):
    error_code = "REGISTRY_WRITE_FAILED"


class ConcurrentModification(DocLinkError):
    error_code = "CONCURRENT_MODIFICATION"
    retryable = True


class NotFound(DocLinkError):
    error_code = "NOT_FOUND"
