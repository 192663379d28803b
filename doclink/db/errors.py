from __future__ import annotations

_SQLSTATE_CODES: dict[str, tuple[str, bool]] = {
    "23505": ("unique_violation", False),
    "23503": ("foreign_key_violation", False),
    "23502": ("not_null_violation", False),
    "40001": ("serialization_failure", True),
    "40P01": ("deadlock_detected", True),
    "57014": ("query_canceled", True),
    "08006": ("connection_failure", True),
}


class DatabaseOperationError(RuntimeError):
    def __init__(self, *, error_code: str, sqlstate: str | None, retryable: bool) -> None:
        super().__init__(error_code)
        self.error_code = error_code
        self.sqlstate = sqlstate
        self.retryable = retryable


def sqlstate_of(exc: BaseException) -> str | None:
    orig = getattr(exc, "orig", None)
    for candidate in (getattr(orig, "sqlstate", None), getattr(orig, "pgcode", None)):
        if candidate:
            return str(candidate)
    return None


def map_database_error(exc: BaseException) -> DatabaseOperationError:
    sqlstate = sqlstate_of(exc)
    error_code, retryable = _SQLSTATE_CODES.get(sqlstate or "", ("database_error", False))
    return DatabaseOperationError(error_code=error_code, sqlstate=sqlstate, retryable=retryable)
