from __future__ import annotations

import contextvars
import json
import logging
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger

from doclink.core.config import settings

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
_operation_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("operation", default=None)
_file_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("file", default=None)
_resource_id_ctx: contextvars.ContextVar[int | None] = contextvars.ContextVar("resource_id", default=None)

# attributes LogRecord owns; extra keys with these names make makeRecord raise
RESERVED_RECORD_KEYS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class JsonLineFormatter(jsonlogger.JsonFormatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = super().format(record)
        return json.dumps(json.loads(payload), separators=(",", ":"), ensure_ascii=False)


class _StructuredContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id") or record.request_id is None:
            record.request_id = _request_id_ctx.get()
        if not hasattr(record, "operation") or record.operation is None:
            record.operation = _operation_ctx.get()
        if not hasattr(record, "file") or record.file is None:
            record.file = _file_ctx.get()
        if not hasattr(record, "resource_id") or record.resource_id is None:
            record.resource_id = _resource_id_ctx.get()
        if not hasattr(record, "event_type"):
            record.event_type = None
        if not hasattr(record, "plane"):
            record.plane = None
        if not hasattr(record, "service"):
            record.service = settings.APP_NAME
        if not hasattr(record, "env"):
            record.env = settings.APP_ENV
        if not hasattr(record, "version"):
            record.version = settings.APP_VERSION
        if not hasattr(record, "ts"):
            record.ts = datetime.now(timezone.utc).isoformat()
        return True


def set_request_context(*, request_id: str | None = None, operation: str | None = None) -> None:
    _request_id_ctx.set(request_id)
    _operation_ctx.set(operation)
    _file_ctx.set(None)
    _resource_id_ctx.set(None)


def set_log_subject(*, file: str | None = None, resource_id: int | None = None) -> None:
    """Bind the document and/or product the current operation works on."""
    if file is not None:
        _file_ctx.set(file)
    if resource_id is not None:
        _resource_id_ctx.set(resource_id)


def clear_request_context() -> None:
    set_request_context(request_id=None, operation=None)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def get_operation() -> str | None:
    return _operation_ctx.get()


def get_log_subject() -> tuple[str | None, int | None]:
    return _file_ctx.get(), _resource_id_ctx.get()


def safe_extra(payload: dict[str, Any]) -> dict[str, Any]:
    return {(f"ctx_{key}" if key in RESERVED_RECORD_KEYS else key): value for key, value in payload.items()}


def log_event(
    event_type: str,
    *,
    level: int = logging.INFO,
    payload: dict[str, Any] | None = None,
    request_id: str | None = None,
    operation: str | None = None,
    plane: str = "data",
) -> None:
    logger = logging.getLogger("doclink.observability")
    extra = {
        "event_type": event_type,
        "plane": plane,
        "request_id": request_id if request_id is not None else get_request_id(),
        "operation": operation if operation is not None else get_operation(),
        "file": _file_ctx.get(),
        "resource_id": _resource_id_ctx.get(),
        "ts": datetime.now(timezone.utc).isoformat(),
        "service": settings.APP_NAME,
        "env": settings.APP_ENV,
        "version": settings.APP_VERSION,
    }
    if payload:
        extra.update(safe_extra(payload))
    logger.log(level, event_type, extra=extra)


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler()
    handler.addFilter(_StructuredContextFilter())
    formatter = JsonLineFormatter(
        "%(ts)s %(levelname)s %(service)s %(env)s %(event_type)s %(request_id)s %(operation)s "
        "%(file)s %(resource_id)s %(plane)s %(version)s %(message)s"
    )
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    root.handlers = [handler]
