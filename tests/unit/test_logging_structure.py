import json
import logging

import pytest

pytest.importorskip("pythonjsonlogger")

from doclink.core.logging import (
    clear_request_context,
    configure_logging,
    get_log_subject,
    get_operation,
    get_request_id,
    log_event,
    set_log_subject,
    set_request_context,
)


REQUIRED_FIELDS = {
    "ts", "levelname", "service", "env", "event_type", "request_id", "operation", "file", "resource_id", "plane", "version", "message",
}


def _last_json_line(stderr: str) -> dict:
    lines = [line for line in stderr.splitlines() if line.strip()]
    assert lines
    return json.loads(lines[-1])


def test_configure_logging_includes_unified_envelope(capsys):
    configure_logging()
    logger = logging.getLogger("test.logging")
    logger.info("event_without_context")

    payload = _last_json_line(capsys.readouterr().err)
    assert REQUIRED_FIELDS.issubset(payload.keys())
    assert payload["message"] == "event_without_context"
    assert payload["service"] == "catalog-doclink-service"


def test_log_event_uses_request_context(capsys):
    configure_logging()
    set_request_context(request_id="req-42", operation="attach")
    log_event("attach.completed", payload={"file": "manuals/x.pdf", "resource_id": 42})

    payload = _last_json_line(capsys.readouterr().err)
    assert payload["event_type"] == "attach.completed"
    assert payload["request_id"] == "req-42"
    assert payload["operation"] == "attach"
    assert payload["file"] == "manuals/x.pdf"
    assert payload["resource_id"] == 42
    clear_request_context()


def test_non_ascii_payload_is_written_verbatim(capsys):
    configure_logging()
    log_event("upload_documents.completed", payload={"folder": "инструкции"})

    raw = [line for line in capsys.readouterr().err.splitlines() if line.strip()][-1]
    assert "инструкции" in raw


def test_request_context_lifecycle():
    clear_request_context()
    assert get_request_id() is None
    set_request_context(request_id="req-abc", operation="detach")
    assert get_request_id() == "req-abc"
    assert get_operation() == "detach"
    clear_request_context()
    assert get_request_id() is None
    assert get_operation() is None


def test_log_event_payload_cannot_clobber_record_attributes(capsys):
    configure_logging()
    log_event("detach.failed", payload={"message": "boom", "name": "x", "error_code": "NOT_FOUND"})

    payload = _last_json_line(capsys.readouterr().err)
    assert payload["message"] == "detach.failed"
    assert payload["ctx_message"] == "boom"
    assert payload["ctx_name"] == "x"
    assert payload["error_code"] == "NOT_FOUND"


def test_log_subject_is_part_of_the_envelope(capsys):
    configure_logging()
    set_request_context(request_id="req-7", operation="detach")
    set_log_subject(file="manuals/x.pdf", resource_id=42)
    assert get_log_subject() == ("manuals/x.pdf", 42)

    log_event("detach.completed")
    logging.getLogger("test.logging").warning("plain_warning")

    lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.strip()]
    assert [(line["file"], line["resource_id"]) for line in lines[-2:]] == [("manuals/x.pdf", 42), ("manuals/x.pdf", 42)]

    clear_request_context()
    assert get_log_subject() == (None, None)
