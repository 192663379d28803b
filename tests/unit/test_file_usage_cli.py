import json

import pytest

from doclink.cli import file_usage


def test_parse_args_requires_file_negative():
    with pytest.raises(SystemExit):
        file_usage.parse_args([])


def test_parse_args_delete_files_needs_detach_negative():
    with pytest.raises(SystemExit):
        file_usage.parse_args(["--file", "manuals/x.pdf", "--delete-files"])


def test_parse_args_positive():
    args = file_usage.parse_args(["--file", "manuals/x.pdf", "--detach-ledger"])
    assert args.file == "manuals/x.pdf"
    assert args.detach_ledger is True
    assert args.delete_files is False


def test_main_prints_report_and_exit_code(monkeypatch, capsys):
    called = {}

    def fake_run(file, detach_ledger=False, delete_files=False):
        called.update(file=file, detach_ledger=detach_ledger, delete_files=delete_files)
        return {"success": True, "payload": {"identity": "manuals/x.pdf", "ledger_resources": []}}

    monkeypatch.setattr(file_usage, "run", fake_run)
    rc = file_usage.main(["--file", "x.pdf"])

    assert rc == 0
    assert called == {"file": "x.pdf", "detach_ledger": False, "delete_files": False}
    assert json.loads(capsys.readouterr().out)["payload"]["identity"] == "manuals/x.pdf"


def test_main_returns_one_on_failed_result(monkeypatch):
    monkeypatch.setattr(file_usage, "run", lambda *args, **kwargs: {"success": False, "error_code": "CONFIGURATION_MISSING"})
    assert file_usage.main(["--file", "x.pdf", "--detach-ledger", "--delete-files"]) == 1
