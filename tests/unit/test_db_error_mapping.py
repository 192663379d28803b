from types import SimpleNamespace

import pytest

pytest.importorskip("sqlalchemy")

from sqlalchemy.exc import IntegrityError, OperationalError

from doclink.db.errors import DatabaseOperationError, map_database_error
from doclink.db.repositories.base import _commit_or_raise


class FailingDB:
    def __init__(self, sqlstate: str):
        self.sqlstate = sqlstate
        self.rolled_back = False

    def commit(self):
        orig = SimpleNamespace(sqlstate=self.sqlstate)
        raise IntegrityError("stmt", {}, orig)

    def rollback(self):
        self.rolled_back = True


def test_commit_or_raise_maps_unique_violation():
    db = FailingDB("23505")
    with pytest.raises(DatabaseOperationError) as exc:
        _commit_or_raise(db)
    assert db.rolled_back is True
    assert exc.value.error_code == "unique_violation"
    assert exc.value.retryable is False


def test_commit_or_raise_maps_deadlock_as_retryable():
    db = FailingDB("40P01")
    with pytest.raises(DatabaseOperationError) as exc:
        _commit_or_raise(db)
    assert exc.value.error_code == "deadlock_detected"
    assert exc.value.retryable is True


def test_serialization_failure_is_retryable():
    error = map_database_error(OperationalError("stmt", {}, SimpleNamespace(pgcode="40001")))
    assert error.error_code == "serialization_failure"
    assert error.sqlstate == "40001"
    assert error.retryable is True


def test_unknown_driver_error_is_generic():
    error = map_database_error(OperationalError("stmt", {}, Exception("disk I/O error")))
    assert error.error_code == "database_error"
    assert error.sqlstate is None
    assert error.retryable is False
