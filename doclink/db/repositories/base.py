from __future__ import annotations

from typing import Any

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from doclink.db.errors import DatabaseOperationError, map_database_error


def _commit_or_raise(db: Any) -> None:
    try:
        db.commit()
    except (DBAPIError, SQLAlchemyError) as exc:
        db.rollback()
        raise map_database_error(exc) from exc


def _execute_or_raise(db: Any, statement: Any, params: dict[str, Any] | None = None) -> Any:
    try:
        return db.execute(statement, params or {})
    except (DBAPIError, SQLAlchemyError) as exc:
        db.rollback()
        raise map_database_error(exc) from exc


__all__ = ["DatabaseOperationError", "_commit_or_raise", "_execute_or_raise"]
