"""Cooperative cancellation for batch operations.

Bulk attach and bulk ledger detach check the token once per target, so a
cancelled batch stops between items and still reports what it already did.
"""

from __future__ import annotations

import threading


class CancellationToken:
    def __init__(self) -> None:
        self._is_cancelled = threading.Event()

    def cancel(self) -> None:
        self._is_cancelled.set()

    def is_cancelled(self) -> bool:
        return self._is_cancelled.is_set()


def is_cancelled(token: CancellationToken | None) -> bool:
    return token is not None and token.is_cancelled()
