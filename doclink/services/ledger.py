"""Per-product attachment list stored as a JSON array in one resource field.

The field has no index of its own. Reverse lookups therefore run in two
phases: a containment scan over the raw field text using the bare filename
(cheap, may over-match), then a parse of every candidate keeping only those
whose normalized ``file`` equals the target identity exactly.

Writes are read-modify-write cycles conditioned on the version that was read;
a lost race is retried with a fresh read a bounded number of times.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from typing import Any

from doclink.core.errors import ConcurrentModification, DocLinkError, InvalidRequest, LedgerWriteFailed
from doclink.core.identity import EMPTY_IDENTITY, FileIdentity, normalize, sanitize_folder
from doclink.services.cancellation import CancellationToken, is_cancelled
from doclink.services.contracts import FieldValue, LedgerEntry, LedgerFieldStore

LOGGER = logging.getLogger(__name__)

APPENDED = "appended"
UPDATED = "updated"
UNCHANGED = "unchanged"

_KNOWN_KEYS = {"title", "file", "image"}


def parse_entries(raw: str | None, default_folder: str = "", strip_prefixes: Iterable[str] = ()) -> list[LedgerEntry]:
    """Decode a stored ledger, tolerating legacy shapes.

    Malformed JSON or a non-list document yields an empty list. Non-object
    items are dropped, unknown keys are kept in ``extra`` and ``file``/``image``
    are normalized to canonical identity strings. Each entry keeps its stored
    item in ``source`` so rewrites leave untouched items byte-for-byte intact.
    """
    if not raw or not raw.strip():
        return []
    try:
        decoded: Any = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        LOGGER.warning("ledger_malformed_json", extra={"event": "ledger_malformed_json", "size": len(raw)})
        return []

    if isinstance(decoded, dict):
        decoded = list(decoded.values())
    if not isinstance(decoded, list):
        return []

    prefixes = tuple(strip_prefixes)
    entries: list[LedgerEntry] = []
    for item in decoded:
        if not isinstance(item, dict):
            continue
        file_identity = normalize(str(item.get("file") or ""), default_folder, prefixes)
        image_raw = str(item.get("image") or "")
        image_folder = file_identity.folder or sanitize_folder(default_folder)
        image_identity = normalize(image_raw, image_folder, prefixes) if image_raw else EMPTY_IDENTITY
        entries.append(
            LedgerEntry(
                file=file_identity.rel,
                title=str(item.get("title") or ""),
                image=image_identity.rel,
                extra={key: value for key, value in item.items() if key not in _KNOWN_KEYS},
                source=item,
            )
        )
    return entries


def dump_entries(entries: Iterable[LedgerEntry]) -> str:
    return json.dumps([entry.to_json() for entry in entries], ensure_ascii=False, separators=(",", ":"))


class AttachmentLedger:
    def __init__(
        self,
        store: LedgerFieldStore,
        field_key: str,
        *,
        default_folder: str = "",
        strip_prefixes: Iterable[str] = (),
        max_attempts: int = 3,
    ):
        self.store = store
        self.field_key = field_key
        self.default_folder = default_folder
        self.strip_prefixes = tuple(strip_prefixes)
        self.max_attempts = max(1, int(max_attempts))

    def identity_of(self, raw: str) -> FileIdentity:
        return normalize(raw, self.default_folder, self.strip_prefixes)

    def _parse(self, current: FieldValue | None) -> list[LedgerEntry]:
        if current is None:
            return []
        return parse_entries(current.raw, self.default_folder, self.strip_prefixes)

    def read(self, resource_id: int) -> list[LedgerEntry]:
        entries = self._parse(self.store.get_field(resource_id, self.field_key))
        return [entry for entry in entries if entry.file]

    def _modify(self, resource_id: int, mutate: Callable[[list[LedgerEntry]], tuple[list[LedgerEntry], bool, Any]]) -> Any:
        for attempt in range(1, self.max_attempts + 1):
            try:
                current = self.store.get_field(resource_id, self.field_key)
                entries, changed, result = mutate(self._parse(current))
                if not changed:
                    return result
                written = self.store.set_field(
                    resource_id,
                    self.field_key,
                    dump_entries(entries),
                    current.version if current is not None else None,
                )
            except DocLinkError:
                raise
            except Exception as exc:  # noqa: BLE001
                raise LedgerWriteFailed(f"Ledger write failed for resource {resource_id}: {exc}") from exc

            if written:
                return result
            LOGGER.warning(
                "ledger_write_conflict",
                extra={"event": "ledger_write_conflict", "resource_id": resource_id, "attempt": attempt, "field_key": self.field_key},
            )

        LOGGER.warning(
            "ledger_concurrent_modification",
            extra={"event": "ledger_concurrent_modification", "resource_id": resource_id, "attempts": self.max_attempts},
        )
        raise ConcurrentModification(
            f"Ledger for resource {resource_id} changed concurrently {self.max_attempts} times; re-issue the request"
        )

    def append(self, resource_id: int, entry: LedgerEntry) -> str:
        """Upsert ``entry`` by normalized file.

        An existing entry for the same file keeps its position and extra keys;
        its title is replaced and its image replaced when the new one is set.
        Returns :data:`APPENDED`, :data:`UPDATED` or :data:`UNCHANGED`.
        """
        target = self.identity_of(entry.file)
        if target.is_empty:
            raise InvalidRequest("Ledger entry needs a file reference")
        image = normalize(entry.image, target.folder, self.strip_prefixes).rel if entry.image else ""

        def mutate(entries: list[LedgerEntry]) -> tuple[list[LedgerEntry], bool, str]:
            matches = [idx for idx, existing in enumerate(entries) if existing.file == target.rel]
            if not matches:
                entries.append(LedgerEntry(file=target.rel, title=entry.title, image=image, extra=dict(entry.extra)))
                return entries, True, APPENDED

            first = entries[matches[0]]
            new_image = image or first.image
            changed = first.title != entry.title or first.image != new_image or len(matches) > 1
            if not changed:
                return entries, False, UNCHANGED
            first.title = entry.title
            first.image = new_image
            first.source = None
            if len(matches) > 1:
                LOGGER.info(
                    "ledger_duplicates_collapsed",
                    extra={"event": "ledger_duplicates_collapsed", "resource_id": resource_id, "file": target.rel, "count": len(matches)},
                )
                drop = set(matches[1:])
                entries = [existing for idx, existing in enumerate(entries) if idx not in drop]
            return entries, True, UPDATED

        return self._modify(resource_id, mutate)

    def remove_by_identity(self, resource_id: int, identity: FileIdentity) -> int:
        if identity.is_empty:
            return 0

        def mutate(entries: list[LedgerEntry]) -> tuple[list[LedgerEntry], bool, int]:
            kept = [entry for entry in entries if entry.file != identity.rel]
            removed = len(entries) - len(kept)
            return kept, removed > 0, removed

        return self._modify(resource_id, mutate)

    def find_usages(
        self,
        identity: FileIdentity,
        candidate_resource_ids: list[int] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[int]:
        if identity.is_empty:
            return []
        candidates = self.store.find_candidates(self.field_key, identity.name, candidate_resource_ids)
        hits: set[int] = set()
        for resource_id in candidates:
            if is_cancelled(cancel_token):
                LOGGER.info("ledger_usage_scan_cancelled", extra={"event": "ledger_usage_scan_cancelled", "file": identity.rel})
                break
            if any(entry.file == identity.rel for entry in self.read(resource_id)):
                hits.add(int(resource_id))
        LOGGER.info(
            "ledger_usage_scan",
            extra={"event": "ledger_usage_scan", "file": identity.rel, "candidates": len(candidates), "hits": len(hits)},
        )
        return sorted(hits)
