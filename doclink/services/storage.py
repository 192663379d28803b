from __future__ import annotations

import logging
import os
import re
import time
import unicodedata
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from unidecode import unidecode

from doclink.core.errors import StorageUnavailable
from doclink.core.identity import FileIdentity, join_url, sanitize_folder

LOGGER = logging.getLogger(__name__)

DOCUMENTS = "documents"
PREVIEWS = "previews"

_UNSAFE_SLUG_RE = re.compile(r"[^a-z0-9\-_]+")
_DASHES_RE = re.compile(r"-+")
_DIGITS_RE = re.compile(r"(\d+)")


@dataclass(frozen=True)
class StorageSpace:
    base_path: str
    base_url: str


def slugify_filename(name: str, force_extension: str | None = None) -> str:
    name = (name or "").strip().replace("\\", "-").replace("/", "-")
    name = re.sub(r"\s+", "-", name)
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""

    stem = "".join(c for c in unicodedata.normalize("NFD", stem) if unicodedata.category(c) != "Mn")
    stem = unidecode(stem).lower()
    stem = _UNSAFE_SLUG_RE.sub("-", stem)
    stem = _DASHES_RE.sub("-", stem).strip("-") or "file"

    ext = _UNSAFE_SLUG_RE.sub("", ext.lower())
    if force_extension:
        ext = force_extension.lower().lstrip(".")
    return f"{stem}.{ext or 'pdf'}"


def natural_key(name: str) -> tuple:
    return tuple(int(part) if part.isdigit() else part for part in _DIGITS_RE.split(name.lower()))


class ObjectStore:
    """Filesystem store for original documents and their preview images.

    Objects are addressed by :class:`FileIdentity` inside a named space. Writes
    use exclusive creation, so an existing object is never replaced: a
    colliding name gets a ``-<timestamp>[-n]`` suffix instead.
    """

    def __init__(
        self,
        spaces: dict[str, StorageSpace],
        *,
        site_url: str = "",
        dir_mode: int = 0o775,
        file_mode: int = 0o664,
        max_name_attempts: int = 16,
        clock: Callable[[], float] = time.time,
    ):
        self.spaces = dict(spaces)
        self.site_url = site_url
        self.dir_mode = dir_mode
        self.file_mode = file_mode
        self.max_name_attempts = max(1, int(max_name_attempts))
        self.clock = clock

    @classmethod
    def from_settings(cls, cfg) -> "ObjectStore":
        return cls(
            {
                DOCUMENTS: StorageSpace(base_path=cfg.DOCS_BASE_PATH, base_url=cfg.DOCS_BASE_URL),
                PREVIEWS: StorageSpace(base_path=cfg.PREVIEWS_BASE_PATH, base_url=cfg.PREVIEWS_BASE_URL),
            },
            site_url=cfg.SITE_URL,
            dir_mode=cfg.STORAGE_DIR_MODE,
            file_mode=cfg.STORAGE_FILE_MODE,
            max_name_attempts=cfg.STORAGE_NAME_MAX_ATTEMPTS,
        )

    def _space(self, space: str) -> StorageSpace:
        try:
            return self.spaces[space]
        except KeyError as exc:
            raise ValueError(f"Unknown storage space: {space}") from exc

    def folder_path(self, space: str, folder: str) -> Path:
        base = Path(self._space(space).base_path)
        parts = [part for part in sanitize_folder(folder).split("/") if part]
        return base.joinpath(*parts)

    def path_for(self, space: str, identity: FileIdentity) -> Path:
        name = identity.name
        if name in {"", ".", ".."} or "/" in name or "\\" in name:
            raise ValueError(f"Invalid object name: {name!r}")
        return self.folder_path(space, identity.folder) / name

    def url_for(self, space: str, identity: FileIdentity) -> str:
        return join_url(self.site_url, self._space(space).base_url, identity)

    def ensure_folder(self, space: str, folder: str) -> Path:
        directory = self.folder_path(space, folder)
        try:
            os.makedirs(directory, mode=self.dir_mode, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Cannot create directory {directory}: {exc}") from exc
        return directory

    def _candidate_names(self, name: str) -> Iterator[str]:
        yield name
        stem, _, ext = name.rpartition(".")
        stamp = int(self.clock())
        yield f"{stem}-{stamp}.{ext}"
        for counter in range(1, self.max_name_attempts - 1):
            yield f"{stem}-{stamp}-{counter}.{ext}"

    def put(self, space: str, identity: FileIdentity, payload: bytes, force_extension: str | None = None) -> FileIdentity:
        folder = sanitize_folder(identity.folder)
        directory = self.ensure_folder(space, folder)
        name = slugify_filename(identity.name, force_extension)
        flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)

        for attempt, candidate in enumerate(self._candidate_names(name)):
            if attempt >= self.max_name_attempts:
                break
            path = directory / candidate
            try:
                fd = os.open(path, flags, self.file_mode)
            except FileExistsError:
                continue
            except OSError as exc:
                raise StorageUnavailable(f"Cannot create {path}: {exc}") from exc

            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(payload)
            except OSError as exc:
                try:
                    os.remove(path)
                except OSError:
                    LOGGER.warning("object_store_cleanup_failed", extra={"event": "object_store_cleanup_failed", "path": str(path)})
                raise StorageUnavailable(f"Cannot write {path}: {exc}") from exc

            if candidate != name:
                LOGGER.info(
                    "object_store_name_collision",
                    extra={"event": "object_store_name_collision", "space": space, "requested": name, "stored": candidate},
                )
            return FileIdentity(folder=folder, name=candidate)

        raise StorageUnavailable(f"No free object name for {folder}/{name} after {self.max_name_attempts} attempts")

    def put_file(self, space: str, identity: FileIdentity, source: Path, force_extension: str | None = None) -> FileIdentity:
        try:
            payload = Path(source).read_bytes()
        except OSError as exc:
            raise StorageUnavailable(f"Cannot read {source}: {exc}") from exc
        return self.put(space, identity, payload, force_extension=force_extension)

    def exists(self, space: str, identity: FileIdentity) -> bool:
        try:
            return self.path_for(space, identity).is_file()
        except ValueError:
            return False

    def delete(self, space: str, identity: FileIdentity) -> bool:
        try:
            path = self.path_for(space, identity)
        except ValueError:
            return False
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageUnavailable(f"Cannot delete {path}: {exc}") from exc
        return True

    def list(self, space: str, folder: str) -> list[str]:
        directory = self.folder_path(space, folder)
        if not directory.is_dir():
            return []
        with os.scandir(directory) as entries:
            names = [entry.name for entry in entries if entry.is_file()]
        return sorted(names, key=natural_key)

    def list_folders(self, space: str) -> list[str]:
        base = Path(self._space(space).base_path)
        if not base.is_dir():
            return []
        with os.scandir(base) as entries:
            names = [entry.name for entry in entries if entry.is_dir()]
        return sorted(names, key=natural_key)
