"""Canonical ``folder/name`` identity for file references.

Every store that mentions a document (object store, registry rows, product
ledgers) is correlated through the value returned by :func:`normalize`, so it
must stay pure and deterministic.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

_URL_PREFIX_RE = re.compile(r"^(?:[a-z][a-z0-9+.\-]*:)?//[^/]*", re.IGNORECASE)
_UNSAFE_FOLDER_RE = re.compile(r"[^A-Za-z0-9_\-/]+")
_REPEATED_SEP_RE = re.compile(r"/{2,}")


@dataclass(frozen=True)
class FileIdentity:
    folder: str
    name: str

    @property
    def rel(self) -> str:
        if not self.name:
            return ""
        return f"{self.folder}/{self.name}" if self.folder else self.name

    @property
    def is_empty(self) -> bool:
        return not self.name

    def __str__(self) -> str:
        return self.rel


EMPTY_IDENTITY = FileIdentity(folder="", name="")


def sanitize_folder(value: str) -> str:
    value = (value or "").replace("\\", "/")
    value = _UNSAFE_FOLDER_RE.sub("", value)
    value = _REPEATED_SEP_RE.sub("/", value)
    return value.strip("/")


def strip_site(value: str) -> str:
    value = (value or "").strip().replace("\\", "/")
    match = _URL_PREFIX_RE.match(value)
    if match:
        value = value[match.end():]
        value = value.split("#", 1)[0].split("?", 1)[0]
    return value.strip("/")


def _strip_base_prefix(path: str, prefixes: Iterable[str]) -> str:
    for prefix in prefixes:
        prefix = strip_site(prefix)
        if prefix and path.startswith(prefix + "/"):
            return path[len(prefix) + 1:].strip("/")
    return path


def normalize(raw: str, default_folder: str = "", strip_prefixes: Iterable[str] = ()) -> FileIdentity:
    """Turn a URL, relative path or bare filename into a :class:`FileIdentity`.

    ``strip_prefixes`` lists public base-URL paths (``assets/images/docs``)
    that are removed from the front of absolute references, so a full URL and
    a ``folder/name`` reference to the same object compare equal.
    """
    path = strip_site(raw)
    path = _REPEATED_SEP_RE.sub("/", path)
    if not path:
        return EMPTY_IDENTITY

    path = _strip_base_prefix(path, tuple(strip_prefixes))
    if "/" not in path:
        return FileIdentity(folder=sanitize_folder(default_folder), name=path.strip())

    folder, _, name = path.rpartition("/")
    # a prefix that sanitizes to nothing is treated like a bare filename
    folder = sanitize_folder(folder) or sanitize_folder(default_folder)
    return FileIdentity(folder=folder, name=name.strip())


def join_url(site_url: str, base_url: str, identity: FileIdentity) -> str:
    if identity.is_empty:
        return ""
    base = base_url.strip().rstrip("/")
    rel = identity.rel
    if _URL_PREFIX_RE.match(base):
        return f"{base}/{rel}"
    base = base.strip("/")
    path = f"{base}/{rel}" if base else rel
    site = site_url.strip().rstrip("/")
    return f"{site}/{path}" if site else f"/{path}"


def replace_extension(name: str, extension: str) -> str:
    extension = extension.lstrip(".")
    stem, dot, _ = name.rpartition(".")
    return f"{stem if dot else name}.{extension}"
