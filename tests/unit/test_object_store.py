import os

import pytest

from doclink.core.errors import StorageUnavailable
from doclink.core.identity import FileIdentity
from doclink.services.storage import DOCUMENTS, PREVIEWS, ObjectStore, StorageSpace, natural_key, slugify_filename


def _store(tmp_path, clock=lambda: 1700000000, max_name_attempts=16) -> ObjectStore:
    return ObjectStore(
        {
            DOCUMENTS: StorageSpace(base_path=str(tmp_path / "docs"), base_url="assets/docs"),
            PREVIEWS: StorageSpace(base_path=str(tmp_path / "thumbs"), base_url="https://cdn.example/thumbs"),
        },
        site_url="https://shop.example",
        clock=clock,
        max_name_attempts=max_name_attempts,
    )


def test_slugify_transliterates_and_lowercases():
    assert slugify_filename("Crème Brûlée Manual.PDF") == "creme-brulee-manual.pdf"
    assert slugify_filename("SKU-100.pdf") == "sku-100.pdf"
    assert slugify_filename("a/b\\c.pdf") == "a-b-c.pdf"


def test_slugify_transliterates_cyrillic():
    assert slugify_filename("Инструкция.pdf") == "instruktsiia.pdf"
    assert slugify_filename("Паспорт изделия SKU-100.PDF") == "pasport-izdeliia-sku-100.pdf"


def test_slugify_defaults():
    assert slugify_filename("!!!.pdf") == "file.pdf"
    assert slugify_filename("manual") == "manual.pdf"
    assert slugify_filename("manual.txt", force_extension=".PDF") == "manual.pdf"


def test_put_writes_payload_and_returns_identity(tmp_path):
    store = _store(tmp_path)
    stored = store.put(DOCUMENTS, FileIdentity("manuals", "Guide.pdf"), b"%PDF-1.4 data")
    assert stored == FileIdentity("manuals", "guide.pdf")
    assert (tmp_path / "docs" / "manuals" / "guide.pdf").read_bytes() == b"%PDF-1.4 data"
    assert store.url_for(DOCUMENTS, stored) == "https://shop.example/assets/docs/manuals/guide.pdf"


def test_put_never_overwrites_and_suffixes_collisions(tmp_path):
    store = _store(tmp_path)
    first = store.put(DOCUMENTS, FileIdentity("manuals", "x.pdf"), b"one")
    second = store.put(DOCUMENTS, FileIdentity("manuals", "x.pdf"), b"two")
    third = store.put(DOCUMENTS, FileIdentity("manuals", "x.pdf"), b"three")

    assert first.name == "x.pdf"
    assert second.name == "x-1700000000.pdf"
    assert third.name == "x-1700000000-1.pdf"
    assert store.path_for(DOCUMENTS, first).read_bytes() == b"one"
    assert store.path_for(DOCUMENTS, second).read_bytes() == b"two"
    assert store.path_for(DOCUMENTS, third).read_bytes() == b"three"


def test_put_gives_up_after_attempt_limit(tmp_path):
    store = _store(tmp_path, max_name_attempts=2)
    store.put(DOCUMENTS, FileIdentity("manuals", "x.pdf"), b"one")
    store.put(DOCUMENTS, FileIdentity("manuals", "x.pdf"), b"two")
    with pytest.raises(StorageUnavailable):
        store.put(DOCUMENTS, FileIdentity("manuals", "x.pdf"), b"three")


def test_put_maps_unwritable_directory_to_storage_unavailable(tmp_path, monkeypatch):
    store = _store(tmp_path)

    def fail_makedirs(*args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr(os, "makedirs", fail_makedirs)
    with pytest.raises(StorageUnavailable):
        store.put(DOCUMENTS, FileIdentity("manuals", "x.pdf"), b"data")


def test_delete_reports_absence_without_error(tmp_path):
    store = _store(tmp_path)
    stored = store.put(PREVIEWS, FileIdentity("manuals", "x.webp"), b"img", force_extension="webp")
    assert store.exists(PREVIEWS, stored)
    assert store.delete(PREVIEWS, stored) is True
    assert store.delete(PREVIEWS, stored) is False
    assert store.exists(PREVIEWS, stored) is False


def test_path_for_rejects_traversal_names(tmp_path):
    store = _store(tmp_path)
    with pytest.raises(ValueError):
        store.path_for(DOCUMENTS, FileIdentity("manuals", ".."))
    assert store.delete(DOCUMENTS, FileIdentity("manuals", "")) is False


def test_list_uses_natural_case_insensitive_order(tmp_path):
    store = _store(tmp_path)
    for name in ("doc10.pdf", "Doc2.pdf", "doc1.pdf"):
        path = tmp_path / "docs" / "manuals"
        path.mkdir(parents=True, exist_ok=True)
        (path / name).write_bytes(b"x")
    (tmp_path / "docs" / "manuals" / "nested").mkdir()

    assert store.list(DOCUMENTS, "manuals") == ["doc1.pdf", "Doc2.pdf", "doc10.pdf"]
    assert store.list(DOCUMENTS, "missing") == []


def test_list_folders(tmp_path):
    store = _store(tmp_path)
    for folder in ("manuals", "certs10", "certs2"):
        (tmp_path / "docs" / folder).mkdir(parents=True)
    (tmp_path / "docs" / "readme.txt").write_text("x")
    assert store.list_folders(DOCUMENTS) == ["certs2", "certs10", "manuals"]


def test_natural_key_orders_numbers_numerically():
    assert sorted(["a10", "a9", "A1"], key=natural_key) == ["A1", "a9", "a10"]
