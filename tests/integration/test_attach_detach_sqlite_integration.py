import json

import pytest

pytest.importorskip("sqlalchemy")

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from doclink.core.config import Settings
from doclink.db.session import Base
from doclink.schemas.results import AttachRequest, AttachTarget, BulkAttachRequest, DetachRequest, DetachScope
from doclink.services.bootstrap import build_orchestrator

PDF = b"%PDF-1.4\n%integration\n"


@pytest.fixture()
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE ms2_vendors (id INTEGER PRIMARY KEY, name TEXT)"))
        conn.execute(text("CREATE TABLE ms2_products (id INTEGER PRIMARY KEY, pagetitle TEXT, article TEXT, vendor INTEGER)"))
        conn.execute(text("INSERT INTO ms2_vendors (id, name) VALUES (3, 'Acme'), (4, 'Bolt')"))
        conn.execute(
            text(
                "INSERT INTO ms2_products (id, pagetitle, article, vendor) VALUES "
                "(42, 'Drill 100', 'SKU-100', 3), (43, 'Drill 200', 'SKU-200', 3), (44, 'Saw 300', 'SKU-300', 4)"
            )
        )
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def cfg(tmp_path):
    return Settings(
        SITE_URL="https://shop.example",
        DOCS_BASE_PATH=str(tmp_path / "docs"),
        DOCS_BASE_URL="assets/docs",
        PREVIEWS_BASE_PATH=str(tmp_path / "thumbs"),
        PREVIEWS_BASE_URL="assets/thumbs",
        PREVIEW_ENABLED=False,
    )


def test_attach_search_usage_detach_round_trip(db, cfg, tmp_path):
    orchestrator = build_orchestrator(db, cfg)

    attached = orchestrator.attach(AttachRequest(article="SKU-100", payload=PDF, title="Manual"))
    assert attached.success is True
    assert attached.payload.identity == "manuals/sku-100.pdf"
    assert attached.payload.resource_id == 42
    assert attached.payload.vendor_name == "Acme"
    assert attached.payload.ledger_updated is True

    bulk = orchestrator.bulk_attach(
        BulkAttachRequest(
            targets=[AttachTarget(article="SKU-200"), AttachTarget(article="SKU-300"), AttachTarget(article="NOPE")],
            payload=PDF,
            display_name="sku-100.pdf",
        )
    ).payload
    assert bulk.identity.startswith("manuals/sku-100-")
    assert [item.status for item in bulk.items] == ["attached", "attached", "notFound"]

    found = orchestrator.search(article="SKU-100").payload
    assert found.resource.pagetitle == "Drill 100"
    assert [entry.file for entry in found.ledger] == ["manuals/sku-100.pdf"]
    assert [row.identity for row in found.registry] == ["manuals/sku-100.pdf"]
    assert found.divergence.consistent

    usage = orchestrator.file_usage("https://shop.example/assets/docs/manuals/sku-100.pdf").payload
    assert [product.resource_id for product in usage.ledger_resources] == [42]
    assert usage.document_exists is True

    shared = orchestrator.file_usage(bulk.identity).payload
    assert [product.resource_id for product in shared.ledger_resources] == [43, 44]
    assert [product.vendor_name for product in shared.ledger_resources] == ["Acme", "Bolt"]

    detached = orchestrator.detach(DetachRequest(file=bulk.identity, scope=DetachScope.FILESYSTEM_AND_ALL))
    assert detached.success is True
    assert detached.payload.removed_from == [43, 44]
    assert detached.payload.registry_rows_deleted == 2
    assert detached.payload.files_deleted == [f"documents:{bulk.identity}"]

    stored = db.execute(text("SELECT resource_id, value, version FROM doclink_resource_fields ORDER BY resource_id")).all()
    assert [(row.resource_id, json.loads(row.value), row.version) for row in stored] == [
        (42, [{"title": "Manual", "file": "manuals/sku-100.pdf", "image": ""}], 1),
        (43, [], 2),
        (44, [], 2),
    ]
    assert (tmp_path / "docs" / "manuals" / "sku-100.pdf").is_file()


def test_legacy_ledger_values_are_matched_and_rewritten(db, cfg):
    legacy = json.dumps(
        [
            {"MIGX_id": "1", "title": "Old", "file": "https://shop.example/assets/docs/manuals/legacy.pdf", "image": ""},
            {"MIGX_id": "2", "title": "Other", "file": "manuals/prefix-legacy.pdf", "image": ""},
        ]
    )
    db.execute(
        text("INSERT INTO doclink_resource_fields (resource_id, field_key, value, version) VALUES (44, 'sertif', :value, 5)"),
        {"value": legacy},
    )
    db.commit()
    orchestrator = build_orchestrator(db, cfg)

    usage = orchestrator.file_usage("legacy.pdf").payload
    assert [product.resource_id for product in usage.ledger_resources] == [44]

    result = orchestrator.detach(DetachRequest(file="manuals/legacy.pdf", scope=DetachScope.BULK_LEDGER))
    assert result.payload.items_removed == 1

    value, version = db.execute(
        text("SELECT value, version FROM doclink_resource_fields WHERE resource_id = 44")
    ).one()
    assert json.loads(value) == [{"MIGX_id": "2", "title": "Other", "file": "manuals/prefix-legacy.pdf", "image": ""}]
    assert version == 6


def test_unknown_table_name_is_rejected(db, tmp_path):
    cfg = Settings(
        DOCS_BASE_PATH=str(tmp_path / "docs"),
        DOCS_BASE_URL="assets/docs",
        PREVIEWS_BASE_PATH=str(tmp_path / "thumbs"),
        PREVIEWS_BASE_URL="assets/thumbs",
        CATALOG_PRODUCTS_TABLE="ms2_products; DROP TABLE x",
    )
    with pytest.raises(ValueError):
        build_orchestrator(db, cfg)
