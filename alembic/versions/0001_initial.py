"""initial schema

Revision ID: 0001
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "doclink_registry",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("resource_id", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("article", sa.String(191), nullable=False, server_default=""),
        sa.Column("vendor_id", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("vendor_name", sa.String(191), nullable=False, server_default=""),
        sa.Column("folder", sa.String(191), nullable=False, server_default=""),
        sa.Column("document_name", sa.String(191), nullable=False, server_default=""),
        sa.Column("preview_name", sa.String(191), nullable=False, server_default=""),
        sa.Column("document_url", sa.Text(), nullable=True),
        sa.Column("preview_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_doclink_registry_resource_id", "doclink_registry", ["resource_id"])
    op.create_index("ix_doclink_registry_article", "doclink_registry", ["article"])
    op.create_index("ix_doclink_registry_vendor_id", "doclink_registry", ["vendor_id"])
    op.create_index("ix_doclink_registry_folder_document", "doclink_registry", ["folder", "document_name"])

    op.create_table(
        "doclink_resource_fields",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("field_key", sa.String(191), nullable=False),
        sa.Column("value", sa.Text(), nullable=False, server_default=""),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("resource_id", "field_key", name="uq_doclink_resource_fields_resource_key"),
    )
    op.create_index("ix_doclink_resource_fields_resource_id", "doclink_resource_fields", ["resource_id"])
    op.create_index("ix_doclink_resource_fields_field_key", "doclink_resource_fields", ["field_key"])


def downgrade() -> None:
    op.drop_index("ix_doclink_resource_fields_field_key", table_name="doclink_resource_fields")
    op.drop_index("ix_doclink_resource_fields_resource_id", table_name="doclink_resource_fields")
    op.drop_table("doclink_resource_fields")
    op.drop_index("ix_doclink_registry_folder_document", table_name="doclink_registry")
    op.drop_index("ix_doclink_registry_vendor_id", table_name="doclink_registry")
    op.drop_index("ix_doclink_registry_article", table_name="doclink_registry")
    op.drop_index("ix_doclink_registry_resource_id", table_name="doclink_registry")
    op.drop_table("doclink_registry")
