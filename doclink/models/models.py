from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from doclink.db.session import Base


class RegistryRows(Base):
    __tablename__ = "doclink_registry"
    __table_args__ = (
        Index("ix_doclink_registry_folder_document", "folder", "document_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(Integer, default=0, index=True)
    article: Mapped[str] = mapped_column(String(191), default="", index=True)
    vendor_id: Mapped[int] = mapped_column(Integer, default=0, index=True)
    vendor_name: Mapped[str] = mapped_column(String(191), default="")
    folder: Mapped[str] = mapped_column(String(191), default="")
    document_name: Mapped[str] = mapped_column(String(191), default="")
    preview_name: Mapped[str] = mapped_column(String(191), default="")
    document_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    preview_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ResourceFieldValues(Base):
    __tablename__ = "doclink_resource_fields"
    __table_args__ = (
        UniqueConstraint("resource_id", "field_key", name="uq_doclink_resource_fields_resource_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_id: Mapped[int] = mapped_column(Integer, index=True)
    field_key: Mapped[str] = mapped_column(String(191), index=True)
    value: Mapped[str] = mapped_column(Text, default="")
    version: Mapped[int] = mapped_column(Integer, default=1)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
