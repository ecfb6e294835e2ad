"""File metadata ORM model. Blob content lives in object storage at storage_path."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from sirius_kernel.db.base import Base, UUIDString
from sirius_wizards.dtos import StoredFile


class FileModel(Base):
    __tablename__ = "files"

    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    uploaded_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    entity_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    entity_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    access_level: Mapped[str] = mapped_column(String(50), nullable=False, default="private")
    # "metadata" is reserved on declarative classes
    file_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    def to_dto(self) -> StoredFile:
        return StoredFile(
            id=self.id,
            file_name=self.file_name,
            storage_path=self.storage_path,
            mime_type=self.mime_type,
            size=self.size,
            uploaded_by=self.uploaded_by,
            uploaded_at=self.uploaded_at,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            access_level=self.access_level,
            metadata=dict(self.file_metadata or {}),
        )
