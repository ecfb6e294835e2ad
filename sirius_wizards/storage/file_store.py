"""FileStore -- file metadata records. Blob bytes live in ObjectStorage."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from sirius_wizards.dtos import NewFile, StoredFile
from sirius_wizards.models.file import FileModel


class FileStore:
    def __init__(self, session: Session):
        self._session = session

    def create(self, new_file: NewFile) -> StoredFile:
        model = FileModel(
            file_name=new_file.file_name,
            storage_path=new_file.storage_path,
            mime_type=new_file.mime_type,
            size=new_file.size,
            uploaded_by=new_file.uploaded_by,
            entity_type=new_file.entity_type,
            entity_id=new_file.entity_id,
            access_level=new_file.access_level,
            file_metadata=dict(new_file.metadata),
        )
        self._session.add(model)
        self._session.flush()
        self._session.refresh(model)
        return model.to_dto()

    def get(self, file_id: UUID) -> StoredFile | None:
        model = self._session.get(FileModel, file_id)
        return model.to_dto() if model else None

    def list_for_wizard(self, wizard_id: UUID) -> list[StoredFile]:
        stmt = (
            select(FileModel)
            .where(FileModel.file_metadata["wizardId"].as_string() == str(wizard_id))
            .order_by(FileModel.uploaded_at)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def delete(self, file_id: UUID) -> bool:
        model = self._session.get(FileModel, file_id)
        if model is None:
            return False
        self._session.delete(model)
        self._session.flush()
        return True
