"""Stores injected into the wizard services."""

from sirius_wizards.storage.file_store import FileStore
from sirius_wizards.storage.object_storage import FilesystemObjectStorage, ObjectStorage
from sirius_wizards.storage.wizard_store import WizardStore
from sirius_wizards.storage.worker_store import SqlWorkerStore, WorkerRecordStore

__all__ = [
    "FileStore",
    "FilesystemObjectStorage",
    "ObjectStorage",
    "WizardStore",
    "SqlWorkerStore",
    "WorkerRecordStore",
]
