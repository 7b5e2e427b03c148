"""Persistence of validated uploads.

Two writers share one interface:
- DiskStorageWriter: writes (or moves) files to ``{upload_dir}/{category}/``
- BufferStorageWriter: skips the filesystem and hands the bytes back, for
  read-only deployments where another component finishes persistence

The writer is picked once at startup from the configured StorageBackend.
"""
import errno
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Sequence

from .errors import StorageFailureError
from .naming import generate_unique_filename
from .paths import ensure_directory_exists, public_url, resolve_directory
from .schemas import ClassifiedFile, StorageBackend, StoredFileRecord, UploadPolicy

logger = logging.getLogger(__name__)

PERSISTENCE_DEFERRED_NOTE = "Persistence deferred: storage backend is read-only"


class StorageWriter(ABC):
    """Base class for upload storage writers."""

    backend: StorageBackend

    def __init__(
        self,
        policy: UploadPolicy,
        name_factory: Callable[[str], str] = generate_unique_filename,
    ):
        self.policy = policy
        self._name_factory = name_factory

    @abstractmethod
    def store(self, classified: ClassifiedFile) -> StoredFileRecord:
        """Store one validated file.

        Raises:
            StorageFailureError: If the file could not be persisted.
        """

    def store_all(self, files: Sequence[ClassifiedFile]) -> List[StoredFileRecord]:
        """Store every file in order, failing on the first error.

        Files written before the failure are removed again so the batch
        leaves nothing behind.
        """
        records: List[StoredFileRecord] = []
        try:
            for classified in files:
                records.append(self.store(classified))
        except Exception:
            self.discard(records)
            raise
        return records

    def discard(self, records: Sequence[StoredFileRecord]) -> None:
        """Remove files written for *records*; used to roll back a batch."""
        for record in records:
            if record.path is None:
                continue
            try:
                Path(record.path).unlink(missing_ok=True)
                logger.info("Rolled back stored file: %s", record.path)
            except OSError as exc:
                logger.error("Failed to roll back %s: %s", record.path, exc)


class DiskStorageWriter(StorageWriter):
    """Writes uploads below the policy's upload directory."""

    backend = StorageBackend.DISK

    def store(self, classified: ClassifiedFile) -> StoredFileRecord:
        directory = resolve_directory(classified.category, self.policy)
        ensure_directory_exists(directory, writable=True)

        filename = self._name_factory(classified.original_name)
        file_path = directory / filename
        incoming = classified.file

        try:
            # Neither branch overwrites an existing file.
            if incoming.content is None and incoming.staged_path is not None:
                if file_path.exists():
                    raise FileExistsError(errno.EEXIST, "File exists", str(file_path))
                shutil.move(str(incoming.staged_path), str(file_path))
            else:
                with open(file_path, "xb") as fh:
                    fh.write(incoming.content or b"")
        except OSError as exc:
            logger.error("Failed to store %s at %s: %s", classified.original_name, file_path, exc)
            raise StorageFailureError(f"Failed to store file: {exc}", cause=exc) from exc

        logger.info("Saved file: %s (%d bytes)", file_path, classified.size_bytes)

        return StoredFileRecord(
            original_name=classified.original_name,
            filename=filename,
            file_type=classified.category,
            size=classified.size_bytes,
            mimetype=classified.mime_type,
            url=public_url(classified.category, filename),
            path=file_path,
        )


class BufferStorageWriter(StorageWriter):
    """Keeps uploads in memory for a read-only filesystem.

    The record's URL has the same shape as on disk even though nothing is
    served there until another component persists the buffer.
    """

    backend = StorageBackend.BUFFER

    def store(self, classified: ClassifiedFile) -> StoredFileRecord:
        filename = self._name_factory(classified.original_name)
        try:
            buffer = classified.file.read_bytes()
        except OSError as exc:
            raise StorageFailureError(f"Failed to read staged upload: {exc}", cause=exc) from exc

        logger.info(
            "Persistence deferred for %s (%d bytes)", classified.original_name, classified.size_bytes,
        )

        return StoredFileRecord(
            original_name=classified.original_name,
            filename=filename,
            file_type=classified.category,
            size=classified.size_bytes,
            mimetype=classified.mime_type,
            url=public_url(classified.category, filename),
            path=None,
            persisted=False,
            note=PERSISTENCE_DEFERRED_NOTE,
            buffer=buffer,
        )


def create_storage_writer(policy: UploadPolicy, backend: StorageBackend) -> StorageWriter:
    """Build the writer for *backend*."""
    if backend == StorageBackend.BUFFER:
        return BufferStorageWriter(policy)
    return DiskStorageWriter(policy)
