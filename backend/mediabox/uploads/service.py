"""Upload service for Mediabox.

Validates uploads and hands them to the configured storage writer.
Files are stored in: {upload_dir}/{images|audio|video}/{base}_{ms}_{token}.{ext}
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import MissingFileError, StorageFailureError, TooManyFilesError
from .schemas import FileInfo, IncomingFile, StorageBackend, StoredFileRecord, UploadPolicy
from .storage import StorageWriter, create_storage_writer
from .validator import validate

logger = logging.getLogger(__name__)


class UploadService:
    """Service for validating and storing uploaded media."""

    def __init__(
        self,
        policy: UploadPolicy,
        backend: StorageBackend = StorageBackend.DISK,
        writer: Optional[StorageWriter] = None,
    ):
        self.policy = policy
        self.writer = writer or create_storage_writer(policy, backend)

    @property
    def backend(self) -> StorageBackend:
        return self.writer.backend

    def save_file(self, file: Optional[IncomingFile]) -> StoredFileRecord:
        """Validate and store a single uploaded file.

        Args:
            file: The uploaded file, or None if the request carried none.

        Returns:
            StoredFileRecord describing where the file went.

        Raises:
            UploadError: If validation or storage fails.
        """
        classified = validate(file, self.policy)
        return self.writer.store(classified)

    def save_files(self, files: Optional[Sequence[IncomingFile]]) -> List[StoredFileRecord]:
        """Validate and store a batch of files, all or nothing.

        Each file is validated and then stored before the next one is looked
        at. The first failure aborts the batch and removes the files already
        written for it.

        Args:
            files: The uploaded files.

        Returns:
            One StoredFileRecord per file, in input order.

        Raises:
            MissingFileError: If the batch is empty.
            TooManyFilesError: If the batch exceeds ``policy.max_files``.
            UploadError: If any single file fails validation or storage.
        """
        if not files:
            raise MissingFileError("No files provided")
        if len(files) > self.policy.max_files:
            raise TooManyFilesError(len(files), self.policy.max_files)

        records: List[StoredFileRecord] = []
        try:
            for file in files:
                records.append(self.save_file(file))
        except Exception:
            if records:
                logger.error("Batch upload failed, rolling back %d stored file(s)", len(records))
            self.writer.discard(records)
            raise
        return records

    def delete_file(self, file_path: Path) -> bool:
        """Delete a stored file from disk.

        Raises:
            StorageFailureError: If the file does not exist or cannot be removed.
        """
        try:
            Path(file_path).unlink()
        except OSError as exc:
            raise StorageFailureError(f"Failed to delete file: {exc}", cause=exc) from exc
        logger.info("Deleted file: %s", file_path)
        return True

    def get_file_info(self, file_path: Path) -> FileInfo:
        """Return size and timestamps for a stored file.

        Raises:
            StorageFailureError: If the file cannot be stat'ed.
        """
        try:
            stats = Path(file_path).stat()
        except OSError as exc:
            raise StorageFailureError(f"Failed to get file info: {exc}", cause=exc) from exc
        created = getattr(stats, "st_birthtime", stats.st_ctime)
        return FileInfo(
            size=stats.st_size,
            created=datetime.fromtimestamp(created),
            modified=datetime.fromtimestamp(stats.st_mtime),
        )
