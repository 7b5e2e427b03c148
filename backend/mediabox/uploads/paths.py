"""Destination directories for stored uploads."""
import logging
from pathlib import Path
from urllib.parse import quote

from .errors import StorageFailureError
from .schemas import MediaCategory, UploadPolicy

logger = logging.getLogger(__name__)


def resolve_directory(category: MediaCategory, policy: UploadPolicy) -> Path:
    """Return the absolute directory holding files of *category*."""
    return Path(policy.upload_dir).resolve() / category.directory


def public_url(category: MediaCategory, filename: str) -> str:
    """Return the host-relative URL a stored file is served at.

    The filename is percent-encoded, so names containing ``#``, ``?``, ``%``
    or spaces still resolve to the stored file.
    """
    return f"/uploads/{category.directory}/{quote(filename)}"


def ensure_directory_exists(path: Path, writable: bool = True) -> bool:
    """Create *path* (and its parents) unless it already exists.

    Safe to call concurrently for the same path. On a read-only deployment
    (``writable=False``) a failed mkdir is logged and ignored.

    Args:
        path: Directory to create.
        writable: Whether the filesystem is expected to accept writes.

    Returns:
        True if the directory exists afterwards, False if creation was skipped.

    Raises:
        StorageFailureError: If creation fails on a writable filesystem.
    """
    path = Path(path)
    if path.is_dir():
        return True
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        if not writable:
            logger.debug("Skipping directory creation on read-only filesystem: %s (%s)", path, exc)
            return False
        logger.error("Failed to create upload directory %s: %s", path, exc)
        raise StorageFailureError(f"Failed to create upload directory: {exc}", cause=exc) from exc
    return True
