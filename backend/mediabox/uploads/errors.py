"""Error taxonomy for uploads.

Every error carries a ``kind`` discriminator and the HTTP status the API
answers with, so callers switch on ``kind`` instead of parsing messages.
"""
from typing import Optional


class UploadError(Exception):
    """Base exception for upload errors."""
    kind: str = "upload_error"

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"success": False, "kind": self.kind, "message": self.message}


class MissingFileError(UploadError):
    """Raised when no file was supplied at all."""
    kind = "missing_file"

    def __init__(self, message: str = "No file provided"):
        super().__init__(message, status_code=400)


class UnsupportedTypeError(UploadError):
    """Raised when a file's extension is in none of the allow-lists."""
    kind = "unsupported_type"

    def __init__(self, message: str, extension: str = ""):
        self.extension = extension
        super().__init__(message, status_code=400)


class FileTooLargeError(UploadError):
    """Raised when a file exceeds the configured size limit."""
    kind = "file_too_large"

    def __init__(self, message: str, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(message, status_code=413)


class TooManyFilesError(UploadError):
    """Raised when a batch holds more files than allowed."""
    kind = "too_many_files"

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Too many files: {count} received, at most {limit} allowed per request",
            status_code=400,
        )


class StorageFailureError(UploadError):
    """Raised when writing to or creating directories on disk fails."""
    kind = "storage_failure"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message, status_code=500)
