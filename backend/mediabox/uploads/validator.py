"""Upload validation: presence, type and size, in that order."""
import logging
from typing import Optional

from .classifier import classify, describe_allowed_types, get_file_extension
from .errors import FileTooLargeError, MissingFileError, UnsupportedTypeError
from .formatting import format_file_size
from .schemas import ClassifiedFile, IncomingFile, UploadPolicy

logger = logging.getLogger(__name__)


def validate(file: Optional[IncomingFile], policy: UploadPolicy) -> ClassifiedFile:
    """Validate an uploaded file against the upload policy.

    Checks run in order and stop at the first failure, so nothing is written
    for a rejected file. The file content is never modified.

    Args:
        file: The uploaded file, or None if no file was sent.
        policy: Size and type policy to enforce.

    Returns:
        The file together with its media category.

    Raises:
        MissingFileError: If no file was supplied (an empty file is fine).
        UnsupportedTypeError: If the extension is in none of the allow-lists.
        FileTooLargeError: If the file is larger than ``policy.max_file_size``.
    """
    if file is None:
        raise MissingFileError()

    category = classify(file.original_name, policy)
    if category is None:
        extension = get_file_extension(file.original_name)
        logger.warning("Rejected %r: unsupported extension %r", file.original_name, extension)
        raise UnsupportedTypeError(
            f"Unsupported file type. Allowed types: {describe_allowed_types(policy)}",
            extension=extension,
        )

    if file.size_bytes > policy.max_file_size:
        logger.warning(
            "Rejected %r: %d bytes exceeds limit of %d bytes",
            file.original_name, file.size_bytes, policy.max_file_size,
        )
        raise FileTooLargeError(
            f"File size exceeds maximum allowed size of {format_file_size(policy.max_file_size)}",
            size_bytes=file.size_bytes,
            limit_bytes=policy.max_file_size,
        )

    return ClassifiedFile(file=file, category=category)
