"""Extension-based media classification."""
import os
from typing import Optional

from .schemas import MediaCategory, UploadPolicy


def get_file_extension(filename: str) -> str:
    """Return the lowercase extension of *filename* without the dot.

    Returns an empty string when there is no extension. Dotfiles such as
    ``.bashrc`` have no extension.

    Examples:
        >>> get_file_extension("photo.PNG")
        'png'
        >>> get_file_extension("archive.tar.gz")
        'gz'
        >>> get_file_extension("README")
        ''
    """
    _, ext = os.path.splitext(filename or "")
    return ext[1:].lower()


def classify(filename: str, policy: UploadPolicy) -> Optional[MediaCategory]:
    """Determine the media category of a file from its extension.

    Categories are tried in declaration order (image, audio, video) and the
    first allow-list containing the extension wins.

    Args:
        filename: Original filename as supplied by the client.
        policy: Policy holding the per-category allow-lists.

    Returns:
        The matching MediaCategory, or None if no allow-list matches.
    """
    extension = get_file_extension(filename)
    if not extension:
        return None
    for category in MediaCategory:
        if extension in policy.extensions_for(category):
            return category
    return None


def describe_allowed_types(policy: UploadPolicy) -> str:
    """Render the allow-lists for error messages."""
    return "Images ({}), Audio ({}), Video ({})".format(
        ", ".join(policy.extensions_for(MediaCategory.IMAGE)),
        ", ".join(policy.extensions_for(MediaCategory.AUDIO)),
        ", ".join(policy.extensions_for(MediaCategory.VIDEO)),
    )
