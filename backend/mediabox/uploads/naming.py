"""Unique filenames for stored uploads."""
import os
import secrets
import string
import time
from typing import Callable

TOKEN_ALPHABET = string.digits + string.ascii_lowercase
TOKEN_LENGTH = 13
# Leaves room for the timestamp, token and extension within the usual
# 255-byte filename limit.
MAX_BASE_BYTES = 200


def random_token(length: int = TOKEN_LENGTH) -> str:
    """Return a random base-36 token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def generate_unique_filename(
    original_name: str,
    clock: Callable[[], float] = time.time,
    token_factory: Callable[[], str] = random_token,
) -> str:
    """Generate a collision-resistant filename from an original name.

    The result has the form ``<base>_<timestampMillis>_<token><.ext>``. The
    extension is kept exactly as supplied, case included, and any directory
    components in the client-supplied name are dropped. Long bases are cut to
    ``MAX_BASE_BYTES`` bytes of UTF-8 without splitting a character.

    Args:
        original_name: Filename as supplied by the client.
        clock: Returns the current time in seconds.
        token_factory: Returns the random suffix.

    Returns:
        The filename to store the upload under.
    """
    name = (original_name or "").replace("\\", "/").rsplit("/", 1)[-1]
    base, ext = os.path.splitext(name)
    base = base.encode("utf-8")[:MAX_BASE_BYTES].decode("utf-8", "ignore")
    timestamp_ms = int(clock() * 1000)
    return f"{base}_{timestamp_ms}_{token_factory()}{ext}"
