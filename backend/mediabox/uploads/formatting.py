"""Human-readable byte counts."""
import math

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")
_STEP = 1024


def format_file_size(num_bytes: int) -> str:
    """Format a byte count as a human-readable string.

    The largest unit that keeps the value at or above 1 is used, the value is
    rounded half-up to two decimals and trailing zeros are dropped.
    Sizes beyond the GB range are still expressed in GB.

    Examples:
        >>> format_file_size(0)
        '0 Bytes'
        >>> format_file_size(500000)
        '488.28 KB'
        >>> format_file_size(10 * 1024 * 1024)
        '10 MB'
    """
    if num_bytes < 0:
        raise ValueError(f"Byte count must be non-negative, got {num_bytes}")
    if num_bytes == 0:
        return "0 Bytes"

    # floor(log1024(n)), computed on integers so exact powers of 1024 land on
    # their own unit instead of one below it.
    index = 0
    while index < len(SIZE_UNITS) - 1 and num_bytes >= _STEP ** (index + 1):
        index += 1
    value = math.floor(num_bytes / _STEP ** index * 100 + 0.5) / 100
    number = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{number} {SIZE_UNITS[index]}"
