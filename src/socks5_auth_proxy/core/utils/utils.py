"""Common utility functions."""

from typing import Final

BYTES_PER_KB: Final = 1024

SIZE_UNITS: Final = ("B", "KB", "MB", "GB", "TB")


def format_bytes(bytes_: float) -> str:
    """Format a byte counter into a human readable string.

    Args:
        bytes_: Number of bytes to format

    Returns:
        str: ``"512 B"``, ``"1.5 KB"`` and so on, capped at TB
    """
    if bytes_ < BYTES_PER_KB:
        return f"{int(bytes_)} B"
    value = float(bytes_)
    for unit in SIZE_UNITS[1:]:
        value /= BYTES_PER_KB
        if value < BYTES_PER_KB or unit == SIZE_UNITS[-1]:
            return f"{value:.1f} {unit}"
    return f"{value:.1f} {SIZE_UNITS[-1]}"
