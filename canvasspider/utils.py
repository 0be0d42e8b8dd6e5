"""Utility functions for canvasspider."""

import math
import re
from typing import Optional, Union

# =============================================================================
# Constants
# =============================================================================

# Chunk size used when writing downloaded streams to disk
DEFAULT_CHUNK_SIZE: int = 64 * 1024

# Downloads up to this size are buffered in memory, larger ones on disk
DEFAULT_SPOOL_SIZE: int = 1024 * 1024

# Number of entries requested per page from list endpoints
DEFAULT_PER_PAGE: int = 100

# Number of parallel fetch/store workers
DEFAULT_MAX_WORKERS: int = 4


# =============================================================================
# Size parsing and formatting utilities
# =============================================================================

_SIZE_UNITS = {
    "b": 1,
    "kb": 1024,
    "mb": 1024**2,
    "gb": 1024**3,
    "tb": 1024**4,
}

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgt]?b)?\s*$", re.IGNORECASE)


def parse_size(value: Union[str, int, float, None]) -> float:
    """Convert a human readable size into bytes.

    Args:
        value: Size such as ``"500mb"``, ``"20 GB"``, ``1024`` or
            ``"Infinity"``. ``None`` means no limit.

    Returns:
        Size in bytes, ``math.inf`` when unlimited

    Raises:
        ValueError: If the value cannot be parsed

    Examples:
        >>> parse_size("1kb")
        1024
        >>> parse_size("Infinity")
        inf
    """
    if value is None:
        return math.inf
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"Size must not be negative: {value}")
        return value

    text = value.strip()
    if text.lower() in ("inf", "infinity", "unlimited", ""):
        return math.inf

    match = _SIZE_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Invalid size: {value!r}")

    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "b").lower()])


def format_size(size_bytes: float) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if math.isinf(size_bytes):
        return "unlimited"
    if size_bytes < 1024:
        return f"{int(size_bytes)} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


def normalize_extension(extension: str) -> str:
    """Normalize an extension for comparison.

    Examples:
        >>> normalize_extension(".PDF")
        'pdf'
    """
    return extension.strip().lstrip(".").lower()


def split_list(value: Optional[str]) -> list[str]:
    """Split a comma separated command line value into a list.

    Examples:
        >>> split_list("a.pdf,b.pdf")
        ['a.pdf', 'b.pdf']
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]
