"""
Small helpers shared by the pipeline modules.

Functions:
    - ensure_directory: Create an output directory on demand
    - get_file_extension: Lowercase extension used for MIME detection
    - format_file_size: Byte counts for log messages
    - generate_file_id: Identifier of a file in flight
    - elapsed_ms: Processing time in milliseconds
    - collapse_whitespace: Single-space a text fragment
"""

import re
import time
import uuid
from pathlib import Path
from typing import Union

_SIZE_UNITS = ('B', 'KB', 'MB', 'GB')


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Create ``path`` (and its parents) when missing and return it.

    Example:
        >>> ensure_directory("results/2024")
        PosixPath('results/2024')
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Lowercase extension including the dot, or "" when there is none.

    Example:
        >>> get_file_extension("Receipt.PDF")
        '.pdf'
    """
    return Path(filepath).suffix.lower()


def format_file_size(size_bytes: float) -> str:
    """
    Render a byte count for log messages.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(26 * 1024 * 1024)
        '26.0 MB'
    """
    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def generate_file_id() -> str:
    """Return a new unique identifier for a file in flight."""
    return str(uuid.uuid4())


def elapsed_ms(start: float) -> int:
    """Milliseconds elapsed since ``start`` (a ``time.perf_counter()`` value)."""
    return int(round((time.perf_counter() - start) * 1000))


def collapse_whitespace(text: str) -> str:
    """
    Replace runs of whitespace with a single space and trim the ends.

    Example:
        >>> collapse_whitespace("  ACME   Corp \\n")
        'ACME Corp'
    """
    return re.sub(r'\s+', ' ', text).strip()
