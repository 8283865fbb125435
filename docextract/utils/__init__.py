"""
Utility Module for the Document Extraction Pipeline.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Common helpers
"""

from .logger import get_logger, set_log_level, setup_logger, setup_logger_from_config
from .helpers import (
    collapse_whitespace,
    elapsed_ms,
    ensure_directory,
    format_file_size,
    generate_file_id,
    get_file_extension,
)

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'set_log_level',
    'get_logger',
    'collapse_whitespace',
    'elapsed_ms',
    'ensure_directory',
    'format_file_size',
    'generate_file_id',
    'get_file_extension',
]
