"""
Utility Module for the Statement Converter.

Common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - File and async helpers
"""

from .logger import setup_logger, get_logger
from .helpers import ensure_directory, get_file_extension, generate_timestamp, run_blocking

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'generate_timestamp',
    'run_blocking'
]
