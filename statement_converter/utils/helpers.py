"""
Helper Utilities Module.

Small generic helpers shared by the pipeline modules.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - generate_timestamp: Generate formatted timestamps
    - format_file_size: Human-readable byte counts
    - get_api_key: Read an API key from the environment
    - run_blocking: Run a blocking call in the default executor
"""

import asyncio
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it and its parents if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/exports")
        PosixPath('outputs/exports')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Return the lowercase extension of a path, including the dot.

    Example:
        >>> get_file_extension("Statement.PDF")
        '.pdf'
    """
    return Path(filepath).suffix.lower()


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Args:
        format_str: strftime format string.

    Returns:
        Formatted timestamp string.
    """
    return datetime.now().strftime(format_str)


def format_file_size(size_bytes: float) -> str:
    """
    Format a byte count in human-readable form.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


async def run_blocking(func: Callable[..., Any], *args, **kwargs) -> Any:
    """
    Execute a blocking function in the default thread pool.

    PDF parsing and Tesseract calls are synchronous; running them in the
    executor keeps the event loop responsive while a conversion is in
    flight.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: func(*args, **kwargs))


def get_api_key(env_name: str = "GEMINI_API_KEY") -> str:
    """
    Read an API key from the environment.

    Falls back to ``GOOGLE_API_KEY``, the variable the Google client
    libraries read by default.

    Raises:
        ValueError: If neither variable is set.
    """
    api_key = os.getenv(env_name) or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError(f"API key not configured: set {env_name} or GOOGLE_API_KEY")
    return api_key
