"""
Main Input Handler Module.

Reads statement files from disk and hands the raw bytes to the pipeline.
The pipeline itself works on byte buffers and does not care where they
came from; this handler exists for the command-line entry point and other
file-based callers.

Usage:
    from statement_converter.input_handler import InputHandler

    handler = InputHandler()
    pdf_bytes = handler.read("statement.pdf")
"""

from pathlib import Path
from typing import Union

from statement_converter.utils.logger import get_logger
from statement_converter.utils.helpers import get_file_extension, format_file_size
from statement_converter.utils.exceptions import InputError

logger = get_logger(__name__)


class InputHandler:
    """
    Validates and loads PDF statement files.

    Example:
        >>> handler = InputHandler()
        >>> data = handler.read("statements/january.pdf")
    """

    PDF_EXTENSIONS = {'.pdf'}

    def validate_file(self, filepath: Union[str, Path]) -> Path:
        """
        Validate that a file exists, is a PDF and is not empty.

        Args:
            filepath: Path to the file to validate.

        Returns:
            Path object pointing to the validated file.

        Raises:
            InputError: If any check fails.
        """
        path = Path(filepath)

        if not path.exists():
            raise InputError(str(filepath), "file not found")

        if not path.is_file():
            raise InputError(str(filepath), "path is not a file")

        extension = get_file_extension(path)
        if extension not in self.PDF_EXTENSIONS:
            raise InputError(
                str(filepath),
                f"unsupported file type '{extension}', expected one of {sorted(self.PDF_EXTENSIONS)}"
            )

        if path.stat().st_size == 0:
            raise InputError(str(filepath), "file is empty")

        logger.debug(f"File validated: {filepath}")
        return path

    def read(self, filepath: Union[str, Path]) -> bytes:
        """
        Validate a PDF file and return its contents.

        Raises:
            InputError: If the file is invalid or lacks a PDF header.
        """
        path = self.validate_file(filepath)
        data = path.read_bytes()

        if b"%PDF" not in data[:1024]:
            raise InputError(str(filepath), "file does not start with a PDF header")

        logger.info(f"Loaded {path.name} ({format_file_size(len(data))})")
        return data
