"""
Custom Exceptions Module.

All errors raised by the statement conversion pipeline. Each pipeline
stage raises its own failure type so the caller can tell which step broke
and present a matching message; the original reason is kept in
``details``.

Exception Hierarchy:
    StatementConversionError (base)
    ├── InputError
    ├── ExtractionFailure            (text layer; fatal)
    ├── RasterizationFailure         (page rendering; fatal)
    ├── RecognitionFailure           (OCR; fatal)
    ├── StructuringFailure           (transaction extraction; fatal)
    ├── MalformedExtractionResponse  (absorbed, degrades to empty batch)
    ├── ContractViolation            (absorbed, candidate excluded)
    ├── QuotaExceededError           (pre-flight refusal)
    └── ExportError
"""

from typing import Optional


class StatementConversionError(Exception):
    """
    Base exception for all statement conversion errors.

    Attributes:
        message: Human-readable error message.
        details: Dictionary with additional error context.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(StatementConversionError):
    """Raised when an input file cannot be accepted for conversion."""

    def __init__(self, filepath: str, reason: str):
        message = f"Invalid input file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# FATAL PIPELINE ERRORS
# =============================================================================

class ExtractionFailure(StatementConversionError):
    """
    Raised when the PDF buffer cannot be parsed for its text layer.

    Example:
        >>> raise ExtractionFailure("not a PDF (missing %PDF header)")
    """

    def __init__(self, reason: Optional[str] = None):
        message = "Failed to extract text from PDF"
        details = {"reason": reason}
        super().__init__(message, details)


class RasterizationFailure(StatementConversionError):
    """Raised when a PDF page cannot be rendered to an image."""

    def __init__(self, page_index: int, reason: Optional[str] = None):
        message = f"Failed to convert PDF page {page_index + 1} to image"
        details = {"page_index": page_index, "reason": reason}
        super().__init__(message, details)


class RecognitionFailure(StatementConversionError):
    """Raised when the OCR backend fails or returns no text."""

    def __init__(self, backend: str, reason: Optional[str] = None):
        message = f"OCR failed to recognize text ({backend})"
        details = {"backend": backend, "reason": reason}
        super().__init__(message, details)


class StructuringFailure(StatementConversionError):
    """
    Raised when the transaction extraction engine produced no result.

    The message is meant to be shown to the end user as-is.
    """

    def __init__(self, engine: str, reason: Optional[str] = None):
        message = (
            "AI failed to structure the statement data. "
            "Please try the conversion again."
        )
        details = {"engine": engine, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# NON-FATAL CONDITIONS
# =============================================================================

class MalformedExtractionResponse(StatementConversionError):
    """Extraction result exists but carries no usable ``transactions`` list."""

    def __init__(self, reason: str):
        message = "Extraction response is missing a transactions list"
        details = {"reason": reason}
        super().__init__(message, details)


class ContractViolation(StatementConversionError):
    """A candidate record does not honor the extraction rule contract."""

    def __init__(self, field: str, reason: str):
        message = f"Rule contract violated for field '{field}'"
        details = {"field": field, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# CALLER-SIDE ERRORS
# =============================================================================

class QuotaExceededError(StatementConversionError):
    """Raised when the quota gate refuses a conversion."""

    def __init__(self, identity: Optional[str], retry_after_ms: Optional[int] = None):
        message = "Conversion limit reached"
        details = {"identity": identity, "retry_after_ms": retry_after_ms}
        self.retry_after_ms = retry_after_ms
        super().__init__(message, details)


class ExportError(StatementConversionError):
    """Raised when the table cannot be written to a spreadsheet."""

    def __init__(self, filepath: str, reason: Optional[str] = None):
        message = f"Failed to export spreadsheet: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


__all__ = [
    'StatementConversionError',
    'InputError',
    'ExtractionFailure',
    'RasterizationFailure',
    'RecognitionFailure',
    'StructuringFailure',
    'MalformedExtractionResponse',
    'ContractViolation',
    'QuotaExceededError',
    'ExportError',
]
