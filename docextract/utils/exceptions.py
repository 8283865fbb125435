"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the document
extraction pipeline. Every error carries a machine-readable code, a
human-readable message and a ``recoverable`` flag so that the
orchestrator can report failures to callers in a uniform shape.

Exception Hierarchy:
    DocumentProcessingError (base)
    ├── ValidationError                  (non-recoverable)
    │   ├── EmptyFileError
    │   ├── FileTooLargeError
    │   └── UnsupportedFileTypeError
    ├── ExtractionError                  (recoverable)
    │   ├── PDFExtractionError
    │   ├── CorruptedFileError           (non-recoverable)
    │   └── OCRError
    │       ├── OCREngineNotAvailableError
    │       └── OCRProcessingError
    ├── ProcessingCancelledError
    └── InvalidStageTransitionError

Author: ML Engineering Team
"""

from typing import Any, Dict, Optional


class DocumentProcessingError(Exception):
    """
    Base exception for all document processing errors.

    All custom exceptions in this system inherit from this class,
    allowing for easy catching of all pipeline-specific errors.

    Attributes:
        message: Human-readable error message.
        code: Machine-readable error code.
        recoverable: Whether the caller may retry with different settings.
        details: Optional dictionary with additional error details.
    """

    default_code = "PROCESSING_ERROR"
    default_recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
        recoverable: Optional[bool] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
            code: Error code, defaults to the class code.
            recoverable: Recoverability, defaults to the class setting.
        """
        self.message = message
        self.details = details or {}
        self.code = code or self.default_code
        self.recoverable = (
            self.default_recoverable if recoverable is None else recoverable
        )
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the {code, message, recoverable} error shape."""
        return {
            'code': self.code,
            'message': self.message,
            'recoverable': self.recoverable
        }


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(DocumentProcessingError):
    """Base exception for input validation failures. Never retried."""

    default_code = "VALIDATION_ERROR"
    default_recoverable = False


class EmptyFileError(ValidationError):
    """Raised when no file or zero-length content is provided."""

    def __init__(self, message: str = "File is empty", filename: str = None):
        super().__init__(message, {"filename": filename} if filename else None)


class FileTooLargeError(ValidationError):
    """Raised when a file exceeds the maximum accepted size."""

    def __init__(self, size_bytes: int, max_bytes: int):
        max_mb = max_bytes // (1024 * 1024)
        message = f"File too large. Maximum size is {max_mb}MB"
        details = {"size_bytes": size_bytes, "max_bytes": max_bytes}
        super().__init__(message, details)


class UnsupportedFileTypeError(ValidationError):
    """
    Raised when an unsupported MIME type is provided.

    Example:
        >>> raise UnsupportedFileTypeError("text/plain", ["application/pdf"])
    """

    def __init__(self, mime_type: str, supported_types: list):
        message = f"Unsupported file type: {mime_type}"
        details = {"mime_type": mime_type, "supported_types": supported_types}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class ExtractionError(DocumentProcessingError):
    """Base exception for text-extraction and OCR engine failures."""

    default_code = "EXTRACTION_ERROR"
    default_recoverable = True


class PDFExtractionError(ExtractionError):
    """Raised when the PDF text engine fails on a page or document."""

    def __init__(self, reason: str, page_index: Optional[int] = None):
        message = "PDF text extraction failed"
        details = {"reason": reason}
        if page_index is not None:
            details["page"] = page_index + 1
        super().__init__(message, details)


class CorruptedFileError(ExtractionError):
    """Raised when a document cannot be decoded at all."""

    default_code = "CORRUPTED_FILE"
    default_recoverable = False

    def __init__(self, filename: str, reason: str = None):
        message = f"Corrupted or unreadable file: {filename}"
        details = {"filename": filename, "reason": reason}
        super().__init__(message, details)


class OCRError(ExtractionError):
    """Base exception for OCR-related errors."""

    default_code = "OCR_ERROR"


class OCREngineNotAvailableError(OCRError):
    """Raised when the configured OCR engine is not available."""

    def __init__(self, engine_name: str):
        message = f"OCR engine not available: {engine_name}"
        details = {"engine": engine_name}
        super().__init__(message, details)


class OCRProcessingError(OCRError):
    """Raised when OCR processing fails."""

    def __init__(self, source: str, reason: str = None):
        message = f"OCR processing failed for: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================

class ProcessingCancelledError(DocumentProcessingError):
    """Raised at a checkpoint when cancellation was requested for a file."""

    default_code = "CANCELLED"
    default_recoverable = True

    def __init__(self, file_id: str, stage: str = None):
        message = f"Processing cancelled: {file_id}"
        details = {"file_id": file_id}
        if stage:
            details["stage"] = stage
        super().__init__(message, details)


class InvalidStageTransitionError(DocumentProcessingError):
    """Raised when the orchestrator attempts an illegal stage transition."""

    default_code = "INVALID_TRANSITION"

    def __init__(self, from_stage: str, to_stage: str):
        message = f"Illegal stage transition: {from_stage} -> {to_stage}"
        super().__init__(message, {"from": from_stage, "to": to_stage})


# Export all exceptions
__all__ = [
    'DocumentProcessingError',
    'ValidationError',
    'EmptyFileError',
    'FileTooLargeError',
    'UnsupportedFileTypeError',
    'ExtractionError',
    'PDFExtractionError',
    'CorruptedFileError',
    'OCRError',
    'OCREngineNotAvailableError',
    'OCRProcessingError',
    'ProcessingCancelledError',
    'InvalidStageTransitionError',
]
