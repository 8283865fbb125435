"""
Validation Gate Module.

Rejects unsupported, oversized or empty inputs before any expensive
work begins. Rules are checked in order:

    1. A document with content must be provided
    2. The declared size must not exceed the maximum (25 MB)
    3. The content must not be zero-length
    4. The MIME type must be on the allow-list

Validation has no side effects and its failure is final for the file.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from config import get_config
from docextract.utils.logger import get_logger
from docextract.utils.exceptions import (
    EmptyFileError,
    FileTooLargeError,
    UnsupportedFileTypeError,
    ValidationError,
)
from .document import DocumentInput

# Initialize module logger
logger = get_logger(__name__)


PDF_MIME_TYPE = 'application/pdf'

DEFAULT_MIME_TYPES = [
    PDF_MIME_TYPE,
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/webp',
]


class FileKind(str, Enum):
    """How a document's text is acquired."""
    PDF = 'pdf'
    IMAGE = 'image'


@dataclass
class ValidationResult:
    """
    Outcome of validating one input file.

    Attributes:
        is_valid: Whether the file may be processed
        error: Human-readable rejection reason
        file_kind: PDF or IMAGE for valid files
        mime_type: Normalized MIME type
        size_bytes: Declared size
        exception: The typed ValidationError behind ``error``
    """
    is_valid: bool
    error: Optional[str] = None
    file_kind: Optional[FileKind] = None
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    exception: Optional[ValidationError] = field(default=None, repr=False, compare=False)


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """
    Lowercase a MIME type and drop any parameters.

    Example:
        >>> normalize_mime_type("Application/PDF; charset=binary")
        'application/pdf'
    """
    return (mime_type or '').split(';')[0].strip().lower()


class FileValidator:
    """
    Checks a DocumentInput against size and type limits.

    Attributes:
        max_file_size: Maximum accepted size in bytes
        supported_mime_types: Allow-list of MIME types

    Example:
        >>> result = FileValidator().validate(doc)
        >>> result.is_valid, result.file_kind
        (True, <FileKind.PDF: 'pdf'>)
    """

    def __init__(
        self,
        max_file_size_mb: Optional[float] = None,
        supported_mime_types: Optional[List[str]] = None
    ) -> None:
        if max_file_size_mb is None:
            max_file_size_mb = get_config("input.max_file_size_mb", 25)
        self.max_file_size = int(max_file_size_mb * 1024 * 1024)

        mime_types = supported_mime_types or get_config(
            "input.supported_mime_types", DEFAULT_MIME_TYPES
        )
        self.supported_mime_types = [normalize_mime_type(m) for m in mime_types]

    def validate(self, document: Optional[DocumentInput]) -> ValidationResult:
        """
        Validate a document without raising.

        Args:
            document: Document to check, may be None.

        Returns:
            ValidationResult describing the outcome.
        """
        try:
            return self.check(document)
        except ValidationError as e:
            logger.warning(f"Validation failed: {e.message}")
            return ValidationResult(
                is_valid=False,
                error=e.message,
                mime_type=normalize_mime_type(document.mime_type) if document else None,
                size_bytes=document.size if document else None,
                exception=e
            )

    def check(self, document: Optional[DocumentInput]) -> ValidationResult:
        """
        Validate a document, raising on the first failed rule.

        Raises:
            EmptyFileError: No document, or zero-length content.
            FileTooLargeError: Declared size above the maximum.
            UnsupportedFileTypeError: MIME type not on the allow-list.
        """
        if document is None or document.data is None:
            raise EmptyFileError("No file provided")

        size = document.size or 0
        if size > self.max_file_size:
            raise FileTooLargeError(size, self.max_file_size)

        if size == 0 or len(document.data) == 0:
            raise EmptyFileError("File is empty", document.filename)

        mime_type = normalize_mime_type(document.mime_type)
        if mime_type not in self.supported_mime_types:
            raise UnsupportedFileTypeError(
                document.mime_type or 'unknown', self.supported_mime_types
            )

        file_kind = FileKind.PDF if mime_type == PDF_MIME_TYPE else FileKind.IMAGE
        logger.debug(f"Validated {document.filename} as {file_kind.value}")

        return ValidationResult(
            is_valid=True,
            file_kind=file_kind,
            mime_type=mime_type,
            size_bytes=size
        )


def validate_file(document: Optional[DocumentInput]) -> ValidationResult:
    """Convenience wrapper around FileValidator.validate."""
    return FileValidator().validate(document)
