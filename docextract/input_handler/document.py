"""
Document Input Data Class.

The pipeline's only input: raw bytes plus the declared MIME type,
filename and size. Nothing else travels with a document.
"""

from dataclasses import dataclass, field
from typing import Optional

from docextract.utils.helpers import format_file_size, generate_file_id


@dataclass
class DocumentInput:
    """
    A file submitted for processing.

    Attributes:
        data: Raw file bytes
        mime_type: Declared MIME type, e.g. "application/pdf"
        filename: Original filename
        size: Declared size in bytes; defaults to len(data)
        file_id: Identifier used for progress events and cancellation

    Example:
        >>> doc = DocumentInput(data=pdf_bytes, mime_type="application/pdf",
        ...                     filename="receipt.pdf")
        >>> doc.size == len(pdf_bytes)
        True
    """
    data: Optional[bytes]
    mime_type: str
    filename: str = "document"
    size: Optional[int] = None
    file_id: str = field(default_factory=generate_file_id)

    def __post_init__(self) -> None:
        if self.size is None:
            self.size = len(self.data) if self.data is not None else 0

    def __repr__(self) -> str:
        return (
            f"DocumentInput(filename='{self.filename}', "
            f"mime_type='{self.mime_type}', "
            f"size={format_file_size(self.size or 0)}, "
            f"file_id='{self.file_id}')"
        )
