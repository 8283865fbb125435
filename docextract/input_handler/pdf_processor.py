"""
PDF Processor Module.

This module wraps PyMuPDF as the pipeline's text-extraction engine:
    - Per-page text extraction
    - Page counting
    - Page rasterization for OCR
    - PDF metadata extraction

Every opened document is released on all exit paths; use the handle
returned by PDFProcessor.open() as a context manager.

Author: ML Engineering Team
"""

import io
from typing import Any, Dict, Optional

import fitz  # PyMuPDF
from PIL import Image

from docextract.utils.logger import get_logger
from docextract.utils.exceptions import CorruptedFileError, PDFExtractionError

# Initialize module logger
logger = get_logger(__name__)


# PyMuPDF metadata keys reported with the file metadata
METADATA_KEYS = {
    'title': 'title',
    'author': 'author',
    'creator': 'creator',
    'producer': 'producer',
    'creationDate': 'creation_date',
}


class PDFDocument:
    """
    An open PDF document.

    Attributes:
        filename: Name used in log and error messages
        page_count: Number of pages in the document

    Example:
        >>> with PDFProcessor().open(data, "statement.pdf") as pdf:
        ...     first = pdf.page_text(0)
    """

    def __init__(self, doc: "fitz.Document", filename: str) -> None:
        self._doc = doc
        self.filename = filename
        self.page_count = doc.page_count

    def page_text(self, page_index: int) -> str:
        """
        Extract the text layer of one page.

        Raises:
            PDFExtractionError: If the page cannot be read.
        """
        self._check_page(page_index)
        try:
            page = self._doc.load_page(page_index)
            return page.get_text("text") or ""
        except Exception as e:
            logger.error(f"Text extraction failed on page {page_index + 1} of {self.filename}: {e}")
            raise PDFExtractionError(str(e), page_index) from e

    def render_page(self, page_index: int, scale: float = 2.0) -> Image.Image:
        """
        Rasterize one page to an RGB image.

        Args:
            page_index: Zero-based page number.
            scale: Zoom factor relative to 72 DPI.

        Raises:
            PDFExtractionError: If the page cannot be rendered.
        """
        self._check_page(page_index)
        try:
            page = self._doc.load_page(page_index)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
            image = Image.open(io.BytesIO(pix.tobytes("png")))
            image.load()
            if image.mode != 'RGB':
                image = image.convert('RGB')
        except Exception as e:
            logger.error(f"Rendering failed on page {page_index + 1} of {self.filename}: {e}")
            raise PDFExtractionError(str(e), page_index) from e

        logger.debug(
            f"Rendered page {page_index + 1} at {scale}x ({image.width}x{image.height})"
        )
        return image

    def metadata(self) -> Dict[str, Any]:
        """Return the non-empty document info fields."""
        info = self._doc.metadata or {}
        return {
            name: info[key]
            for key, name in METADATA_KEYS.items()
            if info.get(key)
        }

    def close(self) -> None:
        if not self._doc.is_closed:
            self._doc.close()

    def _check_page(self, page_index: int) -> None:
        if page_index < 0 or page_index >= self.page_count:
            raise PDFExtractionError(
                f"Page {page_index + 1} out of range (1-{self.page_count})", page_index
            )

    def __enter__(self) -> 'PDFDocument':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class PDFProcessor:
    """
    Text-extraction engine for PDF files.

    Example:
        >>> processor = PDFProcessor()
        >>> processor.get_page_count(data)
        2
    """

    def open(self, data: bytes, filename: str = "document.pdf") -> PDFDocument:
        """
        Open a PDF from bytes.

        Raises:
            CorruptedFileError: If the bytes are not a readable PDF.
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.error(f"Could not open PDF {filename}: {e}")
            raise CorruptedFileError(filename, str(e)) from e

        if doc.needs_pass:
            doc.close()
            raise CorruptedFileError(filename, "PDF is password protected")

        logger.debug(f"Opened PDF {filename} ({doc.page_count} page(s))")
        return PDFDocument(doc, filename)

    def get_page_count(self, data: bytes) -> int:
        """Return the total number of pages in a PDF."""
        with self.open(data) as pdf:
            return pdf.page_count

    def get_page_text(self, data: bytes, page_index: int) -> str:
        """Return the text of a single page."""
        with self.open(data) as pdf:
            return pdf.page_text(page_index)

    def get_metadata(self, data: bytes, filename: Optional[str] = None) -> Dict[str, Any]:
        """Return page count and document info fields."""
        with self.open(data, filename or "document.pdf") as pdf:
            metadata = pdf.metadata()
            metadata['page_count'] = pdf.page_count
            return metadata
