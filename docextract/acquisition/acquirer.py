"""
Text Acquisition Module.

This module obtains the raw text of a document:
    - PDFs: the text layer is read page by page; when the document looks
      image-based, its first pages are rasterized and OCRed instead
    - Images: always OCRed

OCR output replaces the extracted text layer; the two are never merged.
The OCR decision depends only on the page texts and the configured
thresholds, so the same document always takes the same path.

Usage:
    from docextract.acquisition import TextAcquirer

    acquirer = TextAcquirer()
    acquired = acquirer.acquire(data, "receipt.pdf", FileKind.PDF)
    print(acquired.ocr_used, acquired.text[:80])

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from PIL import Image

from config import get_config
from docextract.input_handler.image_processor import ImageProcessor
from docextract.input_handler.pdf_processor import PDFDocument, PDFProcessor
from docextract.input_handler.validator import FileKind
from docextract.ocr_engine import OCREngine, OCRResult
from docextract.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class OCRDecision:
    """Whether a PDF needs OCR, and why."""
    required: bool
    reason: str
    low_text_pages: int = 0
    text_length: int = 0


@dataclass
class AcquiredText:
    """
    Text obtained for one document.

    Attributes:
        text: Text handed to the field extractors
        ocr_used: Whether ``text`` came from OCR
        page_count: Pages in the document (1 for images)
        page_texts: Per-page text of whichever path produced ``text``
        ocr_confidence: Mean OCR engine confidence (0-100), when OCR ran
        metadata: Document details (PDF info fields, image dimensions)
        decision: The OCR decision taken for PDFs
    """
    text: str
    ocr_used: bool
    page_count: int
    page_texts: List[str] = field(default_factory=list)
    ocr_confidence: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    decision: Optional[OCRDecision] = None


class AcquisitionListener:
    """
    Receives acquisition events.

    The default implementation ignores every event; the orchestrator
    overrides these to drive its stage machine and cancellation checks.
    """

    def checkpoint(self) -> None:
        """Called before each blocking step; raise to abort."""

    def on_page_extracted(self, current_page: int, total_pages: int) -> None:
        """Called after the text layer of a PDF page was read."""

    def on_ocr_started(self, reason: str, pages: int) -> None:
        """Called once, right before the first OCR call."""

    def on_ocr_progress(self, percent: float, current_page: int, total_pages: int) -> None:
        """Called with overall OCR progress from 0 to 100."""


class TextAcquirer:
    """
    Chooses between the PDF text layer and OCR, and runs the chosen path.

    Attributes:
        low_text_page_chars: A page with fewer characters is low-text
        low_text_page_ratio: OCR when the low-text share exceeds this
        min_text_length: OCR when the document has fewer characters
        render_scale: Rasterization zoom factor for OCR
        max_ocr_pages: Default number of leading pages to OCR
        max_ocr_pages_limit: Upper bound for max_ocr_pages

    Example:
        >>> acquirer = TextAcquirer(pdf_processor=PDFProcessor(), ocr_engine=OCREngine())
        >>> acquired = acquirer.acquire(data, "scan.pdf", FileKind.PDF)
        >>> acquired.ocr_used
        True
    """

    def __init__(
        self,
        pdf_processor: Optional[PDFProcessor] = None,
        ocr_engine: Optional[OCREngine] = None,
        image_processor: Optional[ImageProcessor] = None
    ) -> None:
        self.pdf_processor = pdf_processor or PDFProcessor()
        self._ocr_engine = ocr_engine
        self.image_processor = image_processor or ImageProcessor()

        self.low_text_page_chars = get_config("acquisition.low_text_page_chars", 50)
        self.low_text_page_ratio = get_config("acquisition.low_text_page_ratio", 0.5)
        self.min_text_length = get_config("acquisition.min_text_length", 100)
        self.render_scale = get_config("acquisition.render_scale", 2.0)
        self.max_ocr_pages = get_config("acquisition.max_ocr_pages", 1)
        self.max_ocr_pages_limit = get_config("acquisition.max_ocr_pages_limit", 5)

    @property
    def ocr_engine(self) -> OCREngine:
        # Created on first use so text-only PDFs never need Tesseract
        if self._ocr_engine is None:
            self._ocr_engine = OCREngine()
        return self._ocr_engine

    def decide_ocr(self, page_texts: List[str], force_ocr: bool = False) -> OCRDecision:
        """
        Decide whether a PDF must be OCRed.

        OCR is required when forced, when more than the configured share of
        pages is low-text, or when the whole text is below the minimum length.
        """
        low_text_pages = sum(
            1 for text in page_texts if len(text.strip()) < self.low_text_page_chars
        )
        text_length = len(self.join_pages(page_texts))

        if force_ocr:
            reason, required = "OCR forced by caller", True
        elif page_texts and low_text_pages / len(page_texts) > self.low_text_page_ratio:
            reason, required = (
                f"{low_text_pages}/{len(page_texts)} pages have little text", True
            )
        elif text_length < self.min_text_length:
            reason, required = f"only {text_length} characters of text", True
        else:
            reason, required = "text layer is sufficient", False

        return OCRDecision(required, reason, low_text_pages, text_length)

    def acquire(
        self,
        data: bytes,
        filename: str,
        file_kind: FileKind,
        force_ocr: bool = False,
        language: Optional[str] = None,
        max_ocr_pages: Optional[int] = None,
        listener: Optional[AcquisitionListener] = None
    ) -> AcquiredText:
        """
        Obtain the text of a document.

        Args:
            data: Raw document bytes.
            filename: Name used in logs and errors.
            file_kind: PDF or IMAGE.
            force_ocr: OCR a PDF even when it has a text layer.
            language: OCR language code.
            max_ocr_pages: Leading PDF pages to OCR when OCR runs.
            listener: Receives progress and checkpoint calls.

        Returns:
            AcquiredText for the document.

        Raises:
            CorruptedFileError: If the document cannot be decoded.
            PDFExtractionError: If the PDF engine fails on a page.
            OCRError: If OCR fails.
        """
        listener = listener or AcquisitionListener()
        listener.checkpoint()

        if file_kind == FileKind.IMAGE:
            return self._acquire_image(data, filename, language, listener)

        with self.pdf_processor.open(data, filename) as pdf:
            return self._acquire_pdf(pdf, force_ocr, language, max_ocr_pages, listener)

    def _acquire_pdf(
        self,
        pdf: PDFDocument,
        force_ocr: bool,
        language: Optional[str],
        max_ocr_pages: Optional[int],
        listener: AcquisitionListener
    ) -> AcquiredText:
        total = pdf.page_count
        page_texts = []

        for index in range(total):
            listener.checkpoint()
            page_texts.append(pdf.page_text(index))
            listener.on_page_extracted(index + 1, total)
            logger.debug(f"Extracted page {index + 1}/{total} ({len(page_texts[-1])} chars)")

        decision = self.decide_ocr(page_texts, force_ocr)
        metadata = pdf.metadata()

        if not decision.required or total == 0:
            logger.info(f"{pdf.filename}: using text layer ({decision.reason})")
            return AcquiredText(
                text=self.join_pages(page_texts),
                ocr_used=False,
                page_count=total,
                page_texts=page_texts,
                metadata=metadata,
                decision=decision
            )

        pages = self._ocr_page_count(total, max_ocr_pages)
        logger.info(f"{pdf.filename}: running OCR on {pages} page(s) ({decision.reason})")

        listener.checkpoint()
        listener.on_ocr_started(decision.reason, pages)

        results = []
        for index in range(pages):
            if index:
                listener.checkpoint()
            image = pdf.render_page(index, self.render_scale)
            results.append(self._recognize(image, language, listener, index, pages))

        return AcquiredText(
            text=self.join_pages([r.text for r in results]),
            ocr_used=True,
            page_count=total,
            page_texts=[r.text for r in results],
            ocr_confidence=self._mean_confidence(results),
            metadata=metadata,
            decision=decision
        )

    def _acquire_image(
        self,
        data: bytes,
        filename: str,
        language: Optional[str],
        listener: AcquisitionListener
    ) -> AcquiredText:
        image, metadata = self.image_processor.load(data, filename)

        listener.checkpoint()
        listener.on_ocr_started("image input", 1)
        result = self._recognize(image, language, listener, 0, 1)

        return AcquiredText(
            text=result.text,
            ocr_used=True,
            page_count=1,
            page_texts=[result.text],
            ocr_confidence=result.confidence,
            metadata=metadata
        )

    def _recognize(
        self,
        image: Image.Image,
        language: Optional[str],
        listener: AcquisitionListener,
        index: int,
        pages: int
    ) -> OCRResult:
        def report(percent: float) -> None:
            overall = (index * 100.0 + percent) / pages
            listener.on_ocr_progress(round(overall, 1), index + 1, pages)

        return self.ocr_engine.recognize(image, language, report)

    def _ocr_page_count(self, total: int, requested: Optional[int]) -> int:
        limit = requested if requested is not None else self.max_ocr_pages
        limit = max(1, min(limit, self.max_ocr_pages_limit))
        return min(total, limit)

    @staticmethod
    def join_pages(page_texts: List[str]) -> str:
        return '\n\n'.join(text.strip() for text in page_texts if text.strip())

    @staticmethod
    def _mean_confidence(results: List[OCRResult]) -> Optional[float]:
        if not results:
            return None
        return round(sum(r.confidence for r in results) / len(results), 2)
