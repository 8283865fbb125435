"""
Main OCR Engine Module.

This module provides the OCREngine class, the pipeline's OCR
collaborator: given a rasterized page and a language code it returns
recognized text plus an engine confidence (0-100), reporting progress
through a callback while it works.

Usage:
    from docextract.ocr_engine import OCREngine

    engine = OCREngine()
    result = engine.recognize(image, language="eng",
                              on_progress=lambda pct: print(pct))
    print(result.text, result.confidence)

Author: ML Engineering Team
"""

from typing import Optional

from PIL import Image

from config import get_config
from docextract.utils.logger import get_logger
from docextract.utils.exceptions import OCREngineNotAvailableError, OCRProcessingError
from .ocr_result import OCRResult
from .tesseract_backend import ProgressCallback, TesseractBackend

# Initialize module logger
logger = get_logger(__name__)


class OCREngine:
    """
    Unified interface over the configured OCR backend.

    Supported Backends:
        - tesseract: Tesseract OCR

    Attributes:
        backend_name: Name of the active OCR backend
        backend: The active OCR backend instance
        language: Default language code

    Example:
        >>> engine = OCREngine()
        >>> result = engine.recognize(image)
        >>> print(f"{result.word_count} words at {result.confidence:.0f}%")
    """

    SUPPORTED_BACKENDS = ['tesseract']

    def __init__(self, backend: Optional[str] = None) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: OCR backend to use. If None, uses configuration.

        Raises:
            OCREngineNotAvailableError: If the backend is unknown.
        """
        self.backend_name = (backend or get_config("ocr.engine", "tesseract")).lower()
        if self.backend_name == "pytesseract":
            self.backend_name = "tesseract"

        if self.backend_name not in self.SUPPORTED_BACKENDS:
            raise OCREngineNotAvailableError(self.backend_name)

        self.backend = TesseractBackend()
        self.language = get_config("ocr.language", "eng")

        logger.debug(f"OCR Engine initialized with backend: {self.backend_name}")

    def recognize(
        self,
        image: Image.Image,
        language: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> OCRResult:
        """
        Recognize the text of a rasterized page.

        Args:
            image: PIL Image to process.
            language: Language code; defaults to ``ocr.language``.
            on_progress: Receives running progress from 0 to 100.

        Returns:
            OCRResult with text and confidence.

        Raises:
            OCRProcessingError: If the input is not an image or recognition fails.
            OCREngineNotAvailableError: If the backend is missing.
        """
        if not isinstance(image, Image.Image):
            raise OCRProcessingError("unknown", "Invalid image input")

        return self.backend.recognize(image, language or self.language, on_progress)

    def get_backend_info(self) -> dict:
        """Describe the active backend."""
        return {
            'backend': self.backend_name,
            'language': self.language,
            'supported_backends': self.SUPPORTED_BACKENDS,
        }
