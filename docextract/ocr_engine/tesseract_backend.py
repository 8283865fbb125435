"""
Tesseract OCR Backend.

This module provides OCR functionality using Tesseract (pytesseract).

Features:
    - Text reconstruction with line and paragraph breaks
    - Mean word confidence (0-100)
    - Coarse progress reporting through a callback
    - Configurable Tesseract parameters

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package

Author: ML Engineering Team
"""

import time
from typing import Callable, Dict, List, Optional, Tuple

import pytesseract
from PIL import Image

from config import get_config
from docextract.utils.logger import get_logger
from docextract.utils.exceptions import OCREngineNotAvailableError, OCRProcessingError
from .ocr_result import OCRResult, OCRWord

# Initialize module logger
logger = get_logger(__name__)


ProgressCallback = Callable[[float], None]

# Short language codes accepted in place of Tesseract's three-letter codes
OCR_LANGUAGES: Dict[str, str] = {
    'en': 'eng',
    'de': 'deu',
    'fr': 'fra',
    'es': 'spa',
    'it': 'ita',
    'pt': 'por',
    'nl': 'nld',
    'ja': 'jpn',
    'zh': 'chi_sim',
    'hi': 'hin',
}


def resolve_language(language: Optional[str]) -> str:
    """
    Map a language code to the Tesseract code.

    Example:
        >>> resolve_language("de")
        'deu'
        >>> resolve_language("eng+deu")
        'eng+deu'
    """
    if not language:
        return get_config("ocr.language", "eng")
    return OCR_LANGUAGES.get(language.lower(), language)


class TesseractBackend:
    """
    Tesseract OCR backend implementation.

    Tesseract must be installed on the system; availability is checked
    on first use rather than at construction time.

    Attributes:
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        preserve_interword_spaces: Keep column spacing in the output

    Example:
        >>> backend = TesseractBackend()
        >>> result = backend.recognize(image, "eng")
        >>> print(result.confidence)
    """

    name = "tesseract"

    def __init__(self) -> None:
        """Initialize the Tesseract backend with configuration."""
        self.psm = get_config("ocr.tesseract.psm", 3)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.preserve_interword_spaces = get_config(
            "ocr.tesseract.preserve_interword_spaces", True
        )
        self._version: Optional[str] = None

        logger.debug(f"TesseractBackend initialized (psm={self.psm}, oem={self.oem})")

    def _check_dependencies(self) -> None:
        """
        Check if Tesseract is available.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        if self._version is not None:
            return
        try:
            self._version = str(pytesseract.get_tesseract_version())
        except pytesseract.TesseractNotFoundError as e:
            raise OCREngineNotAvailableError(
                f"Tesseract OCR (not installed or not in PATH): {e}"
            ) from e
        logger.info(f"Tesseract version: {self._version}")

    def _build_config(self) -> str:
        """Build the Tesseract configuration string."""
        config_parts = [f"--psm {self.psm}", f"--oem {self.oem}"]
        if self.preserve_interword_spaces:
            config_parts.append("-c preserve_interword_spaces=1")
        return ' '.join(config_parts)

    def recognize(
        self,
        image: Image.Image,
        language: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> OCRResult:
        """
        Recognize the text in an image.

        Args:
            image: PIL Image to process.
            language: Language code ("eng", "de", "eng+fra" ...).
            on_progress: Receives running progress from 0 to 100.

        Returns:
            OCRResult with text and mean word confidence.

        Raises:
            OCREngineNotAvailableError: If Tesseract is missing.
            OCRProcessingError: If recognition fails.
        """
        report = on_progress or (lambda percent: None)
        language = resolve_language(language)
        self._check_dependencies()

        start_time = time.time()
        report(0.0)

        try:
            if image.mode != 'RGB':
                image = image.convert('RGB')
            report(10.0)

            data = pytesseract.image_to_data(
                image,
                lang=language,
                config=self._build_config(),
                output_type=pytesseract.Output.DICT
            )
        except Exception as e:
            logger.error(f"OCR processing failed: {e}")
            raise OCRProcessingError("image", str(e)) from e

        report(90.0)

        words = self._parse_tesseract_output(data)
        text = self._build_text(words)
        confidence = (
            sum(w.confidence for w in words) / len(words) if words else 0.0
        )
        processing_time = time.time() - start_time

        report(100.0)

        logger.info(
            f"OCR completed: {len(words)} words, avg confidence: {confidence:.1f}% "
            f"({processing_time:.2f}s)"
        )

        return OCRResult(
            text=text,
            confidence=round(confidence, 2),
            words=words,
            language=language,
            engine=self.name,
            processing_time=processing_time,
            metadata={'psm': self.psm, 'oem': self.oem, 'tesseract_version': self._version}
        )

    def _parse_tesseract_output(self, data: Dict[str, List]) -> List[OCRWord]:
        """Parse image_to_data output into OCRWord objects, skipping empty boxes."""
        words = []

        for i in range(len(data['text'])):
            text = (data['text'][i] or '').strip()
            if not text:
                continue

            x, y = data['left'][i], data['top'][i]
            w, h = data['width'][i], data['height'][i]
            if w <= 0 or h <= 0:
                continue

            # Tesseract returns -1 for non-word elements
            conf = max(float(data['conf'][i]), 0.0)

            words.append(OCRWord(
                text=text,
                bbox=(x, y, x + w, y + h),
                confidence=conf,
                line_key=(data['block_num'][i], data['par_num'][i], data['line_num'][i])
            ))

        return words

    @staticmethod
    def _build_text(words: List[OCRWord]) -> str:
        """Join words into lines and paragraphs in reading order."""
        lines: List[Tuple[Tuple[int, int, int], List[str]]] = []
        for word in words:
            if lines and lines[-1][0] == word.line_key:
                lines[-1][1].append(word.text)
            else:
                lines.append((word.line_key, [word.text]))

        parts = []
        previous_paragraph = None
        for key, tokens in lines:
            paragraph = key[:2]
            if previous_paragraph is not None and paragraph != previous_paragraph:
                parts.append('')
            parts.append(' '.join(tokens))
            previous_paragraph = paragraph

        return '\n'.join(parts)
