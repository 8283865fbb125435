"""
OCR Engine Module for the Document Extraction Pipeline.

This module provides OCR functionality including:
    - Text recognition from rasterized pages and images
    - Engine confidence reporting
    - Incremental progress callbacks
    - Language code resolution

Backend: Tesseract (pytesseract)

Author: ML Engineering Team
"""

from .engine import OCREngine
from .tesseract_backend import OCR_LANGUAGES, TesseractBackend, resolve_language
from .ocr_result import OCRResult, OCRWord

__all__ = [
    'OCREngine',
    'TesseractBackend',
    'OCR_LANGUAGES',
    'resolve_language',
    'OCRResult',
    'OCRWord',
]
