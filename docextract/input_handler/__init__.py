"""
Input Handler Module for the Document Extraction Pipeline.

This module provides functionality for:
    - Validating uploads (size, emptiness, MIME type)
    - Loading documents from disk
    - Reading and rasterizing PDF pages
    - Decoding images for OCR

Supported formats:
    - PDF (text-based and scanned)
    - Images: JPEG, PNG, WebP

Author: ML Engineering Team
"""

from .document import DocumentInput
from .validator import FileKind, FileValidator, ValidationResult, validate_file
from .handler import InputHandler
from .pdf_processor import PDFDocument, PDFProcessor
from .image_processor import ImageProcessor

__all__ = [
    'DocumentInput',
    'FileKind',
    'FileValidator',
    'ValidationResult',
    'validate_file',
    'InputHandler',
    'PDFDocument',
    'PDFProcessor',
    'ImageProcessor',
]
