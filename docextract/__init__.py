"""
Document Extraction Pipeline - Source Package.

Turns uploaded financial documents (PDF statements, receipts, invoices,
and photos of them) into structured, confidence-scored facts: a
transaction date, a total amount, a vendor name, a currency and a short
description.

Modules:
    - input_handler: Validation gate, PDF engine and image loading
    - acquisition: PDF text layer or OCR, decided per document
    - ocr_engine: Tesseract OCR with progress reporting
    - extraction: Date, amount, vendor, currency and description extractors
    - postprocessor: Confidence aggregation, validation and normalization
    - pipeline: Stage machine, progress channel, cancellation and batches

Architecture:
    Validate → Extract text → [OCR] → Extract fields → Aggregate confidence
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'input_handler',
    'acquisition',
    'ocr_engine',
    'extraction',
    'postprocessor',
    'pipeline',
    'utils'
]
