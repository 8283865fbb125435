"""
Per-call processing options.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from docextract.extraction.entities import ExtractionOptions


@dataclass
class ProcessingOptions:
    """
    Overrides applied to one processing call.

    Attributes:
        force_ocr: OCR PDFs even when they have a usable text layer
        ocr_language: OCR language code ("eng", "de", "eng+fra" ...)
        default_currency: Currency reported when none is detected
        max_ocr_pages: Leading PDF pages to OCR (capped by configuration)
        reference_date: "Today" for date validation; the current date
            when unset
    """
    force_ocr: bool = False
    ocr_language: Optional[str] = None
    default_currency: Optional[str] = None
    max_ocr_pages: Optional[int] = None
    reference_date: Optional[date] = None

    def extraction_options(self) -> ExtractionOptions:
        """Extraction options from configuration with these overrides."""
        return ExtractionOptions.from_config(
            default_currency=self.default_currency.upper() if self.default_currency else None,
            reference_date=self.reference_date or date.today()
        )
