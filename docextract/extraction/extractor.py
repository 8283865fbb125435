"""
Entity Extractor Module.

This module provides the EntityExtractor class that runs every field
extractor over a document's text and assembles the results into an
ExtractedEntities record.

Usage:
    from docextract.extraction import EntityExtractor

    extractor = EntityExtractor()
    entities = extractor.extract(raw_text)
    print(entities.amount.value, entities.vendor.value)

Extraction is pure: the same text and options always produce equal
entities. Unmatched fields are None, never an exception.

Author: ML Engineering Team
"""

from typing import Optional

from docextract.utils.logger import get_logger
from .amounts import AmountExtractor
from .currency import detect_currency
from .dates import DateExtractor
from .description import generate_description
from .entities import ExtractedEntities, ExtractionOptions
from .vendor import VendorExtractor

# Initialize module logger
logger = get_logger(__name__)


class EntityExtractor:
    """
    Runs the date, amount, vendor, currency and description extractors.

    Attributes:
        date_extractor: DateExtractor instance
        amount_extractor: AmountExtractor instance
        vendor_extractor: VendorExtractor instance

    Example:
        >>> entities = EntityExtractor().extract("WALMART\\nDATE: 01/15/2024\\nTOTAL $50.31")
        >>> str(entities.amount.value)
        '50.31'
    """

    def __init__(
        self,
        date_extractor: Optional[DateExtractor] = None,
        amount_extractor: Optional[AmountExtractor] = None,
        vendor_extractor: Optional[VendorExtractor] = None
    ) -> None:
        self.date_extractor = date_extractor or DateExtractor()
        self.amount_extractor = amount_extractor or AmountExtractor()
        self.vendor_extractor = vendor_extractor or VendorExtractor()

    def extract(
        self,
        text: str,
        options: Optional[ExtractionOptions] = None
    ) -> ExtractedEntities:
        """
        Extract all entities from raw document text.

        Args:
            text: Raw text acquired from the document.
            options: Extraction bounds and defaults.

        Returns:
            ExtractedEntities for the text.
        """
        options = options or ExtractionOptions.from_config()
        text = text or ""

        all_dates = self.date_extractor.extract(text, options)
        all_amounts = self.amount_extractor.extract(text, options)

        entities = ExtractedEntities(
            date=all_dates[0] if all_dates else None,
            amount=all_amounts[0] if all_amounts else None,
            vendor=self.vendor_extractor.extract(text),
            currency=detect_currency(text, options.default_currency),
            description=generate_description(text),
            all_dates=all_dates,
            all_amounts=all_amounts
        )

        logger.debug(
            f"Extracted {len(all_dates)} date(s), {len(all_amounts)} amount(s), "
            f"fields found: {entities.found_fields or 'none'}"
        )
        return entities


def extract_entities(
    text: str,
    options: Optional[ExtractionOptions] = None
) -> ExtractedEntities:
    """Convenience wrapper around EntityExtractor.extract."""
    return EntityExtractor().extract(text, options)
