"""
Field Extraction Module.

Pure, deterministic extractors that turn raw document text into
confidence-scored candidates:
    - Dates (ISO, US, written, compact and European formats)
    - Amounts (priority-ordered matcher strategies)
    - Vendor names
    - Currency
    - A short description

Author: ML Engineering Team
"""

from .entities import ExtractedField, ExtractedEntities, ExtractionOptions, NO_DESCRIPTION
from .dates import DateExtractor, extract_dates
from .amounts import AmountExtractor, AmountMatcher, KeywordTotalMatcher, extract_amounts, parse_amount
from .vendor import VendorExtractor, extract_vendor
from .currency import detect_currency
from .description import generate_description
from .extractor import EntityExtractor, extract_entities

__all__ = [
    'ExtractedField',
    'ExtractedEntities',
    'ExtractionOptions',
    'NO_DESCRIPTION',
    'DateExtractor',
    'extract_dates',
    'AmountExtractor',
    'AmountMatcher',
    'KeywordTotalMatcher',
    'extract_amounts',
    'parse_amount',
    'VendorExtractor',
    'extract_vendor',
    'detect_currency',
    'generate_description',
    'EntityExtractor',
    'extract_entities',
]
