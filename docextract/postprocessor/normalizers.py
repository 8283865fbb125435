"""
Data Normalizers Module.

This module provides normalization functions for:
    - Vendor names (title case with business abbreviations kept intact)
    - Free-form date strings
    - Amount values

Author: ML Engineering Team
"""

import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from dateutil import parser as date_parser

from docextract.utils.helpers import collapse_whitespace
from docextract.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


# Canonical spelling of business abbreviations
PRESERVED_ABBREVIATIONS = {
    'inc': 'Inc',
    'llc': 'LLC',
    'ltd': 'Ltd',
    'corp': 'Corp',
    'co': 'Co',
    'plc': 'PLC',
    'usa': 'USA',
    'uk': 'UK',
    'llp': 'LLP',
}

_INVALID_CHARS_RE = re.compile(r'[<>{}\[\]\\|^~`]')


def normalize_vendor_name(vendor: str) -> str:
    """
    Clean and title-case a vendor name.

    Args:
        vendor: Raw vendor name.

    Returns:
        Normalized name.

    Example:
        >>> normalize_vendor_name("  ACME   WIDGETS inc. #12")
        'Acme Widgets Inc.'
        >>> normalize_vendor_name("JOE'S PIZZA")
        "Joe's Pizza"
    """
    name = collapse_whitespace(vendor or '')
    name = _INVALID_CHARS_RE.sub('', name)
    name = re.sub(r'[,;:!]+$', '', name)
    name = re.sub(r'\s*#\d+$', '', name)
    name = re.sub(r'\s+\d{1,6}$', '', name)

    words = []
    for word in name.split(' '):
        core = word.rstrip('.')
        suffix = word[len(core):]
        canonical = PRESERVED_ABBREVIATIONS.get(core.lower())
        if canonical:
            words.append(canonical + suffix)
        elif word:
            words.append(word[0].upper() + word[1:].lower())
    return ' '.join(words)


def normalize_date(value: Union[str, date, None]) -> Optional[str]:
    """
    Normalize a date string to ISO format (YYYY-MM-DD).

    Args:
        value: Date string in any format python-dateutil understands,
            or a date.

    Returns:
        ISO date string, or None if parsing fails.

    Example:
        >>> normalize_date("January 15, 2024")
        '2024-01-15'
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    if not value.strip():
        return None

    try:
        parsed = date_parser.parse(value.strip(), fuzzy=False)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date '{value}': {e}")
        return None
    return parsed.date().isoformat()


def normalize_amount(amount: Union[Decimal, float, str]) -> Decimal:
    """
    Round an amount to cents.

    Example:
        >>> normalize_amount("12.345")
        Decimal('12.35')
    """
    return Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
