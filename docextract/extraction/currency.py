"""
Currency Detector Module.

Symbols are checked first, then three-letter ISO codes; the caller's
default is returned when neither appears.
"""

import re
from typing import Dict, Optional

from config import get_config
from .amounts import CURRENCY_CODES


CURRENCY_SYMBOLS: Dict[str, str] = {
    '$': 'USD',
    '€': 'EUR',
    '£': 'GBP',
    '¥': 'JPY',
    '₹': 'INR',
}

_CODE_RE = re.compile(r'\b(' + '|'.join(CURRENCY_CODES) + r')\b')


def detect_currency(text: str, default: Optional[str] = None) -> str:
    """
    Detect the document currency.

    Args:
        text: Raw document text.
        default: Code returned when nothing is detected; falls back to
            ``extraction.default_currency``.

    Returns:
        ISO 4217 currency code.

    Example:
        >>> detect_currency("Total: €12,50")
        'EUR'
        >>> detect_currency("no money here", default="CAD")
        'CAD'
    """
    if default is None:
        default = get_config("extraction.default_currency", "USD")
    if not text:
        return default

    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            return code

    match = _CODE_RE.search(text)
    if match:
        return match.group(1)

    return default
