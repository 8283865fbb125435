"""
Vendor Extractor Module.

Finds the merchant name. Strategies are tried in order and the first
candidate that survives cleaning wins:

    1. Label lines: "From:", "Merchant:", "Vendor:", "Store:", "Shop:"
    2. An all-caps company-name line near the top of the document
    3. "Thank you for shopping at X"
    4. A name carrying a corporate suffix (Inc, LLC, Corp ...) in the
       first lines

Author: ML Engineering Team
"""

import re
from typing import Iterator, List, Optional, Tuple

from config import get_config
from docextract.utils.helpers import collapse_whitespace
from docextract.utils.logger import get_logger
from .entities import ExtractedField

# Initialize module logger
logger = get_logger(__name__)


# Words that describe the document or a receipt line, never a merchant
GENERIC_WORDS = frozenset({
    'receipt', 'invoice', 'tax invoice', 'sales receipt', 'statement', 'bill',
    'order', 'confirmation', 'order confirmation', 'tax', 'total', 'subtotal',
    'payment', 'transaction', 'date', 'time', 'store', 'shop', 'merchant',
    'vendor', 'cash', 'change', 'welcome', 'thank you', 'customer copy',
    'merchant copy', 'copy', 'duplicate', 'original',
})

_LABEL_RE = re.compile(
    r'^[ \t]*(?:from|merchant|vendor|store|shop)[ \t]*:[ \t]*(?P<name>[^\n]+)$',
    re.IGNORECASE | re.MULTILINE
)

_CAPS_LINE_RE = re.compile(r"^[A-Z][A-Z &'.\-]{2,39}$")

_THANK_YOU_RE = re.compile(
    r"thank\s+you\s+for\s+(?:shopping|dining|visiting|choosing|your\s+purchase)"
    r"\s+(?:at|with)\s+(?P<name>[A-Za-z0-9&'.\- ]+?)\s*(?:[!.,\n]|$)",
    re.IGNORECASE
)

_SUFFIX_RE = re.compile(
    r"(?P<name>[A-Z][A-Za-z0-9&'.\- ]*?\s(?:Inc|LLC|L\.L\.C|Corp|Corporation|Ltd|Limited|Co|PLC|GmbH|LLP)\.?)"
    r"(?=\s|,|$)"
)

_STORE_NUMBER_RE = re.compile(r'#\s*\d+')
_TRAILING_PUNCT_RE = re.compile(r'[\s,.;:!\-]+$')


def clean_vendor_name(raw: str) -> str:
    """
    Strip store numbers, extra whitespace and trailing punctuation.

    Example:
        >>> clean_vendor_name("WALMART #4521 ")
        'WALMART'
    """
    name = _STORE_NUMBER_RE.sub(' ', raw)
    name = collapse_whitespace(name)
    return _TRAILING_PUNCT_RE.sub('', name)


def is_acceptable_vendor(name: str) -> bool:
    """Reject empty, numeric or generic document words as vendor names."""
    if not name or len(name) < 2 or len(name) > 100:
        return False
    letters = sum(1 for c in name if c.isalpha())
    digits = sum(1 for c in name if c.isdigit())
    if letters == 0 or digits > letters:
        return False
    return name.lower() not in GENERIC_WORDS


def _lines(text: str) -> Iterator[Tuple[str, int, int]]:
    """Yield (stripped line, start, end) for non-empty lines."""
    for m in re.finditer(r'[^\n]+', text):
        raw = m.group(0)
        line = raw.strip()
        if line:
            start = m.start() + len(raw) - len(raw.lstrip())
            yield line, start, start + len(line)


class VendorExtractor:
    """
    Applies the vendor strategies in order; first accepted name wins.

    Attributes:
        header_lines: Non-empty lines searched for an all-caps name
        suffix_lines: Non-empty lines searched for a corporate suffix

    Example:
        >>> VendorExtractor().extract("STORE #4521\\nWALMART").value
        'WALMART'
    """

    LABEL_CONFIDENCE = 0.9
    HEADER_CONFIDENCE = 0.85
    THANK_YOU_CONFIDENCE = 0.8
    SUFFIX_CONFIDENCE = 0.75

    def __init__(self) -> None:
        self.header_lines = get_config("extraction.vendor.header_lines", 5)
        self.suffix_lines = get_config("extraction.vendor.suffix_lines", 10)

    def extract(self, text: str) -> Optional[ExtractedField[str]]:
        """
        Return the vendor candidate, or None when no strategy succeeds.

        Args:
            text: Raw document text.
        """
        if not text or not text.strip():
            return None

        for strategy in (
            self._from_labels,
            self._from_header,
            self._from_thank_you,
            self._from_suffix,
        ):
            for candidate in strategy(text):
                if is_acceptable_vendor(candidate.value):
                    logger.debug(
                        f"Vendor '{candidate.value}' found by {strategy.__name__}"
                    )
                    return candidate
        return None

    @staticmethod
    def _field(raw: str, confidence: float, start: int, end: int) -> ExtractedField[str]:
        return ExtractedField(
            value=clean_vendor_name(raw),
            confidence=confidence,
            source_snippet=raw.strip(),
            position=(start, end)
        )

    def _from_labels(self, text: str) -> List[ExtractedField[str]]:
        return [
            self._field(m.group('name'), self.LABEL_CONFIDENCE, m.start('name'), m.end('name'))
            for m in _LABEL_RE.finditer(text)
        ]

    def _from_header(self, text: str) -> List[ExtractedField[str]]:
        candidates = []
        for index, (line, start, end) in enumerate(_lines(text)):
            if index >= self.header_lines:
                break
            shaped = clean_vendor_name(line)
            if _CAPS_LINE_RE.match(shaped):
                candidates.append(self._field(line, self.HEADER_CONFIDENCE, start, end))
        return candidates

    def _from_thank_you(self, text: str) -> List[ExtractedField[str]]:
        return [
            self._field(m.group('name'), self.THANK_YOU_CONFIDENCE, m.start('name'), m.end('name'))
            for m in _THANK_YOU_RE.finditer(text)
        ]

    def _from_suffix(self, text: str) -> List[ExtractedField[str]]:
        candidates = []
        for index, (line, start, _) in enumerate(_lines(text)):
            if index >= self.suffix_lines:
                break
            m = _SUFFIX_RE.search(line)
            if m:
                candidates.append(self._field(
                    m.group('name'), self.SUFFIX_CONFIDENCE,
                    start + m.start('name'), start + m.end('name')
                ))
        return candidates


def extract_vendor(text: str) -> Optional[ExtractedField[str]]:
    """Convenience wrapper around VendorExtractor.extract."""
    return VendorExtractor().extract(text)
