"""
Amount Extractor Module.

Amounts are found by an ordered list of matcher strategies. Each
matcher yields zero or more scored candidates; the first matcher (in
priority order) that yields anything decides the result and lower
priority matchers are not consulted.

Priority order:
    1. Keyword totals: "Total", "Grand Total", "Amount Due" ... (never "Subtotal")
    2. Dollar-sign amounts: "$123.45", "$ 1,234.56"
    3. Currency-code amounts: "USD 500.00", "99.99 USD"
    4. Euro and pound amounts: "€12,50", "£1,234.00"

Author: ML Engineering Team
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from config import get_config
from docextract.utils.logger import get_logger
from .entities import ExtractedField, ExtractionOptions

# Initialize module logger
logger = get_logger(__name__)


CURRENCY_CODES = (
    'USD', 'EUR', 'GBP', 'JPY', 'INR', 'CAD', 'AUD', 'CHF',
    'CNY', 'NZD', 'SGD', 'HKD', 'MXN', 'SEK', 'NOK', 'DKK',
)
_CODES = '|'.join(CURRENCY_CODES)

# US-style number: 1,234.56 / 1234.56 / 12
_NUMBER = r'(?P<value>\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)(?!\d)(?!\.\d)'

# Either separator convention: 1.234,56 / 1,234.56 / 12,50
_ANY_NUMBER = (
    r'(?P<value>\d{1,3}(?:[., ]\d{3})+(?:[.,]\d{1,2})?|\d+(?:[.,]\d{1,2})?)(?!\d)(?![.,]\d)'
)

# Keywords marking a line amount as part of the total rather than the total
_NON_TOTAL_CONTEXT_RE = re.compile(
    r'\b(?:sub\s*-?\s*total|tax|vat|tip|gratuity|discount|savings|change|cash|tendered)\b',
    re.IGNORECASE
)

_CENT = Decimal("0.01")

# "Sub Total", "Sub-Total", "Sub\tTotal" left of a total keyword
_SUB_PREFIX_RE = re.compile(r'\bsub[\s-]*$', re.IGNORECASE)


def parse_amount(raw: str) -> Optional[Decimal]:
    """
    Parse a matched number into a Decimal rounded to cents.

    The last separator followed by one or two digits is the decimal
    separator; every other separator is a thousands separator.

    Example:
        >>> parse_amount("1,234.56")
        Decimal('1234.56')
        >>> parse_amount("1.234,56")
        Decimal('1234.56')
    """
    cleaned = re.sub(r'\s', '', raw or '')
    fraction = ''
    decimal_match = re.search(r'[.,](\d{1,2})$', cleaned)
    if decimal_match:
        fraction = decimal_match.group(1)
        cleaned = cleaned[:decimal_match.start()]

    integer = re.sub(r'[.,]', '', cleaned)
    if not integer.isdigit():
        return None

    try:
        value = Decimal(f"{integer}.{fraction}" if fraction else integer)
    except InvalidOperation:
        return None
    return value.quantize(_CENT)


class AmountMatcher:
    """
    One priority class of amount patterns.

    Attributes:
        name: Class name used in logs
        patterns: (compiled pattern, base confidence) pairs; every pattern
            must expose a ``value`` group
        penalize_context: Lower confidence of amounts on tax/subtotal lines
    """

    def __init__(
        self,
        name: str,
        patterns: Sequence[Tuple[Pattern, float]],
        penalize_context: bool = True
    ) -> None:
        self.name = name
        self.patterns = list(patterns)
        self.penalize_context = penalize_context
        self.penalty = get_config("extraction.amount.subtotal_penalty", 0.15)

    def match(self, text: str, options: ExtractionOptions) -> List[ExtractedField[Decimal]]:
        """Return every in-range candidate this class finds."""
        candidates = []
        for pattern, base_confidence in self.patterns:
            for m in pattern.finditer(text):
                if not self.accepts(m, text):
                    continue
                value = parse_amount(m.group('value'))
                if value is None:
                    continue
                if not (options.min_amount <= value <= options.max_amount):
                    logger.debug(f"[{self.name}] Discarded out-of-range amount {value}")
                    continue

                candidates.append(ExtractedField(
                    value=value,
                    confidence=self.confidence_for(m, base_confidence, text),
                    source_snippet=m.group(0).strip(),
                    position=(m.start(), m.end())
                ))
        return candidates

    def accepts(self, m: re.Match, text: str) -> bool:
        return True

    def confidence_for(self, m: re.Match, base_confidence: float, text: str) -> float:
        if self.penalize_context:
            line_start = text.rfind('\n', 0, m.start()) + 1
            if _NON_TOTAL_CONTEXT_RE.search(text[line_start:m.start()]):
                return round(base_confidence - self.penalty, 4)
        return base_confidence


class KeywordTotalMatcher(AmountMatcher):
    """Amounts anchored on a total keyword; the keyword sets the confidence."""

    KEYWORD_CONFIDENCE = {
        'grand total': 1.0,
        'amount due': 0.99,
        'balance due': 0.99,
        'total due': 0.99,
        'total amount': 0.99,
        'total': 0.98,
    }

    PATTERN = re.compile(
        r'\b(?P<keyword>grand\s+total|amount\s+due|balance\s+due|total\s+due|total\s+amount|total)\b'
        r'[ \t]*(?:\([^)\n]*\))?[ \t]*[:\-]?[ \t]*'
        rf'(?:(?:{_CODES})[ \t]*)?(?:[$€£¥₹][ \t]*)?'
        + _ANY_NUMBER,
        re.IGNORECASE
    )

    def __init__(self) -> None:
        super().__init__('keyword_total', [(self.PATTERN, 1.0)], penalize_context=False)

    def confidence_for(self, m: re.Match, base_confidence: float, text: str) -> float:
        keyword = re.sub(r'\s+', ' ', m.group('keyword').lower())
        return self.KEYWORD_CONFIDENCE.get(keyword, 0.98)

    def accepts(self, m: re.Match, text: str) -> bool:
        keyword_start = m.start('keyword')
        line_start = text.rfind('\n', 0, keyword_start) + 1
        return not _SUB_PREFIX_RE.search(text[line_start:keyword_start])


def default_matchers() -> List[AmountMatcher]:
    """The amount matcher classes in priority order."""
    return [
        KeywordTotalMatcher(),
        AmountMatcher('dollar_symbol', [
            (re.compile(r'\$[ \t]?' + _NUMBER), 0.88),
        ]),
        AmountMatcher('currency_code', [
            (re.compile(rf'\b(?:{_CODES})[ \t]?' + _NUMBER), 0.8),
            (re.compile(_NUMBER + rf'[ \t]?(?:{_CODES})\b'), 0.8),
        ]),
        AmountMatcher('euro_pound_symbol', [
            (re.compile(r'[€£][ \t]?' + _ANY_NUMBER), 0.85),
            (re.compile(_ANY_NUMBER + r'[ \t]?[€£]'), 0.85),
        ]),
    ]


class AmountExtractor:
    """
    Runs the matcher classes in order and reduces their candidates.

    Example:
        >>> extractor = AmountExtractor()
        >>> amounts = extractor.extract("Subtotal: $100.00\\nTotal: $108.25")
        >>> amounts[0].value
        Decimal('108.25')
    """

    def __init__(self, matchers: Optional[List[AmountMatcher]] = None) -> None:
        self.matchers = matchers if matchers is not None else default_matchers()

    def extract(
        self,
        text: str,
        options: Optional[ExtractionOptions] = None
    ) -> List[ExtractedField[Decimal]]:
        """
        Return the winning class's candidates, best first.

        Args:
            text: Raw document text.
            options: Amount bounds. Defaults come from settings.yaml.

        Returns:
            Ranked candidate list, empty when no class matches.
        """
        if not text or not text.strip():
            return []

        options = options or ExtractionOptions.from_config()

        for matcher in self.matchers:
            candidates = matcher.match(text, options)
            if candidates:
                logger.debug(f"Amount class '{matcher.name}' matched {len(candidates)} value(s)")
                return self.reduce(candidates)

        return []

    @staticmethod
    def reduce(candidates: List[ExtractedField[Decimal]]) -> List[ExtractedField[Decimal]]:
        """
        De-duplicate by value and rank the candidates of one class.

        Ranking: confidence, then the larger amount, then first occurrence.
        """
        def rank(c: ExtractedField) -> Tuple[float, Decimal, int]:
            return (-c.confidence, -c.value, c.start)

        best: Dict[Decimal, ExtractedField[Decimal]] = {}
        for candidate in candidates:
            current = best.get(candidate.value)
            if current is None or rank(candidate) < rank(current):
                best[candidate.value] = candidate

        return sorted(best.values(), key=rank)


def extract_amounts(
    text: str,
    options: Optional[ExtractionOptions] = None
) -> List[ExtractedField[Decimal]]:
    """Convenience wrapper around AmountExtractor.extract."""
    return AmountExtractor().extract(text, options)
