"""
Date Extractor Module.

Finds transaction dates in free text. Every supported format is scanned
independently; each match is checked against the calendar and the
accepted date window before it becomes a candidate.

Supported formats:
    - ISO: 2024-01-15, 2024/1/5
    - US numeric: 01/15/2024, 1/15/24, 01-15-2024
    - Written: January 15, 2024 / Jan 15th 2024
    - Compact: 15 January 2024 / 15-Jan-2024
    - European dot: 15.01.2024

Two-digit years are windowed: values below 51 map to 20xx, the rest to
19xx. This boundary drifts as time passes and is a known limitation.

Author: ML Engineering Team
"""

import re
from datetime import date
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from config import get_config
from docextract.utils.logger import get_logger
from .entities import ExtractedField, ExtractionOptions

# Initialize module logger
logger = get_logger(__name__)


MONTHS: Dict[str, int] = {
    'jan': 1, 'january': 1,
    'feb': 2, 'february': 2,
    'mar': 3, 'march': 3,
    'apr': 4, 'april': 4,
    'may': 5,
    'jun': 6, 'june': 6,
    'jul': 7, 'july': 7,
    'aug': 8, 'august': 8,
    'sep': 9, 'sept': 9, 'september': 9,
    'oct': 10, 'october': 10,
    'nov': 11, 'november': 11,
    'dec': 12, 'december': 12,
}

_MONTH = (
    r'(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?'
    r'|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)'
)

_DATE_KEYWORD_RE = re.compile(
    r'\b(?:date|dated|issued|created|processed|purchased?|paid|due|posted)\b',
    re.IGNORECASE
)


def expand_two_digit_year(year: int) -> int:
    """
    Window a two-digit year into a full year.

    Example:
        >>> expand_two_digit_year(24)
        2024
        >>> expand_two_digit_year(51)
        1951
    """
    if year >= 100:
        return year
    return 2000 + year if year < 51 else 1900 + year


def _from_iso(m: re.Match) -> Tuple[int, int, int]:
    return int(m.group('year')), int(m.group('month')), int(m.group('day'))


def _from_us(m: re.Match) -> Tuple[int, int, int]:
    year = expand_two_digit_year(int(m.group('year')))
    return year, int(m.group('month')), int(m.group('day'))


def _from_named(m: re.Match) -> Tuple[int, int, int]:
    month = MONTHS[m.group('month').lower().rstrip('.')]
    return int(m.group('year')), month, int(m.group('day'))


def _from_dot(m: re.Match) -> Tuple[int, int, int]:
    return int(m.group('year')), int(m.group('month')), int(m.group('day'))


# (format name, pattern, base confidence, component builder)
DATE_PATTERNS: List[Tuple[str, Pattern, float, Callable[[re.Match], Tuple[int, int, int]]]] = [
    (
        'iso',
        re.compile(r'\b(?P<year>\d{4})[-/](?P<month>\d{1,2})[-/](?P<day>\d{1,2})\b'),
        0.9,
        _from_iso,
    ),
    (
        'us_numeric',
        re.compile(
            r'\b(?P<month>\d{1,2})(?P<sep>[/-])(?P<day>\d{1,2})(?P=sep)'
            r'(?P<year>\d{4}|\d{2})\b'
        ),
        0.85,
        _from_us,
    ),
    (
        'written',
        re.compile(
            rf'\b(?P<month>{_MONTH})\.?\s+(?P<day>\d{{1,2}})(?:st|nd|rd|th)?,?\s+(?P<year>\d{{4}})\b',
            re.IGNORECASE
        ),
        0.92,
        _from_named,
    ),
    (
        'compact',
        re.compile(
            rf'\b(?P<day>\d{{1,2}})(?:st|nd|rd|th)?[\s-]+(?P<month>{_MONTH})\.?,?[\s-]+(?P<year>\d{{4}})\b',
            re.IGNORECASE
        ),
        0.9,
        _from_named,
    ),
    (
        'european_dot',
        re.compile(r'\b(?P<day>\d{1,2})\.(?P<month>\d{1,2})\.(?P<year>\d{4})\b'),
        0.85,
        _from_dot,
    ),
]


class DateExtractor:
    """
    Scans text for dates in every supported format.

    Attributes:
        keyword_window: Characters before a match searched for a date keyword
        keyword_boost: Confidence added when a date keyword is adjacent
        max_confidence: Ceiling for boosted confidence

    Example:
        >>> extractor = DateExtractor()
        >>> dates = extractor.extract("DATE: 01/15/2024")
        >>> dates[0].value
        datetime.date(2024, 1, 15)
    """

    def __init__(self) -> None:
        self.keyword_window = get_config("extraction.date.keyword_window", 30)
        self.keyword_boost = get_config("extraction.date.keyword_boost", 0.1)
        self.max_confidence = get_config("extraction.date.max_confidence", 0.99)

    def extract(
        self,
        text: str,
        options: Optional[ExtractionOptions] = None
    ) -> List[ExtractedField[date]]:
        """
        Return all valid date candidates, best first.

        Candidates are de-duplicated by calendar date, keeping the highest
        confidence occurrence. Ranking is by confidence, then by position.

        Args:
            text: Raw document text.
            options: Date window bounds. Defaults come from settings.yaml.

        Returns:
            Ranked list of date candidates, empty when none are found.
        """
        if not text or not text.strip():
            return []

        options = options or ExtractionOptions.from_config()
        min_date, max_date = options.min_date, options.max_date
        best: Dict[date, ExtractedField[date]] = {}

        for name, pattern, base_confidence, build in DATE_PATTERNS:
            for match in pattern.finditer(text):
                value = self._to_date(build(match))
                if value is None:
                    logger.debug(f"Rejected impossible date '{match.group(0)}'")
                    continue
                if not (min_date <= value <= max_date):
                    logger.debug(f"Rejected out-of-window date '{match.group(0)}'")
                    continue

                candidate = ExtractedField(
                    value=value,
                    confidence=self._score(text, match.start(), base_confidence),
                    source_snippet=match.group(0),
                    position=(match.start(), match.end())
                )

                current = best.get(value)
                if current is None or self._rank(candidate) < self._rank(current):
                    best[value] = candidate

        return sorted(best.values(), key=self._rank)

    def extract_best(
        self,
        text: str,
        options: Optional[ExtractionOptions] = None
    ) -> Optional[ExtractedField[date]]:
        """Return the single best date candidate, or None."""
        candidates = self.extract(text, options)
        return candidates[0] if candidates else None

    @staticmethod
    def _rank(candidate: ExtractedField) -> Tuple[float, int]:
        return (-candidate.confidence, candidate.start)

    @staticmethod
    def _to_date(parts: Tuple[int, int, int]) -> Optional[date]:
        year, month, day = parts
        try:
            return date(year, month, day)
        except ValueError:
            return None

    def _score(self, text: str, start: int, base_confidence: float) -> float:
        """Apply the keyword-adjacency boost to a base confidence."""
        context = text[max(0, start - self.keyword_window):start]
        if _DATE_KEYWORD_RE.search(context):
            return round(min(base_confidence + self.keyword_boost, self.max_confidence), 4)
        return base_confidence


def extract_dates(
    text: str,
    options: Optional[ExtractionOptions] = None
) -> List[ExtractedField[date]]:
    """Convenience wrapper around DateExtractor.extract."""
    return DateExtractor().extract(text, options)
