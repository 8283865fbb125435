"""
Extraction Data Classes.

This module defines the data structures produced by the field
extractors: scored candidates for a single field and the combined
entity set for one document, plus the options that bound extraction.

Classes:
    ExtractedField: One scored candidate value
    ExtractedEntities: Best candidates and candidate lists for a document
    ExtractionOptions: Bounds and defaults for the extractors

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from dateutil.relativedelta import relativedelta

from config import get_config


T = TypeVar('T')

NO_DESCRIPTION = "No description available"


def _serialize_value(value: Any) -> Any:
    """Convert dates and decimals into JSON-friendly values."""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


@dataclass(frozen=True)
class ExtractedField(Generic[T]):
    """
    A single candidate value found in document text.

    Attributes:
        value: Parsed value (date, Decimal or str)
        confidence: Heuristic trust score in [0, 1]
        source_snippet: The text the value was parsed from
        position: (start, end) character offsets in the source text

    Example:
        >>> ExtractedField(value=Decimal("50.31"), confidence=0.98,
        ...                source_snippet="TOTAL $50.31", position=(40, 52))
    """
    value: T
    confidence: float
    source_snippet: Optional[str] = None
    position: Optional[Tuple[int, int]] = None

    @property
    def start(self) -> int:
        """Start offset, or 0 when the position is unknown."""
        return self.position[0] if self.position else 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'value': _serialize_value(self.value),
            'confidence': self.confidence,
            'source_snippet': self.source_snippet,
            'position': list(self.position) if self.position else None
        }


@dataclass
class ExtractedEntities:
    """
    Structured facts extracted from one document.

    ``date`` and ``amount`` are always the first entry of ``all_dates`` and
    ``all_amounts`` respectively, which are kept in ranked order.

    Attributes:
        date: Best transaction date candidate
        amount: Best amount candidate
        vendor: First accepted vendor name
        currency: ISO 4217 code
        description: Short summary of the document's leading lines
        all_dates: Every valid date candidate, best first
        all_amounts: Every retained amount candidate, best first
    """
    date: Optional[ExtractedField[date]] = None
    amount: Optional[ExtractedField[Decimal]] = None
    vendor: Optional[ExtractedField[str]] = None
    currency: str = "USD"
    description: str = NO_DESCRIPTION
    all_dates: List[ExtractedField[date]] = field(default_factory=list)
    all_amounts: List[ExtractedField[Decimal]] = field(default_factory=list)

    @property
    def found_fields(self) -> List[str]:
        """Names of the primary fields that were found."""
        return [
            name for name in ('date', 'amount', 'vendor')
            if getattr(self, name) is not None
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            'date': self.date.to_dict() if self.date else None,
            'amount': self.amount.to_dict() if self.amount else None,
            'vendor': self.vendor.to_dict() if self.vendor else None,
            'currency': self.currency,
            'description': self.description,
            'all_dates': [d.to_dict() for d in self.all_dates],
            'all_amounts': [a.to_dict() for a in self.all_amounts]
        }

    def __repr__(self) -> str:
        return (
            f"ExtractedEntities(date={self.date.value if self.date else None}, "
            f"amount={self.amount.value if self.amount else None}, "
            f"vendor={self.vendor.value if self.vendor else None!r}, "
            f"currency='{self.currency}')"
        )


@dataclass
class ExtractionOptions:
    """
    Bounds and defaults applied by the field extractors.

    Attributes:
        default_currency: Currency reported when none is detected
        reference_date: "Today" for the date window; defaults to the
            current date when processing starts
        min_year: Earliest accepted year
        max_age_years: Optional rolling lower bound relative to today
        future_grace_days: How far past today a date may lie
        min_amount: Smallest accepted amount
        max_amount: Largest accepted amount
    """
    default_currency: str = "USD"
    reference_date: Optional[date] = None
    min_year: int = 1900
    max_age_years: Optional[int] = None
    future_grace_days: int = 1
    min_amount: Decimal = Decimal("0.01")
    max_amount: Decimal = Decimal("1000000")

    @classmethod
    def from_config(cls, **overrides: Any) -> 'ExtractionOptions':
        """
        Build options from settings.yaml, then apply keyword overrides.

        Example:
            >>> ExtractionOptions.from_config(default_currency="EUR")
        """
        values = {
            'default_currency': get_config("extraction.default_currency", "USD"),
            'min_year': get_config("extraction.date.min_year", 1900),
            'max_age_years': get_config("extraction.date.max_age_years"),
            'future_grace_days': get_config("extraction.date.future_grace_days", 1),
            'min_amount': Decimal(str(get_config("extraction.amount.min_value", "0.01"))),
            'max_amount': Decimal(str(get_config("extraction.amount.max_value", "1000000"))),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def today(self) -> date:
        return self.reference_date or date.today()

    @property
    def min_date(self) -> date:
        """Earliest date the date extractor accepts."""
        earliest = date(self.min_year, 1, 1)
        if self.max_age_years:
            earliest = max(earliest, self.today - relativedelta(years=self.max_age_years))
        return earliest

    @property
    def max_date(self) -> date:
        """Latest date the date extractor accepts."""
        return self.today + timedelta(days=self.future_grace_days)
