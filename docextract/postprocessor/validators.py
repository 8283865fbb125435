"""
Entity Validators Module.

This module provides validation for extracted entities:
    - Date plausibility (not far in the future, not implausibly old)
    - Amount range and formatting
    - Vendor name sanity
    - Cross-entity consistency

Validation never changes the entities; it reports errors (the value is
not trustworthy) and warnings (worth a second look).

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from config import get_config
from docextract.extraction.entities import ExtractedEntities, ExtractedField
from docextract.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


INVALID_VENDOR_CHARS_RE = re.compile(r'[<>{}\[\]\\|^~`]')

SUSPICIOUS_VENDOR_PATTERNS = [
    re.compile(r'^test', re.IGNORECASE),
    re.compile(r'^sample', re.IGNORECASE),
    re.compile(r'^example', re.IGNORECASE),
    re.compile(r'^dummy', re.IGNORECASE),
    re.compile(r'^xxx', re.IGNORECASE),
]


@dataclass
class FieldValidation:
    """
    Validation outcome for a single field.

    Attributes:
        is_valid: False when any error was recorded
        errors: Blocking problems
        warnings: Non-blocking observations
    """
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {'is_valid': self.is_valid, 'errors': self.errors, 'warnings': self.warnings}


class EntityValidationReport:
    """
    Contains the result of validating one ExtractedEntities record.

    Attributes:
        is_valid: Overall validation result
        errors: Cross-entity error messages
        warnings: Cross-entity warning messages
        field_results: Per-field FieldValidation results
    """

    def __init__(self) -> None:
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.field_results: Dict[str, FieldValidation] = {}

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(message)

    def add_field_result(self, name: str, result: FieldValidation) -> None:
        """Add a field-level validation result."""
        self.field_results[name] = result
        if not result.is_valid:
            self.is_valid = False

    @property
    def warning_count(self) -> int:
        return len(self.warnings) + sum(len(r.warnings) for r in self.field_results.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'field_results': {k: v.to_dict() for k, v in self.field_results.items()}
        }


class DateValidator:
    """
    Validates transaction dates.

    Example:
        >>> validator = DateValidator()
        >>> validator.validate(ExtractedField(date(2999, 1, 1), 0.9)).is_valid
        False
    """

    def __init__(self) -> None:
        self.max_future_days = get_config("validation.max_future_days", 30)
        self.max_past_years = get_config("validation.max_past_years", 50)
        self.old_warning_years = get_config("validation.old_date_warning_years", 2)
        self.min_confidence = get_config("validation.min_confidence", 0.3)

    def validate(
        self,
        candidate: Optional[ExtractedField[date]],
        today: Optional[date] = None
    ) -> FieldValidation:
        result = FieldValidation()
        if candidate is None:
            return result

        today = today or date.today()
        value = candidate.value

        if candidate.confidence < self.min_confidence:
            result.add_warning(
                f"Date confidence ({candidate.confidence:.0%}) is below threshold"
            )

        if value > today + timedelta(days=self.max_future_days):
            result.add_error(f"Date is in the future: {value.isoformat()}")
        elif value.year < today.year - self.max_past_years:
            result.add_error(f"Date is too old: {value.isoformat()}")
        elif today.year - value.year > self.old_warning_years:
            result.add_warning(
                f"Date is more than {self.old_warning_years} years old"
            )

        return result


class AmountValidator:
    """
    Validates amounts.

    Checks for:
        - Value range
        - More than two decimal places
        - Unusually large or suspiciously round values
    """

    def __init__(self) -> None:
        self.min_amount = Decimal(str(get_config("extraction.amount.min_value", "0.01")))
        self.max_amount = Decimal(str(get_config("validation.max_amount", 1000000)))
        self.large_amount = Decimal(str(get_config("validation.large_amount_warning", 10000)))
        self.min_confidence = get_config("validation.min_confidence", 0.3)

    def validate(self, candidate: Optional[ExtractedField[Decimal]]) -> FieldValidation:
        result = FieldValidation()
        if candidate is None:
            return result

        value = Decimal(candidate.value)

        if candidate.confidence < self.min_confidence:
            result.add_warning(
                f"Amount confidence ({candidate.confidence:.0%}) is below threshold"
            )

        if value < self.min_amount:
            result.add_error(f"Amount {value:.2f} is below minimum ({self.min_amount})")
        if value > self.max_amount:
            result.add_error(f"Amount {value:.2f} exceeds maximum ({self.max_amount:,})")

        if value > self.large_amount:
            result.add_warning(f"Amount {value:.2f} is unusually large")
        if value > 100 and value % 100 == 0:
            result.add_warning(f"Amount is a round number ({value:.2f})")
        if -value.as_tuple().exponent > 2:
            result.add_warning("Amount has more than 2 decimal places")

        return result


class VendorValidator:
    """Validates vendor names."""

    def __init__(self) -> None:
        self.min_length = get_config("validation.min_vendor_length", 2)
        self.max_length = get_config("validation.max_vendor_length", 100)

    def validate(self, candidate: Optional[ExtractedField[str]]) -> FieldValidation:
        result = FieldValidation()
        if candidate is None:
            return result

        value = candidate.value or ""
        stripped = value.strip()

        if len(stripped) < self.min_length:
            result.add_error(f'Vendor name too short: "{value}"')
        if len(stripped) > self.max_length:
            result.add_error(f"Vendor name too long: {len(stripped)} characters")
        if stripped.isdigit():
            result.add_error(f'Vendor name is all numbers: "{value}"')

        if INVALID_VENDOR_CHARS_RE.search(value):
            result.add_warning("Vendor name contains unusual characters")
        if any(p.search(stripped) for p in SUSPICIOUS_VENDOR_PATTERNS):
            result.add_warning("Vendor name matches suspicious pattern")
        if re.search(r'\s{2,}', value):
            result.add_warning("Vendor name has excessive whitespace")

        return result


def validate_date(
    candidate: Optional[ExtractedField[date]],
    today: Optional[date] = None
) -> FieldValidation:
    return DateValidator().validate(candidate, today)


def validate_amount(candidate: Optional[ExtractedField[Decimal]]) -> FieldValidation:
    return AmountValidator().validate(candidate)


def validate_vendor(candidate: Optional[ExtractedField[str]]) -> FieldValidation:
    return VendorValidator().validate(candidate)


def validate_entities(
    entities: ExtractedEntities,
    today: Optional[date] = None
) -> EntityValidationReport:
    """
    Validate every entity and their consistency with each other.

    Args:
        entities: Entities to validate.
        today: Reference date for the date checks.

    Returns:
        EntityValidationReport with per-field and cross-entity findings.
    """
    report = EntityValidationReport()
    report.add_field_result('date', DateValidator().validate(entities.date, today))
    report.add_field_result('amount', AmountValidator().validate(entities.amount))
    report.add_field_result('vendor', VendorValidator().validate(entities.vendor))

    if not entities.found_fields:
        report.add_warning("No entities were extracted from the document")
    elif entities.date is None and entities.amount is None:
        report.add_warning("Neither a date nor an amount was extracted")

    confidences = [
        getattr(entities, name).confidence for name in entities.found_fields
    ]
    if len(confidences) > 1:
        average = sum(confidences) / len(confidences)
        if min(confidences) < average * 0.5:
            report.add_warning("Entity confidence levels are inconsistent")

    logger.debug(
        f"Entity validation: valid={report.is_valid}, warnings={report.warning_count}"
    )
    return report


def get_validation_summary(report: EntityValidationReport) -> str:
    """
    Summarize a validation report in one line.

    Example:
        >>> get_validation_summary(validate_entities(entities))
        'All entities validated successfully'
    """
    issues = []
    for name, result in report.field_results.items():
        if result.errors:
            issues.append(f"{name.capitalize()}: {', '.join(result.errors)}")
    if report.errors:
        issues.append(', '.join(report.errors))

    if not issues:
        return "All entities validated successfully"
    return '; '.join(issues)
