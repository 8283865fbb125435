"""Tests for confidence aggregation, validation and normalization."""

from datetime import date
from decimal import Decimal

import pytest

from docextract.extraction import NO_DESCRIPTION, ExtractedEntities, ExtractedField
from docextract.postprocessor import (
    ConfidenceAggregator,
    calculate_confidence,
    calculate_quality_score,
    get_validation_summary,
    meets_quality_threshold,
    normalize_amount,
    normalize_date,
    normalize_vendor_name,
    validate_amount,
    validate_date,
    validate_entities,
    validate_vendor,
)

TODAY = date(2024, 12, 31)


def make_entities(date_conf=None, amount_conf=None, vendor_conf=None,
                  description=NO_DESCRIPTION) -> ExtractedEntities:
    return ExtractedEntities(
        date=ExtractedField(date(2024, 1, 15), date_conf) if date_conf is not None else None,
        amount=ExtractedField(Decimal("50.31"), amount_conf) if amount_conf is not None else None,
        vendor=ExtractedField("WALMART", vendor_conf) if vendor_conf is not None else None,
        description=description
    )


class TestConfidenceAggregator:
    """Document-level confidence."""

    @pytest.fixture
    def aggregator(self):
        return ConfidenceAggregator()

    def test_mean_of_found_fields(self, aggregator):
        entities = make_entities(date_conf=0.95, amount_conf=0.98, vendor_conf=0.85)

        assert aggregator.aggregate(entities) == pytest.approx(0.9267, abs=1e-4)

    def test_only_present_fields_count(self, aggregator):
        assert aggregator.aggregate(make_entities(amount_conf=0.8)) == pytest.approx(0.8)

    def test_ocr_discount(self, aggregator):
        entities = make_entities(date_conf=0.9, amount_conf=0.9)

        assert aggregator.aggregate(entities, ocr_used=True) == pytest.approx(0.81)

    def test_floor_when_nothing_found(self, aggregator):
        assert aggregator.aggregate(make_entities()) == pytest.approx(0.3)
        assert aggregator.aggregate(make_entities(), ocr_used=True) == pytest.approx(0.3)

    def test_custom_settings(self):
        aggregator = ConfidenceAggregator(floor=0.1, ocr_discount=0.5)

        assert aggregator.aggregate(make_entities()) == pytest.approx(0.1)
        assert aggregator.aggregate(make_entities(amount_conf=1.0), ocr_used=True) == pytest.approx(0.5)

    def test_wrapper(self):
        assert calculate_confidence(make_entities(vendor_conf=0.6)) == pytest.approx(0.6)


class TestQualityScore:
    """0-100 quality score."""

    def test_perfect(self):
        entities = make_entities(1.0, 1.0, 1.0, description="Great Value Milk 1 Gal")

        assert calculate_quality_score(entities) == 100

    def test_empty(self):
        assert calculate_quality_score(make_entities()) == 0

    def test_partial(self):
        assert calculate_quality_score(make_entities(amount_conf=0.5)) == 20

    def test_threshold(self):
        assert meets_quality_threshold(make_entities(1.0, 1.0))
        assert not meets_quality_threshold(make_entities(amount_conf=0.5))
        assert meets_quality_threshold(make_entities(amount_conf=0.5), threshold=20)


class TestDateValidation:
    """Plausibility checks for dates."""

    def test_recent_date_valid(self):
        result = validate_date(ExtractedField(date(2024, 11, 1), 0.9), TODAY)

        assert result.is_valid
        assert result.warnings == []

    def test_future_date_invalid(self):
        result = validate_date(ExtractedField(date(2025, 3, 1), 0.9), TODAY)

        assert not result.is_valid
        assert "future" in result.errors[0]

    def test_very_old_date_invalid(self):
        result = validate_date(ExtractedField(date(1950, 1, 1), 0.9), TODAY)

        assert not result.is_valid

    def test_old_date_warns(self):
        result = validate_date(ExtractedField(date(2020, 1, 1), 0.9), TODAY)

        assert result.is_valid
        assert result.warnings

    def test_missing_date_is_valid(self):
        assert validate_date(None, TODAY).is_valid


class TestAmountValidation:
    """Range and formatting checks for amounts."""

    def test_normal_amount(self):
        result = validate_amount(ExtractedField(Decimal("50.31"), 0.9))

        assert result.is_valid
        assert result.warnings == []

    @pytest.mark.parametrize("value", ["0", "-5.00", "1000000.01"])
    def test_out_of_range(self, value):
        assert not validate_amount(ExtractedField(Decimal(value), 0.9)).is_valid

    def test_large_amount_warns(self):
        result = validate_amount(ExtractedField(Decimal("25000.50"), 0.9))

        assert result.is_valid
        assert any("large" in w for w in result.warnings)

    def test_extra_decimal_places_warn(self):
        result = validate_amount(ExtractedField(Decimal("12.345"), 0.9))

        assert any("decimal places" in w for w in result.warnings)


class TestVendorValidation:
    """Sanity checks for vendor names."""

    def test_valid_name(self):
        assert validate_vendor(ExtractedField("Blue Bottle Coffee", 0.9)).is_valid

    @pytest.mark.parametrize("name", ["X", "12345", "A" * 101])
    def test_invalid_names(self, name):
        assert not validate_vendor(ExtractedField(name, 0.9)).is_valid

    def test_special_characters_warn(self):
        result = validate_vendor(ExtractedField("Acme <Widgets>", 0.9))

        assert result.is_valid
        assert result.warnings


class TestEntityValidation:
    """Combined report."""

    def test_valid_entities(self):
        report = validate_entities(make_entities(0.95, 0.98, 0.85), TODAY)

        assert report.is_valid
        assert get_validation_summary(report) == "All entities validated successfully"

    def test_nothing_found_warns(self):
        report = validate_entities(make_entities(), TODAY)

        assert report.is_valid
        assert report.warnings

    def test_vendor_only_warns_missing_date_and_amount(self):
        report = validate_entities(make_entities(vendor_conf=0.8), TODAY)

        assert "Neither a date nor an amount was extracted" in report.warnings

    def test_invalid_field_invalidates_report(self):
        entities = make_entities(0.95, 0.98)
        entities.amount = ExtractedField(Decimal("2000000"), 0.9)

        report = validate_entities(entities, TODAY)

        assert not report.is_valid
        assert get_validation_summary(report).startswith("Amount:")
        assert report.to_dict()['field_results']['amount']['is_valid'] is False


class TestNormalizers:
    """Vendor, date and amount normalization."""

    @pytest.mark.parametrize("raw, expected", [
        ("  ACME   WIDGETS inc. #12", "Acme Widgets Inc."),
        ("JOE'S PIZZA", "Joe's Pizza"),
        ("globex llc", "Globex LLC"),
        ("BRITISH TEA CO UK", "British Tea Co UK"),
        ("", ""),
    ])
    def test_vendor_name(self, raw, expected):
        assert normalize_vendor_name(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("January 15, 2024", "2024-01-15"),
        ("2024-01-15", "2024-01-15"),
        ("15 Jan 2024", "2024-01-15"),
        (date(2024, 1, 15), "2024-01-15"),
    ])
    def test_date(self, raw, expected):
        assert normalize_date(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "not a date"])
    def test_unparseable_date(self, raw):
        assert normalize_date(raw) is None

    def test_amount(self):
        assert normalize_amount("12.345") == Decimal("12.35")
        assert normalize_amount(7) == Decimal("7.00")
