"""
Post-Processing Module.

This module scores and checks extraction output:
    - Document-level confidence aggregation
    - Quality scoring
    - Entity validation
    - Vendor, date and amount normalization

Author: ML Engineering Team
"""

from .confidence import (
    ConfidenceAggregator,
    calculate_confidence,
    calculate_quality_score,
    meets_quality_threshold,
)
from .normalizers import normalize_amount, normalize_date, normalize_vendor_name
from .validators import (
    AmountValidator,
    DateValidator,
    EntityValidationReport,
    FieldValidation,
    VendorValidator,
    get_validation_summary,
    validate_amount,
    validate_date,
    validate_entities,
    validate_vendor,
)

__all__ = [
    'ConfidenceAggregator',
    'calculate_confidence',
    'calculate_quality_score',
    'meets_quality_threshold',
    'normalize_amount',
    'normalize_date',
    'normalize_vendor_name',
    'AmountValidator',
    'DateValidator',
    'EntityValidationReport',
    'FieldValidation',
    'VendorValidator',
    'get_validation_summary',
    'validate_amount',
    'validate_date',
    'validate_entities',
    'validate_vendor',
]
