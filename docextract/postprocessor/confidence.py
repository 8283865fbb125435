"""
Confidence Aggregation Module.

Combines per-field confidences into one document-level score and
computes the 0-100 quality score used to flag results for review.

Author: ML Engineering Team
"""

from typing import Optional

from config import get_config
from docextract.extraction.entities import NO_DESCRIPTION, ExtractedEntities


# Quality score weights; they sum to 100
QUALITY_WEIGHTS = {
    'date': 30,
    'amount': 40,
    'vendor': 20,
    'description': 10,
}


class ConfidenceAggregator:
    """
    Computes the overall confidence of a processed document.

    The score is the mean confidence of the date, amount and vendor that
    were found. With none found, a fixed floor is returned. OCR-sourced
    text is discounted by a constant factor.

    Attributes:
        floor: Score returned when no primary field was found
        ocr_discount: Multiplier applied when OCR produced the text

    Example:
        >>> aggregator = ConfidenceAggregator()
        >>> aggregator.aggregate(entities, ocr_used=True)
        0.792
    """

    def __init__(
        self,
        floor: Optional[float] = None,
        ocr_discount: Optional[float] = None
    ) -> None:
        self.floor = floor if floor is not None else get_config("confidence.no_entity_floor", 0.3)
        self.ocr_discount = (
            ocr_discount if ocr_discount is not None
            else get_config("confidence.ocr_discount", 0.9)
        )

    def aggregate(self, entities: ExtractedEntities, ocr_used: bool = False) -> float:
        """
        Return the document confidence in [0, 1].

        Args:
            entities: Extracted entities of the document.
            ocr_used: Whether the text came from OCR.
        """
        confidences = [
            getattr(entities, name).confidence for name in entities.found_fields
        ]
        if not confidences:
            return self.floor

        score = sum(confidences) / len(confidences)
        if ocr_used:
            score *= self.ocr_discount
        return round(min(max(score, 0.0), 1.0), 4)


def calculate_confidence(entities: ExtractedEntities, ocr_used: bool = False) -> float:
    """Convenience wrapper around ConfidenceAggregator.aggregate."""
    return ConfidenceAggregator().aggregate(entities, ocr_used)


def calculate_quality_score(entities: ExtractedEntities) -> int:
    """
    Score extraction quality from 0 to 100.

    Date, amount and vendor contribute their weight scaled by confidence;
    a real description contributes its full weight.
    """
    score = 0
    for name in ('date', 'amount', 'vendor'):
        candidate = getattr(entities, name)
        if candidate is not None:
            score += round(candidate.confidence * QUALITY_WEIGHTS[name])

    if entities.description and entities.description != NO_DESCRIPTION:
        score += QUALITY_WEIGHTS['description']

    return int(round(score * 100 / sum(QUALITY_WEIGHTS.values())))


def meets_quality_threshold(
    entities: ExtractedEntities,
    threshold: Optional[int] = None
) -> bool:
    """True when the quality score reaches ``threshold`` (default 50)."""
    if threshold is None:
        threshold = get_config("validation.quality_threshold", 50)
    return calculate_quality_score(entities) >= threshold
