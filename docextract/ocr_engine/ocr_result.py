"""
OCR output types.

An OCRResult is what the OCR collaborator hands back for one rasterized
page: the recognized text, the engine's mean confidence on a 0-100
scale, and the words it was assembled from.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class OCRWord:
    """
    One recognized word.

    Attributes:
        text: Word text
        bbox: (left, top, right, bottom) in pixels of the rendered page
        confidence: Engine confidence, 0-100
        line_key: (block, paragraph, line) numbers assigned by the engine
    """
    text: str
    bbox: Tuple[int, int, int, int]
    confidence: float = 0.0
    line_key: Tuple[int, int, int] = (0, 0, 0)


@dataclass
class OCRResult:
    """
    Text recognized on one page or image.

    Attributes:
        text: Text with line and paragraph breaks
        confidence: Mean word confidence, 0-100 (0 when nothing was read)
        words: Words the text was built from
        language: Engine language code that was used
        engine: Backend name
        processing_time: Seconds spent in the engine
        metadata: Backend settings and version
    """
    text: str
    confidence: float = 0.0
    words: List[OCRWord] = field(default_factory=list)
    language: str = "eng"
    engine: str = "tesseract"
    processing_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def word_count(self) -> int:
        return len(self.words)

    @property
    def is_empty(self) -> bool:
        """True when the page produced no readable text."""
        return not self.text.strip()

    def to_dict(self) -> Dict[str, Any]:
        """Summary without the word boxes."""
        return {
            'text': self.text,
            'confidence': self.confidence,
            'word_count': self.word_count,
            'language': self.language,
            'engine': self.engine,
            'processing_time': round(self.processing_time, 3),
        }
