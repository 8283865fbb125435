"""
Pipeline Result Data Classes.

Terminal artifacts of the orchestrator: the processed result for one
document, its file metadata, and the outcome of a batch.

Author: ML Engineering Team
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from docextract.extraction.entities import ExtractedEntities


@dataclass
class FileMetadata:
    """
    Descriptive metadata of a processed file.

    Attributes:
        original_name: Filename as submitted
        mime_type: Normalized MIME type
        size: Size in bytes
        page_count: Pages in the document (1 for images)
        width: Image width in pixels, for images
        height: Image height in pixels, for images
        pdf_info: PDF document info (title, author, creator, producer,
            creation date) where present
    """
    original_name: str
    mime_type: str
    size: int
    page_count: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    pdf_info: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'original_name': self.original_name,
            'mime_type': self.mime_type,
            'size': self.size,
            'page_count': self.page_count,
        }
        if self.width is not None:
            data['width'] = self.width
            data['height'] = self.height
        if self.pdf_info:
            data['pdf_info'] = dict(self.pdf_info)
        return data


@dataclass(frozen=True)
class ProcessedDocumentResult:
    """
    Outcome of processing one document.

    Attributes:
        id: File identifier used throughout processing
        raw_text: Text the entities were extracted from
        entities: Extracted entities
        file_metadata: Descriptive metadata of the file
        confidence: Overall confidence in [0, 1]
        ocr_used: Whether the text came from OCR
        processing_time_ms: Wall-clock processing time
        ocr_confidence: Mean OCR engine confidence (0-100), when OCR ran
    """
    id: str
    raw_text: str
    entities: ExtractedEntities
    file_metadata: FileMetadata
    confidence: float
    ocr_used: bool
    processing_time_ms: int
    ocr_confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            'id': self.id,
            'raw_text': self.raw_text,
            'entities': self.entities.to_dict(),
            'file_metadata': self.file_metadata.to_dict(),
            'confidence': self.confidence,
            'ocr_used': self.ocr_used,
            'ocr_confidence': self.ocr_confidence,
            'processing_time_ms': self.processing_time_ms,
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def __repr__(self) -> str:
        return (
            f"ProcessedDocumentResult(id='{self.id}', "
            f"file='{self.file_metadata.original_name}', "
            f"confidence={self.confidence:.2f}, ocr_used={self.ocr_used})"
        )


@dataclass
class FailedDocument:
    """A file of a batch that did not produce a result."""
    file_id: str
    file_name: str
    error: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {'file_id': self.file_id, 'file_name': self.file_name, 'error': self.error}


@dataclass
class BatchProcessingResult:
    """
    Outcome of processing several documents one after another.

    Attributes:
        successful: Results of files that completed
        failed: Files that failed validation, extraction or were cancelled
        total_time_ms: Wall-clock time for the whole batch
    """
    successful: List[ProcessedDocumentResult] = field(default_factory=list)
    failed: List[FailedDocument] = field(default_factory=list)
    total_time_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)

    @property
    def success_rate(self) -> float:
        return len(self.successful) / self.total if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'successful': [r.to_dict() for r in self.successful],
            'failed': [f.to_dict() for f in self.failed],
            'total_time_ms': self.total_time_ms,
            'summary': {
                'total': self.total,
                'successful': len(self.successful),
                'failed': len(self.failed),
            },
        }
