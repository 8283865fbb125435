"""
Processing Orchestrator Module.

Drives files through validation, text acquisition, field extraction
and confidence aggregation, emitting progress events and honouring
cooperative cancellation.

Author: ML Engineering Team
"""

from .cancellation import CancellationRegistry, CancellationToken
from .channel import ProgressChannel
from .options import ProcessingOptions
from .processor import DocumentProcessor, ProcessingHandle
from .result import BatchProcessingResult, FailedDocument, FileMetadata, ProcessedDocumentResult
from .stages import ALLOWED_TRANSITIONS, ProcessingProgress, ProcessingStage, StageTracker

__all__ = [
    'DocumentProcessor',
    'ProcessingHandle',
    'ProcessingOptions',
    'ProcessingStage',
    'ProcessingProgress',
    'StageTracker',
    'ALLOWED_TRANSITIONS',
    'ProgressChannel',
    'CancellationRegistry',
    'CancellationToken',
    'ProcessedDocumentResult',
    'FileMetadata',
    'FailedDocument',
    'BatchProcessingResult',
]
