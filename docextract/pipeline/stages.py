"""
Processing Stages Module.

Defines the per-file stage machine of the orchestrator and the progress
event emitted on every transition.

Stage flow:
    VALIDATING -> EXTRACTING -> [OCR] -> FINALIZING -> COMPLETE

ERROR is reachable from every non-terminal stage. CANCELLED is reachable
from every non-terminal stage and is reported separately from ERROR.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from docextract.utils.exceptions import InvalidStageTransitionError


class ProcessingStage(str, Enum):
    """Lifecycle stage of one file in the pipeline."""
    VALIDATING = 'validating'
    EXTRACTING = 'extracting'
    OCR = 'ocr'
    FINALIZING = 'finalizing'
    COMPLETE = 'complete'
    ERROR = 'error'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES


TERMINAL_STAGES: FrozenSet[ProcessingStage] = frozenset({
    ProcessingStage.COMPLETE,
    ProcessingStage.ERROR,
    ProcessingStage.CANCELLED,
})

_ABORT = {ProcessingStage.ERROR, ProcessingStage.CANCELLED}

ALLOWED_TRANSITIONS: Dict[ProcessingStage, FrozenSet[ProcessingStage]] = {
    ProcessingStage.VALIDATING: frozenset({ProcessingStage.EXTRACTING, *_ABORT}),
    ProcessingStage.EXTRACTING: frozenset({
        ProcessingStage.OCR, ProcessingStage.FINALIZING, *_ABORT
    }),
    ProcessingStage.OCR: frozenset({ProcessingStage.FINALIZING, *_ABORT}),
    ProcessingStage.FINALIZING: frozenset({ProcessingStage.COMPLETE, *_ABORT}),
    ProcessingStage.COMPLETE: frozenset(),
    ProcessingStage.ERROR: frozenset(),
    ProcessingStage.CANCELLED: frozenset(),
}

# Overall percentage reported on entering each stage
STAGE_PERCENT: Dict[ProcessingStage, float] = {
    ProcessingStage.VALIDATING: 0.0,
    ProcessingStage.EXTRACTING: 10.0,
    ProcessingStage.OCR: 40.0,
    ProcessingStage.FINALIZING: 90.0,
    ProcessingStage.COMPLETE: 100.0,
}


def can_transition(from_stage: ProcessingStage, to_stage: ProcessingStage) -> bool:
    return to_stage in ALLOWED_TRANSITIONS[from_stage]


@dataclass(frozen=True)
class ProcessingProgress:
    """
    A progress event for one file.

    Attributes:
        file_id: Identifier of the file being processed
        stage: Stage the file is in
        percent: Overall progress from 0 to 100
        current_page: Page being processed, when page-level
        total_pages: Pages in the document, when known
        error: {code, message, recoverable} for ERROR and CANCELLED events
        file_name: Original filename
    """
    file_id: str
    stage: ProcessingStage
    percent: float
    current_page: Optional[int] = None
    total_pages: Optional[int] = None
    error: Optional[Dict[str, Any]] = None
    file_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file_id': self.file_id,
            'file_name': self.file_name,
            'stage': self.stage.value,
            'percent': self.percent,
            'current_page': self.current_page,
            'total_pages': self.total_pages,
            'error': self.error,
        }


class StageTracker:
    """
    Holds the current stage of one file and enforces the transition table.

    Example:
        >>> tracker = StageTracker()
        >>> tracker.advance(ProcessingStage.EXTRACTING)
        >>> tracker.advance(ProcessingStage.COMPLETE)
        Traceback (most recent call last):
        InvalidStageTransitionError: Illegal stage transition: extracting -> complete
    """

    def __init__(self, initial: ProcessingStage = ProcessingStage.VALIDATING) -> None:
        self.stage = initial
        self.history = [initial]

    def advance(self, to_stage: ProcessingStage) -> None:
        """
        Move to ``to_stage``.

        Raises:
            InvalidStageTransitionError: If the table forbids the move.
        """
        if not can_transition(self.stage, to_stage):
            raise InvalidStageTransitionError(self.stage.value, to_stage.value)
        self.stage = to_stage
        self.history.append(to_stage)

    @property
    def is_terminal(self) -> bool:
        return self.stage.is_terminal
