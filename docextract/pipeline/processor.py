"""
Processing Orchestrator Module.

This module provides the DocumentProcessor class, which drives one file
through the pipeline stages:

    1. VALIDATING  - size, emptiness and MIME type checks
    2. EXTRACTING  - PDF text layer, page by page
    3. OCR         - only when the document is image-based or OCR is forced
    4. FINALIZING  - field extraction and confidence aggregation
    5. COMPLETE

Every transition emits a ProcessingProgress event. Failures move the
file to ERROR, cancellation to CANCELLED; both emit an event carrying
{code, message, recoverable} and re-raise a typed error to the caller
after every engine handle has been released.

Usage:
    from docextract.pipeline import DocumentProcessor

    processor = DocumentProcessor()
    result = processor.process_document(document, on_progress=print)

    # Background processing with a progress stream
    handle = processor.submit(document)
    for event in handle.progress:
        print(event.stage.value, event.percent)
    result = handle.result()

Author: ML Engineering Team
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from docextract.acquisition import AcquiredText, AcquisitionListener, TextAcquirer
from docextract.extraction import EntityExtractor
from docextract.input_handler import DocumentInput, FileValidator, ValidationResult
from docextract.input_handler.pdf_processor import METADATA_KEYS, PDFProcessor
from docextract.ocr_engine import OCREngine
from docextract.postprocessor import ConfidenceAggregator
from docextract.utils.logger import get_logger
from docextract.utils.helpers import elapsed_ms, generate_file_id
from docextract.utils.exceptions import (
    DocumentProcessingError,
    ExtractionError,
    ProcessingCancelledError,
    ValidationError,
)
from .cancellation import CancellationRegistry, CancellationToken
from .channel import ProgressChannel
from .options import ProcessingOptions
from .result import BatchProcessingResult, FailedDocument, FileMetadata, ProcessedDocumentResult
from .stages import STAGE_PERCENT, ProcessingProgress, ProcessingStage, StageTracker

# Initialize module logger
logger = get_logger(__name__)


ProgressCallback = Callable[[ProcessingProgress], None]

PDF_INFO_FIELDS = frozenset(METADATA_KEYS.values())

# Percent ranges of the page loop and of OCR within the overall progress
_EXTRACT_SPAN = (STAGE_PERCENT[ProcessingStage.EXTRACTING], STAGE_PERCENT[ProcessingStage.OCR])
_OCR_SPAN = (STAGE_PERCENT[ProcessingStage.OCR], STAGE_PERCENT[ProcessingStage.FINALIZING])


class _FileRun(AcquisitionListener):
    """Stage machine, cancellation token and event emitter for one file."""

    def __init__(
        self,
        file_id: str,
        file_name: str,
        token: CancellationToken,
        on_progress: Optional[ProgressCallback]
    ) -> None:
        self.file_id = file_id
        self.file_name = file_name
        self.token = token
        self.on_progress = on_progress
        self.tracker = StageTracker()
        self.total_pages: Optional[int] = None
        self.percent = 0.0

    @property
    def stage(self) -> ProcessingStage:
        return self.tracker.stage

    def emit(self, percent: float, current_page: Optional[int] = None,
             total_pages: Optional[int] = None, error: Optional[dict] = None) -> None:
        self.percent = percent
        if self.on_progress is None:
            return
        self.on_progress(ProcessingProgress(
            file_id=self.file_id,
            stage=self.stage,
            percent=percent,
            current_page=current_page,
            total_pages=total_pages or self.total_pages,
            error=error,
            file_name=self.file_name
        ))

    def advance(self, stage: ProcessingStage) -> None:
        self.tracker.advance(stage)
        logger.info(f"{self.file_name}: {stage.value}")
        self.emit(STAGE_PERCENT[stage])

    def abort(self, stage: ProcessingStage, error: DocumentProcessingError) -> None:
        if self.tracker.is_terminal:
            return
        self.tracker.advance(stage)
        self.emit(self.percent, error=error.to_dict())

    # AcquisitionListener

    def checkpoint(self) -> None:
        self.token.raise_if_cancelled(self.stage.value)

    def on_page_extracted(self, current_page: int, total_pages: int) -> None:
        self.total_pages = total_pages
        low, high = _EXTRACT_SPAN
        self.emit(round(low + (high - low) * current_page / total_pages, 1), current_page)

    def on_ocr_started(self, reason: str, pages: int) -> None:
        if self.total_pages is None:
            self.total_pages = pages
        self.advance(ProcessingStage.OCR)

    def on_ocr_progress(self, percent: float, current_page: int, total_pages: int) -> None:
        low, high = _OCR_SPAN
        self.emit(round(low + (high - low) * percent / 100.0, 1), current_page, total_pages)


@dataclass
class ProcessingHandle:
    """
    A document submitted for background processing.

    Attributes:
        file_id: Identifier of the submitted file
        future: Resolves to the ProcessedDocumentResult or raises its error
        progress: Channel of progress events, closed at a terminal stage
    """
    file_id: str
    future: Future
    progress: ProgressChannel
    _processor: 'DocumentProcessor' = field(repr=False)

    def cancel(self) -> bool:
        """Request cooperative cancellation of this file."""
        return self._processor.cancel(self.file_id)

    def result(self, timeout: Optional[float] = None) -> ProcessedDocumentResult:
        return self.future.result(timeout)

    def done(self) -> bool:
        return self.future.done()


class DocumentProcessor:
    """
    Runs documents through validation, text acquisition, field
    extraction and confidence aggregation.

    Files are processed one at a time per instance. Collaborators are
    injectable so engines can be swapped or faked.

    Attributes:
        validator: Validation gate
        acquirer: Text acquisition layer
        entity_extractor: Field extractors
        aggregator: Confidence aggregator
        cancellations: Registry of file ids with a pending cancellation

    Example:
        >>> processor = DocumentProcessor()
        >>> result = processor.process_document(document)
        >>> result.entities.amount.value
        Decimal('50.31')
    """

    def __init__(
        self,
        validator: Optional[FileValidator] = None,
        acquirer: Optional[TextAcquirer] = None,
        entity_extractor: Optional[EntityExtractor] = None,
        aggregator: Optional[ConfidenceAggregator] = None,
        pdf_processor: Optional[PDFProcessor] = None,
        ocr_engine: Optional[OCREngine] = None
    ) -> None:
        self.validator = validator or FileValidator()
        self.acquirer = acquirer or TextAcquirer(
            pdf_processor=pdf_processor, ocr_engine=ocr_engine
        )
        self.entity_extractor = entity_extractor or EntityExtractor()
        self.aggregator = aggregator or ConfidenceAggregator()
        self.cancellations = CancellationRegistry()

        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

        logger.debug("DocumentProcessor initialized")

    def process_document(
        self,
        document: Optional[DocumentInput],
        options: Optional[ProcessingOptions] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> ProcessedDocumentResult:
        """
        Process one document to completion.

        Args:
            document: The file to process.
            options: Per-call overrides.
            on_progress: Receives a ProcessingProgress event on every
                transition, page and OCR progress step.

        Returns:
            ProcessedDocumentResult for the document.

        Raises:
            ValidationError: If the file is rejected (non-recoverable).
            ExtractionError: If a text or OCR engine fails.
            ProcessingCancelledError: If cancellation was requested.
        """
        options = options or ProcessingOptions()
        start_time = time.perf_counter()

        file_id = document.file_id if document is not None else generate_file_id()
        file_name = document.filename if document is not None else "unknown"
        self.cancellations.register(file_id)
        run = _FileRun(file_id, file_name, self.cancellations.token(file_id), on_progress)

        run.emit(STAGE_PERCENT[ProcessingStage.VALIDATING])

        try:
            run.checkpoint()
            validation = self._validate(document)

            run.advance(ProcessingStage.EXTRACTING)
            acquired = self.acquirer.acquire(
                document.data,
                document.filename,
                validation.file_kind,
                force_ocr=options.force_ocr,
                language=options.ocr_language,
                max_ocr_pages=options.max_ocr_pages,
                listener=run
            )

            run.checkpoint()
            run.advance(ProcessingStage.FINALIZING)
            result = self._finalize(document, validation, acquired, options, start_time)

            run.advance(ProcessingStage.COMPLETE)
            logger.info(
                f"Processed {file_name}: confidence={result.confidence:.2f}, "
                f"ocr_used={result.ocr_used}, {result.processing_time_ms}ms"
            )
            return result

        except ProcessingCancelledError as e:
            logger.info(f"{file_name}: cancelled during {run.stage.value}")
            run.abort(ProcessingStage.CANCELLED, e)
            raise

        except DocumentProcessingError as e:
            self._log_failure(file_name, run.stage, e)
            run.abort(ProcessingStage.ERROR, e)
            raise

        except Exception as e:
            error = ExtractionError(
                f"Unexpected failure during {run.stage.value}",
                {"filename": file_name, "reason": str(e)}
            )
            self._log_failure(file_name, run.stage, error)
            run.abort(ProcessingStage.ERROR, error)
            raise error from e

        finally:
            self.cancellations.discard(file_id)

    def cancel(self, file_id: str) -> bool:
        """
        Request cancellation of a queued or in-flight file.

        Takes effect at the file's next checkpoint; an engine call already
        in progress runs to completion first.

        Returns:
            True if the file was pending, False if the request was ignored.
        """
        if not self.cancellations.cancel(file_id):
            logger.debug(f"Ignoring cancellation of {file_id}: not queued or in flight")
            return False
        logger.info(f"Cancellation requested for {file_id}")
        return True

    def submit(
        self,
        document: DocumentInput,
        options: Optional[ProcessingOptions] = None
    ) -> ProcessingHandle:
        """
        Process a document on the background worker.

        Submitted documents are processed one at a time in submission order.

        Returns:
            ProcessingHandle with the result future and progress channel.
        """
        channel = ProgressChannel()

        def run() -> ProcessedDocumentResult:
            try:
                return self.process_document(document, options, channel.put)
            finally:
                channel.close()

        self.cancellations.register(document.file_id)
        future = self._get_executor().submit(run)
        return ProcessingHandle(document.file_id, future, channel, self)

    def process_batch(
        self,
        documents: Iterable[DocumentInput],
        options: Optional[ProcessingOptions] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> BatchProcessingResult:
        """
        Process documents one after another.

        A failing or cancelled file is recorded and the batch continues.

        Returns:
            BatchProcessingResult with per-file outcomes.
        """
        start_time = time.perf_counter()
        batch = BatchProcessingResult()

        for document in documents:
            try:
                batch.successful.append(
                    self.process_document(document, options, on_progress)
                )
            except DocumentProcessingError as e:
                batch.failed.append(FailedDocument(
                    file_id=document.file_id if document is not None else "unknown",
                    file_name=document.filename if document is not None else "unknown",
                    error=e.to_dict()
                ))

        batch.total_time_ms = elapsed_ms(start_time)
        logger.info(
            f"Batch complete: {len(batch.successful)} succeeded, "
            f"{len(batch.failed)} failed ({batch.total_time_ms}ms)"
        )
        return batch

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    def __enter__(self) -> 'DocumentProcessor':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="docextract"
                )
            return self._executor

    def _validate(self, document: Optional[DocumentInput]) -> ValidationResult:
        validation = self.validator.validate(document)
        if not validation.is_valid:
            raise validation.exception or ValidationError(validation.error or "Invalid file")
        return validation

    def _finalize(
        self,
        document: DocumentInput,
        validation: ValidationResult,
        acquired: AcquiredText,
        options: ProcessingOptions,
        start_time: float
    ) -> ProcessedDocumentResult:
        entities = self.entity_extractor.extract(acquired.text, options.extraction_options())
        confidence = self.aggregator.aggregate(entities, acquired.ocr_used)

        metadata = acquired.metadata
        file_metadata = FileMetadata(
            original_name=document.filename,
            mime_type=validation.mime_type,
            size=validation.size_bytes,
            page_count=acquired.page_count,
            width=metadata.get('width'),
            height=metadata.get('height'),
            pdf_info={k: v for k, v in metadata.items() if k in PDF_INFO_FIELDS}
        )

        return ProcessedDocumentResult(
            id=document.file_id,
            raw_text=acquired.text,
            entities=entities,
            file_metadata=file_metadata,
            confidence=confidence,
            ocr_used=acquired.ocr_used,
            processing_time_ms=elapsed_ms(start_time),
            ocr_confidence=acquired.ocr_confidence
        )

    @staticmethod
    def _log_failure(
        file_name: str,
        stage: ProcessingStage,
        error: DocumentProcessingError
    ) -> None:
        if error.recoverable:
            logger.warning(f"{file_name}: {stage.value} failed (recoverable): {error}")
        else:
            logger.error(f"{file_name}: {stage.value} failed: {error}")
