"""Tests for the processing orchestrator: stages, progress, cancellation, results."""

import json
import queue
import threading
from datetime import date
from decimal import Decimal

import pytest

from docextract.extraction import NO_DESCRIPTION
from docextract.input_handler import DocumentInput
from docextract.ocr_engine import OCRResult
from docextract.pipeline import (
    ALLOWED_TRANSITIONS,
    CancellationRegistry,
    DocumentProcessor,
    ProcessingOptions,
    ProcessingProgress,
    ProcessingStage,
    ProgressChannel,
    StageTracker,
)
from docextract.utils.exceptions import (
    ExtractionError,
    InvalidStageTransitionError,
    OCRProcessingError,
    ProcessingCancelledError,
    ValidationError,
)

OPTIONS = ProcessingOptions(reference_date=date(2024, 12, 31))


def stages_of(events):
    """Distinct stages in the order they were first reported."""
    stages = []
    for event in events:
        if not stages or stages[-1] != event.stage:
            stages.append(event.stage)
    return stages


class ExplodingExtractor:
    def extract(self, text, options):
        raise RuntimeError("extractor crashed")


class BlockingOCREngine:
    """OCR engine that waits for a release signal before answering."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    def recognize(self, image, language=None, on_progress=None):
        self.started.set()
        self.release.wait(timeout=10)
        return OCRResult(text="", confidence=0.0)


class TestStageMachine:
    """Transition table and tracker."""

    def test_happy_path(self):
        tracker = StageTracker()
        for stage in (ProcessingStage.EXTRACTING, ProcessingStage.OCR,
                      ProcessingStage.FINALIZING, ProcessingStage.COMPLETE):
            tracker.advance(stage)

        assert tracker.is_terminal
        assert tracker.history[0] == ProcessingStage.VALIDATING
        assert tracker.history[-1] == ProcessingStage.COMPLETE

    def test_ocr_is_optional(self):
        tracker = StageTracker()
        tracker.advance(ProcessingStage.EXTRACTING)
        tracker.advance(ProcessingStage.FINALIZING)

        assert tracker.stage == ProcessingStage.FINALIZING

    def test_illegal_transition(self):
        tracker = StageTracker()

        with pytest.raises(InvalidStageTransitionError):
            tracker.advance(ProcessingStage.COMPLETE)

        assert tracker.stage == ProcessingStage.VALIDATING

    def test_no_backward_moves(self):
        tracker = StageTracker(ProcessingStage.OCR)

        with pytest.raises(InvalidStageTransitionError):
            tracker.advance(ProcessingStage.EXTRACTING)

    def test_abort_reachable_from_every_active_stage(self):
        for stage, targets in ALLOWED_TRANSITIONS.items():
            if stage.is_terminal:
                assert targets == frozenset()
            else:
                assert ProcessingStage.ERROR in targets
                assert ProcessingStage.CANCELLED in targets

    def test_terminal_stages(self):
        terminal = {stage for stage in ProcessingStage if stage.is_terminal}

        assert terminal == {ProcessingStage.COMPLETE, ProcessingStage.ERROR, ProcessingStage.CANCELLED}

    def test_progress_to_dict(self):
        event = ProcessingProgress("f1", ProcessingStage.OCR, 65.0, 1, 3, file_name="scan.pdf")

        assert event.to_dict() == {
            'file_id': "f1",
            'file_name': "scan.pdf",
            'stage': "ocr",
            'percent': 65.0,
            'current_page': 1,
            'total_pages': 3,
            'error': None,
        }


class TestCancellationRegistry:
    """Shared cancellation state."""

    def test_cancel_and_discard(self):
        registry = CancellationRegistry()
        token = registry.token("f1")
        registry.register("f1")

        assert not token.cancelled
        assert registry.cancel("f1") is True
        assert token.cancelled
        assert not registry.is_cancelled("f2")

        registry.discard("f1")
        assert len(registry) == 0

    def test_token_raises(self):
        registry = CancellationRegistry()
        registry.register("f1")
        token = registry.token("f1")
        token.raise_if_cancelled()
        token.cancel()

        with pytest.raises(ProcessingCancelledError) as exc_info:
            token.raise_if_cancelled("ocr")

        assert exc_info.value.details == {"file_id": "f1", "stage": "ocr"}
        assert exc_info.value.code == "CANCELLED"

    def test_unknown_file_ignored(self):
        registry = CancellationRegistry()

        assert registry.cancel("f1") is False
        assert not registry.is_cancelled("f1")
        assert len(registry) == 0


class TestProgressChannel:
    """Queue-backed event stream."""

    def test_iterates_until_closed(self):
        channel = ProgressChannel()
        first = ProcessingProgress("f1", ProcessingStage.VALIDATING, 0.0)
        second = ProcessingProgress("f1", ProcessingStage.COMPLETE, 100.0)

        channel.put(first)
        channel(second)
        channel.close()

        assert list(channel) == [first, second]
        assert channel.get() is None

    def test_put_after_close_ignored(self):
        channel = ProgressChannel()
        channel.close()
        channel.put(ProcessingProgress("f1", ProcessingStage.ERROR, 0.0))

        assert channel.closed
        assert list(channel) == []

    def test_drain_does_not_block(self):
        channel = ProgressChannel()
        event = ProcessingProgress("f1", ProcessingStage.EXTRACTING, 10.0)
        channel.put(event)

        assert channel.drain() == [event]
        assert channel.drain() == []

    def test_get_timeout(self):
        with pytest.raises(queue.Empty):
            ProgressChannel().get(timeout=0.01)


class TestProcessingOptions:
    """Per-call overrides."""

    def test_currency_uppercased(self):
        assert ProcessingOptions(default_currency="eur").extraction_options().default_currency == "EUR"

    def test_reference_date_defaults_to_today(self):
        assert ProcessingOptions().extraction_options().reference_date == date.today()


class TestProcessDocument:
    """A single document end to end."""

    def test_text_pdf_receipt(self, receipt_document, fake_ocr):
        events = []

        result = DocumentProcessor(ocr_engine=fake_ocr).process_document(
            receipt_document, OPTIONS, events.append
        )

        assert result.id == receipt_document.file_id
        assert result.entities.date.value == date(2024, 1, 15)
        assert result.entities.amount.value == Decimal("50.31")
        assert "WALMART" in result.entities.vendor.value
        assert result.entities.currency == "USD"
        assert not result.ocr_used
        assert result.ocr_confidence is None
        assert 0.0 < result.confidence <= 1.0
        assert result.file_metadata.page_count == 1
        assert result.file_metadata.mime_type == "application/pdf"
        assert fake_ocr.calls == []

        assert stages_of(events) == [
            ProcessingStage.VALIDATING,
            ProcessingStage.EXTRACTING,
            ProcessingStage.FINALIZING,
            ProcessingStage.COMPLETE,
        ]

    def test_progress_is_monotonic(self, scanned_document, fake_ocr):
        events = []

        DocumentProcessor(ocr_engine=fake_ocr).process_document(scanned_document, OPTIONS, events.append)

        percents = [e.percent for e in events]
        assert percents == sorted(percents)
        assert percents[0] == 0.0
        assert percents[-1] == 100.0
        assert all(e.file_id == scanned_document.file_id for e in events)

    def test_scanned_pdf_uses_ocr(self, scanned_document, fake_ocr):
        events = []

        result = DocumentProcessor(ocr_engine=fake_ocr).process_document(
            scanned_document, OPTIONS, events.append
        )

        assert result.ocr_used
        assert result.ocr_confidence == pytest.approx(87.5)
        assert result.entities.amount.value == Decimal("50.31")
        assert ProcessingStage.OCR in stages_of(events)
        assert len(fake_ocr.calls) == 1

    def test_ocr_discounts_confidence(self, scanned_document, fake_ocr):
        result = DocumentProcessor(ocr_engine=fake_ocr).process_document(scanned_document, OPTIONS)

        entities = result.entities
        found = [entities.date, entities.amount, entities.vendor]
        mean = sum(f.confidence for f in found) / len(found)
        assert result.confidence == pytest.approx(mean * 0.9, abs=1e-3)

    def test_image_document(self, image_document, fake_ocr):
        result = DocumentProcessor(ocr_engine=fake_ocr).process_document(image_document, OPTIONS)

        assert result.ocr_used
        assert result.file_metadata.width == 120
        assert result.file_metadata.height == 80
        assert result.file_metadata.page_count == 1

    def test_empty_document(self, scanned_document, ocr_factory):
        processor = DocumentProcessor(ocr_engine=ocr_factory(text="   "))

        result = processor.process_document(scanned_document, OPTIONS)

        assert result.entities.date is None
        assert result.entities.amount is None
        assert result.entities.vendor is None
        assert result.entities.description == NO_DESCRIPTION
        assert result.confidence == pytest.approx(0.3)

    def test_options_reach_ocr(self, scanned_document, fake_ocr):
        options = ProcessingOptions(ocr_language="deu", default_currency="eur")

        result = DocumentProcessor(ocr_engine=fake_ocr).process_document(
            scanned_document, options
        )

        assert fake_ocr.calls[0]["language"] == "deu"
        # The text itself carries "$"
        assert result.entities.currency == "USD"

    def test_to_json(self, receipt_document, fake_ocr):
        result = DocumentProcessor(ocr_engine=fake_ocr).process_document(receipt_document, OPTIONS)

        data = json.loads(result.to_json())

        assert data['id'] == receipt_document.file_id
        assert data['entities']['amount']['value'] == "50.31"
        assert data['entities']['date']['value'] == "2024-01-15"
        assert data['file_metadata']['original_name'] == "walmart.pdf"
        assert data['ocr_used'] is False
        assert "walmart.pdf" in repr(result)


class TestProcessingFailures:
    """Failures end in ERROR with a typed error and a final event."""

    def test_validation_error(self, fake_ocr):
        events = []
        document = DocumentInput(b"hello", "text/plain", "notes.txt")

        with pytest.raises(ValidationError):
            DocumentProcessor(ocr_engine=fake_ocr).process_document(document, OPTIONS, events.append)

        last = events[-1]
        assert last.stage == ProcessingStage.ERROR
        assert last.error == {
            'code': "VALIDATION_ERROR",
            'message': "Unsupported file type: text/plain",
            'recoverable': False,
        }
        assert last.percent == 0.0

    def test_missing_document(self, fake_ocr):
        events = []

        with pytest.raises(ValidationError):
            DocumentProcessor(ocr_engine=fake_ocr).process_document(None, OPTIONS, events.append)

        assert events[-1].file_name == "unknown"
        assert events[-1].error['message'] == "No file provided"

    def test_ocr_failure(self, scanned_document, ocr_factory):
        events = []
        ocr = ocr_factory(error=OCRProcessingError("page 1", "engine crashed"))

        with pytest.raises(OCRProcessingError):
            DocumentProcessor(ocr_engine=ocr).process_document(scanned_document, OPTIONS, events.append)

        assert stages_of(events)[-2:] == [ProcessingStage.OCR, ProcessingStage.ERROR]
        assert events[-1].error['code'] == "OCR_ERROR"
        assert events[-1].error['recoverable'] is True

    def test_corrupted_pdf(self, fake_ocr):
        events = []
        document = DocumentInput(b"this is not a pdf", "application/pdf", "broken.pdf")

        with pytest.raises(ExtractionError) as exc_info:
            DocumentProcessor(ocr_engine=fake_ocr).process_document(document, OPTIONS, events.append)

        assert exc_info.value.code == "CORRUPTED_FILE"
        assert events[-1].error['recoverable'] is False

    def test_unexpected_error_wrapped(self, receipt_document, fake_ocr):
        events = []
        processor = DocumentProcessor(entity_extractor=ExplodingExtractor(), ocr_engine=fake_ocr)

        with pytest.raises(ExtractionError) as exc_info:
            processor.process_document(receipt_document, OPTIONS, events.append)

        assert exc_info.value.message == "Unexpected failure during finalizing"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert events[-1].stage == ProcessingStage.ERROR


class TestCancellation:
    """Cooperative cancellation at checkpoints."""

    def test_cancel_at_first_checkpoint(self, receipt_document, fake_ocr):
        events = []
        processor = DocumentProcessor(ocr_engine=fake_ocr)

        def on_progress(event):
            events.append(event)
            if event.stage == ProcessingStage.VALIDATING and event.error is None:
                assert processor.cancel(event.file_id) is True

        with pytest.raises(ProcessingCancelledError):
            processor.process_document(receipt_document, OPTIONS, on_progress)

        assert [e.stage for e in events] == [ProcessingStage.VALIDATING, ProcessingStage.CANCELLED]
        assert events[-1].error['code'] == "CANCELLED"
        assert len(processor.cancellations) == 0

    def test_cancel_after_completion_ignored(self, receipt_document, fake_ocr):
        processor = DocumentProcessor(ocr_engine=fake_ocr)
        processor.process_document(receipt_document, OPTIONS)

        assert processor.cancel(receipt_document.file_id) is False
        assert len(processor.cancellations) == 0

        retry = processor.process_document(receipt_document, OPTIONS)

        assert retry.entities.amount.value == Decimal("50.31")

    def test_cancel_before_ocr(self, scanned_document, fake_ocr):
        events = []
        processor = DocumentProcessor(ocr_engine=fake_ocr)

        def on_progress(event):
            events.append(event)
            if event.stage == ProcessingStage.EXTRACTING and event.current_page == 1:
                processor.cancel(event.file_id)

        with pytest.raises(ProcessingCancelledError):
            processor.process_document(scanned_document, OPTIONS, on_progress)

        assert fake_ocr.calls == []
        assert events[-1].stage == ProcessingStage.CANCELLED
        assert ProcessingStage.OCR not in stages_of(events)
        assert ProcessingStage.ERROR not in stages_of(events)

    def test_cancel_does_not_leak_to_other_files(self, receipt_document, scanned_document, fake_ocr):
        processor = DocumentProcessor(ocr_engine=fake_ocr)
        processor.cancel(scanned_document.file_id)

        assert processor.process_document(receipt_document, OPTIONS).entities.amount is not None


class TestBatchAndSubmit:
    """Batches and background processing."""

    def test_batch_continues_after_failure(self, receipt_document, fake_ocr):
        empty = DocumentInput(b"", "application/pdf", "empty.pdf")

        batch = DocumentProcessor(ocr_engine=fake_ocr).process_batch([receipt_document, empty], OPTIONS)

        assert len(batch.successful) == 1
        assert batch.failed[0].file_name == "empty.pdf"
        assert batch.failed[0].error['code'] == "VALIDATION_ERROR"
        assert batch.success_rate == pytest.approx(0.5)

        summary = batch.to_dict()['summary']
        assert summary == {'total': 2, 'successful': 1, 'failed': 1}

    def test_batch_records_missing_document(self, receipt_document, fake_ocr):
        batch = DocumentProcessor(ocr_engine=fake_ocr).process_batch([None, receipt_document], OPTIONS)

        assert len(batch.successful) == 1
        assert batch.failed[0].file_id == "unknown"
        assert batch.failed[0].file_name == "unknown"
        assert batch.failed[0].error['code'] == "VALIDATION_ERROR"

    def test_submit(self, receipt_document, fake_ocr):
        with DocumentProcessor(ocr_engine=fake_ocr) as processor:
            handle = processor.submit(receipt_document, OPTIONS)
            events = list(handle.progress)
            result = handle.result(timeout=30)

        assert handle.done()
        assert handle.progress.closed
        assert events[-1].stage == ProcessingStage.COMPLETE
        assert result.entities.amount.value == Decimal("50.31")

    def test_submit_failure_closes_channel(self, fake_ocr):
        document = DocumentInput(b"", "image/png", "empty.png")

        with DocumentProcessor(ocr_engine=fake_ocr) as processor:
            handle = processor.submit(document, OPTIONS)
            events = list(handle.progress)

            with pytest.raises(ValidationError):
                handle.result(timeout=30)

        assert events[-1].stage == ProcessingStage.ERROR

    def test_cancel_queued_submission(self, scanned_document, receipt_document):
        ocr = BlockingOCREngine()

        with DocumentProcessor(ocr_engine=ocr) as processor:
            first = processor.submit(scanned_document, OPTIONS)
            assert ocr.started.wait(timeout=10)

            second = processor.submit(receipt_document, OPTIONS)
            second.cancel()
            ocr.release.set()

            first.result(timeout=30)
            with pytest.raises(ProcessingCancelledError):
                second.result(timeout=30)

        assert list(second.progress)[-1].stage == ProcessingStage.CANCELLED
