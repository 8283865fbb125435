"""Test fixtures and utilities."""

import io
from datetime import date
from typing import List, Optional

import fitz
import pytest
from PIL import Image

from config import CONFIG_ENV_VAR, ConfigurationManager
from docextract.extraction import ExtractionOptions
from docextract.input_handler import DocumentInput
from docextract.ocr_engine import OCRResult
from docextract.utils.exceptions import PDFExtractionError

# Canonical retail receipt
SAMPLE_RECEIPT_TEXT = """WALMART
Supercenter 1234 Main Street
Springfield, IL 62701
DATE: 01/15/2024  TIME: 14:32
Great Value Milk 1 Gal      3.48
Bananas Organic 2 lb        1.24
Paper Towels 6 Roll        12.97
SUBTOTAL                   46.52
TAX                         3.79
TOTAL $50.31
THANK YOU FOR SHOPPING AT WALMART
"""

SAMPLE_INVOICE_TEXT = """Vendor: Acme Widgets LLC
123 Industrial Parkway, Dayton OH

INVOICE
Invoice Date: March 3, 2024
Due Date: April 2, 2024

Widget assembly service          800.00
Replacement sprockets            450.00

Subtotal: $1,250.00
Tax: $103.13
Amount Due: $1,353.13
"""

SAMPLE_EURO_RECEIPT_TEXT = """Cafe Central
Herrengasse 14, Wien
Datum: 18.11.2024
Melange                 4,20 €
Apfelstrudel            5,80 €
Summe                  10,00 €
"""

REFERENCE_DATE = date(2024, 12, 31)


def make_pdf(*pages: str, metadata: Optional[dict] = None) -> bytes:
    """Build an in-memory PDF with one page per text (empty text: blank page)."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=10)
    if metadata:
        doc.set_metadata(metadata)
    data = doc.tobytes()
    doc.close()
    return data


def make_png(width: int = 120, height: int = 80, mode: str = "RGB") -> bytes:
    """Build an in-memory PNG image."""
    color = (255, 255, 255, 255) if mode == "RGBA" else "white"
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class FakeOCREngine:
    """In-memory OCR engine recording every call."""

    def __init__(self, text: str = "", confidence: float = 87.5, error: Exception = None):
        self.text = text
        self.confidence = confidence
        self.error = error
        self.calls: List[dict] = []

    def recognize(self, image, language=None, on_progress=None):
        self.calls.append({"size": image.size, "language": language})
        if self.error is not None:
            raise self.error
        if on_progress:
            for percent in (0.0, 50.0, 100.0):
                on_progress(percent)
        return OCRResult(text=self.text, confidence=self.confidence, language=language or "eng")


class FakePDFDocument:
    """PDF handle over a list of page texts."""

    def __init__(self, pages: List[str], fail_on_page: Optional[int] = None):
        self.pages = pages
        self.page_count = len(pages)
        self.filename = "fake.pdf"
        self.fail_on_page = fail_on_page
        self.closed = False
        self.rendered: List[int] = []

    def page_text(self, page_index: int) -> str:
        if page_index == self.fail_on_page:
            raise PDFExtractionError("broken content stream", page_index)
        return self.pages[page_index]

    def render_page(self, page_index: int, scale: float = 2.0) -> Image.Image:
        self.rendered.append(page_index)
        return Image.new("RGB", (int(100 * scale), int(140 * scale)), "white")

    def metadata(self) -> dict:
        return {"producer": "fake"}

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class FakePDFProcessor:
    """Text-extraction engine returning FakePDFDocument handles."""

    def __init__(self, pages: List[str], fail_on_page: Optional[int] = None):
        self.pages = pages
        self.fail_on_page = fail_on_page
        self.opened: List[FakePDFDocument] = []

    def open(self, data: bytes, filename: str = "document.pdf") -> FakePDFDocument:
        document = FakePDFDocument(self.pages, self.fail_on_page)
        document.filename = filename
        self.opened.append(document)
        return document


@pytest.fixture(autouse=True)
def default_configuration(monkeypatch):
    """Every test starts from the bundled settings.yaml."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def sample_receipt_text() -> str:
    return SAMPLE_RECEIPT_TEXT


@pytest.fixture
def sample_invoice_text() -> str:
    return SAMPLE_INVOICE_TEXT


@pytest.fixture
def sample_euro_receipt_text() -> str:
    return SAMPLE_EURO_RECEIPT_TEXT


@pytest.fixture
def extraction_options() -> ExtractionOptions:
    """Options with a fixed reference date."""
    return ExtractionOptions(reference_date=REFERENCE_DATE)


@pytest.fixture
def receipt_pdf_bytes() -> bytes:
    return make_pdf(SAMPLE_RECEIPT_TEXT)


@pytest.fixture
def receipt_document(receipt_pdf_bytes) -> DocumentInput:
    return DocumentInput(
        data=receipt_pdf_bytes,
        mime_type="application/pdf",
        filename="walmart.pdf"
    )


@pytest.fixture
def scanned_document() -> DocumentInput:
    """A PDF with a single blank page, as a scanner would produce."""
    return DocumentInput(
        data=make_pdf(""),
        mime_type="application/pdf",
        filename="scan.pdf"
    )


@pytest.fixture
def image_document() -> DocumentInput:
    return DocumentInput(data=make_png(), mime_type="image/png", filename="photo.png")


@pytest.fixture
def fake_ocr() -> FakeOCREngine:
    return FakeOCREngine(text=SAMPLE_RECEIPT_TEXT)


@pytest.fixture
def pdf_factory():
    """Callable building in-memory PDFs: pdf_factory("page 1", "page 2")."""
    return make_pdf


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def ocr_factory():
    """The FakeOCREngine class, for tests needing custom OCR output."""
    return FakeOCREngine


@pytest.fixture
def pdf_processor_factory():
    """The FakePDFProcessor class, for tests needing a controllable PDF engine."""
    return FakePDFProcessor
