"""Tests for configuration, logging, exceptions and helpers."""

import io
import logging

import pytest

from config import CONFIG_ENV_VAR, ConfigurationManager, get_config
from docextract.utils import (
    collapse_whitespace,
    format_file_size,
    generate_file_id,
    get_file_extension,
    get_logger,
    setup_logger,
)
from docextract.utils.exceptions import (
    CorruptedFileError,
    DocumentProcessingError,
    FileTooLargeError,
    OCREngineNotAvailableError,
    PDFExtractionError,
    ValidationError,
)
from docextract.utils.logger import LOGGER_NAMESPACE, ColoredFormatter, parse_level, set_log_level


class TestConfiguration:

    def test_dot_notation(self):
        assert get_config("acquisition.low_text_page_chars") == 50
        assert get_config("ocr.tesseract.psm") == 3

    def test_missing_key_default(self):
        assert get_config("acquisition.nope", "fallback") == "fallback"
        assert get_config("ocr.language.deeper", 7) == 7

    def test_singleton(self):
        assert ConfigurationManager() is ConfigurationManager()

    def test_custom_file_merged_over_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("ocr:\n  language: deu\n  tesseract:\n    psm: 6\n", encoding="utf-8")

        ConfigurationManager.reset()
        ConfigurationManager(str(path))

        assert get_config("ocr.language") == "deu"
        assert get_config("ocr.tesseract.psm") == 6
        assert get_config("ocr.tesseract.oem") == 3
        assert get_config("acquisition.min_text_length") == 100

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "eur.yaml"
        path.write_text("extraction:\n  default_currency: EUR\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        ConfigurationManager.reset()

        assert get_config("extraction.default_currency") == "EUR"

    def test_missing_file(self, tmp_path):
        ConfigurationManager.reset()

        with pytest.raises(FileNotFoundError):
            ConfigurationManager(str(tmp_path / "missing.yaml"))

        ConfigurationManager.reset()

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        ConfigurationManager.reset()

        with pytest.raises(ValueError):
            ConfigurationManager(str(path))

        ConfigurationManager.reset()

    def test_get_all_is_a_copy(self):
        settings = ConfigurationManager().get_all()
        settings['ocr']['language'] = "fra"

        assert get_config("ocr.language") == "eng"

    def test_log_path_resolved(self):
        path = get_config("logging.file.path")

        assert path.endswith("docextract.log")
        assert not path.startswith("logs")


class TestLogging:

    def test_namespace(self):
        assert get_logger("pipeline").name == "docextract.pipeline"
        assert get_logger("docextract.ocr_engine").name == "docextract.ocr_engine"

    def test_setup_writes_to_stream(self):
        stream = io.StringIO()
        namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
        saved = list(namespace_logger.handlers), namespace_logger.level

        try:
            setup_logger(level="INFO", colorize=False, stream=stream)
            get_logger("tests").info("hello pipeline")
        finally:
            namespace_logger.handlers[:] = saved[0]
            namespace_logger.setLevel(saved[1])

        assert "hello pipeline" in stream.getvalue()
        assert "INFO" in stream.getvalue()

    def test_parse_level(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level(logging.ERROR) == logging.ERROR

        with pytest.raises(ValueError):
            parse_level("chatty")

    def test_set_log_level(self):
        namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
        saved = list(namespace_logger.handlers), namespace_logger.level

        try:
            setup_logger(level="WARNING", stream=io.StringIO())
            set_log_level("DEBUG")

            assert namespace_logger.level == logging.DEBUG
            assert all(h.level == logging.DEBUG for h in namespace_logger.handlers)
        finally:
            namespace_logger.handlers[:] = saved[0]
            namespace_logger.setLevel(saved[1])

    def test_colored_level_name(self):
        formatter = ColoredFormatter("%(levelname)s|%(message)s")
        record = logging.LogRecord("docextract.x", logging.WARNING, __file__, 1, "careful", None, None)

        output = formatter.format(record)

        assert "WARNING" in output
        assert output.endswith("|careful")
        assert record.levelname == "WARNING"


class TestExceptions:

    def test_error_shape(self):
        error = FileTooLargeError(30 * 1024 * 1024, 25 * 1024 * 1024)

        assert error.to_dict() == {
            'code': "VALIDATION_ERROR",
            'message': "File too large. Maximum size is 25MB",
            'recoverable': False,
        }
        assert isinstance(error, ValidationError)

    def test_recoverability_by_class(self):
        assert PDFExtractionError("bad xref").recoverable is True
        assert OCREngineNotAvailableError("tesseract").recoverable is True
        assert CorruptedFileError("a.pdf").recoverable is False

    def test_overrides(self):
        error = DocumentProcessingError("boom", code="CUSTOM", recoverable=True)

        assert error.code == "CUSTOM"
        assert error.recoverable is True

    def test_str_includes_details(self):
        assert str(PDFExtractionError("bad xref", 0)) == (
            "PDF text extraction failed | Details: {'reason': 'bad xref', 'page': 1}"
        )
        assert str(DocumentProcessingError("plain")) == "plain"


class TestHelpers:

    def test_file_extension(self):
        assert get_file_extension("scan.JPEG") == ".jpeg"
        assert get_file_extension("noextension") == ""

    def test_file_size(self):
        assert format_file_size(512) == "512.0 B"
        assert format_file_size(1536) == "1.5 KB"

    def test_file_ids_unique(self):
        assert generate_file_id() != generate_file_id()

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  ACME   Corp \n") == "ACME Corp"
