import pytest

from engine import EngineConfig, PDFEngine, ProcessorRegistry, TextProcessor
from utils.validation import (
    FontEmbeddingError,
    PdfExtractionError,
    PdfValidationError,
    ProcessingTimeoutError,
    ResourceManager,
    validate_file_content,
    validate_replacement_number,
)

from conftest import build_pdf, text_content


def test_engine_opens_document(call_now_pdf):
    with PDFEngine(call_now_pdf, name="call.pdf") as engine:
        assert engine.is_open
        assert engine.get_page_count() == 1
        assert engine.get_source_page_size(0) == (612, 792)
        assert engine.get_page_mediabox(0) == (0, 0, 612, 792)
        assert engine.text_processor.extract_document_lines() == ["Call 1-800-555-1234 now"]
    assert not engine.is_open


def test_engine_requires_context(call_now_pdf):
    engine = PDFEngine(call_now_pdf)

    with pytest.raises(RuntimeError):
        engine.get_page_count()


def test_disabled_processor_is_unavailable(call_now_pdf):
    config = EngineConfig(enable_reflow_renderer=False)

    with PDFEngine(call_now_pdf, config=config) as engine:
        with pytest.raises(RuntimeError):
            engine.reflow_renderer


@pytest.mark.parametrize("content", [b"", b"hello world", b"<html></html>"])
def test_non_pdf_bytes_rejected(content):
    with pytest.raises(PdfValidationError):
        with PDFEngine(content):
            pass


def test_corrupt_pdf_is_extraction_error():
    with pytest.raises(PdfExtractionError):
        with PDFEngine(b"%PDF-1.4\nthis is not really a pdf\n%%EOF"):
            pass


def test_non_bytes_rejected():
    with pytest.raises(PdfValidationError):
        PDFEngine("not bytes")


def test_file_size_limit():
    is_valid, error = validate_file_content(b"%PDF-1.4" + b"0" * (2 * 1024 * 1024), max_size_mb=1)

    assert not is_valid
    assert "too large" in error


def test_unknown_font_fails_on_open(call_now_pdf):
    config = EngineConfig(redaction_options={"font_name": "Comic Sans"})

    with pytest.raises(FontEmbeddingError):
        with PDFEngine(call_now_pdf, config=config):
            pass


def test_unloadable_font_bytes_fail_on_open(call_now_pdf):
    with pytest.raises(FontEmbeddingError):
        with PDFEngine(call_now_pdf, font_bytes=b"not a font"):
            pass


@pytest.mark.parametrize("value, expected", [(" +1-555-000-0000 ", "+1-555-000-0000"), ("x", "x")])
def test_validate_replacement_number(value, expected):
    assert validate_replacement_number(value) == expected


@pytest.mark.parametrize("value", ["", "   ", None])
def test_blank_replacement_rejected(value):
    with pytest.raises(ValueError):
        validate_replacement_number(value)


def test_limits_checked_per_page(monkeypatch):
    pdf = build_pdf([text_content([(72, 700, "page one")]), text_content([(72, 700, "page two")])])
    calls = []

    def fake_check(self):
        calls.append(1)
        if len(calls) > 1:
            raise ProcessingTimeoutError("too slow")

    monkeypatch.setattr(PDFEngine, "check_limits", fake_check)
    with PDFEngine(pdf) as engine:
        with pytest.raises(ProcessingTimeoutError):
            engine.text_processor.extract_document_lines()


def test_engine_can_be_reopened(call_now_pdf):
    engine = PDFEngine(call_now_pdf)

    with engine:
        first = engine.text_processor.extract_document_lines()
    with engine:
        assert engine.text_processor.extract_document_lines() == first
        assert engine._processors.processor_names == ["text", "redactor", "reflow"]


def test_registry_rejects_duplicate_names(call_now_pdf):
    registry = ProcessorRegistry()
    engine = PDFEngine(call_now_pdf)
    registry.register("text", TextProcessor(engine))

    with pytest.raises(ValueError):
        registry.register("text", TextProcessor(engine))


def test_processor_used_after_close_raises(call_now_pdf):
    with PDFEngine(call_now_pdf) as engine:
        processor = engine.text_processor
        assert processor.is_initialized

    assert not processor.is_initialized
    with pytest.raises(RuntimeError):
        processor.extract_glyph_runs(0)


def test_resource_manager_time_budget():
    manager = ResourceManager(max_time_seconds=5, label="slow.pdf")
    with manager:
        manager.start_time -= 10
        with pytest.raises(ProcessingTimeoutError, match="slow.pdf"):
            manager.check_limits()
