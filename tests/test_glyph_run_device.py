import pytest

from engine import PDFEngine

from conftest import build_pdf, text_content


def _runs(content: bytes):
    with PDFEngine(build_pdf([content])) as engine:
        return engine.text_processor.extract_glyph_runs(0)


def test_runs_split_at_spaces():
    runs = _runs(b"BT /F1 12 Tf 72 700 Td (Call 1-800-555-1234 now) Tj ET")

    assert [run.text for run in runs] == ["Call", "1-800-555-1234", "now"]
    call, number, _ = runs
    assert call.x == pytest.approx(72, abs=0.01)
    assert call.y == pytest.approx(700, abs=0.01)
    assert call.height == pytest.approx(12, abs=0.01)
    # Helvetica: C=722 a=556 l=222 l=222 space=278
    assert number.x == pytest.approx(72 + 2000 * 12 / 1000, abs=0.01)
    assert call.width == pytest.approx(1722 * 12 / 1000, abs=0.01)


def test_run_extents_come_from_font_metrics():
    run = _runs(b"BT /F1 10 Tf 50 500 Td (Hello) Tj ET")[0]

    assert run.ascent == pytest.approx(7.18, abs=0.05)
    assert run.descent == pytest.approx(2.07, abs=0.05)
    assert run.top > run.y > run.bottom


def test_large_tj_displacement_splits_run():
    runs = _runs(b"BT /F1 12 Tf 72 700 Td [(Call)-1000(now)] TJ ET")

    assert [run.text for run in runs] == ["Call", "now"]
    assert runs[1].x == pytest.approx(72 + 1722 * 12 / 1000 + 12, abs=0.01)


def test_small_tj_displacement_keeps_run():
    runs = _runs(b"BT /F1 12 Tf 72 700 Td [(555)-50(1234)] TJ ET")

    assert [run.text for run in runs] == ["5551234"]


def test_each_operator_ends_a_run():
    runs = _runs(b"BT /F1 12 Tf 72 700 Td (555-) Tj (1234) Tj ET")

    assert [run.text for run in runs] == ["555-", "1234"]
    assert runs[1].x == pytest.approx(runs[0].right, abs=0.01)


def test_text_matrix_scaling_changes_height():
    runs = _runs(b"BT /F1 1 Tf 24 0 0 24 100 600 Tm (Big) Tj ET")

    assert runs[0].height == pytest.approx(24, abs=0.01)
    assert runs[0].x == pytest.approx(100, abs=0.01)


def test_coordinates_relative_to_mediabox_origin():
    content = b"BT /F1 12 Tf 122 750 Td (Offset) Tj ET"
    with PDFEngine(build_pdf([content], mediabox=[50, 50, 662, 842])) as engine:
        run = engine.text_processor.extract_glyph_runs(0)[0]
        viewport = engine.text_processor.get_viewport_size(0)

    assert (run.x, run.y) == (pytest.approx(72, abs=0.01), pytest.approx(700, abs=0.01))
    assert viewport == (612, 792)


def test_runs_after_whitespace_are_flagged():
    runs = _runs(b"BT /F1 12 Tf 72 700 Td (Call 555-123-4567) Tj (now) Tj ( today) Tj ET")

    assert [run.text for run in runs] == ["Call", "555-123-4567", "now", "today"]
    assert [run.space_before for run in runs] == [False, True, False, True]


def test_small_print_keeps_word_boundaries():
    pdf = build_pdf([text_content([
        (72, 700, "Visit our nursery this weekend.", 7),
        (72, 690, "Call 555-123-4567 now", 7),
    ])])

    with PDFEngine(pdf) as engine:
        lines = engine.text_processor.extract_document_lines()

    assert lines == ["Visit our nursery this weekend.", "Call 555-123-4567 now"]
