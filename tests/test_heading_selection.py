from processors.heading_selection import (
    FALLBACK_HEADING,
    body_lines,
    count_digits,
    count_letters,
    is_heading_candidate,
    select_heading,
)


def test_digit_heavy_line_loses_to_letter_heavy_line():
    first = "CALL US TODAY 1-800-555-1234"
    second = "Contact Our Support Team"

    assert (count_letters(first), count_digits(first)) == (11, 11)
    assert not is_heading_candidate(first)
    assert (count_letters(second), count_digits(second)) == (21, 0)

    heading = select_heading([first, second])

    assert heading.title == second
    assert heading.line_index == 1


def test_length_bounds():
    assert not is_heading_candidate("Short")
    assert is_heading_candidate("Eight ch")
    assert not is_heading_candidate("x" * 141)


def test_title_is_verbatim_but_trimmed():
    heading = select_heading(["", "   Call 555-123-4567 — Acme Plumbing Services   "])

    assert heading.title == "Call 555-123-4567 — Acme Plumbing Services"


def test_fallback_splits_first_line():
    heading = select_heading(["555-123-4567 | Acme"])

    assert heading.title == "555-123-4567"
    assert heading.line_index == 0
    assert heading.remainder == "Acme"
    assert body_lines(["555-123-4567 | Acme", "next"], heading) == ["Acme", "next"]


def test_fallback_truncates_and_keeps_overflow_in_body():
    line = "1" * 150
    heading = select_heading([line])

    assert heading.title == "1" * 140
    assert heading.remainder == "1" * 10


def test_only_first_candidates_are_considered():
    lines = ["12345678"] * 25 + ["A Proper Heading Line"]

    heading = select_heading(lines)

    assert heading.title == "12345678"
    assert heading.line_index == 0


def test_empty_document_uses_literal_fallback():
    heading = select_heading(["", "   "])

    assert heading.title == FALLBACK_HEADING
    assert heading.line_index is None


def test_body_starts_after_the_heading():
    lines = ["CALL US TODAY 1-800-555-1234", "Contact Our Support Team", "Body"]

    heading = select_heading(lines)

    assert body_lines(lines, heading) == ["Body"]


def test_literal_fallback_keeps_every_line_as_body():
    lines = ["", "   "]

    assert body_lines(lines, select_heading(lines)) == lines
