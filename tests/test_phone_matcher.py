import pytest

from processors.phone_matcher import (
    find_phone_matches,
    prepare_for_matching,
    prepare_mapped,
    replace_phone_numbers,
    replace_phone_numbers_counted,
)


@pytest.mark.parametrize("text, expected", [
    ("+1 (800) 555-1234", "+1 (800) 555-1234"),
    ("800.555.1234", "800.555.1234"),
    ("800—555—1234", "800-555-1234"),
    ("Call 1-800-FLOWERS", "1-800-3569377"),
])
def test_single_match(text, expected):
    matches = find_phone_matches(prepare_for_matching(text))

    assert [m.text for m in matches] == [expected]


@pytest.mark.parametrize("text", ["12345", "Suite 12345", "Room 101, floor 2"])
def test_short_numbers_do_not_match(text):
    assert find_phone_matches(prepare_for_matching(text)) == []


def test_match_offsets():
    matches = find_phone_matches("Call 1-800-555-1234 now")

    assert len(matches) == 1
    assert (matches[0].start, matches[0].end) == (5, 19)


def test_multiple_matches_in_order():
    matches = find_phone_matches("555-123-4567 or 555-765-4321")

    assert [m.text for m in matches] == ["555-123-4567", "555-765-4321"]


def test_prepare_mapped_points_back_to_raw_line():
    raw = "Call\u200b 800—555—1234"
    mapped = prepare_mapped(raw)
    match = find_phone_matches(mapped.text)[0]

    start, end = mapped.source_range(match.start, match.end)
    assert raw[start:end] == "800—555—1234"


def test_replacement_never_crosses_lines():
    assert replace_phone_numbers("555-123-4567\n555-765-4321", "X") == "X\nX"


def test_replace_counts_matches():
    text, count = replace_phone_numbers_counted("Call 555-123-4567 or 1-800-FLOWERS", "+1-999-111-2222")

    assert text == "Call +1-999-111-2222 or +1-999-111-2222"
    assert count == 2


def test_replacement_is_inserted_literally():
    assert replace_phone_numbers("Call 555-123-4567", r"\1 \g<0>") == r"Call \1 \g<0>"
