import pytest

from processors.text_normalizer import MappedText
from processors.vanity_converter import convert_vanity_mapped, convert_vanity_numbers, vanity_word_to_digits


def test_flowers_keeps_prefix():
    assert convert_vanity_numbers("1-800-FLOWERS") == "1-800-3569377"


@pytest.mark.parametrize("text, expected", [
    ("Call 1-800-FLOWERS today", "Call 1-800-3569377 today"),
    ("1 800 flowers", "1 800 3569377"),
    ("1888GOFEDEX", "18884633339"),
    ("1-888-GO-FEDEX", "1-888-4633339"),
    ("1-877-Kars4Kids", "1-877-Kars4Kids"),
])
def test_convert_vanity_numbers(text, expected):
    assert convert_vanity_numbers(text) == expected


@pytest.mark.parametrize("text", [
    "1-212-FLOWERS",
    "1-800-ABC",
    "800-FLOWERS",
    "no numbers here",
])
def test_non_vanity_text_unchanged(text):
    assert convert_vanity_numbers(text) == text


@pytest.mark.parametrize("word, digits", [
    ("FLOWERS", "3569377"),
    ("flowers", "3569377"),
    ("GO-FEDEX", "4633339"),
    ("", ""),
])
def test_vanity_word_to_digits(word, digits):
    assert vanity_word_to_digits(word) == digits


def test_mapped_conversion_tracks_the_word():
    mapped = convert_vanity_mapped(MappedText.identity("1-800-FLOWERS now"))

    assert mapped.text == "1-800-3569377 now"
    assert mapped.source_range(0, 13) == (0, 13)
    assert mapped.source_range(14, 17) == (14, 17)
