"""
Phone Number Matching

A single tolerant pattern over digits and separator characters. Matching runs
on normalized, vanity-converted text so separator noise and spelled-out
toll-free numbers are caught the same way. There is no validation beyond the
shape; anything with eight or more digits bounded by separators matches.
"""

import logging
import re
from typing import List, Tuple

from models.pdf_types import PhoneMatch
from processors.text_normalizer import EXOTIC_SEPARATORS, MappedText, normalize_mapped, normalize_text
from processors.vanity_converter import convert_vanity_mapped, convert_vanity_numbers

logger = logging.getLogger(__name__)

PHONE_SEPARATOR_CHARS = r'\d\s\-()./\\|' + re.escape(EXOTIC_SEPARATORS)
MIN_SEPARATOR_SPAN = 7

PHONE_PATTERN = re.compile(
    rf'\+?\d[{PHONE_SEPARATOR_CHARS}]{{{MIN_SEPARATOR_SPAN},}}\d'
)


def prepare_for_matching(text: str) -> str:
    """Normalize and vanity-convert text into the form the pattern expects."""
    return convert_vanity_numbers(normalize_text(text))


def prepare_mapped(text: str) -> MappedText:
    """Like prepare_for_matching, keeping offsets back into `text`."""
    return convert_vanity_mapped(normalize_mapped(text))


def find_phone_matches(text: str) -> List[PhoneMatch]:
    """
    Find every non-overlapping phone number occurrence.

    Args:
        text: Text already passed through prepare_for_matching

    Returns:
        Matches in left-to-right order
    """
    return [
        PhoneMatch(start=m.start(), end=m.end(), text=m.group(0))
        for m in PHONE_PATTERN.finditer(text)
    ]


def replace_phone_numbers_counted(text: str, replacement: str) -> Tuple[str, int]:
    """
    Prepare text and substitute the replacement for every phone number.

    Args:
        text: Raw text, possibly multi-line
        replacement: Replacement phone number

    Returns:
        (normalized text with every match replaced, number of matches)
    """
    total = 0
    lines = []
    # Per line, so a match never swallows a line break
    for line in prepare_for_matching(text).split("\n"):
        replaced, count = PHONE_PATTERN.subn(lambda _: replacement, line)
        lines.append(replaced)
        total += count
    if total:
        logger.debug(f"Replaced {total} phone number(s) in text")
    return "\n".join(lines), total


def replace_phone_numbers(text: str, replacement: str) -> str:
    return replace_phone_numbers_counted(text, replacement)[0]
