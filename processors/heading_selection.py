"""
Heading Selection

Chooses the document title for the reflow output from the first lines of the
document. A line qualifies when it has a plausible title length and is
dominated by letters rather than digits, which keeps phone numbers and codes
from being taken for the title. The title is always verbatim source text.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

HEADING_MAX_CANDIDATES = 25
HEADING_MIN_LENGTH = 8
HEADING_MAX_LENGTH = 140
LETTER_TO_DIGIT_RATIO = 2
FALLBACK_HEADING = "Document"
HEADING_SPLIT_PATTERN = re.compile(r' - | — | : |\|')


@dataclass
class HeadingSelection:
    """Selected title and where it came from"""
    title: str
    line_index: Optional[int]  # Index into the input lines, None for the literal fallback
    remainder: Optional[str] = None  # Text after the split point when the fallback split a line


def count_letters(text: str) -> int:
    return sum(1 for ch in text if ch.isalpha())


def count_digits(text: str) -> int:
    return sum(1 for ch in text if ch.isdigit())


def is_heading_candidate(
    text: str,
    min_length: int = HEADING_MIN_LENGTH,
    max_length: int = HEADING_MAX_LENGTH,
) -> bool:
    """Check the title length range and the letter/digit ratio."""
    if not min_length <= len(text) <= max_length:
        return False
    return count_letters(text) > LETTER_TO_DIGIT_RATIO * count_digits(text)


def select_heading(
    lines: Sequence[str],
    max_candidates: int = HEADING_MAX_CANDIDATES,
    min_length: int = HEADING_MIN_LENGTH,
    max_length: int = HEADING_MAX_LENGTH,
) -> HeadingSelection:
    """
    Pick the heading among the first non-empty lines.

    Args:
        lines: Reconstructed document lines in reading order
        max_candidates: Number of non-empty lines to consider
        min_length: Shortest acceptable title
        max_length: Longest acceptable title, also the fallback truncation

    Returns:
        HeadingSelection with the verbatim title
    """
    candidates = []
    for index, line in enumerate(lines):
        stripped = line.strip()
        if stripped:
            candidates.append((index, stripped))
            if len(candidates) >= max_candidates:
                break

    for index, text in candidates:
        if is_heading_candidate(text, min_length, max_length):
            logger.debug(f"Heading selected from line {index}: '{text}'")
            return HeadingSelection(title=text, line_index=index)

    if not candidates:
        return HeadingSelection(title=FALLBACK_HEADING, line_index=None)

    index, first = candidates[0]
    parts = HEADING_SPLIT_PATTERN.split(first, maxsplit=1)
    segment = parts[0].strip()
    title = segment[:max_length]
    # Truncated text stays in the body
    leftovers = [segment[max_length:].strip()]
    if len(parts) > 1:
        leftovers.append(parts[1].strip())
    remainder = " ".join(part for part in leftovers if part)
    if not title:
        logger.debug("No usable heading candidate, using fallback title")
        return HeadingSelection(title=FALLBACK_HEADING, line_index=index, remainder=remainder or None)

    logger.debug(f"Heading fell back to first line segment: '{title}'")
    return HeadingSelection(title=title, line_index=index, remainder=remainder or None)


def body_lines(lines: Sequence[str], heading: HeadingSelection) -> List[str]:
    """
    The lines after the heading line, in source order.

    When the fallback split the heading line, the text after the split point
    comes first. Without a heading line every line is body.
    """
    if heading.line_index is None:
        return list(lines)
    body = [heading.remainder] if heading.remainder else []
    body.extend(lines[heading.line_index + 1:])
    return body
