"""
Vanity Number Conversion

Rewrites toll-free numbers spelled with letters (1-800-FLOWERS) into their
keypad digits (1-800-3569377) so the phone pattern can match them. The numeric
prefix and its separators are kept exactly as written.
"""

import logging
import re
from typing import List, Tuple

from processors.text_normalizer import MappedText

logger = logging.getLogger(__name__)

KEYPAD_LETTERS = {
    '2': 'ABC',
    '3': 'DEF',
    '4': 'GHI',
    '5': 'JKL',
    '6': 'MNO',
    '7': 'PQRS',
    '8': 'TUV',
    '9': 'WXYZ',
}
VANITY_MAP = {letter: digit for digit, letters in KEYPAD_LETTERS.items() for letter in letters}

TOLL_FREE_CODES = ('800', '833', '844', '855', '866', '877', '888')

VANITY_PATTERN = re.compile(
    rf"\b(1[\s\-]?(?:{'|'.join(TOLL_FREE_CODES)})[\s\-]?)([A-Za-z][A-Za-z\-]{{3,}})\b",
    re.IGNORECASE,
)


def vanity_word_to_digits(word: str) -> str:
    """
    Map the letters of a vanity word to keypad digits.

    Hyphens and digits are stripped first. Characters without a keypad digit
    are dropped, so the result may be empty.
    """
    letters = re.sub(r'[\d\-]', '', word).upper()
    return ''.join(VANITY_MAP[ch] for ch in letters if ch in VANITY_MAP)


def _find_substitutions(text: str) -> List[Tuple[int, int, str]]:
    substitutions = []
    for match in VANITY_PATTERN.finditer(text):
        word = match.group(2)
        digits = vanity_word_to_digits(word)
        if not digits:
            logger.debug(f"Vanity word '{word}' has no keypad digits, left unchanged")
            continue
        substitutions.append((match.start(2), match.end(2), digits))
    return substitutions


def convert_vanity_numbers(text: str) -> str:
    """
    Replace spelled-out toll-free numbers with their digit form.

    Args:
        text: Normalized text

    Returns:
        Text with each vanity word replaced by keypad digits
    """
    substitutions = _find_substitutions(text)
    if not substitutions:
        return text

    parts = []
    cursor = 0
    for start, end, digits in substitutions:
        parts.append(text[cursor:start])
        parts.append(digits)
        cursor = end
    parts.append(text[cursor:])
    return ''.join(parts)


def convert_vanity_mapped(mapped: MappedText) -> MappedText:
    """Offset-tracking variant of convert_vanity_numbers."""
    substitutions = _find_substitutions(mapped.text)
    if not substitutions:
        return mapped
    return mapped.substitute(substitutions)
