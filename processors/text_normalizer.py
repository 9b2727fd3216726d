"""
Text Normalization Module

Cleans extracted text before phone matching. Invisible characters that have
no visual effect are removed, exotic separator glyphs are unified to a plain
hyphen, whitespace runs are collapsed, and each line is trimmed.

Every transformation is tracked in a MappedText, which keeps, for each output
character, the half-open range of the raw input it was produced from. Callers
that match against normalized text use it to translate match offsets back to
the raw line text, so normalization is free to change character counts.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple

logger = logging.getLogger(__name__)

INVISIBLE_CHARS = frozenset("\u200b\u200c\u200d\ufeff\u00ad")
EXOTIC_SEPARATORS = "⇄⇋→←↔•·∙–—‒―_●"
EXOTIC_SEPARATOR_SET = frozenset(EXOTIC_SEPARATORS)
UNIFIED_SEPARATOR = "-"
COLLAPSED_WHITESPACE = " "
MIN_WHITESPACE_RUN = 2

# (character, source start, source end)
_Piece = Tuple[str, int, int]


@dataclass(frozen=True)
class MappedText:
    """
    Text paired with a per-character map back into the string it came from.

    `offsets[i]` is the half-open source range that produced `text[i]`.
    """
    text: str
    offsets: Tuple[Tuple[int, int], ...]
    source_length: int

    def __post_init__(self):
        if len(self.text) != len(self.offsets):
            raise ValueError(
                f"Offset table length {len(self.offsets)} does not match text length {len(self.text)}"
            )

    def __len__(self) -> int:
        return len(self.text)

    def __str__(self) -> str:
        return self.text

    @classmethod
    def identity(cls, text: str) -> 'MappedText':
        """Map each character of `text` onto itself."""
        return cls(text, tuple((i, i + 1) for i in range(len(text))), len(text))

    @classmethod
    def _from_pieces(cls, pieces: Sequence[_Piece], source_length: int) -> 'MappedText':
        return cls(
            "".join(p[0] for p in pieces),
            tuple((p[1], p[2]) for p in pieces),
            source_length,
        )

    def _pieces(self) -> List[_Piece]:
        return [(ch, start, end) for ch, (start, end) in zip(self.text, self.offsets)]

    def source_range(self, start: int, end: int) -> Tuple[int, int]:
        """
        Translate a half-open range of this text into the source text.

        Args:
            start: Start offset in this text
            end: End offset in this text (exclusive)

        Returns:
            (source_start, source_end) covering every source character that
            contributed to the range
        """
        if not 0 <= start <= end <= len(self.text):
            raise IndexError(f"Range [{start}, {end}) outside text of length {len(self.text)}")
        if start == end:
            anchor = self.offsets[start][0] if start < len(self.offsets) else self.source_length
            return anchor, anchor
        covered = self.offsets[start:end]
        return min(s for s, _ in covered), max(e for _, e in covered)

    def substitute(self, replacements: Iterable[Tuple[int, int, str]]) -> 'MappedText':
        """
        Replace non-overlapping ranges of this text.

        Each inserted character maps to the whole source range of the text
        it replaced.

        Args:
            replacements: (start, end, new_text) triples, in any order
        """
        pieces = self._pieces()
        result: List[_Piece] = []
        cursor = 0
        for start, end, new_text in sorted(replacements):
            if start < cursor:
                raise ValueError(f"Overlapping replacement at offset {start}")
            result.extend(pieces[cursor:start])
            src_start, src_end = self.source_range(start, end)
            result.extend((ch, src_start, src_end) for ch in new_text)
            cursor = end
        result.extend(pieces[cursor:])
        return MappedText._from_pieces(result, self.source_length)


def _merge_runs(
    pieces: List[_Piece],
    predicate: Callable[[str], bool],
    replacement: str,
    min_run: int,
) -> List[_Piece]:
    """Replace each run of at least `min_run` matching pieces with one piece."""
    merged: List[_Piece] = []
    for matches, group in itertools.groupby(pieces, key=lambda p: predicate(p[0])):
        run = list(group)
        if matches and len(run) >= min_run:
            merged.append((replacement, run[0][1], run[-1][2]))
        else:
            merged.extend(run)
    return merged


def _normalize_line(pieces: List[_Piece]) -> List[_Piece]:
    visible = [p for p in pieces if p[0] not in INVISIBLE_CHARS]
    unified = _merge_runs(visible, lambda ch: ch in EXOTIC_SEPARATOR_SET, UNIFIED_SEPARATOR, 1)
    collapsed = _merge_runs(unified, str.isspace, COLLAPSED_WHITESPACE, MIN_WHITESPACE_RUN)

    start, end = 0, len(collapsed)
    while start < end and collapsed[start][0].isspace():
        start += 1
    while end > start and collapsed[end - 1][0].isspace():
        end -= 1
    return collapsed[start:end]


def normalize_mapped(text: str) -> MappedText:
    """
    Normalize text while recording where every output character came from.

    Lines are normalized independently and rejoined with a newline, so blank
    lines survive as empty lines. Leading and trailing blank lines are dropped.

    Args:
        text: Raw extracted text, possibly multi-line

    Returns:
        MappedText whose offsets index into `text`
    """
    lines: List[List[_Piece]] = []
    newlines: List[int] = []
    line_start = 0
    for line in text.split("\n"):
        pieces = [(ch, line_start + i, line_start + i + 1) for i, ch in enumerate(line)]
        lines.append(_normalize_line(pieces))
        line_start += len(line)
        newlines.append(line_start)
        line_start += 1

    first = 0
    last = len(lines)
    while first < last and not lines[first]:
        first += 1
    while last > first and not lines[last - 1]:
        last -= 1

    result: List[_Piece] = []
    for index in range(first, last):
        if index > first:
            # The newline ending the previous line
            newline_at = newlines[index - 1]
            result.append(("\n", newline_at, newline_at + 1))
        result.extend(lines[index])
    return MappedText._from_pieces(result, len(text))


def normalize_text(text: str) -> str:
    """
    Strip invisible characters, unify separator glyphs and collapse whitespace.

    Idempotent: normalize_text(normalize_text(s)) == normalize_text(s).
    """
    return normalize_mapped(text).text
