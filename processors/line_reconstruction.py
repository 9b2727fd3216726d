"""Line Reconstruction

Rebuilds visual lines and word boundaries from the unordered glyph runs of a
page. Runs carry only position and text, so reading order is recovered
geometrically in two passes over a per-page run arena:

1. Grouping: each run joins the first line whose reference baseline lies
   within a vertical tolerance, otherwise it anchors a new line.
2. Assembly: lines are ordered top to bottom, runs left to right, and the
   line text is concatenated with a span table mapping character ranges back
   to arena indices. A run drawn after source whitespace, or separated from
   its neighbour by more than the word-gap tolerance, gets a synthesized
   space with no backing run in front of it.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from models.pdf_types import GlyphRun

logger = logging.getLogger(__name__)

Y_POSITION_TOLERANCE = 2.0
WORD_GAP_TOLERANCE = 2.0
SYNTHESIZED_SPACE = " "
NO_BACKING_RUN = -1


@dataclass
class Span:
    """Half-open range of a line's text and the arena index of its run (-1 if synthesized)"""
    start: int
    end: int
    run_index: int

    @property
    def is_synthesized(self) -> bool:
        return self.run_index == NO_BACKING_RUN

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end


@dataclass
class Line:
    """A visual line anchored at a reference baseline"""
    y_ref: float
    run_indices: List[int] = field(default_factory=list)
    text: str = ""
    spans: List[Span] = field(default_factory=list)

    def runs_in_range(self, start: int, end: int) -> List[int]:
        """Arena indices of runs whose spans overlap [start, end)."""
        return [
            span.run_index for span in self.spans
            if not span.is_synthesized and span.overlaps(start, end)
        ]


@dataclass
class PageLayout:
    """Reconstructed lines of one page together with the run arena they index"""
    page_index: int
    runs: List[GlyphRun]
    lines: List[Line]
    width: float
    height: float

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


class LineReconstructor:
    """Groups glyph runs into ordered lines with word-gap spacing"""

    def __init__(
        self,
        y_tolerance: float = Y_POSITION_TOLERANCE,
        word_gap_tolerance: float = WORD_GAP_TOLERANCE,
    ):
        if y_tolerance < 0 or word_gap_tolerance < 0:
            raise ValueError("Line reconstruction tolerances must be non-negative")
        self.y_tolerance = y_tolerance
        self.word_gap_tolerance = word_gap_tolerance

    def reconstruct(self, runs: Sequence[GlyphRun]) -> List[Line]:
        """
        Build ordered lines from an unordered run arena.

        Args:
            runs: All glyph runs of one page; Line.run_indices index this sequence

        Returns:
            Lines ordered top to bottom, each with text and spans assembled
        """
        lines = self._group(runs)
        lines.sort(key=lambda line: -line.y_ref)
        for line in lines:
            # sorted() is stable, so runs at equal x keep arena order
            line.run_indices = sorted(line.run_indices, key=lambda index: runs[index].x)
            self._assemble(line, runs)

        logger.debug(f"Reconstructed {len(lines)} lines from {len(runs)} runs")
        return lines

    def _group(self, runs: Sequence[GlyphRun]) -> List[Line]:
        lines: List[Line] = []
        for index, run in enumerate(runs):
            if not run.text:
                continue
            line = self._find_line(lines, run.y)
            if line is None:
                line = Line(y_ref=run.y)
                lines.append(line)
            line.run_indices.append(index)
        return lines

    def _find_line(self, lines: List[Line], y: float) -> Optional[Line]:
        for line in lines:
            if abs(line.y_ref - y) <= self.y_tolerance:
                return line
        return None

    def _assemble(self, line: Line, runs: Sequence[GlyphRun]) -> None:
        parts: List[str] = []
        spans: List[Span] = []
        cursor = 0
        previous: Optional[GlyphRun] = None

        for index in line.run_indices:
            run = runs[index]
            if previous is not None:
                gap = run.x - previous.right
                if gap > self.word_gap_tolerance or run.space_before:
                    spans.append(Span(cursor, cursor + 1, NO_BACKING_RUN))
                    parts.append(SYNTHESIZED_SPACE)
                    cursor += 1
            spans.append(Span(cursor, cursor + len(run.text), index))
            parts.append(run.text)
            cursor += len(run.text)
            previous = run

        line.text = "".join(parts)
        line.spans = spans


def reconstruct_lines(
    runs: Sequence[GlyphRun],
    y_tolerance: float = Y_POSITION_TOLERANCE,
    word_gap_tolerance: float = WORD_GAP_TOLERANCE,
) -> List[Line]:
    """Convenience wrapper around LineReconstructor.reconstruct."""
    return LineReconstructor(y_tolerance, word_gap_tolerance).reconstruct(runs)
