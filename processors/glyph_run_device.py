"""Glyph Run Device for PDF Text Extraction

PDFMiner device that turns text-showing operators into positioned glyph runs.
Characters are accumulated into runs in content-stream order and a run is
closed at whitespace, at large TJ displacements and at the end of each
text-showing operator, so every run is at most one word. Whitespace itself is
not kept as text; the run that follows it is flagged with space_before so
word boundaries survive even where a space is narrower than the gap
tolerance. The text position is
advanced through the text state's line matrix the same way PDFMiner's own
layout device does.

Coordinates are PDF user space relative to the MediaBox origin, since the
interpreter's initial CTM already removes the MediaBox offset.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pdfminer.pdfdevice import PDFDevice
from pdfminer.pdffont import PDFUnicodeNotDefined
from pdfminer.pdfinterp import PDFResourceManager
from pdfminer.utils import apply_matrix_pt, mult_matrix

from models.pdf_types import GlyphRun

logger = logging.getLogger(__name__)

SCALING_PERCENTAGE_DIVISOR = 0.01
DISPLACEMENT_MULTIPLIER = 0.001
DEFAULT_FONT_ASCENT = 0.75
DEFAULT_FONT_DESCENT = -0.25
INVALID_METRIC_THRESHOLD = 0.001
SPACE_CID = 32
REPLACEMENT_CHARACTER = "\ufffd"
# TJ displacement (in user space units) that ends the current run
RUN_BREAK_DISPLACEMENT = 2.0


@dataclass
class _PendingRun:
    chars: List[str] = field(default_factory=list)
    x0: float = 0.0
    y0: float = 0.0
    x1: float = 0.0
    height: float = 0.0
    ascent: float = 0.0
    descent: float = 0.0
    font_name: Optional[str] = None
    space_before: bool = False


def _font_extents(font, height: float) -> Tuple[float, float]:
    """Ascent and descent above/below the baseline for a font at `height`."""
    try:
        ascent = font.get_ascent()
        descent = font.get_descent()
    except Exception:
        ascent, descent = 0.0, 0.0

    if not ascent or ascent < INVALID_METRIC_THRESHOLD:
        ascent = DEFAULT_FONT_ASCENT
    if not descent or descent > -INVALID_METRIC_THRESHOLD:
        descent = DEFAULT_FONT_DESCENT
    return ascent * height, -descent * height


class GlyphRunDevice(PDFDevice):
    """
    Text extraction device producing one GlyphRun per word-sized run.

    Runs are collected in `runs` in content-stream order; nothing about
    reading order is assumed here.
    """

    def __init__(
        self,
        rsrcmgr: PDFResourceManager,
        page_index: int = 0,
        run_break_displacement: float = RUN_BREAK_DISPLACEMENT,
    ):
        """
        Initialize glyph run device.

        Args:
            rsrcmgr: PDF resource manager
            page_index: 0-based page index, used for logging
            run_break_displacement: TJ displacement that closes the current run
        """
        super().__init__(rsrcmgr)
        self.page_index = page_index
        self.run_break_displacement = run_break_displacement
        self.runs: List[GlyphRun] = []
        self._pending: Optional[_PendingRun] = None
        self._space_seen = False
        self.render_string_count = 0

    def begin_page(self, page, ctm):
        """Initialize state for new page"""
        self.runs = []
        self._pending = None
        self._space_seen = False
        self.set_ctm(ctm)

    def end_page(self, page):
        """Flush any remaining text at page end"""
        self._flush_run()
        logger.debug(f"Page {self.page_index + 1}: {len(self.runs)} glyph runs from {self.render_string_count} text operators")

    def _flush_run(self):
        pending = self._pending
        self._pending = None
        if pending is None or not pending.chars:
            return
        self.runs.append(GlyphRun(
            text="".join(pending.chars),
            x=round(pending.x0, 3),
            y=round(pending.y0, 3),
            width=round(max(pending.x1 - pending.x0, 0.0), 3),
            height=round(pending.height, 3),
            ascent=round(pending.ascent, 3),
            descent=round(pending.descent, 3),
            fontName=pending.font_name,
            space_before=pending.space_before,
        ))

    def _add_char(self, text: str, start: Tuple[float, float], end: Tuple[float, float],
                  height: float, font) -> None:
        pending = self._pending
        if pending is None:
            ascent, descent = _font_extents(font, height)
            pending = _PendingRun(
                x0=start[0],
                y0=start[1],
                height=height,
                ascent=ascent,
                descent=descent,
                font_name=getattr(font, 'fontname', None),
                space_before=self._space_seen,
            )
            self._pending = pending
            self._space_seen = False
        pending.chars.append(text)
        pending.x1 = max(pending.x1, end[0], start[0])

    def _decode_char(self, font, cid: int) -> str:
        try:
            return font.to_unichr(cid)
        except PDFUnicodeNotDefined:
            return REPLACEMENT_CHARACTER

    def render_string(self, textstate, seq, ncs, graphicstate):
        """Handle text rendering (Tj/TJ operators)"""
        self.render_string_count += 1
        font = textstate.font
        if font is None:
            logger.debug(f"Page {self.page_index + 1}: text shown without a font, skipped")
            return

        matrix = mult_matrix(textstate.matrix, self.ctm)
        fontsize = textstate.fontsize
        scaling = textstate.scaling * SCALING_PERCENTAGE_DIVISOR
        charspace = textstate.charspace * scaling
        wordspace = textstate.wordspace * scaling
        rise = textstate.rise
        if font.is_multibyte():
            wordspace = 0
        dxscale = DISPLACEMENT_MULTIPLIER * fontsize * scaling
        # Effective glyph height in user space
        height = abs(fontsize) * math.hypot(matrix[2], matrix[3])
        horizontal_scale = math.hypot(matrix[0], matrix[1])

        (x, y) = textstate.linematrix
        for obj in seq:
            if isinstance(obj, (int, float)):
                displacement = obj * dxscale
                x -= displacement
                if abs(displacement) * horizontal_scale > self.run_break_displacement:
                    self._flush_run()
                continue

            for cid in font.decode(obj):
                char = self._decode_char(font, cid)
                advance = font.char_width(cid) * fontsize * scaling
                if char.isspace() or not char:
                    self._flush_run()
                    if char:
                        self._space_seen = True
                else:
                    start = apply_matrix_pt(matrix, (x, y + rise))
                    end = apply_matrix_pt(matrix, (x + advance, y + rise))
                    self._add_char(char, start, end, height, font)
                x += advance + charspace
                if cid == SPACE_CID and wordspace:
                    x += wordspace

        textstate.linematrix = (x, y)
        self._flush_run()
