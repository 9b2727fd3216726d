import logging
from typing import List, Sequence, Tuple

from pikepdf import Name, Operator, String, unparse_content_stream

from constants.pdf_operators import (
    OP_SAVE_STATE, OP_RESTORE_STATE, OP_SET_RGB_COLOR_FILL,
    OP_BEGIN_TEXT, OP_END_TEXT, OP_SET_FONT, OP_SET_HORIZ_SCALING,
    OP_MOVE_TEXT, OP_SHOW_TEXT, OP_RECTANGLE, OP_FILL,
    RGB_BLACK, RGB_WHITE,
)

logger = logging.getLogger(__name__)

COORDINATE_PRECISION = 3
FULL_HORIZONTAL_SCALE = 100.0


def _num(value: float):
    rounded = round(float(value), COORDINATE_PRECISION)
    return int(rounded) if rounded.is_integer() else rounded


class ContentStreamBuilder:
    """
    Accumulates content stream operations and serializes them with pikepdf.

    Methods return the builder so drawing calls can be chained.
    """

    def __init__(self):
        self.operations: List[Tuple[list, Operator]] = []

    def __len__(self) -> int:
        return len(self.operations)

    def add(self, op: bytes, *operands) -> 'ContentStreamBuilder':
        self.operations.append((list(operands), Operator(op.decode('ascii'))))
        return self

    def save_state(self) -> 'ContentStreamBuilder':
        return self.add(OP_SAVE_STATE)

    def restore_state(self) -> 'ContentStreamBuilder':
        return self.add(OP_RESTORE_STATE)

    def set_fill_color(self, rgb: Sequence[float]) -> 'ContentStreamBuilder':
        return self.add(OP_SET_RGB_COLOR_FILL, *(_num(c) for c in rgb))

    def fill_rectangle(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        rgb: Sequence[float] = RGB_WHITE,
    ) -> 'ContentStreamBuilder':
        """Paint an opaque rectangle with its lower-left corner at (x, y)."""
        self.set_fill_color(rgb)
        self.add(OP_RECTANGLE, _num(x), _num(y), _num(width), _num(height))
        return self.add(OP_FILL)

    def show_text(
        self,
        font_resource: Name,
        size: float,
        x: float,
        y: float,
        encoded_text: bytes,
        rgb: Sequence[float] = RGB_BLACK,
        horizontal_scale: float = FULL_HORIZONTAL_SCALE,
    ) -> 'ContentStreamBuilder':
        """
        Draw one line of already-encoded text with its baseline origin at (x, y).

        Args:
            font_resource: Font resource name on the target page
            size: Font size in points
            x: Baseline origin X
            y: Baseline origin Y
            encoded_text: Bytes in the font's encoding
            rgb: Fill color for the glyphs
            horizontal_scale: Tz percentage; 100 leaves glyphs unscaled
        """
        self.set_fill_color(rgb)
        self.add(OP_BEGIN_TEXT)
        self.add(OP_SET_FONT, font_resource, _num(size))
        if abs(horizontal_scale - FULL_HORIZONTAL_SCALE) > 10 ** -COORDINATE_PRECISION:
            self.add(OP_SET_HORIZ_SCALING, _num(horizontal_scale))
        self.add(OP_MOVE_TEXT, _num(x), _num(y))
        self.add(OP_SHOW_TEXT, String(encoded_text))
        return self.add(OP_END_TEXT)

    def to_bytes(self) -> bytes:
        return unparse_content_stream(self.operations)
