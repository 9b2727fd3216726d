import io
from typing import Iterable, List, Optional, Sequence, Tuple

import pikepdf
import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from pikepdf import Dictionary, Name

from models.pdf_types import GlyphRun
from utils.font_metrics import EmbeddedFont

LETTER = (612.0, 792.0)

# (x, y, text) or (x, y, text, size)
TextItem = Tuple


def _escape(text: str) -> bytes:
    raw = text.encode('cp1252')
    return raw.replace(b'\\', b'\\\\').replace(b'(', b'\\(').replace(b')', b'\\)')


def text_content(items: Iterable[TextItem], size: float = 12) -> bytes:
    """Content stream drawing each item with its own BT/ET block."""
    chunks = []
    for item in items:
        x, y, text = item[:3]
        item_size = item[3] if len(item) > 3 else size
        chunks.append(b"BT /F1 %g Tf %g %g Td (%s) Tj ET" % (item_size, x, y, _escape(text)))
    return b"\n".join(chunks)


def build_pdf(
    pages: Sequence[bytes],
    page_size: Tuple[float, float] = LETTER,
    mediabox: Optional[List[float]] = None,
    rotate: Optional[int] = None,
) -> bytes:
    """One page per content stream, each with Helvetica (WinAnsiEncoding) as /F1."""
    pdf = pikepdf.Pdf.new()
    font = pdf.make_indirect(Dictionary(
        Type=Name.Font,
        Subtype=Name.Type1,
        BaseFont=Name.Helvetica,
        Encoding=Name.WinAnsiEncoding,
    ))
    for content in pages:
        page = pdf.add_blank_page(page_size=page_size)
        page.obj.Resources = Dictionary(Font=Dictionary(F1=font))
        page.obj.Contents = pdf.make_stream(content)
        if mediabox is not None:
            page.obj.MediaBox = pikepdf.Array(mediabox)
        if rotate is not None:
            page.obj.Rotate = rotate
    buffer = io.BytesIO()
    pdf.save(buffer)
    return buffer.getvalue()


def read_page_operations(page) -> List[Tuple[list, bytes]]:
    """A page's content stream as (operands, operator bytes) pairs."""
    return [
        (list(instruction.operands), bytes(instruction.operator.unparse()))
        for instruction in pikepdf.parse_content_stream(page)
    ]


TEST_FONT_GLYPH_WIDTH = 600
TEST_FONT_SPACE_WIDTH = 250


def _box_glyph(width: int):
    pen = TTGlyphPen(None)
    pen.moveTo((50, 0))
    pen.lineTo((50, 700))
    pen.lineTo((width - 50, 700))
    pen.lineTo((width - 50, 0))
    pen.closePath()
    return pen.glyph()


def build_test_font(characters: str, family: str = "Test Sans") -> bytes:
    """A TrueType font with a box glyph for each character and an empty space glyph."""
    codepoints = sorted(set(map(ord, characters)) - {ord(" ")})
    names = {cp: f"uni{cp:04X}" for cp in codepoints}
    glyph_order = [".notdef", "space"] + [names[cp] for cp in codepoints]

    glyphs = {".notdef": _box_glyph(TEST_FONT_GLYPH_WIDTH), "space": TTGlyphPen(None).glyph()}
    metrics = {".notdef": (TEST_FONT_GLYPH_WIDTH, 50), "space": (TEST_FONT_SPACE_WIDTH, 0)}
    for name in names.values():
        glyphs[name] = _box_glyph(TEST_FONT_GLYPH_WIDTH)
        metrics[name] = (TEST_FONT_GLYPH_WIDTH, 50)

    cmap = {ord(" "): "space"}
    cmap.update((cp, name) for cp, name in names.items())

    builder = FontBuilder(1000, isTTF=True)
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap(cmap)
    builder.setupGlyf(glyphs)
    builder.setupHorizontalMetrics(metrics)
    builder.setupHorizontalHeader(ascent=800, descent=-200)
    builder.setupNameTable({
        "familyName": family,
        "styleName": "Regular",
        "psName": family.replace(" ", "") + "-Regular",
    })
    builder.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    builder.setupPost()
    builder.setupMaxp()

    buffer = io.BytesIO()
    builder.save(buffer)
    return buffer.getvalue()


def build_embedded_pdf(font_bytes: bytes, items: Iterable[TextItem], size: float = 12,
                       page_size: Tuple[float, float] = LETTER) -> bytes:
    """One page drawing each item with the embedded font as /F1."""
    font = EmbeddedFont(font_bytes)
    chunks = []
    for item in items:
        x, y, text = item[:3]
        item_size = item[3] if len(item) > 3 else size
        chunks.append(b"BT /F1 %g Tf %g %g Td <%s> Tj ET" % (item_size, x, y, font.encode(text).hex().encode("ascii")))

    pdf = pikepdf.Pdf.new()
    page = pdf.add_blank_page(page_size=page_size)
    page.obj.Resources = Dictionary(Font=Dictionary(F1=font.font_dictionary(pdf)))
    page.obj.Contents = pdf.make_stream(b"\n".join(chunks))
    buffer = io.BytesIO()
    pdf.save(buffer)
    return buffer.getvalue()


def make_run(text: str, x: float, y: float, width: Optional[float] = None, height: float = 12.0) -> GlyphRun:
    return GlyphRun(
        text=text,
        x=x,
        y=y,
        width=width if width is not None else 6.0 * len(text),
        height=height,
        ascent=0.75 * height,
        descent=0.25 * height,
    )


@pytest.fixture
def call_now_pdf() -> bytes:
    return build_pdf([text_content([(72, 700, "Call 1-800-555-1234 now")])])


@pytest.fixture
def flyer_pdf() -> bytes:
    """A short flyer with a title, a paragraph and bullet lines."""
    return build_pdf([text_content([
        (72, 720, "Spring Garden Sale Event", 18),
        (72, 690, "Visit our nursery this weekend for big savings."),
        (72, 674, "Questions? Call 555-123-4567 any time."),
        (72, 650, "- Roses and tulips"),
        (72, 634, "- Order at 1-800-FLOWERS today"),
    ])])
