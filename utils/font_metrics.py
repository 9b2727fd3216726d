"""
Fonts for drawing replacement text
Resolves font names to the PDF standard-14 Type1 fonts and measures text with their AFM widths,
or embeds a caller-supplied TrueType font as a Type0 font for text outside WinAnsi
"""

import io
import logging
import re
from functools import lru_cache
from typing import Dict, List, Optional, Union

from fontTools.ttLib import TTFont
from pdfminer.fontmetrics import FONT_METRICS
from pikepdf import Array, Dictionary, Name, Pdf, String

from utils.validation import FontEmbeddingError

logger = logging.getLogger(__name__)

TEXT_ENCODING = 'cp1252'  # WinAnsiEncoding
UNITS_PER_EM = 1000.0
DEFAULT_GLYPH_WIDTH = 500
DEFAULT_ASCENT = 750.0
DEFAULT_DESCENT = -250.0

# Symbolic fonts have their own built-in encodings and cannot draw WinAnsi text
SYMBOLIC_FONTS = {'Symbol', 'ZapfDingbats'}

FONT_ALIASES = {
    'helvetica': 'Helvetica',
    'arial': 'Helvetica',
    'arialmt': 'Helvetica',
    'sans': 'Helvetica',
    'sansserif': 'Helvetica',
    'helveticabold': 'Helvetica-Bold',
    'arialbold': 'Helvetica-Bold',
    'helveticaoblique': 'Helvetica-Oblique',
    'helveticaboldoblique': 'Helvetica-BoldOblique',
    'times': 'Times-Roman',
    'timesroman': 'Times-Roman',
    'timesnewroman': 'Times-Roman',
    'serif': 'Times-Roman',
    'timesbold': 'Times-Bold',
    'timesitalic': 'Times-Italic',
    'timesbolditalic': 'Times-BoldItalic',
    'courier': 'Courier',
    'couriernew': 'Courier',
    'monospace': 'Courier',
    'courierbold': 'Courier-Bold',
    'courieroblique': 'Courier-Oblique',
    'courierboldoblique': 'Courier-BoldOblique',
}


def _clean_font_name(font_name: str) -> str:
    base_name = font_name.strip().lstrip('/')
    base_name = re.sub(r'^[A-Z]{6}\+', '', base_name)
    return base_name.lower().replace('-', '').replace('_', '').replace(' ', '')


@lru_cache(maxsize=32)
def resolve_standard_font(font_name: str) -> str:
    """
    Map a font name to a non-symbolic standard-14 base font name.

    Raises:
        FontEmbeddingError: If the name does not resolve to a usable standard font
    """
    if not font_name or not font_name.strip():
        raise FontEmbeddingError("Font name must not be empty")

    exact = font_name.strip().lstrip('/')
    if exact in FONT_METRICS and exact not in SYMBOLIC_FONTS:
        return exact

    alias = FONT_ALIASES.get(_clean_font_name(font_name))
    if alias and alias in FONT_METRICS:
        return alias

    raise FontEmbeddingError(
        f"Font '{font_name}' is not a supported standard font "
        f"(expected one of: {', '.join(sorted(set(FONT_METRICS) - SYMBOLIC_FONTS))})"
    )


class StandardFont:
    """A standard-14 Type1 font drawn with WinAnsiEncoding"""

    def __init__(self, font_name: str = 'Helvetica'):
        self.base_font = resolve_standard_font(font_name)
        descriptor, widths = FONT_METRICS[self.base_font]
        self._widths: Dict[str, float] = dict(widths)
        self._default_width = self._widths.get(' ', DEFAULT_GLYPH_WIDTH)
        self.ascent = float(descriptor.get('Ascent', DEFAULT_ASCENT)) / UNITS_PER_EM
        self.descent = float(descriptor.get('Descent', DEFAULT_DESCENT)) / UNITS_PER_EM

    def __repr__(self) -> str:
        return f"StandardFont({self.base_font!r})"

    def encode(self, text: str) -> bytes:
        """Encode text for a Tj operand; unencodable characters become '?'."""
        return text.encode(TEXT_ENCODING, errors='replace')

    def drawable_text(self, text: str) -> str:
        """The text as it will appear once drawn."""
        return self.encode(text).decode(TEXT_ENCODING, errors='replace')

    def width_of_text(self, text: str, size: float) -> float:
        """
        Measure the advance width of text at a font size.

        Args:
            text: Text to measure
            size: Font size in points

        Returns:
            Width in points
        """
        units = sum(self._widths.get(ch, self._default_width) for ch in self.drawable_text(text))
        return units * size / UNITS_PER_EM

    def font_dictionary(self, pdf: Pdf) -> Dictionary:
        """
        Build an indirect Type1 font resource for `pdf`.

        Raises:
            FontEmbeddingError: If the resource cannot be created
        """
        try:
            return pdf.make_indirect(Dictionary(
                Type=Name.Font,
                Subtype=Name.Type1,
                BaseFont=Name('/' + self.base_font),
                Encoding=Name.WinAnsiEncoding,
            ))
        except Exception as e:
            raise FontEmbeddingError(f"Could not create font resource for {self.base_font}: {e}") from e


NOTDEF_GLYPH_ID = 0
MISSING_GLYPH_TEXT = '\ufffd'
PDF_GLYPH_UNITS = 1000.0
SYMBOLIC_FONT_FLAG = 4
DEFAULT_STEM_V = 80
TO_UNICODE_CHUNK_SIZE = 100  # bfchar entries allowed per block
FALLBACK_EMBEDDED_NAME = 'EmbeddedFont'

TO_UNICODE_HEADER = b"""/CIDInit /ProcSet findresource begin
12 dict begin
begincmap
/CIDSystemInfo << /Registry (Adobe) /Ordering (UCS) /Supplement 0 >> def
/CMapName /Adobe-Identity-UCS def
/CMapType 2 def
1 begincodespacerange
<0000> <FFFF>
endcodespacerange
"""
TO_UNICODE_FOOTER = b"""endcmap
CMapName currentdict /CMap defineresource pop
end
end
"""


class EmbeddedFont:
    """
    A TrueType font drawn through a Type0 font with Identity-H encoding.

    Text is encoded as two-byte glyph ids. The font program is embedded
    whole, with a /W width array and a ToUnicode CMap so the drawn text
    extracts back to the same characters.
    """

    def __init__(self, font_bytes: bytes):
        """
        Load a TrueType font program.

        Args:
            font_bytes: Raw .ttf content

        Raises:
            FontEmbeddingError: If the bytes are not a usable TrueType font
        """
        if not font_bytes:
            raise FontEmbeddingError("Font file is empty")
        self._data = bytes(font_bytes)

        try:
            font = TTFont(io.BytesIO(self._data))
            if 'glyf' not in font or 'hmtx' not in font:
                raise FontEmbeddingError("Font must be TrueType with 'glyf' and 'hmtx' tables")
            cmap = font.getBestCmap()
            glyph_order = font.getGlyphOrder()
            metrics = font['hmtx'].metrics
            head = font['head']
            hhea = font['hhea']
            ps_name = font['name'].getDebugName(6)
        except FontEmbeddingError:
            raise
        except Exception as e:
            raise FontEmbeddingError(f"Could not load font: {e}") from e

        if not cmap:
            raise FontEmbeddingError("Font has no Unicode character map")

        units_per_em = float(head.unitsPerEm)
        self._scale = PDF_GLYPH_UNITS / units_per_em
        glyph_ids = {name: index for index, name in enumerate(glyph_order)}

        self._glyph_ids: Dict[int, int] = {}
        self._unicode_by_glyph: Dict[int, int] = {}
        for codepoint, glyph_name in sorted(cmap.items()):
            glyph_id = glyph_ids.get(glyph_name)
            if glyph_id is None:
                continue
            self._glyph_ids[codepoint] = glyph_id
            # Lowest code point wins when glyphs are shared
            self._unicode_by_glyph.setdefault(glyph_id, codepoint)

        self._widths: List[int] = [
            round(metrics.get(name, (0, 0))[0] * self._scale) for name in glyph_order
        ]
        self._bbox = [round(v * self._scale) for v in (head.xMin, head.yMin, head.xMax, head.yMax)]
        self.ascent = hhea.ascent / units_per_em
        self.descent = hhea.descent / units_per_em
        self.base_font = re.sub(r'[^A-Za-z0-9\-]', '', ps_name or '') or FALLBACK_EMBEDDED_NAME

        logger.debug(f"Loaded {self.base_font}: {len(glyph_order)} glyphs, {len(self._glyph_ids)} mapped characters")

    def __repr__(self) -> str:
        return f"EmbeddedFont({self.base_font!r})"

    def has_glyph(self, ch: str) -> bool:
        return ord(ch) in self._glyph_ids

    def _glyph_id(self, ch: str) -> int:
        return self._glyph_ids.get(ord(ch), NOTDEF_GLYPH_ID)

    def encode(self, text: str) -> bytes:
        """Encode text as Identity-H glyph ids; characters the font lacks draw as .notdef."""
        return b''.join(self._glyph_id(ch).to_bytes(2, 'big') for ch in text)

    def drawable_text(self, text: str) -> str:
        return ''.join(ch if self.has_glyph(ch) else MISSING_GLYPH_TEXT for ch in text)

    def width_of_text(self, text: str, size: float) -> float:
        units = sum(self._widths[self._glyph_id(ch)] for ch in text)
        return units * size / PDF_GLYPH_UNITS

    def to_unicode_cmap(self) -> bytes:
        """ToUnicode CMap mapping every mapped glyph id back to its character."""
        entries = [
            b"<%04X> <%s>" % (glyph_id, chr(codepoint).encode('utf-16-be').hex().upper().encode('ascii'))
            for glyph_id, codepoint in sorted(self._unicode_by_glyph.items())
        ]
        chunks = [TO_UNICODE_HEADER]
        for start in range(0, len(entries), TO_UNICODE_CHUNK_SIZE):
            block = entries[start:start + TO_UNICODE_CHUNK_SIZE]
            chunks.append(b"%d beginbfchar\n" % len(block))
            chunks.append(b"\n".join(block) + b"\n")
            chunks.append(b"endbfchar\n")
        chunks.append(TO_UNICODE_FOOTER)
        return b"".join(chunks)

    def font_dictionary(self, pdf: Pdf) -> Dictionary:
        """
        Embed the font program and build the Type0 font resource for `pdf`.

        Raises:
            FontEmbeddingError: If the resource cannot be created
        """
        base_font = Name('/' + self.base_font)
        try:
            font_file = pdf.make_stream(self._data)
            font_file[Name.Length1] = len(self._data)
            descriptor = pdf.make_indirect(Dictionary(
                Type=Name.FontDescriptor,
                FontName=base_font,
                Flags=SYMBOLIC_FONT_FLAG,
                FontBBox=Array(self._bbox),
                ItalicAngle=0,
                Ascent=round(self.ascent * PDF_GLYPH_UNITS),
                Descent=round(self.descent * PDF_GLYPH_UNITS),
                CapHeight=round(self.ascent * PDF_GLYPH_UNITS),
                StemV=DEFAULT_STEM_V,
                FontFile2=font_file,
            ))
            cid_font = pdf.make_indirect(Dictionary(
                Type=Name.Font,
                Subtype=Name.CIDFontType2,
                BaseFont=base_font,
                CIDSystemInfo=Dictionary(
                    Registry=String('Adobe'),
                    Ordering=String('Identity'),
                    Supplement=0,
                ),
                FontDescriptor=descriptor,
                W=Array([0, Array(self._widths)]),
                CIDToGIDMap=Name.Identity,
            ))
            return pdf.make_indirect(Dictionary(
                Type=Name.Font,
                Subtype=Name.Type0,
                BaseFont=base_font,
                Encoding=Name('/Identity-H'),
                DescendantFonts=Array([cid_font]),
                ToUnicode=pdf.make_stream(self.to_unicode_cmap()),
            ))
        except Exception as e:
            raise FontEmbeddingError(f"Could not embed font {self.base_font}: {e}") from e


ReplacementFont = Union[StandardFont, EmbeddedFont]


@lru_cache(maxsize=16)
def load_replacement_font(font_name: str = 'Helvetica', font_bytes: Optional[bytes] = None) -> ReplacementFont:
    """
    Font used to draw replacement and reflowed text.

    Args:
        font_name: Standard-14 font name, used when no font program is given
        font_bytes: TrueType font program to embed instead

    Raises:
        FontEmbeddingError: If the font cannot be resolved or loaded
    """
    if font_bytes:
        return EmbeddedFont(font_bytes)
    return StandardFont(font_name)
