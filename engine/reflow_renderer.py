"""
Reflow Renderer Processor

Composes the presentable document: the verbatim heading followed by the body
blocks (bullets and paragraphs, phone numbers replaced) laid out onto fresh
pages sized like the source's first page.

Layout and writing are separate steps. ReflowComposer is pure: it measures
text with the standard font metrics and produces a ReflowLayout of placed
lines. ReflowRenderer extracts the content, runs the composer and writes the
layout into a new pikepdf document.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import pikepdf
from pikepdf import Dictionary, Name

from engine.base_processor import BaseProcessor
from engine.config import ReflowOptions
from models.pdf_types import Block, BlockType
from processors.block_segmentation import segment_blocks
from processors.heading_selection import body_lines, select_heading
from processors.pdf_graphics import ContentStreamBuilder
from processors.phone_matcher import replace_phone_numbers_counted
from utils.font_metrics import ReplacementFont, load_replacement_font

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)

FONT_RESOURCE_NAME = Name.F1


@dataclass
class PlacedText:
    """One line of text with its baseline origin on a page"""
    text: str
    x: float
    y: float
    size: float


@dataclass
class ReflowLayout:
    """Pages of placed lines, all of one size"""
    page_size: Tuple[float, float]
    pages: List[List[PlacedText]] = field(default_factory=lambda: [[]])

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def lines(self) -> List[PlacedText]:
        return [placed for page in self.pages for placed in page]


@dataclass
class ReflowResult:
    """Output of a presentable render plus the artifacts it was built from"""
    pdf_bytes: bytes
    title: str
    blocks: List[Block]
    replacements: int
    page_count: int


class ReflowComposer:
    """
    Lays out a title and blocks with a vertical cursor.

    The cursor is the baseline of the next line. It starts `top_offset` below
    the top edge; a new page begins when the next line would drop below
    `bottom_margin`.
    """

    def __init__(self, font: ReplacementFont, options: ReflowOptions, page_size: Tuple[float, float]):
        self.font = font
        self.options = options
        self.page_width, self.page_height = page_size
        self.layout = ReflowLayout(page_size=page_size)
        self.cursor = self._top()

    def _top(self) -> float:
        return self.page_height - self.options.top_offset

    @property
    def text_width(self) -> float:
        """Width available between the side margins"""
        return self.page_width - 2 * self.options.margin

    def new_page(self) -> None:
        self.layout.pages.append([])
        self.cursor = self._top()

    def ensure(self, need: float) -> None:
        """Start a new page unless `need` fits above the bottom margin."""
        # A fresh page always takes the next line, however tall
        if self.cursor - need < self.options.bottom_margin and self.layout.pages[-1]:
            self.new_page()

    def place(self, text: str, x: float, size: float, line_height: float) -> None:
        self.ensure(line_height)
        self.layout.pages[-1].append(PlacedText(text=text, x=x, y=self.cursor, size=size))
        self.cursor -= line_height

    def _break_token(self, token: str, size: float, max_width: float) -> List[str]:
        """Split a token that is too wide into pieces that fit, one character at a time."""
        pieces = []
        piece = ""
        for ch in token:
            candidate = piece + ch
            if piece and self.font.width_of_text(candidate, size) > max_width:
                pieces.append(piece)
                piece = ch
            else:
                piece = candidate
        if piece:
            pieces.append(piece)
        return pieces

    def wrap_text(self, text: str, size: float, max_width: float) -> List[str]:
        """
        Greedy word wrap with hard breaks for overlong tokens.

        Args:
            text: Text to wrap; any whitespace separates tokens
            size: Font size used for measuring
            max_width: Maximum line width in points

        Returns:
            Wrapped lines, none wider than max_width unless a single
            character is
        """
        tokens = []
        for token in text.split():
            if self.font.width_of_text(token, size) > max_width:
                tokens.extend(self._break_token(token, size, max_width))
            else:
                tokens.append(token)

        lines = []
        current = ""
        for token in tokens:
            candidate = f"{current} {token}" if current else token
            if self.font.width_of_text(candidate, size) <= max_width:
                current = candidate
            else:
                if current:
                    lines.append(current)
                current = token
        if current:
            lines.append(current)
        return lines

    def add_title(self, title: str) -> None:
        """Title on one line, shrinking to fit; wrapped at minimum size if it never fits."""
        opts = self.options
        size = opts.title_max_size
        while size >= opts.title_min_size:
            if self.font.width_of_text(title, size) <= self.text_width:
                self.place(title, opts.margin, size, size * opts.title_line_height_ratio)
                self.cursor -= opts.title_spacing
                return
            size -= opts.title_size_step

        size = opts.title_min_size
        logger.debug(f"Title too wide at {size}pt, wrapping")
        for line in self.wrap_text(title, size, self.text_width):
            self.place(line, opts.margin, size, size * opts.title_line_height_ratio)
        self.cursor -= opts.title_spacing

    def add_bullet(self, text: str) -> None:
        opts = self.options
        text_x = opts.margin + opts.bullet_indent
        lines = self.wrap_text(text, opts.body_size, self.text_width - opts.bullet_indent)
        for index, line in enumerate(lines):
            self.ensure(opts.line_height)
            if index == 0:
                # Glyph and first line share a baseline
                self.layout.pages[-1].append(
                    PlacedText(text=opts.bullet_glyph, x=opts.margin, y=self.cursor, size=opts.body_size)
                )
            self.place(line, text_x, opts.body_size, opts.line_height)
        self.cursor -= opts.block_spacing

    def add_paragraph(self, text: str) -> None:
        opts = self.options
        for line in self.wrap_text(text, opts.body_size, self.text_width):
            self.place(line, opts.margin, opts.body_size, opts.line_height)
        self.cursor -= opts.block_spacing

    def compose(self, title: str, blocks: Sequence[Block]) -> ReflowLayout:
        """Title, then every block in order."""
        self.add_title(title)
        for block in blocks:
            if block.type == BlockType.BULLET:
                self.add_bullet(block.text)
            else:
                self.add_paragraph(block.text)
        return self.layout


def compose_layout(
    title: str,
    blocks: Sequence[Block],
    page_size: Tuple[float, float],
    options: Optional[ReflowOptions] = None,
) -> ReflowLayout:
    """Convenience wrapper around ReflowComposer"""
    options = options or ReflowOptions()
    font = load_replacement_font(options.font_name)
    return ReflowComposer(font, options, page_size).compose(title, blocks)


def write_layout(layout: ReflowLayout, font: ReplacementFont) -> bytes:
    """
    Write a layout into a new PDF.

    Args:
        layout: Composed pages
        font: Font the layout was measured with

    Returns:
        PDF bytes
    """
    pdf = pikepdf.Pdf.new()
    try:
        font_dict = font.font_dictionary(pdf)
        for placed_lines in layout.pages:
            page = pdf.add_blank_page(page_size=layout.page_size)
            builder = ContentStreamBuilder()
            for placed in placed_lines:
                builder.show_text(FONT_RESOURCE_NAME, placed.size, placed.x, placed.y, font.encode(placed.text))
            page.obj.Resources = Dictionary(Font=Dictionary(F1=font_dict))
            page.obj.Contents = pdf.make_stream(builder.to_bytes())

        buffer = io.BytesIO()
        pdf.save(buffer)
        return buffer.getvalue()
    finally:
        pdf.close()


class ReflowRenderer(BaseProcessor):
    """
    Processor that re-composes the document as title plus body blocks.

    Only the title is verbatim source text; the body is normalized,
    vanity-converted and phone-replaced before segmentation.
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[ReflowOptions] = None):
        """
        Initialize ReflowRenderer.

        Args:
            engine: Reference to parent PDFEngine
            options: Layout options (uses defaults if None)
        """
        super().__init__(engine)
        self.options = options or ReflowOptions()
        if not self.options.validate():
            raise ValueError("Invalid ReflowOptions")
        self.font: Optional[ReplacementFont] = None

    def initialize(self) -> None:
        """Resolve the body font."""
        self.font = load_replacement_font(self.options.font_name, self.engine.font_bytes)
        super().initialize()

    def cleanup(self) -> None:
        self.font = None
        super().cleanup()

    def page_size(self) -> Tuple[float, float]:
        """Size of the source's first page, or the default size if it cannot be read."""
        try:
            width, height = self.engine.get_source_page_size(0)
            if width > 0 and height > 0:
                return width, height
            logger.warning(f"Source page size {width}x{height} unusable, using default")
        except Exception as e:
            logger.warning(f"Could not read source page size, using default: {e}")
        return self.options.default_page_size

    def build_content(self, replacement: str) -> Tuple[str, List[Block], int]:
        """
        Extract the document and split it into title and body blocks.

        Returns:
            (verbatim title, body blocks, number of phone numbers replaced)
        """
        lines = self.engine.text_processor.extract_document_lines()
        heading = select_heading(
            lines,
            max_candidates=self.options.heading_max_candidates,
            min_length=self.options.heading_min_length,
            max_length=self.options.heading_max_length,
        )
        body = "\n".join(body_lines(lines, heading))
        replaced, count = replace_phone_numbers_counted(body, replacement)
        blocks = segment_blocks(replaced)
        return heading.title, blocks, count

    def render(self, replacement: str) -> ReflowResult:
        """
        Compose and write the presentable document.

        Args:
            replacement: Replacement phone number

        Returns:
            ReflowResult with the new PDF and its title, blocks and match count
        """
        self.require_ready()

        title, blocks, count = self.build_content(replacement)
        self.engine.check_limits()

        layout = ReflowComposer(self.font, self.options, self.page_size()).compose(title, blocks)
        pdf_bytes = write_layout(layout, self.font)
        logger.info(
            f"Reflow complete: {len(blocks)} blocks on {layout.page_count} page(s), "
            f"{count} phone number(s) replaced"
        )
        return ReflowResult(
            pdf_bytes=pdf_bytes,
            title=title,
            blocks=blocks,
            replacements=count,
            page_count=layout.page_count,
        )
