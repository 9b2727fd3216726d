"""
In-Place Redactor Processor

Covers phone numbers on the source pages and draws the replacement number on
top. Each reconstructed line is normalized and vanity-converted through an
offset map, matched against the phone pattern, and every match is mapped back
through the map and the line's span table to the glyph runs that drew it.
The union of those runs, padded, becomes the cover box.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from pikepdf import Name, Page

from engine.base_processor import BaseProcessor
from engine.config import RedactionOptions
from models.pdf_types import BoundingBox, GlyphRun, PhoneMatch
from processors.line_reconstruction import Line, PageLayout
from processors.pdf_graphics import ContentStreamBuilder
from processors.phone_matcher import find_phone_matches, prepare_mapped
from utils.font_metrics import ReplacementFont, load_replacement_font
from utils.validation import FontEmbeddingError
from constants.pdf_keys import KEY_PARENT, KEY_RESOURCES, REPLACEMENT_FONT_PREFIX

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)

MIN_TEXT_WIDTH = 1.0


@dataclass
class Redaction:
    """One matched phone number and the source-space box that covers it"""
    match: PhoneMatch
    raw_start: int
    raw_end: int
    run_indices: List[int]
    box: BoundingBox


def compute_bounding_box(runs: Sequence[GlyphRun], padding: float) -> BoundingBox:
    """
    Padded union of the runs' extents.

    Args:
        runs: Runs backing a match (at least one)
        padding: Expansion applied on every side

    Returns:
        BoundingBox in the runs' coordinate space
    """
    if not runs:
        raise ValueError("At least one run is required for a bounding box")
    return BoundingBox(
        min_x=min(run.x for run in runs) - padding,
        max_x=max(run.right for run in runs) + padding,
        top_y=max(run.top for run in runs) + padding,
        bottom_y=min(run.bottom for run in runs) - padding,
    )


def plan_line_redactions(layout: PageLayout, line: Line, padding: float) -> List[Redaction]:
    """
    Find the phone numbers on a line and the boxes that cover them.

    Matches that fall entirely on synthesized spaces have no backing runs and
    are skipped.

    Args:
        layout: Page layout owning the run arena
        line: Line of that layout
        padding: Cover box padding

    Returns:
        Redactions in left-to-right order
    """
    check = prepare_mapped(line.text)
    redactions = []
    for match in find_phone_matches(check.text):
        raw_start, raw_end = check.source_range(match.start, match.end)
        run_indices = line.runs_in_range(raw_start, raw_end)
        if not run_indices:
            logger.debug(f"Page {layout.page_index + 1}: match '{match.text}' has no backing runs, skipped")
            continue
        box = compute_bounding_box([layout.runs[i] for i in run_indices], padding)
        redactions.append(Redaction(match, raw_start, raw_end, run_indices, box))
    return redactions


def page_space_box(
    box: BoundingBox,
    viewport_size: Tuple[float, float],
    mediabox: Tuple[float, float, float, float],
) -> BoundingBox:
    """
    Convert a box from text-extraction viewport space to output page space.

    X and Y are scaled independently by page size over viewport size, then
    shifted by the MediaBox origin.
    """
    viewport_width, viewport_height = viewport_size
    x0, y0, x1, y1 = mediabox
    scale_x = (x1 - x0) / viewport_width if viewport_width else 1.0
    scale_y = (y1 - y0) / viewport_height if viewport_height else 1.0
    return box.scaled(scale_x, scale_y, offset_x=x0, offset_y=y0)


def _ensure_page_resources(page: Page) -> None:
    """Give the page its own /Resources, copying inherited ones, before adding to it."""
    if KEY_RESOURCES in page.obj:
        return
    node = page.obj.get(KEY_PARENT)
    while node is not None:
        if KEY_RESOURCES in node:
            page.obj[KEY_RESOURCES] = node[KEY_RESOURCES]
            return
        node = node.get(KEY_PARENT)


class InPlaceRedactor(BaseProcessor):
    """
    Processor that paints replacement numbers over phone numbers on the source pages.

    Pages are handled one at a time; the overlay for a page is appended after
    the original content, which is wrapped in q/Q so the overlay is drawn in
    default user space.
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[RedactionOptions] = None):
        """
        Initialize InPlaceRedactor.

        Args:
            engine: Reference to parent PDFEngine
            options: Configuration options (uses defaults if None)
        """
        super().__init__(engine)
        self.options = options or RedactionOptions()
        if not self.options.validate():
            raise ValueError("Invalid RedactionOptions")
        self.font: Optional[ReplacementFont] = None
        self._font_dict = None

    def initialize(self) -> None:
        """Resolve the replacement font."""
        self.font = load_replacement_font(self.options.font_name, self.engine.font_bytes)
        super().initialize()

    def cleanup(self) -> None:
        self.font = None
        self._font_dict = None
        super().cleanup()

    def redact_document(self, replacement: str) -> int:
        """
        Replace every phone number on every page.

        Args:
            replacement: Replacement phone number

        Returns:
            Number of matches painted over
        """
        self.require_ready()

        text_processor = self.engine.text_processor
        total = 0
        for page_index in range(self.engine.get_page_count()):
            self.engine.check_limits()
            if page_index >= text_processor.page_count:
                logger.warning(f"Page {page_index + 1}: no text layer available, left unchanged")
                continue
            layout = text_processor.extract_page_layout(page_index)
            total += self.redact_page(layout, replacement)

        logger.info(f"In-place redaction complete: {total} phone number(s) replaced")
        return total

    def plan_page(self, layout: PageLayout) -> List[Redaction]:
        """All redactions for a page, in line order."""
        redactions = []
        for line in layout.lines:
            redactions.extend(plan_line_redactions(layout, line, self.options.padding))
        return redactions

    def redact_page(self, layout: PageLayout, replacement: str) -> int:
        """
        Paint cover boxes and replacement text on one page.

        Args:
            layout: Extracted layout of the page
            replacement: Replacement phone number

        Returns:
            Number of redactions drawn
        """
        redactions = self.plan_page(layout)
        if not redactions:
            return 0

        page = self.engine.pikepdf_document.pages[layout.page_index]
        mediabox = self.engine.get_page_mediabox(layout.page_index)
        font_resource = self._install_font(page)

        builder = ContentStreamBuilder()
        builder.save_state()
        for redaction in redactions:
            box = page_space_box(redaction.box, (layout.width, layout.height), mediabox)
            self._draw_replacement(builder, font_resource, box, replacement)
            logger.debug(
                f"Page {layout.page_index + 1}: covered '{redaction.match.text}' at "
                f"({box.min_x:.1f}, {box.bottom_y:.1f}, {box.width:.1f}x{box.height:.1f})"
            )
        builder.restore_state()

        pdf = self.engine.pikepdf_document
        page.contents_add(pdf.make_stream(b"q\n"), prepend=True)
        page.contents_add(pdf.make_stream(b"\nQ\n" + builder.to_bytes()))
        return len(redactions)

    def _install_font(self, page: Page) -> Name:
        try:
            _ensure_page_resources(page)
            # One font object per document, shared by every page that needs it
            if self._font_dict is None:
                self._font_dict = self.font.font_dictionary(self.engine.pikepdf_document)
            return page.add_resource(self._font_dict, Name.Font, prefix=REPLACEMENT_FONT_PREFIX)
        except FontEmbeddingError:
            raise
        except Exception as e:
            raise FontEmbeddingError(f"Could not add font {self.font.base_font} to page: {e}") from e

    def _draw_replacement(self, builder: ContentStreamBuilder, font_resource: Name,
                          box: BoundingBox, replacement: str) -> None:
        size = self.options.draw_font_size
        builder.fill_rectangle(box.min_x, box.bottom_y, box.width, box.height, self.options.fill_color)

        max_width = max(box.width - 2 * self.options.text_inset, MIN_TEXT_WIDTH)
        text_width = self.font.width_of_text(replacement, size)
        horizontal_scale = 100.0
        if text_width > max_width:
            horizontal_scale = max(100.0 * max_width / text_width, self.options.min_horizontal_scale)

        # Center the glyph extent vertically in the box
        glyph_height = size * (self.font.ascent - self.font.descent)
        baseline = box.bottom_y + (box.height - glyph_height) / 2 - size * self.font.descent

        builder.show_text(
            font_resource,
            size,
            box.min_x + self.options.text_inset,
            baseline,
            self.font.encode(replacement),
            rgb=self.options.text_color,
            horizontal_scale=horizontal_scale,
        )
