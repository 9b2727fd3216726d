"""Text Processor for PDFEngine

Handles text extraction: runs PDFMiner over each page with the glyph run
device and reconstructs ordered lines with their span tables.
"""

import io
import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

from pdfminer.pdfinterp import PDFResourceManager, PDFPageInterpreter
from pdfminer.pdfpage import PDFPage

from engine.base_processor import BaseProcessor
from engine.config import LineReconstructionOptions
from models.pdf_types import GlyphRun
from processors.glyph_run_device import GlyphRunDevice
from processors.line_reconstruction import LineReconstructor, PageLayout
from utils.validation import PdfExtractionError

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class TextProcessor(BaseProcessor):
    """
    Text extraction processor for PDFEngine.

    Produces per-page glyph run arenas and the lines reconstructed from them.
    Nothing is cached across pages; each layout lives only as long as the
    caller keeps it.
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[LineReconstructionOptions] = None):
        """
        Initialize text processor.

        Args:
            engine: Parent PDFEngine instance
            options: LineReconstructionOptions or None for defaults
        """
        super().__init__(engine)
        self.options = options or LineReconstructionOptions()
        self.reconstructor = LineReconstructor(
            y_tolerance=self.options.y_tolerance,
            word_gap_tolerance=self.options.word_gap_tolerance,
        )
        self._rsrcmgr: Optional[PDFResourceManager] = None
        self._pdfminer_pages: List[PDFPage] = []
        self._stream: Optional[io.BytesIO] = None

    def initialize(self) -> None:
        """Parse the document's page tree with PDFMiner."""
        if self._initialized:
            return
        try:
            self._stream = io.BytesIO(self.engine.pdf_bytes)
            self._rsrcmgr = PDFResourceManager()
            self._pdfminer_pages = list(PDFPage.get_pages(self._stream, check_extractable=False))
        except Exception as e:
            raise PdfExtractionError(f"Could not parse page tree: {e}") from e

        if len(self._pdfminer_pages) != self.engine.get_page_count():
            logger.warning(
                f"PDFMiner found {len(self._pdfminer_pages)} pages, "
                f"pikepdf found {self.engine.get_page_count()}"
            )
        super().initialize()

    def cleanup(self) -> None:
        """Release parsed pages"""
        self._pdfminer_pages = []
        self._rsrcmgr = None
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        super().cleanup()

    @property
    def page_count(self) -> int:
        return len(self._pdfminer_pages)

    def extract_glyph_runs(self, page_index: int) -> List[GlyphRun]:
        """
        Extract the glyph runs of a page in content-stream order.

        Args:
            page_index: 0-based page index

        Returns:
            GlyphRuns in MediaBox-relative user space

        Raises:
            PdfExtractionError: If the page content cannot be interpreted
        """
        self.require_ready()
        if not 0 <= page_index < len(self._pdfminer_pages):
            raise IndexError(f"Page index {page_index} out of range (document has {len(self._pdfminer_pages)} pages)")

        device = GlyphRunDevice(
            self._rsrcmgr,
            page_index=page_index,
            run_break_displacement=self.options.run_break_displacement,
        )
        interpreter = PDFPageInterpreter(self._rsrcmgr, device)
        page = self._pdfminer_pages[page_index]
        # Glyph coordinates stay in unrotated user space, the space overlays are drawn in
        page.rotate = 0
        try:
            interpreter.process_page(page)
        except Exception as e:
            raise PdfExtractionError(f"Could not extract text from page {page_index + 1}: {e}") from e
        finally:
            device.close()

        return device.runs

    def get_viewport_size(self, page_index: int) -> Tuple[float, float]:
        """Size of the coordinate frame glyph runs are extracted in (the MediaBox)."""
        x0, y0, x1, y1 = (float(v) for v in self._pdfminer_pages[page_index].mediabox)
        return abs(x1 - x0), abs(y1 - y0)

    def extract_page_layout(self, page_index: int) -> PageLayout:
        """
        Extract a page and reconstruct its lines.

        Args:
            page_index: 0-based page index

        Returns:
            PageLayout holding the run arena, the ordered lines and the
            text-extraction viewport size
        """
        runs = self.extract_glyph_runs(page_index)
        lines = self.reconstructor.reconstruct(runs)
        width, height = self.get_viewport_size(page_index)
        logger.debug(f"Page {page_index + 1}: {len(runs)} runs, {len(lines)} lines")
        return PageLayout(page_index=page_index, runs=runs, lines=lines, width=width, height=height)

    def extract_document_lines(self) -> List[str]:
        """
        Reconstructed line texts for the whole document, page after page.

        Returns:
            Line texts in reading order
        """
        lines: List[str] = []
        for page_index in range(self.page_count):
            self.engine.check_limits()
            layout = self.extract_page_layout(page_index)
            lines.extend(line.text for line in layout.lines)
        logger.info(f"Extracted {len(lines)} lines from {self.page_count} pages")
        return lines
