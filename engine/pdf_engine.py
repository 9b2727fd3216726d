"""
PDF Processing Engine - Core Coordinator

The PDFEngine owns the open documents for one source PDF. It validates the
input, opens it with pdfplumber (page geometry) and pikepdf (modification),
and coordinates the processors that extract text, redact in place and
compose reflowed output.

Usage:
    >>> from engine.pdf_engine import PDFEngine
    >>>
    >>> with PDFEngine(pdf_bytes) as engine:
    ...     count = engine.redactor.redact_document("+1-555-000-0000")
    ...     output = engine.save()
"""

import io
import logging
from typing import Optional, Tuple

import pdfplumber
import pikepdf

from engine.config import EngineConfig
from engine.base_processor import ProcessorRegistry
from utils.validation import (
    FontEmbeddingError,
    PdfExtractionError,
    PdfValidationError,
    ResourceManager,
    validate_file_content,
)

logger = logging.getLogger(__name__)


class PDFEngine:
    """
    Unified PDF processing engine with resource management and processor coordination.

    One engine handles exactly one document; nothing is shared between engines,
    so separate documents can be processed independently.

    Example:
        >>> with PDFEngine(pdf_bytes, name="flyer.pdf") as engine:
        ...     total_pages = engine.get_page_count()
    """

    def __init__(self, pdf_bytes: bytes, config: Optional[EngineConfig] = None, name: str = "document.pdf",
                 font_bytes: Optional[bytes] = None):
        """
        Initialize PDF engine with document bytes and optional configuration.

        Note: Document is not opened until entering context manager (__enter__).

        Args:
            pdf_bytes: Source PDF content
            config: Engine configuration (uses defaults if None)
            name: Display name used in logs
            font_bytes: TrueType font program for drawn text (standard font if None)

        Raises:
            PdfValidationError: If configuration is invalid
        """
        if not isinstance(pdf_bytes, (bytes, bytearray)):
            raise PdfValidationError(f"Expected PDF bytes, got {type(pdf_bytes).__name__}")

        self.pdf_bytes = bytes(pdf_bytes)
        self.name = name
        self.font_bytes = bytes(font_bytes) if font_bytes else None
        self.config = config or EngineConfig.default()

        if not self.config.validate():
            raise PdfValidationError("Invalid engine configuration")

        # Resource handles (initialized in __enter__)
        self._pdfplumber_doc = None
        self._pikepdf_doc = None
        self._is_open = False
        self._page_count: Optional[int] = None
        self._resources: Optional[ResourceManager] = None

        self._processors = ProcessorRegistry()

        logger.debug(f"PDFEngine initialized for: {name} ({len(self.pdf_bytes)} bytes)")

    def __enter__(self) -> 'PDFEngine':
        """
        Enter context manager - open PDF and initialize resources.

        Returns:
            Self for use in with-statement

        Raises:
            PdfValidationError: If the bytes are not an acceptable PDF
            PdfExtractionError: If the PDF cannot be opened or parsed
        """
        if self.config.validate_on_open:
            self._validate_pdf_content()

        self._resources = ResourceManager(
            max_memory_mb=self.config.max_memory_mb,
            max_time_seconds=self.config.timeout_seconds,
            label=self.name,
        )
        self._resources.__enter__()

        try:
            logger.info(f"Opening PDF: {self.name}")

            # Open PDF with pdfplumber (for page geometry)
            self._pdfplumber_doc = pdfplumber.open(io.BytesIO(self.pdf_bytes))

            # Open PDF with pikepdf (for modification)
            self._pikepdf_doc = pikepdf.open(io.BytesIO(self.pdf_bytes))

            self._page_count = len(self._pikepdf_doc.pages)
            self._is_open = True

            self._initialize_processors()

            logger.info(f"PDF opened successfully: {self._page_count} pages")
            return self

        except Exception as e:
            logger.error(f"Failed to open PDF {self.name}: {e}")
            self._cleanup_resources()
            if isinstance(e, (PdfValidationError, FontEmbeddingError)):
                raise
            raise PdfExtractionError(f"Failed to open PDF: {str(e)}") from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exit context manager - clean up all resources.

        Resources are cleaned up even if an exception occurred.
        """
        logger.debug(f"Closing PDF engine for {self.name}")
        self._cleanup_resources()

        if exc_type is not None:
            logger.error(f"Exception during engine operation: {exc_val}")

        # Don't suppress exceptions
        return False

    def _validate_pdf_content(self) -> None:
        """
        Validate PDF bytes before processing.

        Raises:
            PdfValidationError: If validation fails
        """
        is_valid, error = validate_file_content(self.pdf_bytes, self.config.max_file_size_mb)
        if not is_valid:
            raise PdfValidationError(error)

    def _initialize_processors(self) -> None:
        """Initialize all enabled processors."""
        if self.config.enable_text_processor:
            from engine.text_processor import TextProcessor
            self._processors.register('text', TextProcessor(self, self.config.get_line_options()))

        if self.config.enable_redactor:
            from engine.inplace_redactor import InPlaceRedactor
            self._processors.register('redactor', InPlaceRedactor(self, self.config.get_redaction_options()))

        if self.config.enable_reflow_renderer:
            from engine.reflow_renderer import ReflowRenderer
            self._processors.register('reflow', ReflowRenderer(self, self.config.get_reflow_options()))

        self._processors.initialize_all()

    def _cleanup_resources(self) -> None:
        """
        Clean up all resources (documents, processors).

        This method is idempotent and safe to call multiple times.
        """
        self._processors.cleanup_all()
        self._processors.clear()

        if self._pdfplumber_doc is not None:
            try:
                self._pdfplumber_doc.close()
            except Exception as e:
                logger.warning(f"Error closing pdfplumber document: {e}")
            finally:
                self._pdfplumber_doc = None

        if self._pikepdf_doc is not None:
            try:
                self._pikepdf_doc.close()
            except Exception as e:
                logger.warning(f"Error closing pikepdf document: {e}")
            finally:
                self._pikepdf_doc = None

        if self._resources is not None:
            self._resources.__exit__(None, None, None)
            self._resources = None

        self._is_open = False

    def _require_open(self) -> None:
        if not self._is_open:
            raise RuntimeError("Engine not opened - use within context manager")

    # Public API - Document Information

    @property
    def is_open(self) -> bool:
        return self._is_open

    def get_page_count(self) -> int:
        """
        Get total number of pages in document.

        Raises:
            RuntimeError: If engine not opened
        """
        self._require_open()
        return self._page_count

    def get_source_page_size(self, page_index: int) -> Tuple[float, float]:
        """
        Displayed size of a source page.

        Args:
            page_index: 0-based page index

        Returns:
            (width, height) as reported by pdfplumber
        """
        page = self.pdfplumber_document.pages[page_index]
        return float(page.width), float(page.height)

    def get_page_mediabox(self, page_index: int) -> Tuple[float, float, float, float]:
        """
        MediaBox of an output page as (x0, y0, x1, y1), normalized so x0 <= x1 and y0 <= y1.

        Args:
            page_index: 0-based page index
        """
        self._require_open()
        page = self._pikepdf_doc.pages[page_index]
        x0, y0, x1, y1 = (float(v) for v in page.mediabox)
        return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)

    def get_page_size(self, page_index: int) -> Tuple[float, float]:
        """Width and height of an output page in points."""
        x0, y0, x1, y1 = self.get_page_mediabox(page_index)
        return x1 - x0, y1 - y0

    def check_limits(self) -> None:
        """
        Raise if the time or memory budget for this document is exhausted.

        Raises:
            ProcessingTimeoutError: If processing exceeded the timeout
            MemoryLimitError: If memory usage exceeded the limit
        """
        if self._resources is not None:
            self._resources.check_limits()

    # Public API - Resource Access (for processors)

    @property
    def pdfplumber_document(self):
        """
        Access pdfplumber document (for processors).

        Raises:
            RuntimeError: If engine not opened
        """
        if not self._is_open or self._pdfplumber_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pdfplumber_doc

    @property
    def pikepdf_document(self) -> pikepdf.Pdf:
        """
        Access pikepdf document (for processors).

        Raises:
            RuntimeError: If engine not opened
        """
        if not self._is_open or self._pikepdf_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pikepdf_doc

    # Public API - Processor Access

    def _get_processor(self, name: str):
        self._require_open()
        processor = self._processors.get(name)
        if processor is None:
            raise RuntimeError(f"Processor '{name}' is not enabled in the engine configuration")
        return processor

    @property
    def text_processor(self):
        """TextProcessor for glyph-run extraction and line reconstruction."""
        return self._get_processor('text')

    @property
    def redactor(self):
        """InPlaceRedactor for painting over phone numbers on the source pages."""
        return self._get_processor('redactor')

    @property
    def reflow_renderer(self):
        """ReflowRenderer for composing the presentable document."""
        return self._get_processor('reflow')

    # Public API - Output

    def save(self) -> bytes:
        """
        Serialize the (possibly modified) pikepdf document.

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        self.pikepdf_document.save(buffer)
        return buffer.getvalue()

    def __repr__(self) -> str:
        status = "open" if self._is_open else "closed"
        return f"PDFEngine({self.name!r}, {status}, processors={self._processors.processor_names})"
