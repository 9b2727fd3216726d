"""
Configuration system for PDF Engine.

Provides structured configuration using dataclasses with clear defaults,
type safety, and dict round-tripping for the HTTP layer.
"""

from dataclasses import dataclass, fields
from typing import Optional, Dict, Any, Tuple
import logging

logger = logging.getLogger(__name__)

LETTER_PAGE_SIZE = (612.0, 792.0)


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    unknown = set(data) - names
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}")
    return {k: v for k, v in data.items() if k in names}


@dataclass
class ProcessorOptions:
    """
    Base class for processor-specific configuration options.

    Subclasses add their fields and extend validate(); dict round-tripping
    is shared.
    """

    def validate(self) -> bool:
        """
        Validate configuration options.

        Returns:
            True if configuration is valid, False otherwise
        """
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        """Create options from dictionary, ignoring unknown keys."""
        return cls(**_known_fields(cls, data or {}))


@dataclass
class LineReconstructionOptions(ProcessorOptions):
    """
    Tolerances for grouping glyph runs into lines.
    """
    y_tolerance: float = 2.0  # Max baseline difference for runs on one line
    word_gap_tolerance: float = 2.0  # Horizontal gap that becomes a space
    run_break_displacement: float = 2.0  # TJ displacement that splits a run

    def validate(self) -> bool:
        if not super().validate():
            return False
        if self.y_tolerance < 0 or self.word_gap_tolerance < 0 or self.run_break_displacement < 0:
            logger.error("Line reconstruction tolerances must be non-negative")
            return False
        return True


@dataclass
class RedactionOptions(ProcessorOptions):
    """
    Configuration options for in-place phone number redaction.

    Controls the cover box geometry and how the replacement is drawn.
    """
    padding: float = 1.5  # Expansion of the cover box around matched runs
    draw_font_size: float = 10.0  # Fixed size of the replacement text
    font_name: str = "Helvetica"
    text_inset: float = 0.5  # Left inset of the replacement inside the box
    fill_color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    text_color: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    min_horizontal_scale: float = 10.0  # Lower bound for Tz when compressing text

    def validate(self) -> bool:
        if not super().validate():
            return False
        if self.padding < 0:
            logger.error("padding must be non-negative")
            return False
        if self.draw_font_size <= 0:
            logger.error("draw_font_size must be positive")
            return False
        if not 0 < self.min_horizontal_scale <= 100:
            logger.error("min_horizontal_scale must be within (0, 100]")
            return False
        for color in (self.fill_color, self.text_color):
            if len(color) != 3 or not all(0.0 <= c <= 1.0 for c in color):
                logger.error("Colors must be three components between 0.0 and 1.0")
                return False
        return True


@dataclass
class ReflowOptions(ProcessorOptions):
    """
    Layout options for the presentable (reflow) output.

    Sizes are in points. The vertical cursor starts `top_offset` below the
    top edge and a new page begins when the next line would cross
    `bottom_margin`.
    """
    font_name: str = "Helvetica"
    default_page_size: Tuple[float, float] = LETTER_PAGE_SIZE
    margin: float = 36.0
    top_offset: float = 72.0
    bottom_margin: float = 36.0
    title_max_size: float = 20.0
    title_min_size: float = 12.0
    title_size_step: float = 1.0
    title_line_height_ratio: float = 1.25
    title_spacing: float = 10.0  # Extra space after the title
    body_size: float = 11.0
    line_height: float = 14.0
    block_spacing: float = 6.0
    bullet_glyph: str = "•"
    bullet_indent: float = 14.0
    heading_max_candidates: int = 25
    heading_min_length: int = 8
    heading_max_length: int = 140

    def validate(self) -> bool:
        if not super().validate():
            return False
        width, height = self.default_page_size
        if width <= 0 or height <= 0:
            logger.error("default_page_size must be positive")
            return False
        if self.title_min_size <= 0 or self.title_min_size > self.title_max_size:
            logger.error("title sizes must satisfy 0 < title_min_size <= title_max_size")
            return False
        if self.title_size_step <= 0:
            logger.error("title_size_step must be positive")
            return False
        if self.body_size <= 0 or self.line_height <= 0:
            logger.error("body_size and line_height must be positive")
            return False
        if 2 * self.margin + self.bullet_indent >= width:
            logger.error("margins leave no room for text")
            return False
        if self.top_offset + self.bottom_margin >= height:
            logger.error("vertical margins leave no room for text")
            return False
        if self.heading_min_length > self.heading_max_length or self.heading_max_candidates < 1:
            logger.error("heading selection bounds are inconsistent")
            return False
        return True


@dataclass
class EngineConfig:
    """
    Central configuration for PDFEngine initialization.

    Provides all configuration options for engine behavior, resource management,
    and processor enablement.

    Example:
        >>> config = EngineConfig(max_file_size_mb=20)
        >>> engine = PDFEngine(pdf_bytes, config=config)
    """

    # Processing options
    enable_text_processor: bool = True
    enable_redactor: bool = True
    enable_reflow_renderer: bool = True

    # Processor-specific options (as dictionaries for flexibility)
    line_options: Optional[Dict[str, Any]] = None
    redaction_options: Optional[Dict[str, Any]] = None
    reflow_options: Optional[Dict[str, Any]] = None

    # Performance
    timeout_seconds: int = 300
    max_file_size_mb: int = 50
    max_memory_mb: int = 1000

    # Validation
    validate_on_open: bool = True

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.timeout_seconds < 1:
            logger.error("timeout_seconds must be at least 1 second")
            return False

        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        if self.max_memory_mb < 1:
            logger.error("max_memory_mb must be at least 1 MB")
            return False

        if not self.enable_text_processor and (self.enable_redactor or self.enable_reflow_renderer):
            logger.error("Output processors require the text processor")
            return False

        for options in (self.get_line_options(), self.get_redaction_options(), self.get_reflow_options()):
            if not options.validate():
                return False

        return True

    def get_line_options(self) -> LineReconstructionOptions:
        return LineReconstructionOptions.from_dict(self.line_options)

    def get_redaction_options(self) -> RedactionOptions:
        return RedactionOptions.from_dict(self.redaction_options)

    def get_reflow_options(self) -> ReflowOptions:
        return ReflowOptions.from_dict(self.reflow_options)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Useful for serialization, logging, and debugging.
        """
        return {
            'enable_text_processor': self.enable_text_processor,
            'enable_redactor': self.enable_redactor,
            'enable_reflow_renderer': self.enable_reflow_renderer,
            'line_options': self.get_line_options().to_dict(),
            'redaction_options': self.get_redaction_options().to_dict(),
            'reflow_options': self.get_reflow_options().to_dict(),
            'timeout_seconds': self.timeout_seconds,
            'max_file_size_mb': self.max_file_size_mb,
            'max_memory_mb': self.max_memory_mb,
            'validate_on_open': self.validate_on_open,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineConfig':
        """
        Create EngineConfig from dictionary.

        Args:
            config: Dictionary with configuration values

        Returns:
            EngineConfig instance
        """
        return cls(**_known_fields(cls, config))

    @classmethod
    def default(cls) -> 'EngineConfig':
        """Get default configuration."""
        return cls()
