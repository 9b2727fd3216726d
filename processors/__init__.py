"""
PDF Processing Components

Text pipeline pieces shared by both output modes:

- GlyphRunDevice: PDFMiner device emitting word-level glyph runs
- LineReconstructor: Two-pass grouping of runs into lines with span tables
- Text normalizer and vanity converter: Offset-mapped cleanup before matching
- Phone matcher: The tolerant phone number pattern
- Heading selection and block segmentation: Title and body for reflow
- ContentStreamBuilder: Overlay and page content written with pikepdf

These differ from utils/ which holds validation, font metrics and HTTP helpers.
"""

from processors.glyph_run_device import GlyphRunDevice
from processors.line_reconstruction import LineReconstructor, PageLayout, reconstruct_lines
from processors.text_normalizer import MappedText, normalize_text
from processors.vanity_converter import convert_vanity_numbers
from processors.phone_matcher import find_phone_matches, prepare_for_matching, replace_phone_numbers
from processors.heading_selection import select_heading
from processors.block_segmentation import segment_blocks
from processors.pdf_graphics import ContentStreamBuilder

__version__ = "2.0.0"
__all__ = [
    'GlyphRunDevice',
    'LineReconstructor',
    'PageLayout',
    'reconstruct_lines',
    'MappedText',
    'normalize_text',
    'convert_vanity_numbers',
    'find_phone_matches',
    'prepare_for_matching',
    'replace_phone_numbers',
    'select_heading',
    'segment_blocks',
    'ContentStreamBuilder',
]
