"""
Block Segmentation

Splits body text into bullet items and paragraphs in source order. Bullet
lines (a bullet glyph, a hyphen or a "1." number followed by a space) start
a bullet block, blank lines end the pending paragraph, and every
other line is appended to it. Repeated lines are kept.
"""

import logging
import re
from typing import List

from models.pdf_types import Block, BlockType

logger = logging.getLogger(__name__)

BULLET_PATTERN = re.compile(r'^\s*(?:[•·●▪◦‣∙*]|-|\d+\.)\s+')


def is_bullet_line(line: str) -> bool:
    return BULLET_PATTERN.match(line) is not None


def strip_bullet_marker(line: str) -> str:
    return BULLET_PATTERN.sub('', line, count=1).strip()


def segment_blocks(text: str) -> List[Block]:
    """
    Segment body text into ordered blocks.

    Args:
        text: Body text, one source line per text line

    Returns:
        Blocks in input order; no block has empty text
    """
    blocks: List[Block] = []
    paragraph: List[str] = []

    def flush() -> None:
        if paragraph:
            blocks.append(Block(type=BlockType.PARAGRAPH, text=" ".join(paragraph)))
            paragraph.clear()

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            flush()
        elif is_bullet_line(line):
            flush()
            item = strip_bullet_marker(line)
            if item:
                blocks.append(Block(type=BlockType.BULLET, text=item))
        else:
            paragraph.append(line)
    flush()

    bullets = sum(1 for block in blocks if block.type == BlockType.BULLET)
    logger.debug(f"Segmented body into {len(blocks)} blocks ({bullets} bullets)")
    return blocks
