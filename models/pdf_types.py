"""
Pydantic models for PDF phone number replacement

Positional text primitives produced during extraction, the structural
units used by the reflow path, and the API response shapes.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from enum import Enum

class BlockType(str, Enum):
    """Enumeration for body block types"""
    BULLET = "bullet"
    PARAGRAPH = "paragraph"

class RenderMode(str, Enum):
    """Output strategy for a processed document"""
    INPLACE = "inplace"
    PRESENTABLE = "presentable"

    @classmethod
    def _missing_(cls, value):
        # "reflow" is the name used by the layout code for the presentable mode
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "reflow":
                return cls.PRESENTABLE
            for member in cls:
                if member.value == lowered:
                    return member
        return None

class GlyphRun(BaseModel):
    """
    One positioned run of characters as drawn by a page content stream.

    Coordinates are PDF user space relative to the MediaBox origin (Y grows
    upward). `y` is the baseline, `height` the effective font size, and
    `ascent`/`descent` the non-negative extents above and below the baseline.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    width: float
    height: float
    ascent: float = 0.0
    descent: float = 0.0
    fontName: Optional[str] = None
    space_before: bool = False  # Whitespace was drawn between this run and the previous one

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.ascent

    @property
    def bottom(self) -> float:
        return self.y - self.descent

class BoundingBox(BaseModel):
    """Axis-aligned box with Y growing upward"""
    min_x: float
    max_x: float
    top_y: float
    bottom_y: float

    @model_validator(mode="after")
    def _check_extents(self) -> "BoundingBox":
        if self.min_x > self.max_x:
            raise ValueError(f"min_x ({self.min_x}) exceeds max_x ({self.max_x})")
        if self.bottom_y > self.top_y:
            raise ValueError(f"bottom_y ({self.bottom_y}) exceeds top_y ({self.top_y})")
        return self

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.top_y - self.bottom_y

    def scaled(self, scale_x: float, scale_y: float, offset_x: float = 0.0, offset_y: float = 0.0) -> "BoundingBox":
        """Return this box mapped into another coordinate scale."""
        return BoundingBox(
            min_x=self.min_x * scale_x + offset_x,
            max_x=self.max_x * scale_x + offset_x,
            top_y=self.top_y * scale_y + offset_y,
            bottom_y=self.bottom_y * scale_y + offset_y,
        )

class PhoneMatch(BaseModel):
    """Half-open character range matched by the phone pattern"""
    start: int
    end: int
    text: str

class Block(BaseModel):
    """Ordered segmentation unit of body text"""
    type: BlockType
    text: str = Field(..., min_length=1)

# API response models
class DocumentResult(BaseModel):
    """Outcome of processing one document in a batch"""
    name: str
    success: bool
    mode: RenderMode
    error: Optional[str] = None
    pdf: Optional[str] = None  # Base64 encoded output document
    replacements: int = 0
    pages: int = 0
    title: Optional[str] = None

class BatchResponse(BaseModel):
    """Response for batch phone number replacement"""
    results: List[DocumentResult]
    succeeded: int
    failed: int
