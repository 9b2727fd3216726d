"""
PDF Processing Engine

Core engine module for phone number replacement.
Contains the unified PDFEngine class and the processors it coordinates.
"""

__version__ = "2.0.0"

from engine.pdf_engine import PDFEngine
from engine.config import (
    EngineConfig,
    ProcessorOptions,
    LineReconstructionOptions,
    RedactionOptions,
    ReflowOptions,
)
from engine.base_processor import BaseProcessor, ProcessorRegistry
from engine.text_processor import TextProcessor
from engine.inplace_redactor import InPlaceRedactor
from engine.reflow_renderer import ReflowRenderer, ReflowComposer, ReflowLayout

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'ProcessorOptions',
    'LineReconstructionOptions',
    'RedactionOptions',
    'ReflowOptions',
    'BaseProcessor',
    'ProcessorRegistry',
    'TextProcessor',
    'InPlaceRedactor',
    'ReflowRenderer',
    'ReflowComposer',
    'ReflowLayout',
]
