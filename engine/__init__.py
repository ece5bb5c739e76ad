"""
PDF Image Extraction Engine

Core engine module for coordinating extraction runs.
Contains the ExtractionEngine class, its configuration and the image materializer.
"""

__version__ = "2.0.0"

from engine.pdf_engine import ExtractionEngine
from engine.config import ExtractionConfig, MaterializerOptions, ProcessorOptions, PageRange
from engine.base_processor import BaseProcessor
from engine.extraction_context import ExtractionContext, ImageDeduplicator
from engine.image_processor import ImageMaterializer

__all__ = [
    'ExtractionEngine',
    'ExtractionConfig',
    'MaterializerOptions',
    'ProcessorOptions',
    'PageRange',
    'BaseProcessor',
    'ExtractionContext',
    'ImageDeduplicator',
    'ImageMaterializer',
]
