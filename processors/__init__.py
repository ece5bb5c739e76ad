"""
PDF Processing Components

Stateful processors that walk PDF content streams:

- ImageExtractionDevice: content stream interpreter reporting painted images
- GraphicsState / GraphicsStateStack: CTM, colors and soft mask tracking
- PdfImageObject: pikepdf image XObject / inline image adapter
- Pattern resolution: tiling and shading pattern lookup

These differ from utils/ which contains pure, stateless functions.
"""

from processors.image_extraction_device import ImageExtractionDevice
from processors.pdf_graphics import GraphicsState, GraphicsStateStack, PdfColor
from processors.pdf_objects import PdfImageObject, open_document, check_extraction_permission
from processors.pattern_resolver import TilingPattern, ShadingPattern, resolve_pattern

__version__ = "2.0.0"
__all__ = [
    'ImageExtractionDevice',
    'GraphicsState',
    'GraphicsStateStack',
    'PdfColor',
    'PdfImageObject',
    'open_document',
    'check_extraction_permission',
    'TilingPattern',
    'ShadingPattern',
    'resolve_pattern',
]
