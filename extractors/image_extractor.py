"""
Image Extractor

Public-facing API for extracting the embedded images of a PDF to files.
"""

import base64
import io
import logging
from typing import Optional, TYPE_CHECKING

from PIL import Image

from engine import ExtractionEngine, ExtractionConfig, PageRange
from models.pdf_types import ExtractionResult

if TYPE_CHECKING:
    from models.pdf_types import PdfImageExtractionOptions

logger = logging.getLogger(__name__)


def extract_images(file_path: str, config: Optional[ExtractionConfig] = None) -> ExtractionResult:
    """Extract all images of a PDF into <prefix>-<n>.<suffix> files."""
    config = config or ExtractionConfig.default()
    try:
        logger.info(
            f"Starting image extraction from {file_path} "
            f"(pages {config.page_range.start} to {config.page_range.end or 'end'})"
        )

        with ExtractionEngine(file_path, config=config) as engine:
            return engine.extract_images()

    except FileNotFoundError:
        logger.error(f"PDF file not found: {file_path}")
        raise
    except Exception as e:
        logger.error(f"Image extraction failed: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
        raise


def config_from_options(options: 'PdfImageExtractionOptions', prefix: str,
                        password: Optional[str] = None) -> ExtractionConfig:
    """Map the HTTP options model onto an extraction config."""
    return ExtractionConfig(
        password=password,
        prefix=prefix,
        direct_jpeg=options.direct_jpeg,
        no_color_convert=options.no_color_convert,
        include_density=options.include_density,
        page_range=PageRange(start=options.start_page, end=options.end_page),
    )


def detect_image_mime_type(img_bytes: bytes) -> str:
    """Detect MIME type from image bytes."""
    if not img_bytes or len(img_bytes) < 8:
        return "image/unknown"

    if img_bytes[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"
    elif img_bytes[:3] == b'\xff\xd8\xff':
        return "image/jpeg"
    elif img_bytes[:4] in (b'II*\x00', b'MM\x00*'):
        return "image/tiff"
    elif img_bytes[:12] == b'\x00\x00\x00\x0cjP  \r\n\x87\n' or img_bytes[:4] == b'\xff\x4f\xff\x51':
        return "image/jp2"

    # Fallback to PIL
    try:
        with Image.open(io.BytesIO(img_bytes)) as img:
            format_name = img.format.lower() if img.format else 'unknown'
    except (OSError, ValueError):
        return "image/unknown"
    return f"image/{format_name}"


def to_data_uri(img_bytes: bytes) -> str:
    mime_type = detect_image_mime_type(img_bytes)
    base64_data = base64.b64encode(img_bytes).decode('utf-8')
    return f"data:{mime_type};base64,{base64_data}"
