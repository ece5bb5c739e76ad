"""Image Materializer for the ExtractionEngine

Decides the output format of every painted image (passthrough copy of the
compressed stream or re-encode), estimates its resolution from the CTM and
writes one file per image.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np
from PIL import Image

from constants.pdf_keys import CS_DEVICE_GRAY, CS_DEVICE_RGB, JPEG_FILTERS, JPX_FILTERS
from engine.base_processor import BaseProcessor
from engine.config import MaterializerOptions
from engine.extraction_context import ExtractionContext
from models.pdf_types import ExtractedImage
from utils import raster_codec
from utils.pdf_transforms import get_scaling_factors, matrix_to_list
from utils.raster_codec import RasterCodecError

if TYPE_CHECKING:
    from engine.pdf_engine import ExtractionEngine
    from processors.pdf_objects import PdfImageObject

logger = logging.getLogger(__name__)

DEFAULT_DPI = 72

# Near-miss resolutions caused by rounding, mapped to the intended value
DPI_SNAP_TABLE = {
    599: 600,
    299: 300,
    199: 200,
    149: 150,
    99: 100,
}

# Suffix renames applied after the filter lookup
SUFFIX_RENAMES = {
    'jb2': 'png',
    'jpx': 'jp2',
}

PASSTHROUGH_FILTERS = {
    'jpg': JPEG_FILTERS,
    'jp2': JPX_FILTERS,
}


def estimate_dpi(width: int, height: int, ctm: np.ndarray) -> int:
    """Resolution of an image drawn with the given CTM, in dots per inch."""
    scale_x, scale_y = get_scaling_factors(ctm)
    scale_sum = abs(scale_x) + abs(scale_y)
    if scale_sum == 0:
        return DEFAULT_DPI
    # Rounds half up
    return int(math.floor((width + height) * 72 / scale_sum + 0.5))


def snap_dpi(dpi: int) -> int:
    return DPI_SNAP_TABLE.get(dpi, dpi)


def select_suffix(image: 'PdfImageObject') -> str:
    suffix = image.native_suffix or 'png'
    suffix = SUFFIX_RENAMES.get(suffix, suffix)
    if image.has_mask or image.has_soft_mask:
        suffix = 'png'
    return suffix


def is_passthrough_eligible(colorspace_name: Optional[str], direct_jpeg: bool,
                            include_density: bool) -> bool:
    """Whether a jpg/jp2 image may be written as its original compressed bytes."""
    return not include_density and (
        direct_jpeg
        or colorspace_name == CS_DEVICE_GRAY
        or colorspace_name == CS_DEVICE_RGB
    )


def to_bitonal(image: Image.Image) -> Image.Image:
    """Threshold a decoded buffer into a strict 1-bit image."""
    if image.mode in ('LA', 'RGBA'):
        # Transparent areas count as white
        background = Image.new('RGBA', image.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, image.convert('RGBA'))
    luminance = np.asarray(image.convert('L'))
    bits = np.where(luminance >= 128, 255, 0).astype(np.uint8)
    return Image.fromarray(bits).convert('1', dither=Image.Dither.NONE)


@dataclass
class EncodedImage:
    """File payload chosen for one image."""
    suffix: str
    data: bytes
    dpi: Optional[int] = None
    passthrough: bool = False


class ImageMaterializer(BaseProcessor):
    """
    Writes painted images to disk.

    Every call consumes one output name from the context, whether or not a
    file ends up being written.
    """

    def __init__(self, engine: Optional['ExtractionEngine'] = None,
                 options: Optional[MaterializerOptions] = None):
        super().__init__(engine)
        self.options = options or MaterializerOptions()

    def initialize(self) -> None:
        for container in ('jpg', 'jp2', 'tiff'):
            if not raster_codec.is_format_available(container):
                logger.warning(f"No {container} encoder available, such images will be skipped")
        super().initialize()

    # --- Format decision ---

    def decide(self, image: 'PdfImageObject', dpi: int) -> Optional[EncodedImage]:
        """
        Choose and produce the file payload for an image.

        Returns None when no pixel data is available.

        Raises:
            RasterCodecError: The payload cannot be encoded
        """
        options = self.options
        suffix = select_suffix(image)

        if options.no_color_convert:
            raw = image.raw_buffer()
            if raw is not None:
                raw_suffix = 'tiff' if len(raw.getbands()) > 3 else 'png'
                return EncodedImage(raw_suffix, raster_codec.encode(raw, raw_suffix))

        if suffix in PASSTHROUGH_FILTERS:
            if is_passthrough_eligible(image.colorspace_name, options.direct_jpeg,
                                       options.include_density):
                data = image.compressed_stream(PASSTHROUGH_FILTERS[suffix])
                return EncodedImage(suffix, data, passthrough=True)

            decoded = image.decoded_buffer()
            if decoded is None:
                return None
            return EncodedImage(suffix, raster_codec.encode(decoded, suffix, dpi), dpi)

        decoded = image.decoded_buffer()
        if decoded is None:
            return None

        # Stencil masks are one-component gray images
        is_gray = image.is_stencil or image.colorspace_name == CS_DEVICE_GRAY
        if suffix == 'tiff' and is_gray:
            return EncodedImage(suffix, raster_codec.encode(to_bitonal(decoded), suffix, dpi), dpi)

        return EncodedImage(suffix, raster_codec.encode(decoded, suffix, dpi), dpi)

    # --- Output ---

    def materialize(self, image: 'PdfImageObject', ctm: np.ndarray,
                    context: ExtractionContext, page_number: int = 1) -> Optional[ExtractedImage]:
        """
        Write one image file and record it in the context.

        Local failures (decode, encode, write) are logged and yield None.
        """
        base_name = context.next_image_name()
        dpi = snap_dpi(estimate_dpi(image.width, image.height, ctm))
        logger.debug(f"Image {image.name} drawn with CTM {matrix_to_list(ctm)}: {dpi} dpi")

        try:
            payload = self.decide(image, dpi)
        except RasterCodecError as e:
            logger.warning(f"Skipping image {image.name} ({base_name}): {e}")
            context.record_failure(base_name, str(e))
            return None

        if payload is None:
            logger.debug(f"No pixel data for image {image.name} ({base_name}), skipped")
            context.record_failure(base_name, "no pixel data")
            return None

        file_name = f"{base_name}.{payload.suffix}"
        try:
            with open(file_name, 'wb') as out:
                out.write(payload.data)
        except OSError as e:
            logger.error(f"Failed to write {file_name}: {e}")
            context.record_failure(base_name, str(e))
            return None

        entry = ExtractedImage(
            fileName=file_name,
            name=image.name,
            pageNumber=page_number,
            objectNumber=image.object_number,
            generationNumber=image.generation_number,
            width=image.width,
            height=image.height,
            suffix=payload.suffix,
            dpi=payload.dpi,
            passthrough=payload.passthrough,
        )
        context.record(entry)

        mode = "copied" if payload.passthrough else "encoded"
        density = f", {payload.dpi} dpi" if payload.dpi else ""
        logger.info(f"Writing image: {file_name} ({image.width}x{image.height}, {mode}{density})")
        return entry
