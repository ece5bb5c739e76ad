"""
Raster codec built on Pillow.

Encodes decoded pixel buffers (PIL images) into image container formats,
optionally tagging the output with a resolution.
"""

import io
import logging
from typing import Optional

from PIL import Image, features

logger = logging.getLogger(__name__)

# File suffix / format name -> Pillow format
CONTAINER_FORMATS = {
    'png': 'PNG',
    'jpg': 'JPEG',
    'jpeg': 'JPEG',
    'jp2': 'JPEG2000',
    'jpeg2000': 'JPEG2000',
    'tiff': 'TIFF',
    'tif': 'TIFF',
}

# Pillow codec feature each format depends on (None: always built in)
CODEC_FEATURES = {
    'PNG': 'zlib',
    'JPEG': 'jpg',
    'JPEG2000': 'jpg_2000',
    'TIFF': None,
}

# Pixel layouts each format stores without conversion
SUPPORTED_MODES = {
    'PNG': {'1', 'L', 'LA', 'P', 'RGB', 'RGBA', 'I', 'I;16'},
    'JPEG': {'1', 'L', 'RGB', 'CMYK'},
    'JPEG2000': {'L', 'LA', 'RGB', 'RGBA', 'I;16'},
    'TIFF': {'1', 'L', 'LA', 'P', 'RGB', 'RGBA', 'CMYK', 'I', 'I;16', 'F'},
}

JPEG_QUALITY = 95


class RasterCodecError(Exception):
    """Base class for encoding failures local to one image"""
    pass


class UnsupportedChannelLayoutError(RasterCodecError):
    """The pixel layout cannot be stored in the requested container"""
    pass


class MissingCodecError(RasterCodecError):
    """The Pillow build lacks the encoder for the requested container"""
    pass


def resolve_format(container_format: str) -> str:
    """Map a suffix or format name to the Pillow format name."""
    fmt = CONTAINER_FORMATS.get(container_format.lower())
    if fmt is None:
        raise MissingCodecError(f"No encoder registered for '{container_format}'")
    return fmt


def is_format_available(container_format: str) -> bool:
    """Check whether this Pillow build can write the given container."""
    try:
        fmt = resolve_format(container_format)
    except MissingCodecError:
        return False

    feature = CODEC_FEATURES.get(fmt)
    if feature is None:
        return True
    return bool(features.check_codec(feature))


def _prepare_image(image: Image.Image, fmt: str) -> Image.Image:
    """Convert palette images where needed, reject layouts the format cannot hold."""
    modes = SUPPORTED_MODES[fmt]
    if image.mode in modes:
        return image

    if image.mode == 'P':
        target = 'RGBA' if 'transparency' in image.info else 'RGB'
        if target in modes:
            return image.convert(target)

    raise UnsupportedChannelLayoutError(f"Cannot store {image.mode} pixels as {fmt}")


def encode(image: Image.Image, container_format: str, dpi: Optional[int] = None) -> bytes:
    """
    Encode a pixel buffer into a container format.

    Args:
        image: Decoded pixel buffer
        container_format: Target suffix or format name (png, jpg, jp2, tiff, ...)
        dpi: Resolution tag to embed, or None to write no density information

    Returns:
        Encoded file bytes

    Raises:
        MissingCodecError: Pillow cannot write this container
        UnsupportedChannelLayoutError: The image layout cannot be stored in it
    """
    fmt = resolve_format(container_format)
    if not is_format_available(container_format):
        raise MissingCodecError(f"{fmt} encoder is not available in this Pillow build")

    prepared = _prepare_image(image, fmt)

    params = {}
    if dpi is not None and dpi > 0:
        params['dpi'] = (dpi, dpi)

    if fmt == 'PNG':
        params['optimize'] = True
    elif fmt == 'JPEG':
        params['quality'] = JPEG_QUALITY
    elif fmt == 'TIFF' and prepared.mode == '1':
        if features.check_codec('libtiff'):
            params['compression'] = 'group4'
        else:
            logger.debug("libtiff unavailable, writing uncompressed bi-level TIFF")

    buffer = io.BytesIO()
    try:
        prepared.save(buffer, format=fmt, **params)
    except (OSError, ValueError) as e:
        raise UnsupportedChannelLayoutError(f"Failed to encode {prepared.mode} image as {fmt}: {e}") from e

    return buffer.getvalue()
