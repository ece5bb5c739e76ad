"""
pikepdf adapter for the image extraction pipeline.

Opens documents and wraps image XObjects and inline images so the rest of
the pipeline sees one interface: dimensions, color space, filter chain,
mask flags and three ways of getting at the pixels.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import pikepdf
from PIL import Image, ImageOps
from pikepdf import PdfImage

from constants.pdf_keys import (
    KEY_WIDTH, KEY_HEIGHT, KEY_BITS_PER_COMPONENT, KEY_COLOR_SPACE,
    KEY_IMAGE_MASK, KEY_MASK, KEY_SOFT_MASK, KEY_DECODE, KEY_FILTER,
    KEY_DECODE_PARMS, FILTER_ABBREVIATIONS, INLINE_KEY_ABBREVIATIONS,
    COLOR_SPACE_ABBREVIATIONS, FILTER_SUFFIXES, SUFFIX_FILTER_ORDER,
    CS_DEVICE_GRAY, CS_DEVICE_RGB, CS_DEVICE_CMYK,
)
from processors.pdf_graphics import color_space_family
from utils.raster_codec import RasterCodecError
from utils.validation import DocumentAccessError, DocumentOpenError

logger = logging.getLogger(__name__)

INLINE_IMAGE_NAME = "inline"
DEFAULT_IMAGE_NAME = "im0"

# Modes handed to the encoder as they are; everything else becomes RGB
DISPLAY_MODES = {'1', 'L', 'LA', 'RGB', 'RGBA', 'I;16'}


class StreamDecodeError(RasterCodecError):
    """The image stream cannot be decoded to the requested level"""
    pass


# --- Document access ---

def open_document(file_path: str, password: Optional[str] = None) -> pikepdf.Pdf:
    """
    Open a PDF with pikepdf.

    Raises:
        DocumentOpenError: The file is missing, unreadable, corrupt or the password is wrong
    """
    try:
        return pikepdf.open(file_path, password=password or "")
    except pikepdf.PasswordError as e:
        raise DocumentOpenError(f"Incorrect password for {file_path}") from e
    except pikepdf.PdfError as e:
        raise DocumentOpenError(f"Failed to open PDF {file_path}: {e}") from e
    except OSError as e:
        raise DocumentOpenError(f"Cannot read {file_path}: {e}") from e


def check_extraction_permission(pdf: pikepdf.Pdf) -> None:
    if not pdf.allow.extract:
        raise DocumentAccessError("You do not have permission to extract images")


# --- Helpers ---

def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, pikepdf.Array):
        return list(value)
    return [value]


def _expand_color_space(value, resources):
    """Expand inline color space abbreviations and resolve named resources."""
    if isinstance(value, pikepdf.Array):
        return pikepdf.Array([
            pikepdf.Name(COLOR_SPACE_ABBREVIATIONS.get(str(item), str(item)))
            if isinstance(item, pikepdf.Name) else item
            for item in value
        ])

    name = COLOR_SPACE_ABBREVIATIONS.get(str(value), str(value))
    if name in (CS_DEVICE_GRAY, CS_DEVICE_RGB, CS_DEVICE_CMYK):
        return pikepdf.Name(name)
    if resources is not None and KEY_COLOR_SPACE in resources:
        resolved = resources[KEY_COLOR_SPACE].get(name)
        if resolved is not None:
            return resolved
    return pikepdf.Name(name)


def _expand_filters(value):
    names = [FILTER_ABBREVIATIONS.get(str(f), str(f)) for f in _as_list(value)]
    if isinstance(value, pikepdf.Array):
        return pikepdf.Array([pikepdf.Name(n) for n in names])
    return pikepdf.Name(names[0])


def _to_display_mode(image: Image.Image) -> Image.Image:
    if image.mode in DISPLAY_MODES:
        return image
    if image.mode == 'P' and 'transparency' in image.info:
        return image.convert('RGBA')
    return image.convert('RGB')


def _mask_pixels(mask_stream) -> Optional[Image.Image]:
    try:
        return PdfImage(mask_stream).as_pil_image()
    except Exception as e:
        logger.debug(f"Could not decode mask stream: {e}")
        return None


def _apply_alpha(image: Image.Image, alpha: Image.Image) -> Image.Image:
    result = image.convert('RGBA') if image.mode != 'RGBA' else image.copy()
    alpha = alpha.convert('L')
    if alpha.size != result.size:
        alpha = alpha.resize(result.size, Image.Resampling.LANCZOS)
    result.putalpha(alpha)
    return result


# --- Image wrapper ---

class PdfImageObject:
    """An image XObject or inline image seen through the pikepdf object model."""

    def __init__(self, pdf: pikepdf.Pdf, stream: pikepdf.Stream,
                 name: Optional[str] = None, inline: bool = False):
        self.pdf = pdf
        self.stream = stream
        self.is_inline = inline
        if name:
            self.name = name.lstrip('/')
        else:
            self.name = INLINE_IMAGE_NAME if inline else DEFAULT_IMAGE_NAME
        self._filters: Optional[List[str]] = None

    @classmethod
    def from_inline(cls, pdf: pikepdf.Pdf, inline_image, resources=None) -> "PdfImageObject":
        """
        Wrap a BI/ID/EI image as a standalone image stream.

        Abbreviated keys and names are expanded and a named color space is
        looked up in the resources of the content stream holding the image.
        """
        # Still encoded, matching the declared /Filter
        raw = inline_image.read_raw_bytes()
        source = inline_image.obj

        image_dict = pikepdf.Dictionary(
            Type=pikepdf.Name.XObject, Subtype=pikepdf.Name.Image
        )
        for key in source.keys():
            full_key = INLINE_KEY_ABBREVIATIONS.get(str(key), str(key))
            value = source[key]
            if full_key == KEY_COLOR_SPACE:
                value = _expand_color_space(value, resources)
            elif full_key == KEY_FILTER:
                value = _expand_filters(value)
            image_dict[full_key] = value

        stream = pikepdf.Stream(pdf, bytes(raw), image_dict)
        return cls(pdf, stream, inline=True)

    # --- identity ---

    @property
    def identity(self) -> Optional[Tuple[int, int]]:
        """Object/generation pair of an image XObject; inline images have none."""
        if self.is_inline:
            return None
        objgen = tuple(self.stream.objgen)
        return objgen if objgen != (0, 0) else None

    @property
    def object_number(self) -> Optional[int]:
        identity = self.identity
        return identity[0] if identity else None

    @property
    def generation_number(self) -> Optional[int]:
        identity = self.identity
        return identity[1] if identity else None

    # --- dictionary attributes ---

    @property
    def width(self) -> int:
        return int(self.stream.get(KEY_WIDTH, 0))

    @property
    def height(self) -> int:
        return int(self.stream.get(KEY_HEIGHT, 0))

    @property
    def is_stencil(self) -> bool:
        return bool(self.stream.get(KEY_IMAGE_MASK, False))

    @property
    def bits_per_component(self) -> int:
        if self.is_stencil:
            return 1
        return int(self.stream.get(KEY_BITS_PER_COMPONENT, 8))

    @property
    def colorspace_name(self) -> Optional[str]:
        """Literal color space family name, e.g. /DeviceRGB or /ICCBased."""
        return color_space_family(self.stream.get(KEY_COLOR_SPACE))

    @property
    def has_mask(self) -> bool:
        return isinstance(self.stream.get(KEY_MASK), pikepdf.Stream)

    @property
    def has_soft_mask(self) -> bool:
        return isinstance(self.stream.get(KEY_SOFT_MASK), pikepdf.Stream)

    @property
    def filters(self) -> List[str]:
        if self._filters is None:
            self._filters = [
                FILTER_ABBREVIATIONS.get(str(f), str(f))
                for f in _as_list(self.stream.get(KEY_FILTER))
            ]
        return self._filters

    @property
    def native_filter(self) -> Optional[str]:
        """The filter that decides the file suffix, by priority rather than chain position."""
        filters = self.filters
        return next((name for name in SUFFIX_FILTER_ORDER if name in filters), None)

    @property
    def native_suffix(self) -> Optional[str]:
        """File suffix implied by the filter chain; png when there is none."""
        if not self.filters:
            return "png"
        native = self.native_filter
        return FILTER_SUFFIXES[native] if native else None

    # --- pixel access ---

    def raw_buffer(self) -> Optional[Image.Image]:
        """Pixels in the image's own color space, masks not applied."""
        try:
            return PdfImage(self.stream).as_pil_image()
        except Exception as e:
            logger.warning(f"Could not decode image {self.name}: {e}")
            return None

    def decoded_buffer(self) -> Optional[Image.Image]:
        """Pixels converted for display, with /SMask or /Mask applied as alpha."""
        image = self.raw_buffer()
        if image is None:
            return None
        image = _to_display_mode(image)

        soft_mask = self.stream.get(KEY_SOFT_MASK)
        if isinstance(soft_mask, pikepdf.Stream):
            alpha = _mask_pixels(soft_mask)
            if alpha is not None:
                image = _apply_alpha(image, alpha)
            return image

        mask = self.stream.get(KEY_MASK)
        if isinstance(mask, pikepdf.Stream):
            stencil = _mask_pixels(mask)
            if stencil is not None:
                # Sample value 1 masks out unless /Decode is [1 0]
                decode = [int(v) for v in _as_list(mask.get(KEY_DECODE))]
                alpha = stencil.convert('L')
                if decode != [1, 0]:
                    alpha = ImageOps.invert(alpha)
                image = _apply_alpha(image, alpha)
        return image

    def compressed_stream(self, acceptable: Sequence[str]) -> bytes:
        """
        Stream bytes decoded up to, not including, the first acceptable filter.

        Raises:
            StreamDecodeError: A leading filter cannot be decoded
        """
        filters = self.filters
        stop = next((i for i, f in enumerate(filters) if f in acceptable), len(filters))
        try:
            raw = bytes(self.stream.read_raw_bytes())
            if stop == 0:
                return raw

            leading = pikepdf.Stream(self.pdf, raw)
            leading[KEY_FILTER] = pikepdf.Array([pikepdf.Name(f) for f in filters[:stop]])
            parms = _as_list(self.stream.get(KEY_DECODE_PARMS))[:stop]
            if any(isinstance(p, pikepdf.Dictionary) for p in parms):
                parms += [None] * (stop - len(parms))
                leading[KEY_DECODE_PARMS] = pikepdf.Array([
                    p if isinstance(p, pikepdf.Dictionary) else pikepdf.Dictionary()
                    for p in parms
                ])
            return bytes(leading.read_bytes())
        except pikepdf.PdfError as e:
            raise StreamDecodeError(f"Cannot decode stream of image {self.name}: {e}") from e
