import io
import zlib

import pikepdf
import pytest
from pikepdf import Array, Dictionary, Name
from PIL import Image

from engine.extraction_context import ExtractionContext


def jpeg_bytes(mode="RGB", size=(8, 8), color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


def make_jpeg_xobject(pdf, data=None, colorspace=Name.DeviceRGB, size=(8, 8), **extra):
    data = data if data is not None else jpeg_bytes(size=size)
    return pdf.make_stream(
        data,
        Type=Name.XObject,
        Subtype=Name.Image,
        Width=size[0],
        Height=size[1],
        ColorSpace=colorspace,
        BitsPerComponent=8,
        Filter=Name.DCTDecode,
        **extra,
    )


def make_raw_xobject(pdf, image, colorspace=Name.DeviceRGB, bpc=8, compress=True, **extra):
    """Image XObject holding the bytes of a PIL image, optionally Flate compressed."""
    data = image.tobytes()
    if compress:
        extra["Filter"] = Name.FlateDecode
        data = zlib.compress(data)
    return pdf.make_stream(
        data,
        Type=Name.XObject,
        Subtype=Name.Image,
        Width=image.width,
        Height=image.height,
        ColorSpace=colorspace,
        BitsPerComponent=bpc,
        **extra,
    )


def make_stencil_xobject(pdf, size=(8, 8)):
    row_bytes = (size[0] + 7) // 8
    return pdf.make_stream(
        b"\x55" * (row_bytes * size[1]),
        Type=Name.XObject,
        Subtype=Name.Image,
        Width=size[0],
        Height=size[1],
        ImageMask=True,
        BitsPerComponent=1,
    )


def make_form(pdf, content, resources=None, matrix=None):
    extra = {}
    if resources is not None:
        extra["Resources"] = resources
    if matrix is not None:
        extra["Matrix"] = Array(matrix)
    return pdf.make_stream(
        content,
        Type=Name.XObject,
        Subtype=Name.Form,
        BBox=Array([0, 0, 100, 100]),
        **extra,
    )


def make_tiling_pattern(pdf, content, resources, matrix=None):
    return pdf.make_stream(
        content,
        Type=Name.Pattern,
        PatternType=1,
        PaintType=1,
        TilingType=1,
        BBox=Array([0, 0, 10, 10]),
        XStep=10,
        YStep=10,
        Resources=resources,
        Matrix=Array(matrix or [1, 0, 0, 1, 0, 0]),
    )


def add_page(pdf, content, resources=None):
    page_dict = Dictionary(
        Type=Name.Page,
        MediaBox=Array([0, 0, 200, 200]),
        Resources=resources if resources is not None else Dictionary(),
        Contents=pdf.make_stream(content),
    )
    pdf.pages.append(pikepdf.Page(pdf.make_indirect(page_dict)))
    return pdf.pages[-1]


class RecordingMaterializer:
    """Stands in for ImageMaterializer and records every image it is handed."""

    def __init__(self):
        self.calls = []

    def materialize(self, image, ctm, context, page_number=1):
        base_name = context.next_image_name()
        self.calls.append({
            "name": image.name,
            "base_name": base_name,
            "ctm": ctm.copy(),
            "page": page_number,
            "image": image,
        })
        return None

    @property
    def names(self):
        return [call["name"] for call in self.calls]


class FakeImage:
    """Minimal image reference for exercising the materializer without a PDF."""

    def __init__(self, *, width=10, height=10, native_suffix="png",
                 colorspace_name="/DeviceRGB", has_mask=False, has_soft_mask=False,
                 raw=None, decoded=None, compressed=b"", name="Im0", identity=(7, 0)):
        self.width = width
        self.height = height
        self.native_suffix = native_suffix
        self.colorspace_name = colorspace_name
        self.has_mask = has_mask
        self.has_soft_mask = has_soft_mask
        self._raw = raw
        self._decoded = decoded
        self._compressed = compressed
        self.name = name
        self.identity = identity
        self.object_number = identity[0] if identity else None
        self.generation_number = identity[1] if identity else None
        self.is_stencil = False
        self.requested_filters = None

    def raw_buffer(self):
        return self._raw

    def decoded_buffer(self):
        return self._decoded

    def compressed_stream(self, acceptable):
        self.requested_filters = tuple(acceptable)
        return self._compressed


@pytest.fixture
def pdf():
    document = pikepdf.new()
    yield document
    document.close()


@pytest.fixture
def recorder():
    return RecordingMaterializer()


@pytest.fixture
def context(tmp_path):
    return ExtractionContext(str(tmp_path / "img"))
