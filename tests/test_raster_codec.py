import io

import pytest
from PIL import Image

from utils import raster_codec
from utils.raster_codec import (
    MissingCodecError,
    UnsupportedChannelLayoutError,
    encode,
    is_format_available,
)


def test_png_carries_resolution():
    data = encode(Image.new("RGB", (4, 4)), "png", dpi=300)
    with Image.open(io.BytesIO(data)) as image:
        assert image.format == "PNG"
        assert image.info["dpi"][0] == pytest.approx(300, abs=1)


def test_no_resolution_without_dpi():
    data = encode(Image.new("L", (4, 4)), "png")
    with Image.open(io.BytesIO(data)) as image:
        assert "dpi" not in image.info


def test_alpha_cannot_be_stored_as_jpeg():
    with pytest.raises(UnsupportedChannelLayoutError):
        encode(Image.new("LA", (4, 4)), "jpg")


def test_unknown_container_is_missing_codec():
    assert not is_format_available("bmp-but-not-really")
    with pytest.raises(MissingCodecError):
        encode(Image.new("RGB", (4, 4)), "bmp-but-not-really")


def test_unavailable_encoder_reported_before_encoding(monkeypatch):
    monkeypatch.setattr(raster_codec, "is_format_available", lambda fmt: False)
    with pytest.raises(MissingCodecError):
        encode(Image.new("RGB", (4, 4)), "png")


def test_palette_image_converted_for_jpeg():
    data = encode(Image.new("P", (4, 4)), "jpg")
    with Image.open(io.BytesIO(data)) as image:
        assert image.mode == "RGB"


def test_bilevel_tiff():
    data = encode(Image.new("1", (16, 16), 1), "tiff", dpi=200)
    with Image.open(io.BytesIO(data)) as image:
        assert image.format == "TIFF"
        assert image.mode == "1"
        assert image.info["dpi"][0] == pytest.approx(200, abs=1)
