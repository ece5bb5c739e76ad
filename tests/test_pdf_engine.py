import zlib

import pikepdf
import pytest
from pikepdf import Dictionary, Name
from PIL import Image

from engine import ExtractionConfig, ExtractionEngine, PageRange
from utils.validation import DocumentAccessError, DocumentOpenError, PdfValidationError

from conftest import add_page, jpeg_bytes, make_jpeg_xobject, make_raw_xobject


def image_page(pdf, stream, name="Im0"):
    return add_page(pdf, f"q 72 0 0 72 0 0 cm /{name} Do Q".encode(),
                    Dictionary(XObject=Dictionary({f"/{name}": stream})))


def save(pdf, path, **kwargs):
    pdf.save(path, **kwargs)
    return str(path)


@pytest.fixture
def out_prefix(tmp_path):
    return str(tmp_path / "out")


def test_jpeg_copied_byte_for_byte(pdf, tmp_path, out_prefix):
    original = jpeg_bytes()
    image_page(pdf, make_jpeg_xobject(pdf, data=original))
    path = save(pdf, tmp_path / "doc.pdf")

    with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix)) as engine:
        result = engine.extract_images()

    assert [entry.fileName for entry in result.images] == [out_prefix + "-1.jpg"]
    with open(out_prefix + "-1.jpg", "rb") as f:
        assert f.read() == original
    assert result.images[0].passthrough
    assert result.totalPages == 1


def test_default_prefix_from_input_path(pdf, tmp_path):
    image_page(pdf, make_raw_xobject(pdf, Image.new("RGB", (4, 4))))
    path = save(pdf, tmp_path / "scan.pdf")

    with ExtractionEngine(path) as engine:
        result = engine.extract_images()

    assert result.images[0].fileName == str(tmp_path / "scan-1.png")
    assert (tmp_path / "scan-1.png").exists()


def test_page_range(pdf, tmp_path, out_prefix):
    for color in ((255, 0, 0), (0, 255, 0), (0, 0, 255)):
        image_page(pdf, make_raw_xobject(pdf, Image.new("RGB", (4, 4), color)))
    path = save(pdf, tmp_path / "doc.pdf")

    config = ExtractionConfig(prefix=out_prefix, page_range=PageRange(start=2, end=3))
    with ExtractionEngine(path, config) as engine:
        result = engine.extract_images()

    assert [entry.pageNumber for entry in result.images] == [2, 3]
    assert [entry.fileName for entry in result.images] == [out_prefix + "-1.png", out_prefix + "-2.png"]
    assert result.totalPages == 3
    assert result.pagesProcessed == 2


def test_page_range_past_the_end(pdf, tmp_path, out_prefix):
    image_page(pdf, make_raw_xobject(pdf, Image.new("RGB", (4, 4))))
    path = save(pdf, tmp_path / "doc.pdf")

    config = ExtractionConfig(prefix=out_prefix, page_range=PageRange(start=5))
    with ExtractionEngine(path, config) as engine:
        result = engine.extract_images()

    assert result.images == []
    assert result.pagesProcessed == 0


def test_bad_image_leaves_counter_gap(pdf, tmp_path, out_prefix):
    broken = make_jpeg_xobject(pdf, data=b"\xff\xd8 not really a jpeg", colorspace=Name.DeviceCMYK)
    image_page(pdf, broken)
    image_page(pdf, make_raw_xobject(pdf, Image.new("L", (4, 4)), colorspace=Name.DeviceGray))
    path = save(pdf, tmp_path / "doc.pdf")

    with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix)) as engine:
        result = engine.extract_images()

    assert [entry.fileName for entry in result.images] == [out_prefix + "-2.png"]
    assert result.failedImages == 1
    assert not list(tmp_path.glob("out-1.*"))


def test_dpi_recorded_for_reencoded_images(pdf, tmp_path, out_prefix):
    image_page(pdf, make_raw_xobject(pdf, Image.new("RGB", (299, 299))))
    path = save(pdf, tmp_path / "doc.pdf")

    with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix)) as engine:
        result = engine.extract_images()

    assert result.images[0].dpi == 300


def test_flate_inline_image_extracted(pdf, tmp_path, out_prefix):
    samples = bytes(range(0, 256, 4))
    add_page(pdf, b"q 72 0 0 72 0 0 cm\nBI /W 8 /H 8 /CS /G /BPC 8 /F /Fl ID\n"
                  + zlib.compress(samples) + b"\nEI\nQ\n")
    path = save(pdf, tmp_path / "doc.pdf")

    with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix)) as engine:
        result = engine.extract_images()

    assert result.failedImages == 0
    assert [(entry.name, entry.suffix) for entry in result.images] == [("inline", "png")]
    with Image.open(result.images[0].fileName) as written:
        assert written.size == (8, 8)
        assert written.convert("L").getpixel((7, 7)) == 252


def test_each_run_is_independent(pdf, tmp_path, out_prefix):
    image_page(pdf, make_raw_xobject(pdf, Image.new("RGB", (4, 4))))
    path = save(pdf, tmp_path / "doc.pdf")

    with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix)) as engine:
        first = engine.extract_images()
        second = engine.extract_images()

    assert len(first.images) == len(second.images) == 1
    assert second.images[0].fileName == out_prefix + "-1.png"


def test_extraction_not_permitted(pdf, tmp_path, out_prefix):
    image_page(pdf, make_jpeg_xobject(pdf))
    path = save(pdf, tmp_path / "doc.pdf", encryption=pikepdf.Encryption(
        owner="owner", user="", allow=pikepdf.Permissions(extract=False)
    ))

    with pytest.raises(DocumentAccessError):
        with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix)):
            pass
    assert list(tmp_path.glob("out-*")) == []


def test_wrong_password(pdf, tmp_path, out_prefix):
    image_page(pdf, make_jpeg_xobject(pdf))
    path = save(pdf, tmp_path / "doc.pdf", encryption=pikepdf.Encryption(owner="owner", user="user"))

    with pytest.raises(DocumentOpenError):
        with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix, password="nope")):
            pass

    with ExtractionEngine(path, ExtractionConfig(prefix=out_prefix, password="user")) as engine:
        assert len(engine.extract_images().images) == 1


def test_not_a_pdf(tmp_path, out_prefix):
    path = tmp_path / "notes.pdf"
    path.write_text("just some text")

    with pytest.raises(PdfValidationError):
        with ExtractionEngine(str(path), ExtractionConfig(prefix=out_prefix)):
            pass


def test_missing_output_directory(pdf, tmp_path):
    image_page(pdf, make_jpeg_xobject(pdf))
    path = save(pdf, tmp_path / "doc.pdf")

    with pytest.raises(PdfValidationError):
        with ExtractionEngine(path, ExtractionConfig(prefix=str(tmp_path / "nowhere" / "img"))):
            pass


def test_invalid_config_rejected(tmp_path):
    with pytest.raises(PdfValidationError):
        ExtractionEngine(str(tmp_path / "doc.pdf"), ExtractionConfig(prefix=""))


def test_engine_requires_context_manager(tmp_path):
    engine = ExtractionEngine(str(tmp_path / "doc.pdf"))
    with pytest.raises(RuntimeError):
        engine.extract_images()
