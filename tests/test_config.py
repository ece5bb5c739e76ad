import pytest

from engine.config import ExtractionConfig, PageRange, default_prefix
from engine.extraction_context import ExtractionContext
from models.pdf_types import ExtractedImage


@pytest.mark.parametrize("path, prefix", [
    ("docs/report.pdf", "docs/report"),
    ("report.PDF", "report"),
    ("scan.tiff.pdf", "scan.tiff"),
    ("a.pdf", "a"),
    ("x.y", "x.y"),
])
def test_default_prefix_drops_last_four_characters(path, prefix):
    assert default_prefix(path) == prefix


def test_explicit_prefix_wins():
    assert ExtractionConfig(prefix="out/img").resolve_prefix("doc.pdf") == "out/img"
    assert ExtractionConfig().resolve_prefix("doc.pdf") == "doc"


def test_page_range_numbers():
    assert PageRange().to_page_numbers(3) == [1, 2, 3]
    assert PageRange(start=2, end=10).to_page_numbers(4) == [2, 3, 4]
    assert PageRange(start=5).to_page_numbers(4) == []
    assert PageRange.single_page(2).to_page_numbers(4) == [2]
    assert PageRange().to_page_numbers(0) == []


@pytest.mark.parametrize("start, end", [(0, None), (3, 2), (1, 0)])
def test_page_range_rejects_invalid_bounds(start, end):
    with pytest.raises(ValueError):
        PageRange(start=start, end=end)


def test_config_validation():
    assert ExtractionConfig().validate()
    assert not ExtractionConfig(max_file_size_mb=0).validate()
    assert not ExtractionConfig(log_level="LOUD").validate()
    assert not ExtractionConfig(prefix="").validate()


def test_log_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert ExtractionConfig().log_level == "DEBUG"


def test_to_dict_omits_password():
    config = ExtractionConfig(password="secret", direct_jpeg=True)
    as_dict = config.to_dict()
    assert "password" not in as_dict
    assert as_dict["direct_jpeg"] is True
    assert "secret" not in repr(config)


def test_from_dict_builds_page_range():
    config = ExtractionConfig.from_dict({
        "include_density": True,
        "start_page": 2,
        "end_page": 5,
        "unknown": "ignored",
    })
    assert config.include_density
    assert (config.page_range.start, config.page_range.end) == (2, 5)


def test_materializer_options_follow_config():
    options = ExtractionConfig(direct_jpeg=True, no_color_convert=True).materializer_options()
    assert options.direct_jpeg and options.no_color_convert
    assert not options.include_density


def test_context_names_and_results():
    context = ExtractionContext("out/img")
    assert context.next_image_name() == "out/img-1"
    assert context.next_image_name() == "out/img-2"

    entry = ExtractedImage(fileName="out/img-2.png", name="Im0", pageNumber=1,
                           width=1, height=1, suffix="png")
    context.record(entry)
    context.record_failure("out/img-1", "broken")

    result = context.to_result(total_pages=3, pages_processed=2)
    assert result.images == [entry]
    assert result.failedImages == 1
    assert context.written_files == ["out/img-2.png"]


def test_deduplicator():
    context = ExtractionContext("img")
    assert not context.deduplicator.seen((4, 0))
    context.deduplicator.mark((4, 0))
    assert context.deduplicator.seen((4, 0))
    assert not context.deduplicator.seen((4, 1))
