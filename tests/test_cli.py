import pytest
from pikepdf import Dictionary
from PIL import Image

import cli

from conftest import add_page, make_raw_xobject


@pytest.fixture
def sample_pdf(pdf, tmp_path):
    image = make_raw_xobject(pdf, Image.new("RGB", (4, 4), (0, 128, 0)))
    add_page(pdf, b"/Im0 Do", Dictionary(XObject=Dictionary(Im0=image)))
    add_page(pdf, b"/Im0 Do", Dictionary(XObject=Dictionary(Im0=image)))
    path = tmp_path / "sample.pdf"
    pdf.save(path)
    return path


def test_no_arguments_prints_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_unknown_flag_prints_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-bogus", "file.pdf"])
    assert excinfo.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_inverted_page_range_is_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-startPage", "3", "-endPage", "2", "file.pdf"])
    assert excinfo.value.code == 1


def test_parser_flags():
    args = cli.build_parser().parse_args(
        ["-password", "pw", "-prefix", "out/img", "-directJPEG", "-noColorConvert",
         "-includeDensity", "-startPage", "2", "-endPage", "4", "doc.pdf"]
    )
    config = cli.config_from_args(args)
    assert config.password == "pw"
    assert config.prefix == "out/img"
    assert config.direct_jpeg and config.no_color_convert and config.include_density
    assert (config.page_range.start, config.page_range.end) == (2, 4)


def test_extracts_with_default_prefix(sample_pdf, tmp_path):
    assert cli.main([str(sample_pdf)]) == 0
    assert (tmp_path / "sample-1.png").exists()
    # The second page shows the same image object
    assert not (tmp_path / "sample-2.png").exists()


def test_extracts_with_prefix(sample_pdf, tmp_path):
    prefix = str(tmp_path / "pics")
    assert cli.main(["-quiet", "-prefix", prefix, str(sample_pdf)]) == 0
    assert (tmp_path / "pics-1.png").exists()


def test_missing_input_fails(tmp_path):
    assert cli.main([str(tmp_path / "missing.pdf")]) == 1


def test_env_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert cli.env_log_level() == "DEBUG"
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert cli.env_log_level() == "INFO"
