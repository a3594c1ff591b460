"""Tests for the command line entry point."""
from __future__ import annotations

import logging

import pytest
from PIL import Image

from graphicskit import __version__, config
from graphicskit.cli import main


@pytest.fixture(autouse=True)
def isolated_logger():
    logger = logging.getLogger(config.LOGGER_NAME)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    logger.handlers.clear()
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "source.png"
    Image.new("RGB", (30, 10), (10, 200, 10)).save(path)
    return path


def run(tmp_path, *args) -> int:
    return main(["--log-dir", str(tmp_path), *args])


def test_resize_writes_destination(tmp_path, source, capsys) -> None:
    destination = tmp_path / "out.png"
    assert run(tmp_path, "resize", str(source), str(destination), "12", "8") == 0
    with Image.open(destination) as image:
        assert image.size == (12, 8)
    assert str(destination.resolve()) in capsys.readouterr().out


def test_convert_honours_explicit_format(tmp_path, source) -> None:
    destination = tmp_path / "converted.img"
    assert run(tmp_path, "convert", str(source), str(destination), "--format", "jpeg", "--quality", "0.5") == 0
    with Image.open(destination) as image:
        assert image.format == "JPEG"


@pytest.mark.parametrize(
    "command, expected",
    [
        (["embed", "20", "20"], (20, 20)),
        (["fill", "20", "20"], (20, 20)),
        (["square"], (30, 30)),
        (["square", "--fill"], (10, 10)),
    ],
)
def test_placement_commands(tmp_path, source, command, expected) -> None:
    destination = tmp_path / "placed.png"
    name, *extra = command
    assert run(tmp_path, name, str(source), str(destination), *extra) == 0
    with Image.open(destination) as image:
        assert image.size == expected


def test_info_describes_layout(tmp_path, source, capsys) -> None:
    assert run(tmp_path, "info", str(source)) == 0
    out = capsys.readouterr().out
    assert "size: 30x10" in out
    assert "mode: RGB" in out
    assert "context preset: 32 bpp, 8 bpc, rgb, none_skip_first" in out


def test_missing_source_fails(tmp_path, capsys) -> None:
    assert run(tmp_path, "convert", str(tmp_path / "nope.png"), str(tmp_path / "out.png")) == 1
    assert "error:" in capsys.readouterr().err


def test_unknown_destination_extension_fails(tmp_path, source, capsys) -> None:
    assert run(tmp_path, "convert", str(source), str(tmp_path / "out.bmp")) == 1
    assert "`bmp`" in capsys.readouterr().err


def test_version_flag(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out
