"""Tests for error messages and logging setup."""
from __future__ import annotations

import logging

import pytest

from graphicskit import config
from graphicskit.errors import (
    DataErrorReason,
    GraphicsKitError,
    ImageDataError,
    ImageLoadError,
    InferFormatError,
    LoadErrorReason,
)
from graphicskit.log import configure_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(config.LOGGER_NAME)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_data_error_title_and_reason() -> None:
    error = ImageDataError(DataErrorReason.CANNOT_FINALIZE_DATA, "disk full")
    assert isinstance(error, GraphicsKitError)
    assert error.title == "Cannot form data from an image"
    assert error.message == "Cannot finalize the destination data. (disk full)"
    assert str(error) == f"{error.title}: {error.message}"


def test_infer_error_is_a_value_error() -> None:
    assert isinstance(InferFormatError("xyz"), ValueError)


def test_load_error_names_the_file(tmp_path) -> None:
    error = ImageLoadError(LoadErrorReason.NO_SUCH_FILE, tmp_path / "a.png")
    assert isinstance(error, OSError)
    assert "a.png" in str(error)


def test_configure_logging_is_idempotent(clean_logger, tmp_path) -> None:
    logger = configure_logging("debug", tmp_path)
    assert logger is clean_logger
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert not logger.propagate

    configure_logging("error", tmp_path)
    assert logger.level == logging.ERROR
    assert len(logger.handlers) == 2

    logger.error("written to disk")
    for handler in logger.handlers:
        handler.flush()
    assert "written to disk" in (tmp_path / config.LOG_FILE_NAME).read_text(encoding="utf-8")


def test_unknown_level_defaults_to_info(clean_logger, tmp_path) -> None:
    assert configure_logging("chatty", tmp_path).level == logging.INFO
