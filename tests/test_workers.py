"""Tests for background workers and the preview loader."""
from __future__ import annotations

import os
import threading
import time
from typing import Callable

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

pytest.importorskip(
    "PySide6.QtGui",
    reason="PySide6 with GUI dependencies is required for worker tests",
    exc_type=ImportError,
)

from PIL import Image
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from graphicskit import loaders
from graphicskit.cache import PreviewCache, override_cache
from graphicskit.workers import PreviewLoader, Worker


@pytest.fixture(scope="module")
def qt_app() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


def _drain(app: QApplication, done: Callable[[], bool], timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not done() and time.monotonic() < deadline:
        app.processEvents()
        time.sleep(0.01)


def test_worker_emits_result_and_finished(qt_app) -> None:
    events = []
    worker = Worker(lambda a, b=0: a + b, 2, b=3)
    worker.signals.started.connect(lambda: events.append("started"))
    worker.signals.result.connect(lambda value: events.append(value))
    worker.signals.finished.connect(lambda: events.append("finished"))
    worker.run()
    assert events == ["started", 5, "finished"]


def test_worker_reports_errors(qt_app) -> None:
    errors = []

    def explode():
        raise RuntimeError("boom")

    worker = Worker(explode)
    worker.signals.error.connect(errors.append)
    worker.run()
    assert errors == ["boom"]


def test_preview_loader_delivers_previews(qt_app, tmp_path) -> None:
    path = tmp_path / "photo.png"
    Image.new("RGB", (300, 100), "green").save(path)
    received = []

    with override_cache(PreviewCache()):
        loader = PreviewLoader(size=(60, 60))
        loader.loaded.connect(lambda source, image: received.append((source, image.size)))
        loader.request(path)
        assert loader.wait(5000)
        _drain(qt_app, lambda: received and not loader.pending)

    assert received == [(str(path), (60, 20))]
    assert loader.pending == 0


def test_preview_loader_resolves_icons_on_gui_thread(qt_app, tmp_path, monkeypatch) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("not an image")
    threads = []

    def fake_icon(source, size):
        threads.append(threading.current_thread())
        icon = QImage(16, 16, QImage.Format.Format_ARGB32)
        icon.fill(QColor(0, 0, 255))
        return icon

    monkeypatch.setattr(loaders, "load_icon", fake_icon)
    received = []

    with override_cache(PreviewCache()):
        loader = PreviewLoader(size=(16, 16))
        loader.loaded.connect(lambda source, image: received.append((source, image.size)))
        loader.request(path)
        assert loader.wait(5000)
        _drain(qt_app, lambda: received)

    assert received == [(str(path), (16, 16))]
    assert threads == [threading.main_thread()]


def test_preview_loader_reports_failures(qt_app, tmp_path) -> None:
    failures = []
    loader = PreviewLoader()
    loader.failed.connect(lambda source, message: failures.append(source))
    missing = tmp_path / "missing.png"
    loader.request(missing)
    assert loader.wait(5000)
    _drain(qt_app, lambda: failures)
    assert failures == [str(missing)]
