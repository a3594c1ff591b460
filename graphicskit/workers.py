# workers.py
"""
Background preview loading on a QThreadPool.
Defines a generic Worker for QRunnable tasks and a PreviewLoader built on it.
"""
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from PIL import Image
from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from . import config
from .errors import ImageLoadError
from .loaders import load_icon_preview, load_preview

LOGGER = logging.getLogger(__name__)


class WorkerSignals(QObject):
    started = Signal()
    finished = Signal()
    error = Signal(str)
    result = Signal(object)


class Worker(QRunnable):
    """Wraps any function to run in a QThreadPool."""
    def __init__(self, fn: Callable, *args, **kwargs):
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()

    def run(self) -> None:
        try:
            self.signals.started.emit()
            result = self.fn(*self.args, **self.kwargs)
            self.signals.result.emit(result)
        except Exception as e:
            LOGGER.error("Worker error: %s", e)
            self.signals.error.emit(str(e))
        finally:
            self.signals.finished.emit()


class PreviewLoader(QObject):
    """Loads file previews off the calling thread.

    ``loaded`` carries the source path and the Pillow preview; ``failed``
    carries the source path and the error text.
    """

    loaded = Signal(str, object)
    failed = Signal(str, str)

    def __init__(
        self,
        size: tuple[int, int] = config.DEFAULT_PREVIEW_SIZE,
        pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.size = size
        if pool is None:
            pool = QThreadPool(self)
            pool.setMaxThreadCount(config.MAX_PREVIEW_WORKERS)
        self.thread_pool = pool
        self._pending: set[Worker] = set()

    def request(self, source: Union[str, Path]) -> Worker:
        """Schedule a preview of ``source`` and return its worker.

        The loader holds the worker until it finishes, so callers may drop it.
        """
        key = str(source)
        worker = Worker(load_preview, source, self.size, icon_fallback=False)
        worker.setAutoDelete(False)
        worker.signals.result.connect(lambda preview, key=key: self._deliver(key, preview))
        worker.signals.error.connect(lambda message, key=key: self.failed.emit(key, message))
        worker.signals.finished.connect(lambda worker=worker: self._pending.discard(worker))
        self._pending.add(worker)
        self.thread_pool.start(worker)
        return worker

    @property
    def pending(self) -> int:
        """Number of previews scheduled but not yet finished."""
        return len(self._pending)

    def _deliver(self, key: str, preview: Optional[Image.Image]) -> None:
        # Queued onto the loader's thread, where icons may be drawn.
        if preview is None:
            try:
                preview = load_icon_preview(key, self.size)
            except ImageLoadError as exc:
                LOGGER.warning("No preview for %s: %s", key, exc)
                self.failed.emit(key, str(exc))
                return
        self.loaded.emit(key, preview)

    def wait(self, msecs: int = -1) -> bool:
        """Block until every scheduled preview has finished."""
        return self.thread_pool.waitForDone(msecs)


__all__ = ["PreviewLoader", "Worker", "WorkerSignals"]
