"""Preview cache shared by the loaders.

Entries are keyed by resolved path, pixel size and modification time, so an
edited file never serves a stale preview. Images are copied on the way in
and on the way out; callers may draw on what they get back.

The loaders use one lazily built cache. Host applications swap it with
:func:`configure_cache`, tests with :func:`override_cache`.
"""

from __future__ import annotations

from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Callable, Iterator, Optional, Tuple, Union

from PIL import Image

from . import config

PreviewKey = Tuple[str, Tuple[int, int], int]


def preview_key(source: Union[str, Path], size: Tuple[int, int]) -> PreviewKey:
    """Return the cache key of a ``size`` preview of the file at ``source``."""
    path = Path(source).resolve()
    return (str(path), tuple(size), path.stat().st_mtime_ns)


@dataclass(frozen=True)
class CachedPreview:
    image: Image.Image
    kind: str  # "thumbnail" or "icon"


class PreviewCache:
    """Thread-safe LRU store of preview images.

    Storing a new preview once the cache holds ``max_size * cleanup_threshold``
    entries first drops the least recently used ones down to half of
    ``max_size``.
    """

    def __init__(
        self,
        max_size: int = config.MAX_CACHE_SIZE,
        cleanup_threshold: float = config.CACHE_CLEANUP_THRESHOLD,
    ) -> None:
        self.max_size = max_size
        self.cleanup_threshold = cleanup_threshold
        self._entries: "OrderedDict[PreviewKey, CachedPreview]" = OrderedDict()
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def lookup(self, source: Union[str, Path], size: Tuple[int, int]) -> Optional[CachedPreview]:
        """Return a copy of the cached preview, or ``None`` on a miss."""
        key = preview_key(source, size)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
        return CachedPreview(entry.image.copy(), entry.kind)

    def store(
        self,
        source: Union[str, Path],
        size: Tuple[int, int],
        image: Image.Image,
        kind: str,
    ) -> None:
        key = preview_key(source, size)
        entry = CachedPreview(image.copy(), kind)
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size * self.cleanup_threshold:
                self._evict()
            self._entries[key] = entry

    def discard(self, source: Union[str, Path]) -> int:
        """Forget every preview of ``source``; return how many were dropped."""
        path = str(Path(source).resolve())
        with self._lock:
            stale = [key for key in self._entries if key[0] == path]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def trim(self) -> None:
        """Drop least recently used previews down to half of ``max_size``."""
        with self._lock:
            self._evict()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self) -> None:
        keep = max(self.max_size // 2, 1)
        while len(self._entries) > keep:
            self._entries.popitem(last=False)


_factory: Callable[[], PreviewCache] = PreviewCache
_shared: Optional[PreviewCache] = None
_lock = RLock()


def configure_cache(factory: Callable[[], PreviewCache], *, reset: bool = True) -> None:
    """Build the shared preview cache with ``factory`` from now on.

    The factory runs on the next :func:`get_cache` call. With ``reset``
    false, an already built cache stays in use until it is replaced.
    """
    if not callable(factory):
        raise TypeError("factory must be callable")

    global _factory, _shared
    with _lock:
        _factory = factory
        if reset:
            _shared = None


def get_cache() -> PreviewCache:
    global _shared
    with _lock:
        if _shared is None:
            _shared = _factory()
        return _shared


@contextmanager
def override_cache(cache: PreviewCache) -> Iterator[PreviewCache]:
    """Serve ``cache`` from :func:`get_cache` inside a ``with`` block."""
    global _factory, _shared
    with _lock:
        saved = _factory, _shared
        _factory, _shared = (lambda: cache), cache
    try:
        yield cache
    finally:
        with _lock:
            _factory, _shared = saved


__all__ = [
    "CachedPreview",
    "PreviewCache",
    "configure_cache",
    "get_cache",
    "override_cache",
    "preview_key",
]
