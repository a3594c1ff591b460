"""Tests for the shared preview cache."""
from __future__ import annotations

import os
import threading

import pytest
from PIL import Image

from graphicskit.cache import (
    PreviewCache,
    configure_cache,
    get_cache,
    override_cache,
    preview_key,
)


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Ensure each test starts with the default cache factory."""

    configure_cache(PreviewCache)
    yield
    configure_cache(PreviewCache)


@pytest.fixture
def files(tmp_path):
    paths = []
    for name in "abcd":
        path = tmp_path / f"{name}.png"
        path.write_bytes(b"")
        paths.append(path)
    return paths


def test_configure_cache_is_lazy() -> None:
    calls = []

    def factory() -> PreviewCache:
        calls.append(1)
        return PreviewCache(max_size=1)

    configure_cache(factory)
    assert calls == []
    assert get_cache().max_size == 1
    assert get_cache() is get_cache()
    assert calls == [1]


def test_configure_cache_rejects_non_callables() -> None:
    with pytest.raises(TypeError):
        configure_cache(PreviewCache())


def test_override_cache_restores_previous_instance() -> None:
    original = get_cache()
    replacement = PreviewCache(max_size=2)
    with override_cache(replacement) as cache:
        assert get_cache() is cache is replacement
    assert get_cache() is original


def test_lookup_returns_independent_copies(files) -> None:
    cache = PreviewCache()
    preview = Image.new("RGB", (4, 4), "red")
    cache.store(files[0], (4, 4), preview, "thumbnail")
    preview.putpixel((0, 0), (0, 0, 255))

    first = cache.lookup(files[0], (4, 4))
    assert first.kind == "thumbnail"
    assert first.image.getpixel((0, 0)) == (255, 0, 0)
    first.image.putpixel((1, 1), (0, 255, 0))
    assert cache.lookup(files[0], (4, 4)).image.getpixel((1, 1)) == (255, 0, 0)


def test_key_tracks_size_and_modification_time(files) -> None:
    cache = PreviewCache()
    cache.store(files[0], (4, 4), Image.new("RGB", (4, 4)), "thumbnail")
    assert cache.lookup(files[0], (8, 8)) is None

    stat = files[0].stat()
    os.utime(files[0], ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
    assert preview_key(files[0], (4, 4))[2] != stat.st_mtime_ns
    assert cache.lookup(files[0], (4, 4)) is None


def test_lru_eviction_order(files) -> None:
    a, b, c, _ = files
    cache = PreviewCache(max_size=2, cleanup_threshold=1.0)
    cache.store(a, (1, 1), Image.new("L", (1, 1), 1), "thumbnail")
    cache.store(b, (1, 1), Image.new("L", (1, 1), 2), "thumbnail")
    cache.lookup(a, (1, 1))
    cache.store(c, (1, 1), Image.new("L", (1, 1), 3), "thumbnail")

    assert cache.lookup(b, (1, 1)) is None
    assert cache.lookup(a, (1, 1)).image.getpixel((0, 0)) == 1
    assert cache.lookup(c, (1, 1)).image.getpixel((0, 0)) == 3


def test_trim_and_discard(files) -> None:
    cache = PreviewCache(max_size=8, cleanup_threshold=2.0)
    for size in range(1, 5):
        cache.store(files[0], (size, size), Image.new("L", (size, size)), "icon")
    cache.store(files[1], (1, 1), Image.new("L", (1, 1)), "icon")
    assert len(cache) == 5

    assert cache.discard(files[0]) == 4
    assert len(cache) == 1

    for path in files:
        cache.store(path, (2, 2), Image.new("L", (2, 2)), "icon")
    cache.trim()
    assert len(cache) == 4
    assert cache.lookup(files[3], (2, 2)) is not None
    cache.clear()
    assert len(cache) == 0


def test_thread_safety(files) -> None:
    cache = PreviewCache(max_size=10)

    def worker(path) -> None:
        for side in range(1, 21):
            cache.store(path, (side, side), Image.new("L", (1, 1)), "thumbnail")
            cache.lookup(path, (side, side))

    threads = [threading.Thread(target=worker, args=(path,)) for path in files]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) <= cache.max_size
