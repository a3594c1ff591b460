"""Loading image content that lives in files: images, icons and previews."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageOps, UnidentifiedImageError
from PySide6.QtCore import QCoreApplication, QFileInfo, QSize, QThread
from PySide6.QtGui import QImage
from PySide6.QtWidgets import QFileIconProvider

from . import config
from .cache import get_cache
from .codec import decode
from .errors import ImageDataError, ImageLoadError, LoadErrorReason
from .geometry import ContentMode, Size
from .native import to_pil
from .operations import resized

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]
SizeLike = Union[Size, tuple[float, float]]


def load_image(source: PathLike) -> Image.Image:
    """Return the image stored at ``source`` with its EXIF orientation applied.

    Raises:
        ImageLoadError: ``NO_SUCH_FILE`` if nothing exists at ``source``,
            ``CORRUPT_FILE`` if it is not a file or not a readable image.
    """
    path = Path(source)
    if not path.exists():
        raise ImageLoadError(LoadErrorReason.NO_SUCH_FILE, path)
    if not path.is_file():
        raise ImageLoadError(LoadErrorReason.CORRUPT_FILE, path)
    try:
        image = decode(path.read_bytes())
    except ImageDataError as exc:
        raise ImageLoadError(LoadErrorReason.CORRUPT_FILE, path) from exc
    return ImageOps.exif_transpose(image)


def _require_gui_thread() -> None:
    app = QCoreApplication.instance()
    if app is None or QThread.currentThread() is not app.thread():
        raise RuntimeError("icons can only be loaded on the GUI thread")


def load_icon(source: PathLike, size: Optional[SizeLike] = None) -> QImage:
    """Return the desktop icon of the file at ``source``.

    A ``QApplication`` must exist and this must run on its thread. With
    ``size``, the first icon representation at least that large is scaled
    down to fit in ``size``.

    Raises:
        ImageLoadError: ``NO_SUCH_FILE`` if nothing exists at ``source``,
            ``CORRUPT_FILE`` if no representation is large enough.
        RuntimeError: when called off the GUI thread.
    """
    path = Path(source)
    if not path.exists():
        raise ImageLoadError(LoadErrorReason.NO_SUCH_FILE, path)

    _require_gui_thread()
    icon = QFileIconProvider().icon(QFileInfo(str(path)))
    if icon.isNull():
        raise ImageLoadError(LoadErrorReason.CORRUPT_FILE, path)

    available = icon.availableSizes()
    if size is None:
        largest = max(available, key=lambda s: s.width() * s.height(), default=None)
        return icon.pixmap(largest or QSize(*config.DEFAULT_PREVIEW_SIZE)).toImage()

    target = Size.of(size)
    if available:
        first = next(
            (s for s in available if s.width() >= target.width and s.height() >= target.height),
            None,
        )
    else:
        # Scalable theme icons report no fixed sizes; ask for the target directly.
        first = QSize(*target.to_pixels())
    if first is None:
        raise ImageLoadError(LoadErrorReason.CORRUPT_FILE, path)

    image = icon.pixmap(first).toImage()
    if image.isNull():
        raise ImageLoadError(LoadErrorReason.CORRUPT_FILE, path)
    fitted = Size(image.width(), image.height()).aspect_ratio(ContentMode.FIT, target)
    return resized(image, Size(*fitted.to_pixels()))


def _thumbnail(path: Path, target: tuple[int, int]) -> Optional[Image.Image]:
    try:
        with Image.open(path) as img:
            img.draft(img.mode, target)
            preview = ImageOps.exif_transpose(img)
            preview.thumbnail(target, Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, OSError) as exc:
        LOGGER.info("No thumbnail for %s (%s)", path, exc)
        return None
    return preview


def load_preview(
    source: PathLike,
    size: SizeLike = config.DEFAULT_PREVIEW_SIZE,
    icon_fallback: bool = True,
) -> Optional[Image.Image]:
    """Return a thumbnail of ``source`` that fits in ``size``.

    Files Pillow cannot decode fall back to their icon. Icons need the GUI
    thread, so background callers pass ``icon_fallback=False``: they get
    ``None`` for such files and finish with :func:`load_icon_preview` on the
    GUI thread. Previews are cached by path, size and modification time;
    every call returns an image the caller owns.
    """
    path = Path(source)
    if not path.exists():
        raise ImageLoadError(LoadErrorReason.NO_SUCH_FILE, path)

    target = Size.of(size).to_pixels()
    cache = get_cache()
    hit = cache.lookup(path, target)
    if hit is not None:
        return hit.image

    preview = _thumbnail(path, target)
    if preview is None:
        return load_icon_preview(path, target) if icon_fallback else None
    cache.store(path, target, preview, "thumbnail")
    return preview


def load_icon_preview(source: PathLike, size: SizeLike = config.DEFAULT_PREVIEW_SIZE) -> Image.Image:
    """Return the icon of ``source`` as a cached Pillow preview. GUI thread only."""
    path = Path(source)
    target = Size.of(size).to_pixels()
    preview = to_pil(load_icon(path, target))
    get_cache().store(path, target, preview, "icon")
    return preview


__all__ = ["load_icon", "load_icon_preview", "load_image", "load_preview"]
