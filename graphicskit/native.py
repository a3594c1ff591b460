"""One image type for Pillow and Qt callers.

``NativeImage`` is either a Pillow ``Image`` or a Qt ``QImage``. Every
operation in the library accepts both and hands back the class it was
given; internally the work is done on Pillow images.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage

from . import codec, config
from .errors import DataErrorReason, GraphicsKitError, ImageDataError
from .formats import ImageFormat
from .geometry import Size

LOGGER = logging.getLogger(__name__)

NativeImage = Union[Image.Image, QImage]


def _qimage_png(image: QImage) -> bytes:
    """Serialize a QImage into PNG bytes."""
    buffer = QBuffer()
    if not buffer.open(QIODevice.OpenModeFlag.WriteOnly):
        raise ImageDataError(DataErrorReason.CANNOT_FINALIZE_DATA, "unable to open buffer")
    try:
        if not image.save(buffer, "PNG"):
            raise ImageDataError(DataErrorReason.CANNOT_FINALIZE_DATA, "QImage refused to save")
        return bytes(buffer.data())
    finally:
        buffer.close()


def to_pil(image: NativeImage) -> Image.Image:
    """Return ``image`` as a Pillow image."""
    if isinstance(image, Image.Image):
        return image
    if image.isNull():
        raise ImageDataError(DataErrorReason.NO_IMAGE, "null QImage")
    return codec.decode(_qimage_png(image))


def to_qimage(image: NativeImage) -> QImage:
    """Return ``image`` as a QImage."""
    if isinstance(image, QImage):
        return image
    payload = codec.encode(image, ImageFormat.PNG)
    qimage = QImage.fromData(QByteArray(payload), "PNG")
    if qimage.isNull():
        raise ImageDataError(DataErrorReason.NO_IMAGE, "Qt could not decode PNG data")
    return qimage


def like(result: NativeImage, reference: NativeImage) -> NativeImage:
    """Convert ``result`` to the image class of ``reference``."""
    if isinstance(reference, QImage):
        return to_qimage(result)
    return to_pil(result)


def pixel_size(image: NativeImage) -> Optional[Size]:
    """Return the pixel size of ``image``, or ``None`` if it holds no pixels."""
    if isinstance(image, QImage):
        if image.isNull():
            return None
        return Size(image.width(), image.height())
    width, height = image.size
    if width == 0 or height == 0:
        return None
    return Size(width, height)


def from_bytes(data: bytes) -> Image.Image:
    return codec.decode(data)


def open_image(source: Union[str, Path]) -> Optional[Image.Image]:
    """Return the image stored at ``source``, or ``None`` if it cannot be read."""
    try:
        return codec.decode(Path(source).read_bytes())
    except (OSError, ImageDataError) as exc:
        LOGGER.debug("Unable to open %s: %s", source, exc)
        return None


def _empty_like(image: NativeImage) -> NativeImage:
    if isinstance(image, QImage):
        return QImage()
    return Image.new(image.mode, (0, 0))


def reload(image: NativeImage) -> NativeImage:
    """Round-trip ``image`` through its canonical encoded data.

    Pillow images go through TIFF and QImages through PNG. An empty image
    is returned when the round trip fails.
    """
    try:
        if isinstance(image, QImage):
            return QImage.fromData(QByteArray(_qimage_png(image)), "PNG")
        return codec.decode(codec.encode(image, ImageFormat.TIFF))
    except GraphicsKitError as exc:
        LOGGER.warning("Reloading image failed: %s", exc)
        return _empty_like(image)


def data(
    image: NativeImage,
    format: ImageFormat = ImageFormat.PNG,
    quality: float = config.DEFAULT_QUALITY,
) -> bytes:
    """Return the data of ``image`` with a new codec.

    Raises:
        ImageDataError: ``NO_IMAGE`` for a null QImage, otherwise as
            :func:`graphicskit.codec.encode`.
    """
    return codec.encode(to_pil(image), format, quality)


def write(
    image: NativeImage,
    destination: Union[str, Path],
    format: Optional[ImageFormat] = None,
    quality: float = config.DEFAULT_QUALITY,
) -> Path:
    """Write ``image`` to ``destination``; ``format=None`` infers it from the extension."""
    return codec.write(to_pil(image), destination, format, quality)


__all__ = [
    "NativeImage",
    "data",
    "from_bytes",
    "like",
    "open_image",
    "pixel_size",
    "reload",
    "to_pil",
    "to_qimage",
    "write",
]
