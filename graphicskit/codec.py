"""Encoding and decoding images with Pillow's codecs.

HEIC support comes from ``pillow-heif``, which registers itself with Pillow
when this module is imported.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from . import config
from .context import create_context_referencing
from .errors import DataErrorReason, ImageDataError
from .formats import ImageFormat
from .geometry import Rect, Size
from .validation import validate_destination

LOGGER = logging.getLogger(__name__)

register_heif_opener()


def _check_quality(quality: float) -> float:
    if not 0.0 <= quality <= 1.0:
        raise ValueError(f"quality must be within [0, 1], got {quality}")
    return quality


def _flatten(image: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Return an RGB (or L) copy of ``image`` composited onto ``background``."""
    if image.mode in ("RGB", "L", "CMYK"):
        return image
    if image.mode in ("1", "I", "F") or image.mode.startswith("I;16"):
        return image.convert("L")
    rgba = image.convert("RGBA")
    canvas = Image.new("RGBA", rgba.size, background + (255,))
    return Image.alpha_composite(canvas, rgba).convert("RGB")


def _without_unsupported_mode(image: Image.Image, modes: tuple[str, ...]) -> Image.Image:
    if image.mode in modes:
        return image
    if image.mode == "F":
        image = image.convert("I" if "I" in modes else "L")
        if image.mode in modes:
            return image
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    return image.convert("RGBA" if has_alpha and "RGBA" in modes else "RGB")


def _icns_representations(image: Image.Image) -> list[Image.Image]:
    """Return the square icon images embedded in an ICNS file."""
    by_width: Dict[int, Image.Image] = {}
    for width, _scale in config.ICNS_REPRESENTATIONS:
        if width in by_width:
            continue
        size = Size.square(width)
        if image.size == size.to_pixels():
            by_width[width] = image
            continue
        context = create_context_referencing(image, size)
        context.draw(image, Rect(size=size))
        by_width[width] = context.make_image()
    return list(by_width.values())


def _lossy_quality(fmt: ImageFormat, quality: float) -> int:
    if fmt is ImageFormat.HEIC and quality >= 1.0:
        # pillow-heif treats -1 as lossless
        return -1
    return max(1, round(quality * config.JPEG_MAX_QUALITY))


def _save_params(image: Image.Image, fmt: ImageFormat, quality: float) -> tuple[Image.Image, Dict[str, Any]]:
    """Return the image to hand to Pillow and the writer options for ``fmt``."""
    params: Dict[str, Any] = {"format": fmt.pillow_format}
    icc = image.info.get("icc_profile")
    if icc and fmt in (ImageFormat.PNG, ImageFormat.TIFF, ImageFormat.JPEG, ImageFormat.HEIC):
        params["icc_profile"] = icc
    if fmt.supports_lossy_quality:
        params["quality"] = _lossy_quality(fmt, quality)

    if fmt is ImageFormat.JPEG:
        image = _flatten(image)
        params.update({
            "optimize": True,
            "progressive": True,
            "subsampling": 0 if quality >= 1.0 else 2,
        })
    elif fmt is ImageFormat.PNG:
        image = _without_unsupported_mode(image, ("1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"))
        params.update({
            "optimize": True,
            "compress_level": 6 if quality >= 1.0 else config.PNG_MAX_COMPRESS_LEVEL,
        })
    elif fmt is ImageFormat.TIFF:
        params["compression"] = "tiff_lzw"
    elif fmt is ImageFormat.HEIC:
        image = _without_unsupported_mode(image, ("RGB", "RGBA"))
    elif fmt is ImageFormat.PDF:
        image = _flatten(image)
        params["resolution"] = float(config.POINTS_PER_INCH)
    elif fmt is ImageFormat.ICNS:
        representations = _icns_representations(image)
        image = representations[-1]
        params["append_images"] = representations[:-1]
    return image, params


def encode(
    image: Image.Image,
    format: ImageFormat = ImageFormat.PNG,
    quality: float = config.DEFAULT_QUALITY,
) -> bytes:
    """Return the data of ``image`` encoded as ``format``.

    A ``quality`` of 1.0 requests lossless compression where the format
    supports it; 0.0 requests maximum compression.

    Raises:
        ImageDataError: ``INVALID_FORMAT`` when no writer exists for
            ``format``, ``CANNOT_FINALIZE_DATA`` when the writer fails.
    """
    _check_quality(quality)
    Image.init()
    if format.pillow_format not in Image.SAVE:
        raise ImageDataError(DataErrorReason.INVALID_FORMAT, f"no writer for {format.identifier}")

    prepared, params = _save_params(image, format, quality)
    buffer = io.BytesIO()
    try:
        prepared.save(buffer, **params)
    except (OSError, ValueError, KeyError) as exc:
        LOGGER.error("Failed to encode %s image: %s", format.identifier, exc)
        raise ImageDataError(DataErrorReason.CANNOT_FINALIZE_DATA, str(exc)) from exc
    return buffer.getvalue()


def decode(data: bytes) -> Image.Image:
    """Decode ``data`` into a fully loaded Pillow image.

    Raises:
        ImageDataError: ``NO_IMAGE`` when the data is not a readable image.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDataError(DataErrorReason.NO_IMAGE, str(exc)) from exc
    return image


def write(
    image: Image.Image,
    destination: Union[str, Path],
    format: Optional[ImageFormat] = None,
    quality: float = config.DEFAULT_QUALITY,
) -> Path:
    """Write ``image`` to ``destination`` and return the resolved path.

    Args:
        image: The image to encode.
        destination: The file to write.
        format: The format of the image; ``None`` infers it from the
            extension of ``destination``.
        quality: The image compression quality.
    """
    path, fmt = validate_destination(destination, format)
    payload = encode(image, fmt, quality)
    path.write_bytes(payload)
    LOGGER.debug("Wrote %d bytes of %s to %s", len(payload), fmt.identifier, path)
    return path


__all__ = ["decode", "encode", "write"]
