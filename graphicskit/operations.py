"""Reusable image placement operations.

Every function accepts a :data:`~graphicskit.native.NativeImage` and returns
an image of the same class. Pixels are drawn through a bitmap context made
to match the source image, with high quality interpolation.

Saliency-guided filling needs an external detector. Callers plug one in
with :func:`configure_saliency_provider` (or pass ``provider=`` directly);
it receives the scaled image and returns salient regions as rects
normalized to ``[0, 1]`` in top-left coordinates.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from threading import RLock
from typing import Any, Callable, Iterator, Optional, Sequence, Union

from PIL import Image

from .context import create_context, create_context_referencing, image_layout
from .errors import SaliencyUnavailableError
from .geometry import ContentMode, Point, Rect, Size
from .native import NativeImage, like, pixel_size, to_pil

LOGGER = logging.getLogger(__name__)

SizeLike = Union[Size, tuple[float, float]]


class SaliencyType(Enum):
    # Heat map of the parts of an image most likely to draw attention.
    ATTENTION_BASED = "attention_based"
    # Heat map of the parts of an image most likely to be objects.
    OBJECTNESS_BASED = "objectness_based"


SaliencyProvider = Callable[[Image.Image, SaliencyType], Sequence[Rect]]

_provider: Optional[SaliencyProvider] = None
_provider_lock = RLock()


def configure_saliency_provider(provider: Optional[SaliencyProvider]) -> None:
    """Set the provider used when ``fill`` is asked for saliency without one.

    Passing ``None`` removes the current provider.
    """

    if provider is not None and not callable(provider):
        raise TypeError("provider must be callable")

    global _provider
    with _provider_lock:
        _provider = provider


def get_saliency_provider() -> SaliencyProvider:
    """Return the configured saliency provider.

    Raises:
        SaliencyUnavailableError: If no provider has been configured.
    """

    with _provider_lock:
        if _provider is None:
            raise SaliencyUnavailableError("no saliency provider is configured")
        return _provider


@contextmanager
def override_saliency_provider(provider: SaliencyProvider) -> Iterator[SaliencyProvider]:
    """Temporarily replace the saliency provider within a ``with`` block."""

    global _provider
    with _provider_lock:
        previous = _provider
        _provider = provider
    try:
        yield provider
    finally:
        with _provider_lock:
            _provider = previous


def _source_size(image: Image.Image) -> Size:
    size = pixel_size(image)
    if size is None:
        raise ValueError("cannot place an image without pixels")
    return size


def cropped(image: NativeImage, rect: Rect) -> NativeImage:
    """Return the part of ``image`` inside ``rect``.

    Areas of ``rect`` outside the image are left transparent (or black).
    """
    source = to_pil(image)
    context = create_context_referencing(source, rect.size)
    context.draw(source, Rect(Point(-rect.min_x, -rect.min_y), _source_size(source)))
    return like(context.make_image(), image)


def resized(image: NativeImage, size: SizeLike) -> NativeImage:
    """Return ``image`` stretched to ``size``; the image itself if it already matches."""
    target = Size.of(size)
    if pixel_size(image) == target:
        return image
    source = to_pil(image)
    context = create_context_referencing(source, target)
    context.draw(source, Rect(size=target))
    return like(context.make_image(), image)


def embed(image: NativeImage, canvas_size: SizeLike) -> NativeImage:
    """Scale ``image`` to fit inside ``canvas_size`` and center it there."""
    canvas = Size.of(canvas_size)
    if pixel_size(image) == canvas:
        return image
    source = to_pil(image)
    context = create_context_referencing(source, canvas)
    fitted = _source_size(source).aspect_ratio(ContentMode.FIT, canvas)
    context.draw(source, Rect.from_center(canvas.center, fitted))
    return like(context.make_image(), image)


def embed_in_square(image: NativeImage) -> NativeImage:
    """Center ``image`` on a square canvas whose side is its longer side.

    The canvas always carries alpha so the padding stays transparent.
    """
    size = pixel_size(image)
    if size is not None and size.is_square:
        return image
    source = to_pil(image)
    size = _source_size(source)
    side = size.longer_side
    layout = image_layout(source)
    context = create_context(Size.square(side), layout.bits_per_component, layout.color_space, with_alpha=True)
    context.draw(source, Rect.from_center(Point(side / 2, side / 2), size))
    return like(context.make_image(), image)


def fill(
    image: NativeImage,
    size: SizeLike,
    saliency_type: Optional[SaliencyType] = None,
    provider: Optional[SaliencyProvider] = None,
) -> Optional[NativeImage]:
    """Fill ``size`` with ``image``, cropping whatever overflows.

    Without ``saliency_type`` the scaled image is centered. With it, the
    crop is moved toward the union of the salient regions reported by the
    provider, without leaving the scaled image.

    Returns:
        The filled image, or ``None`` when saliency detection fails or finds
        nothing.

    Raises:
        SaliencyUnavailableError: If saliency is requested and no provider
            is passed or configured.
    """
    target = Size.of(size)
    if pixel_size(image) == target:
        return image
    source = to_pil(image)
    filled_size = _source_size(source).aspect_ratio(ContentMode.FILL, target)

    if saliency_type is None:
        context = create_context_referencing(source, target)
        context.draw(source, Rect.from_center(target.center, filled_size))
        return like(context.make_image(), image)

    detect = provider if provider is not None else get_saliency_provider()

    context = create_context_referencing(source, filled_size)
    context.draw(source, Rect(size=filled_size))
    scaled = context.make_image()

    try:
        regions = list(detect(scaled, saliency_type))
    except Exception as exc:  # noqa: BLE001 - providers wrap arbitrary detectors
        LOGGER.error(
            "Unable to perform %s request on the given image, will return None: %s",
            saliency_type.value,
            exc,
        )
        return None

    union = Rect.union_all(regions)
    if union is None:
        LOGGER.info("No salient regions found for %s request", saliency_type.value)
        return None

    scaled_size = Size(*scaled.size)
    salient = Rect.of(
        union.min_x * scaled_size.width,
        union.min_y * scaled_size.height,
        union.width * scaled_size.width,
        union.height * scaled_size.height,
    )
    center = salient.center
    possible = Rect.from_center(
        scaled_size.center,
        Size(max(scaled_size.width - target.width, 0), max(scaled_size.height - target.height, 0)),
    )
    shifted = Point(
        min(max(center.x, possible.min_x), possible.max_x),
        min(max(center.y, possible.min_y), possible.max_y),
    )
    return like(cropped(scaled, Rect.from_center(shifted, target)), image)


def fill_in_square(
    image: NativeImage,
    saliency_type: Optional[SaliencyType] = None,
    provider: Optional[SaliencyProvider] = None,
) -> Optional[NativeImage]:
    """Fill a square whose side is the shorter side of ``image``."""
    size = pixel_size(image)
    if size is not None and size.is_square:
        return image
    side = _source_size(to_pil(image)).shorter_side
    return fill(image, Size.square(side), saliency_type, provider)


def _as_rect(value: Union[Rect, Sequence[float]]) -> Rect:
    if isinstance(value, Rect):
        return value
    x, y, width, height = value
    return Rect.of(x, y, width, height)


def _crop_operation(image: NativeImage, rect: Union[Rect, Sequence[float]]) -> NativeImage:
    return cropped(image, _as_rect(rect))


def _fill_operation(
    image: NativeImage,
    size: SizeLike,
    saliency: Optional[Union[str, SaliencyType]] = None,
) -> Optional[NativeImage]:
    saliency_type = SaliencyType(saliency) if isinstance(saliency, str) else saliency
    return fill(image, size, saliency_type)


def _fill_in_square_operation(
    image: NativeImage,
    saliency: Optional[Union[str, SaliencyType]] = None,
) -> Optional[NativeImage]:
    saliency_type = SaliencyType(saliency) if isinstance(saliency, str) else saliency
    return fill_in_square(image, saliency_type)


_OPERATION_DISPATCH: dict[str, Any] = {
    "crop": _crop_operation,
    "resize": resized,
    "embed": embed,
    "embed_in_square": embed_in_square,
    "fill": _fill_operation,
    "fill_in_square": _fill_in_square_operation,
}


def apply_operations(image: NativeImage, operations: list[dict[str, Any]]) -> NativeImage:
    """Apply a sequence of placement ``operations`` to ``image``.

    Each operation dictionary must contain a ``type`` key that matches one of
    the keys in :data:`_OPERATION_DISPATCH` and an optional ``params``
    dictionary. Unknown operation types are skipped with a warning, as are
    operations that produce no image.
    """
    result = image
    for operation in operations:
        op_type = operation.get("type")
        params = operation.get("params", {})
        func = _OPERATION_DISPATCH.get(op_type)
        if not func:
            LOGGER.warning("Unknown operation type: %s", op_type)
            continue
        produced = func(result, **params)
        if produced is None:
            LOGGER.warning("Operation %s produced no image; keeping previous result", op_type)
            continue
        result = produced
    return result


__all__ = [
    "SaliencyProvider",
    "SaliencyType",
    "apply_operations",
    "configure_saliency_provider",
    "cropped",
    "embed",
    "embed_in_square",
    "fill",
    "fill_in_square",
    "get_saliency_provider",
    "override_saliency_provider",
    "resized",
]
