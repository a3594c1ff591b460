"""Bitmap contexts built to match a reference image's pixel layout.

A :class:`BitmapContext` is a Pillow canvas plus the colour space and
pixel-layout preset it was built from. Contexts are normally obtained from
:func:`create_context` or :func:`create_context_referencing`, which resolve
the requested parameters against the static :data:`PRESETS` table:

* presets are filtered by alpha presence and colour model, and the one
  whose bits per component is nearest to the request wins (first in table
  order on a tie);
* when no preset exists for the colour model, RGB presets are searched;
* when the context still cannot be built with the requested colour space,
  sRGB is used instead.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Iterable, Optional, Union

from PIL import Image, ImageCms

from .errors import ContextCreationError
from .geometry import Rect, Size

LOGGER = logging.getLogger(__name__)

SizeLike = Union[Size, tuple[float, float]]


class ColorModel(Enum):
    MONOCHROME = "monochrome"
    RGB = "rgb"
    CMYK = "cmyk"
    LAB = "lab"
    INDEXED = "indexed"
    UNKNOWN = "unknown"


class AlphaInfo(Enum):
    NONE = "none"
    PREMULTIPLIED_LAST = "premultiplied_last"
    PREMULTIPLIED_FIRST = "premultiplied_first"
    LAST = "last"
    FIRST = "first"
    NONE_SKIP_LAST = "none_skip_last"
    NONE_SKIP_FIRST = "none_skip_first"
    ONLY = "only"

    @property
    def has_alpha(self) -> bool:
        return self not in (AlphaInfo.NONE, AlphaInfo.NONE_SKIP_LAST, AlphaInfo.NONE_SKIP_FIRST)


class InterpolationQuality(Enum):
    NONE = Image.Resampling.NEAREST
    LOW = Image.Resampling.BILINEAR
    MEDIUM = Image.Resampling.BICUBIC
    HIGH = Image.Resampling.LANCZOS


@lru_cache(maxsize=None)
def _builtin_profile(name: str) -> bytes:
    return ImageCms.ImageCmsProfile(ImageCms.createProfile(name)).tobytes()


@dataclass(eq=True, frozen=True)
class ColorSpace:
    """A named colour space, optionally backed by an ICC profile."""

    name: str
    model: ColorModel
    icc_profile: Optional[bytes] = field(default=None, repr=False, compare=False)

    @classmethod
    def srgb(cls) -> "ColorSpace":
        return cls("sRGB", ColorModel.RGB, _builtin_profile("sRGB"))

    @classmethod
    def generic_gray(cls) -> "ColorSpace":
        return cls("Generic Gray", ColorModel.MONOCHROME)

    @classmethod
    def device(cls, model: ColorModel) -> "ColorSpace":
        """Return the uncalibrated colour space for ``model``."""
        return cls(f"Device {model.name.title()}", model)


@dataclass(eq=True, frozen=True)
class ParameterPreset:
    """One pixel layout a bitmap context can be created with."""

    bits_per_pixel: int
    bits_per_component: int
    has_alpha: bool
    color_model: ColorModel
    alpha_info: AlphaInfo
    float_components: bool
    mode: str


_RGB = ColorModel.RGB
_GRAY = ColorModel.MONOCHROME

# Supported pixel formats, in the order the platform documents them.
PRESETS: tuple[ParameterPreset, ...] = (
    ParameterPreset(16, 5, False, _RGB, AlphaInfo.NONE_SKIP_FIRST, False, "RGB"),
    ParameterPreset(32, 8, False, _RGB, AlphaInfo.NONE_SKIP_FIRST, False, "RGB"),
    ParameterPreset(32, 8, False, _RGB, AlphaInfo.NONE_SKIP_LAST, False, "RGB"),
    ParameterPreset(32, 8, True, _RGB, AlphaInfo.PREMULTIPLIED_FIRST, False, "RGBA"),
    ParameterPreset(32, 8, True, _RGB, AlphaInfo.PREMULTIPLIED_LAST, False, "RGBA"),

    ParameterPreset(32, 10, False, _RGB, AlphaInfo.NONE, False, "RGB"),

    ParameterPreset(64, 16, True, _RGB, AlphaInfo.PREMULTIPLIED_LAST, False, "RGBA"),
    ParameterPreset(64, 16, False, _RGB, AlphaInfo.NONE_SKIP_LAST, False, "RGB"),

    ParameterPreset(64, 16, True, _RGB, AlphaInfo.PREMULTIPLIED_LAST, True, "RGBA"),
    ParameterPreset(64, 16, False, _RGB, AlphaInfo.NONE_SKIP_LAST, True, "RGB"),

    ParameterPreset(128, 32, True, _RGB, AlphaInfo.PREMULTIPLIED_LAST, True, "RGBA"),
    ParameterPreset(128, 32, False, _RGB, AlphaInfo.NONE_SKIP_LAST, True, "RGB"),

    ParameterPreset(8, 8, True, _GRAY, AlphaInfo.ONLY, False, "L"),
    ParameterPreset(8, 8, False, _GRAY, AlphaInfo.NONE, False, "L"),
    ParameterPreset(16, 8, False, _GRAY, AlphaInfo.NONE_SKIP_LAST, False, "L"),
    ParameterPreset(16, 8, True, _GRAY, AlphaInfo.PREMULTIPLIED_LAST, False, "LA"),
    ParameterPreset(16, 16, False, _GRAY, AlphaInfo.NONE, False, "I;16"),

    ParameterPreset(16, 16, False, _GRAY, AlphaInfo.NONE, True, "F"),
    ParameterPreset(32, 32, False, _GRAY, AlphaInfo.NONE, True, "F"),
)

# Pillow modes a context can store pixels in, and the colour model each needs.
CONTEXT_MODES = {
    "RGB": ColorModel.RGB,
    "RGBA": ColorModel.RGB,
    "L": ColorModel.MONOCHROME,
    "LA": ColorModel.MONOCHROME,
    "I;16": ColorModel.MONOCHROME,
    "F": ColorModel.MONOCHROME,
}


@dataclass(eq=True, frozen=True)
class ImageLayout:
    """Pixel layout of an existing image."""

    bits_per_component: int
    bits_per_pixel: int
    color_space: ColorSpace
    alpha_info: AlphaInfo
    float_components: bool = False

    @property
    def has_alpha(self) -> bool:
        return self.alpha_info.has_alpha


# mode -> (bits per component, bits per pixel, model, alpha info, float)
_MODE_LAYOUTS = {
    "1": (1, 1, ColorModel.MONOCHROME, AlphaInfo.NONE, False),
    "L": (8, 8, ColorModel.MONOCHROME, AlphaInfo.NONE, False),
    "LA": (8, 16, ColorModel.MONOCHROME, AlphaInfo.LAST, False),
    "La": (8, 16, ColorModel.MONOCHROME, AlphaInfo.PREMULTIPLIED_LAST, False),
    "P": (8, 8, ColorModel.INDEXED, AlphaInfo.NONE, False),
    "PA": (8, 16, ColorModel.INDEXED, AlphaInfo.LAST, False),
    "RGB": (8, 24, ColorModel.RGB, AlphaInfo.NONE, False),
    "RGBA": (8, 32, ColorModel.RGB, AlphaInfo.LAST, False),
    "RGBa": (8, 32, ColorModel.RGB, AlphaInfo.PREMULTIPLIED_LAST, False),
    "RGBX": (8, 32, ColorModel.RGB, AlphaInfo.NONE_SKIP_LAST, False),
    "YCbCr": (8, 24, ColorModel.RGB, AlphaInfo.NONE, False),
    "HSV": (8, 24, ColorModel.RGB, AlphaInfo.NONE, False),
    "CMYK": (8, 32, ColorModel.CMYK, AlphaInfo.NONE, False),
    "LAB": (8, 24, ColorModel.LAB, AlphaInfo.NONE, False),
    "I": (32, 32, ColorModel.MONOCHROME, AlphaInfo.NONE, False),
    "I;16": (16, 16, ColorModel.MONOCHROME, AlphaInfo.NONE, False),
    "I;16L": (16, 16, ColorModel.MONOCHROME, AlphaInfo.NONE, False),
    "I;16B": (16, 16, ColorModel.MONOCHROME, AlphaInfo.NONE, False),
    "I;16N": (16, 16, ColorModel.MONOCHROME, AlphaInfo.NONE, False),
    "F": (32, 32, ColorModel.MONOCHROME, AlphaInfo.NONE, True),
}


def color_space_of(image: Image.Image) -> ColorSpace:
    """Return the colour space of ``image``.

    The model comes from the image mode; the name and profile come from an
    embedded ICC profile when there is one.
    """
    model = _MODE_LAYOUTS.get(image.mode, (8, 8, ColorModel.UNKNOWN))[2]
    icc = image.info.get("icc_profile")
    if icc:
        try:
            profile = ImageCms.ImageCmsProfile(io.BytesIO(icc))
            name = ImageCms.getProfileDescription(profile).strip()
        except (OSError, ImageCms.PyCMSError) as exc:
            LOGGER.debug("Ignoring unreadable ICC profile: %s", exc)
        else:
            return ColorSpace(name or "Embedded", model, icc)
    return ColorSpace.device(model)


def image_layout(image: Image.Image) -> ImageLayout:
    """Describe the pixel layout of ``image``."""
    bpc, bpp, _, alpha_info, is_float = _MODE_LAYOUTS.get(
        image.mode, (8, 8 * len(image.getbands()), ColorModel.UNKNOWN, AlphaInfo.NONE, False)
    )
    if image.mode == "P" and "transparency" in image.info:
        alpha_info = AlphaInfo.LAST
    return ImageLayout(bpc, bpp, color_space_of(image), alpha_info, is_float)


def _nearest(presets: Iterable[ParameterPreset], bits_per_component: int) -> Optional[ParameterPreset]:
    """Return the preset closest to ``bits_per_component``; the first one wins ties."""
    best: Optional[ParameterPreset] = None
    for preset in presets:
        if best is None or (
            abs(preset.bits_per_component - bits_per_component)
            < abs(best.bits_per_component - bits_per_component)
        ):
            best = preset
    return best


def resolve_preset(bits_per_component: int, model: ColorModel, with_alpha: bool) -> ParameterPreset:
    """Return the preset used for the requested parameters.

    Presets of ``model`` are preferred; RGB presets are used when the model
    has none.
    """
    preset = _nearest(
        (p for p in PRESETS if p.has_alpha == with_alpha and p.color_model is model),
        bits_per_component,
    ) or _nearest(
        (p for p in PRESETS if p.has_alpha == with_alpha and p.color_model is ColorModel.RGB),
        bits_per_component,
    )
    assert preset is not None  # RGB presets exist with and without alpha
    return preset


class BitmapContext:
    """A drawable canvas with a fixed pixel layout and colour space."""

    def __init__(
        self,
        size: SizeLike,
        mode: str,
        color_space: ColorSpace,
        preset: Optional[ParameterPreset] = None,
        interpolation_quality: InterpolationQuality = InterpolationQuality.HIGH,
    ) -> None:
        width, height = Size.of(size).to_pixels()
        if width <= 0 or height <= 0:
            raise ContextCreationError(f"invalid context size {width}x{height}")
        required_model = CONTEXT_MODES.get(mode)
        if required_model is None:
            raise ContextCreationError(f"unsupported pixel mode {mode!r}")
        if color_space.model is not required_model:
            raise ContextCreationError(
                f"colour space {color_space.name!r} ({color_space.model.value}) "
                f"cannot back mode {mode!r}"
            )

        self.color_space = color_space
        self.preset = preset
        self.interpolation_quality = interpolation_quality
        self.alpha_only = preset is not None and preset.alpha_info is AlphaInfo.ONLY
        self._canvas = Image.new(mode, (width, height), 0)

    def __repr__(self) -> str:
        return (
            f"BitmapContext(size={self.size}, mode={self.mode!r}, "
            f"color_space={self.color_space.name!r})"
        )

    @property
    def size(self) -> tuple[int, int]:
        return self._canvas.size

    @property
    def mode(self) -> str:
        return self._canvas.mode

    def draw(self, image: Image.Image, rect: Rect) -> None:
        """Draw ``image`` scaled into ``rect``, compositing source-over.

        Parts of ``rect`` outside the canvas are clipped.
        """
        left, top, right, bottom = rect.to_box()
        width, height = right - left, bottom - top
        if width <= 0 or height <= 0:
            return

        source = _resample_ready(image)
        if source.size != (width, height):
            source = source.resize((width, height), resample=self.interpolation_quality.value)

        canvas_width, canvas_height = self._canvas.size
        clip = (max(left, 0), max(top, 0), min(right, canvas_width), min(bottom, canvas_height))
        if clip[2] <= clip[0] or clip[3] <= clip[1]:
            return
        if clip != (left, top, right, bottom):
            source = source.crop((clip[0] - left, clip[1] - top, clip[2] - left, clip[3] - top))

        mask = source.getchannel("A") if "A" in source.getbands() else None
        if self.alpha_only:
            coverage = mask if mask is not None else Image.new("L", source.size, 255)
            self._canvas.paste(255, clip, coverage)
        elif self.mode in ("RGBA", "LA"):
            region = self._canvas.crop(clip).convert("RGBA")
            composed = Image.alpha_composite(region, _convert(source, "RGBA"))
            self._canvas.paste(composed.convert(self.mode), clip[:2])
        else:
            self._paste_opaque(source, clip, mask)

    def _paste_opaque(
        self,
        source: Image.Image,
        clip: tuple[int, int, int, int],
        mask: Optional[Image.Image],
    ) -> None:
        work_mode = "I" if self.mode == "I;16" else self.mode
        layer = _convert(source, work_mode)
        if mask is None and work_mode == self.mode:
            self._canvas.paste(layer, clip[:2])
            return
        region = _convert(self._canvas.crop(clip), work_mode)
        region.paste(layer, (0, 0), mask)
        self._canvas.paste(_convert(region, self.mode), clip[:2])

    def make_image(self) -> Image.Image:
        """Return a snapshot of the canvas tagged with the context's colour space."""
        image = self._canvas.copy()
        if self.color_space.icc_profile:
            image.info["icc_profile"] = self.color_space.icc_profile
        return image


def _resample_ready(image: Image.Image) -> Image.Image:
    """Return ``image`` in a mode Pillow can resample and composite."""
    if image.mode in ("RGB", "RGBA", "L", "LA", "I", "F"):
        return image
    if image.mode.startswith("I;16"):
        return image.convert("I")
    if image.mode == "1":
        return image.convert("L")
    if image.mode in ("P", "PA", "RGBa"):
        return image.convert("RGBA")
    if image.mode == "La":
        return image.convert("LA")
    return image.convert("RGB")


_NUMERIC_MODES = ("I", "F", "I;16")


def _convert(image: Image.Image, mode: str) -> Image.Image:
    if image.mode == mode:
        return image
    if mode in _NUMERIC_MODES:
        if image.mode not in ("L",) + _NUMERIC_MODES:
            image = image.convert("L")
        if mode == "I;16" and image.mode == "F":
            image = image.convert("I")
        return image.convert(mode)
    if image.mode in _NUMERIC_MODES:
        image = image.convert("L")
    return image.convert(mode)


def create_context(
    size: SizeLike,
    bits_per_component: int,
    color_space: ColorSpace,
    with_alpha: bool,
) -> BitmapContext:
    """Create the best available context for the given parameters.

    Returns:
        A context built from the nearest preset. If the preset cannot be
        combined with ``color_space``, sRGB is used instead.
    """
    preset = resolve_preset(bits_per_component, color_space.model, with_alpha)
    try:
        return BitmapContext(size, preset.mode, color_space, preset=preset)
    except ContextCreationError as exc:
        LOGGER.debug("Retrying context with sRGB: %s", exc)
        return BitmapContext(size, preset.mode, ColorSpace.srgb(), preset=preset)


def create_context_referencing(image: Image.Image, size: Optional[SizeLike] = None) -> BitmapContext:
    """Create a context using the properties of ``image``.

    If no context can be made with the exact layout of ``image``, the most
    similar preset is used instead.

    Args:
        image: The referenced image.
        size: The size of the context; ``None`` uses the size of ``image``.
    """
    target = Size.of(size) if size is not None else Size(*image.size)
    layout = image_layout(image)
    try:
        return BitmapContext(target, image.mode, layout.color_space)
    except ContextCreationError as exc:
        LOGGER.debug("No exact context for mode %s: %s", image.mode, exc)
    return create_context(target, layout.bits_per_component, layout.color_space, layout.has_alpha)


__all__ = [
    "AlphaInfo",
    "BitmapContext",
    "CONTEXT_MODES",
    "ColorModel",
    "ColorSpace",
    "ImageLayout",
    "InterpolationQuality",
    "PRESETS",
    "ParameterPreset",
    "color_space_of",
    "create_context",
    "create_context_referencing",
    "image_layout",
    "resolve_preset",
]
