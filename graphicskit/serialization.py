"""Storing images as attribute values and as JSON-friendly payloads."""
from __future__ import annotations

from dataclasses import dataclass
import base64
import binascii
import logging
from threading import RLock
from typing import Any, Dict, Mapping, Optional

from PIL import Image

from . import codec, config, native
from .errors import GraphicsKitError, ImageDataError
from .formats import ImageFormat
from .native import NativeImage

LOGGER = logging.getLogger(__name__)


class ImageTransformer:
    """Converts images to HEIC data for storage and back again.

    Stored data uses HEIC at :data:`graphicskit.config.TRANSFORMER_QUALITY`.
    """

    NAME = "NativeImage.ValueTransformer"

    def transformed_value(self, value: Optional[NativeImage]) -> Optional[bytes]:
        if value is None:
            return None
        try:
            return native.data(value, ImageFormat.HEIC, config.TRANSFORMER_QUALITY)
        except GraphicsKitError as exc:
            LOGGER.warning("Unable to transform image into data: %s", exc)
            return None

    def reverse_transformed_value(self, value: Optional[bytes]) -> Optional[Image.Image]:
        if not value:
            return None
        try:
            return codec.decode(bytes(value))
        except ImageDataError as exc:
            LOGGER.warning("Unable to transform data into an image: %s", exc)
            return None

    @classmethod
    def allows_reverse_transformation(cls) -> bool:
        return True

    @classmethod
    def register(cls) -> "ImageTransformer":
        """Register a shared instance under :attr:`NAME` and return it."""
        transformer = cls()
        register_transformer(cls.NAME, transformer)
        return transformer


_transformers: Dict[str, ImageTransformer] = {}
_transformers_lock = RLock()


def register_transformer(name: str, transformer: ImageTransformer) -> None:
    with _transformers_lock:
        if name in _transformers:
            LOGGER.debug("Replacing value transformer %s", name)
        _transformers[name] = transformer


def get_transformer(name: str) -> ImageTransformer:
    """Return the transformer registered under ``name``.

    Raises:
        KeyError: If nothing is registered under ``name``.
    """
    with _transformers_lock:
        return _transformers[name]


def encode_image(image: Optional[NativeImage], format: ImageFormat = ImageFormat.PNG) -> Optional[str]:
    """Encode an image into a base64 string of ``format`` data."""
    if image is None or native.pixel_size(image) is None:
        return None
    try:
        payload = native.data(image, format)
    except GraphicsKitError as exc:
        LOGGER.warning("Unable to encode image for serialization: %s", exc)
        return None
    return base64.b64encode(payload).decode("ascii")


def decode_image(encoded: Optional[str]) -> Optional[Image.Image]:
    """Decode a base64 string produced by :func:`encode_image`."""
    if not encoded:
        return None
    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        LOGGER.warning("Failed to decode image: invalid base64 input", exc_info=exc)
        return None
    try:
        return codec.decode(raw)
    except ImageDataError:
        LOGGER.warning("Failed to load image from decoded data")
        return None


@dataclass(eq=True, frozen=True)
class ImagePayload:
    """Serializable snapshot of an image and the format it is stored in."""

    format: ImageFormat
    width: int
    height: int
    data: str

    @classmethod
    def from_image(cls, image: NativeImage, format: ImageFormat = ImageFormat.PNG) -> Optional["ImagePayload"]:
        encoded = encode_image(image, format)
        if encoded is None:
            return None
        size = native.pixel_size(image)
        width, height = size.to_pixels()
        return cls(format=format, width=width, height=height, data=encoded)

    def to_image(self) -> Optional[Image.Image]:
        return decode_image(self.data)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "format": self.format.identifier,
            "width": self.width,
            "height": self.height,
            "data": self.data,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ImagePayload":
        return cls(
            format=ImageFormat(payload.get("format", ImageFormat.PNG.identifier)),
            width=int(payload.get("width", 0)),
            height=int(payload.get("height", 0)),
            data=str(payload.get("data", "")),
        )


__all__ = [
    "ImagePayload",
    "ImageTransformer",
    "decode_image",
    "encode_image",
    "get_transformer",
    "register_transformer",
]
