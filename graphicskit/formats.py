"""Image formats the codec layer can target, and extension inference."""
from __future__ import annotations

from enum import Enum

from .errors import InferFormatError


class ImageFormat(Enum):
    """The options for saving an image.

    Each member's value is the uniform type identifier of the format.
    """

    PNG = "public.png"
    TIFF = "public.tiff"
    HEIC = "public.heic"
    PDF = "com.adobe.pdf"
    JPEG = "public.jpeg"
    PSD = "com.adobe.photoshop-image"
    ICNS = "com.apple.icns"

    def __str__(self) -> str:
        return self.value

    @property
    def identifier(self) -> str:
        return self.value

    @property
    def pillow_format(self) -> str:
        """Name of the Pillow plugin that reads and writes this format."""
        return _PILLOW_FORMATS[self]

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def supports_lossy_quality(self) -> bool:
        return self in (ImageFormat.JPEG, ImageFormat.HEIC)

    @classmethod
    def inferred_from_extension(cls, extension: str) -> "ImageFormat":
        """Return the format registered for ``extension``.

        The match is case-insensitive and tolerates a leading dot.

        Raises:
            InferFormatError: If ``extension`` is empty or not recognized.
        """
        normalized = extension.lstrip(".").lower()
        if not normalized:
            raise InferFormatError("")
        try:
            return _EXTENSIONS[normalized]
        except KeyError:
            raise InferFormatError(extension.lstrip(".")) from None


_PILLOW_FORMATS = {
    ImageFormat.PNG: "PNG",
    ImageFormat.TIFF: "TIFF",
    ImageFormat.HEIC: "HEIF",
    ImageFormat.PDF: "PDF",
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PSD: "PSD",
    ImageFormat.ICNS: "ICNS",
}

_MIME_TYPES = {
    ImageFormat.PNG: "image/png",
    ImageFormat.TIFF: "image/tiff",
    ImageFormat.HEIC: "image/heic",
    ImageFormat.PDF: "application/pdf",
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.PSD: "image/vnd.adobe.photoshop",
    ImageFormat.ICNS: "image/icns",
}

_EXTENSIONS = {
    "png": ImageFormat.PNG,
    "tif": ImageFormat.TIFF,
    "tiff": ImageFormat.TIFF,
    "heif": ImageFormat.HEIC,
    "heifs": ImageFormat.HEIC,
    "heic": ImageFormat.HEIC,
    "heics": ImageFormat.HEIC,
    "avci": ImageFormat.HEIC,
    "avcs": ImageFormat.HEIC,
    "hif": ImageFormat.HEIC,
    "pdf": ImageFormat.PDF,
    "jpg": ImageFormat.JPEG,
    "jpeg": ImageFormat.JPEG,
    "jpe": ImageFormat.JPEG,
    "jif": ImageFormat.JPEG,
    "jfif": ImageFormat.JPEG,
    "jfi": ImageFormat.JPEG,
    "psd": ImageFormat.PSD,
    "icns": ImageFormat.ICNS,
}


__all__ = ["ImageFormat"]
