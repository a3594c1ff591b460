"""Exception types raised by GraphicsKit."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional, Union


class GraphicsKitError(Exception):
    """Base class for every error raised by the library."""

    title = "GraphicsKit error"

    @property
    def message(self) -> str:
        return super().__str__()

    def __str__(self) -> str:
        return f"{self.title}: {self.message}"


class DataErrorReason(Enum):
    INVALID_FORMAT = "The format is invalid."
    CANNOT_FINALIZE_DATA = "Cannot finalize the destination data."
    NO_IMAGE = "No image could be formed from the given data."


class ImageDataError(GraphicsKitError):
    """Encoding or decoding an image failed."""

    title = "Cannot form data from an image"

    def __init__(self, reason: DataErrorReason, detail: Optional[str] = None) -> None:
        super().__init__(reason.value)
        self.reason = reason
        self.detail = detail

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.reason.value} ({self.detail})"
        return self.reason.value


class InferFormatError(GraphicsKitError, ValueError):
    """No image format is registered for a file extension."""

    title = "Cannot infer image type from given extension"

    def __init__(self, extension: str) -> None:
        super().__init__(extension)
        self.extension = extension

    @property
    def message(self) -> str:
        if not self.extension:
            return (
                "The provided file has empty extension. Please specify the "
                "extension, or state the image format explicitly by passing `format`."
            )
        return f"The extension `{self.extension}` is not recognized."


class ContextCreationError(GraphicsKitError):
    """A bitmap context cannot be built from the requested parameters."""

    title = "Cannot create bitmap context"


class SaliencyUnavailableError(GraphicsKitError):
    """Saliency-guided filling was requested without a provider."""

    title = "Saliency provider unavailable"


class LoadErrorReason(Enum):
    NO_SUCH_FILE = "The file does not exist."
    CORRUPT_FILE = "The file could not be read as an image."


class ImageLoadError(GraphicsKitError, OSError):
    """Reading image content from a file failed."""

    title = "Cannot read file"

    def __init__(self, reason: LoadErrorReason, source: Union[str, Path]) -> None:
        super().__init__(reason.value)
        self.reason = reason
        self.source = Path(source)

    @property
    def message(self) -> str:
        return f"{self.reason.value} ({self.source})"


__all__ = [
    "ContextCreationError",
    "DataErrorReason",
    "GraphicsKitError",
    "ImageDataError",
    "ImageLoadError",
    "InferFormatError",
    "LoadErrorReason",
    "SaliencyUnavailableError",
]
