"""Checks on user-supplied paths before images are read or written."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Tuple, Union
from urllib.parse import urlparse

from . import config
from .formats import ImageFormat


def _reject_url(value: str) -> None:
    # One-letter schemes are Windows drive letters, not URLs.
    scheme = urlparse(value).scheme
    if len(scheme) > 1:
        raise ValueError(f"Expected a file path, got a {scheme} URL: {value}")


def validate_source_path(
    path: Union[str, Path],
    extensions: Optional[Iterable[str]] = config.SUPPORTED_IMAGE_EXTENSIONS,
) -> Path:
    """Return the resolved path of an existing image file.

    ``extensions`` lists the accepted lower-case suffixes; ``None`` accepts
    any file.
    """
    text = str(path)
    _reject_url(text)
    candidate = Path(text).expanduser()
    if not candidate.is_file():
        raise ValueError(f"No image file at {text}")
    if extensions is not None and candidate.suffix.lower() not in set(extensions):
        raise ValueError(f"Unsupported image extension {candidate.suffix or '(none)'}: {text}")
    return candidate.resolve()


def validate_destination(
    path: Union[str, Path],
    format: Optional[ImageFormat] = None,
) -> Tuple[Path, ImageFormat]:
    """Return the resolved destination and the format to write there.

    Without ``format`` the format is inferred from the file extension.

    Raises:
        ValueError: for URLs and missing parent directories.
        InferFormatError: when no format is given and the extension is
            unknown.
    """
    text = str(path)
    _reject_url(text)
    target = Path(text).expanduser().resolve()
    if not target.parent.is_dir():
        raise ValueError(f"Directory does not exist: {target.parent}")
    if format is None:
        format = ImageFormat.inferred_from_extension(target.suffix)
    return target, format


__all__ = ["validate_destination", "validate_source_path"]
