"""Rendering Qt widgets into images and documents."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from PySide6.QtCore import QMarginsF, QPoint, QSizeF, Qt
from PySide6.QtGui import QImage, QPageLayout, QPageSize, QPainter, QPdfWriter
from PySide6.QtWidgets import QWidget

from . import config, native
from .errors import DataErrorReason, ImageDataError
from .formats import ImageFormat
from .validation import validate_destination

LOGGER = logging.getLogger(__name__)


def _check_scale(scale: float) -> float:
    if not 0 < scale <= config.MAX_RENDER_SCALE:
        raise ValueError(f"scale must be within (0, {config.MAX_RENDER_SCALE}], got {scale}")
    return scale


def render_widget(widget: QWidget, scale: float = 1.0) -> QImage:
    """Return a transparent-backed snapshot of ``widget`` at ``scale``."""
    _check_scale(scale)
    size = widget.size()
    image = QImage(
        max(1, round(size.width() * scale)),
        max(1, round(size.height() * scale)),
        QImage.Format.Format_ARGB32_Premultiplied,
    )
    image.fill(Qt.GlobalColor.transparent)
    painter = QPainter(image)
    painter.setRenderHints(
        QPainter.RenderHint.Antialiasing
        | QPainter.RenderHint.SmoothPixmapTransform
        | QPainter.RenderHint.TextAntialiasing
    )
    try:
        painter.scale(scale, scale)
        widget.render(painter, QPoint())
    finally:
        painter.end()
    return image


def _render_pdf(widget: QWidget, path: Path, scale: float) -> None:
    size = widget.size()
    writer = QPdfWriter(str(path))
    writer.setPageLayout(
        QPageLayout(
            QPageSize(QSizeF(size.width() * scale, size.height() * scale), QPageSize.Unit.Point),
            QPageLayout.Orientation.Portrait,
            QMarginsF(0, 0, 0, 0),
        )
    )
    painter = QPainter()
    if not painter.begin(writer):
        raise ImageDataError(DataErrorReason.CANNOT_FINALIZE_DATA, f"cannot start PDF at {path}")
    try:
        # Device pixels per point
        factor = writer.resolution() / config.POINTS_PER_INCH * scale
        painter.scale(factor, factor)
        widget.render(painter, QPoint())
    finally:
        painter.end()


def render_widget_to(
    widget: QWidget,
    destination: Union[str, Path],
    format: ImageFormat = ImageFormat.PDF,
    scale: float = config.DEFAULT_RENDER_SCALE,
) -> Path:
    """Render ``widget`` into ``destination`` and return the resolved path.

    PDF output keeps the widget as vector content on a page sized to the
    widget; every other format goes through a raster snapshot.
    """
    _check_scale(scale)
    path, format = validate_destination(destination, format)
    if format is ImageFormat.PDF:
        _render_pdf(widget, path, scale)
        LOGGER.debug("Rendered %s to PDF %s", type(widget).__name__, path)
        return path
    return native.write(render_widget(widget, scale), path, format)


__all__ = ["render_widget", "render_widget_to"]
