"""Plain geometry value types used to place images on a canvas.

Coordinates follow Pillow's convention: the origin is the top-left corner
and ``y`` grows downward.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class ContentMode(Enum):
    """How content is scaled into a container of a different aspect ratio."""

    FIT = "fit"
    FILL = "fill"


class Side(Enum):
    WIDTH = "width"
    HEIGHT = "height"


class Position(Enum):
    TOP_LEADING = "top_leading"
    TOP = "top"
    TOP_TRAILING = "top_trailing"
    LEADING = "leading"
    CENTER = "center"
    TRAILING = "trailing"
    BOTTOM_LEADING = "bottom_leading"
    BOTTOM = "bottom"
    BOTTOM_TRAILING = "bottom_trailing"


# Fraction of (width, height) each anchor sits at, measured from the origin.
_ANCHORS = {
    Position.TOP_LEADING: (0.0, 0.0),
    Position.TOP: (0.5, 0.0),
    Position.TOP_TRAILING: (1.0, 0.0),
    Position.LEADING: (0.0, 0.5),
    Position.CENTER: (0.5, 0.5),
    Position.TRAILING: (1.0, 0.5),
    Position.BOTTOM_LEADING: (0.0, 1.0),
    Position.BOTTOM: (0.5, 1.0),
    Position.BOTTOM_TRAILING: (1.0, 1.0),
}


@dataclass(eq=True, frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def distance(self, other: "Point") -> float:
        """Return the Euclidean distance to ``other``."""
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(eq=True, frozen=True)
class Size:
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def square(cls, width: float) -> "Size":
        """Return a square whose sides are ``width``."""
        return cls(width, width)

    @classmethod
    def of(cls, value: "Size | tuple[float, float]") -> "Size":
        """Coerce a ``(width, height)`` pair into a :class:`Size`."""
        if isinstance(value, Size):
            return value
        width, height = value
        return cls(width, height)

    @property
    def center(self) -> Point:
        return Point(self.width / 2, self.height / 2)

    @property
    def is_square(self) -> bool:
        return self.width == self.height

    @property
    def longer_side(self) -> float:
        return max(self.width, self.height)

    @property
    def shorter_side(self) -> float:
        return min(self.width, self.height)

    def to_pixels(self) -> tuple[int, int]:
        """Return the size as whole pixels, truncating fractions."""
        return int(self.width), int(self.height)

    def scaled(self, factor: float) -> "Size":
        return Size(self.width * factor, self.height * factor)

    def aspect_ratio(self, mode: ContentMode, target: "Size") -> "Size":
        """Return the size which ``self`` fits or fills in ``target``.

        In ``FIT`` mode the result can be smaller than ``target``; in ``FILL``
        mode it can be larger. The aspect ratio of ``self`` is preserved.

        Raises:
            ValueError: If either size has a side that is not positive.
        """
        _require_positive(self, "source")
        _require_positive(target, "target")

        target_is_wider = target.width / target.height >= self.width / self.height
        if mode is ContentMode.FIT:
            if target_is_wider:
                return Size(self.width * target.height / self.height, target.height)
            return Size(target.width, self.height * target.width / self.width)

        if target_is_wider:
            return Size(target.width, self.height * target.width / self.width)
        return Size(self.width * target.height / self.height, target.height)

    def extended(self, side: Side, target: float) -> "Size":
        """Set ``side`` to ``target`` and scale the other side to keep the ratio."""
        _require_positive(self, "source")
        if side is Side.HEIGHT:
            return Size(target * self.width / self.height, target)
        return Size(target, target * self.height / self.width)


@dataclass(eq=True, frozen=True)
class Rect:
    origin: Point = field(default_factory=Point)
    size: Size = field(default_factory=Size)

    @classmethod
    def from_center(cls, center: Point, size: Size) -> "Rect":
        return cls(Point(center.x - size.width / 2, center.y - size.height / 2), size)

    @classmethod
    def of(cls, x: float, y: float, width: float, height: float) -> "Rect":
        return cls(Point(x, y), Size(width, height))

    @property
    def width(self) -> float:
        return self.size.width

    @property
    def height(self) -> float:
        return self.size.height

    @property
    def min_x(self) -> float:
        return self.origin.x

    @property
    def min_y(self) -> float:
        return self.origin.y

    @property
    def max_x(self) -> float:
        return self.origin.x + self.size.width

    @property
    def max_y(self) -> float:
        return self.origin.y + self.size.height

    @property
    def center(self) -> Point:
        return Point(self.origin.x + self.size.width / 2, self.origin.y + self.size.height / 2)

    def with_center(self, center: Point) -> "Rect":
        """Return a rect of the same size moved so its center is ``center``."""
        return Rect.from_center(center, self.size)

    def point(self, position: Position) -> Point:
        """Return the point at ``position`` on the rect's border or center."""
        fx, fy = _ANCHORS[position]
        return self.origin + Point(self.size.width * fx, self.size.height * fy)

    def union(self, other: "Rect") -> "Rect":
        """Return the smallest rect containing both rects."""
        min_x = min(self.min_x, other.min_x)
        min_y = min(self.min_y, other.min_y)
        max_x = max(self.max_x, other.max_x)
        max_y = max(self.max_y, other.max_y)
        return Rect.of(min_x, min_y, max_x - min_x, max_y - min_y)

    @staticmethod
    def union_all(rects: Iterable["Rect"]) -> Optional["Rect"]:
        """Return the union of ``rects``, or ``None`` when there are none."""
        result: Optional[Rect] = None
        for rect in rects:
            result = rect if result is None else result.union(rect)
        return result

    def to_box(self) -> tuple[int, int, int, int]:
        """Return a Pillow ``(left, upper, right, lower)`` box.

        Only the origin is rounded; the box always spans ``size.to_pixels()``
        so drawing into it never stretches the source by a pixel.
        """
        left, top = int(round(self.min_x)), int(round(self.min_y))
        width, height = self.size.to_pixels()
        return (left, top, left + width, top + height)


def _require_positive(size: Size, label: str) -> None:
    if size.width <= 0 or size.height <= 0:
        raise ValueError(f"{label} size must have positive sides, got {size.width}x{size.height}")


__all__ = ["ContentMode", "Point", "Position", "Rect", "Side", "Size"]
