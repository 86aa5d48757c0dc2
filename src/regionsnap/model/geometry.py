"""Axis-aligned rectangles in image pixel coordinates."""

import math
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingBox:
    """Bounding box for a region or a detection.

    ``x``/``y`` is the top-left corner; the right and bottom edges
    (``x2``/``y2``) are exclusive, so a box covering pixels 0..9 has width 10.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        if self.is_empty:
            return 0.0
        return self.width * self.height

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    @property
    def aspect_ratio(self) -> float:
        """Width over height, 0 for a box without height."""
        return self.width / self.height if self.height > 0 else 0.0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @classmethod
    def empty(cls) -> "BoundingBox":
        return cls(0, 0, 0, 0)

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "BoundingBox":
        return cls(left, top, right - left, bottom - top)

    @classmethod
    def from_points(cls, points: Iterable[tuple[float, float]]) -> "BoundingBox":
        """Smallest box containing every point; empty when there are no points."""
        pts = list(points)
        if not pts:
            return cls.empty()

        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        return cls.from_edges(min(xs), min(ys), max(xs), max(ys))

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> "BoundingBox":
        return cls(x=data["x"], y=data["y"], width=data["width"], height=data["height"])

    def intersection(self, other: "BoundingBox") -> "BoundingBox":
        """Overlapping part of two boxes, empty when they do not overlap."""
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.x2, other.x2)
        bottom = min(self.y2, other.y2)

        if right <= left or bottom <= top:
            return BoundingBox.empty()
        return BoundingBox.from_edges(left, top, right, bottom)

    def iou(self, other: "BoundingBox") -> float:
        """Calculate Intersection over Union with another bounding box."""
        intersection = self.intersection(other).area
        if intersection <= 0:
            return 0.0

        union = self.area + other.area - intersection
        return intersection / union if union > 0 else 0.0

    def contains(self, other: "BoundingBox") -> bool:
        """Check if this bounding box fully contains another."""
        return (
            self.x <= other.x and self.y <= other.y and self.x2 >= other.x2 and self.y2 >= other.y2
        )

    def clamp(self, width: float, height: float) -> "BoundingBox":
        """Restrict the box to an image of the given size."""
        left = min(max(self.x, 0), width)
        top = min(max(self.y, 0), height)
        right = min(max(self.x2, 0), width)
        bottom = min(max(self.y2, 0), height)
        return BoundingBox.from_edges(left, top, max(left, right), max(top, bottom))

    def translate(self, dx: float, dy: float) -> "BoundingBox":
        return BoundingBox(self.x + dx, self.y + dy, self.width, self.height)

    def to_int(self) -> tuple[int, int, int, int]:
        """Rounded ``(left, top, right, bottom)`` pixel edges."""
        return (round(self.x), round(self.y), round(self.x2), round(self.y2))

    def distance_to(self, other: "BoundingBox") -> float:
        """Euclidean distance between the two centers."""
        cx, cy = self.center
        ox, oy = other.center
        return math.hypot(cx - ox, cy - oy)
