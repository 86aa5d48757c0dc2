"""Detection records shared by every detector."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .geometry import BoundingBox


class ObjectType(Enum):
    """Semantic kind of a detected object."""

    TEXT = "text"
    IMAGE = "image"
    BUTTON = "button"
    ICON = "icon"
    FACE = "face"
    OBJECT = "object"
    SHAPE = "shape"
    UNKNOWN = "unknown"


def clamp_unit(value: float) -> float:
    """Clamp a score into [0, 1]."""
    return min(max(float(value), 0.0), 1.0)


@dataclass(frozen=True)
class DetectedObject:
    """A candidate object found inside an image.

    Bounds are in the coordinate space of the analysed image. Confidence is
    clamped into [0, 1] on construction.
    """

    bounds: BoundingBox
    object_type: ObjectType
    confidence: float
    label: str | None = None
    source: str | None = None  # detector tag

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp_unit(self.confidence))

    def with_bounds(self, bounds: BoundingBox) -> "DetectedObject":
        return replace(self, bounds=bounds)

    def with_source(self, source: str) -> "DetectedObject":
        return replace(self, source=source)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bounds": self.bounds.to_dict(),
            "type": self.object_type.value,
            "confidence": self.confidence,
            "label": self.label,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DetectedObject":
        return cls(
            bounds=BoundingBox.from_dict(data["bounds"]),
            object_type=ObjectType(data["type"]),
            confidence=data["confidence"],
            label=data.get("label"),
            source=data.get("source"),
        )
