"""Segment records produced while segmenting a sub-image."""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from ..model import BoundingBox, ObjectType


class SegmentType(Enum):
    """Semantic role of a segment inside the analysed region."""

    BACKGROUND = "background"
    TEXT_REGION = "text_region"
    IMAGE_REGION = "image_region"
    UI_ELEMENT = "ui_element"
    BORDER = "border"
    UNKNOWN = "unknown"


TYPE_WEIGHTS: dict[SegmentType, float] = {
    SegmentType.TEXT_REGION: 1.2,
    SegmentType.UI_ELEMENT: 1.1,
    SegmentType.IMAGE_REGION: 1.0,
    SegmentType.BORDER: 0.8,
    SegmentType.BACKGROUND: 0.5,
    SegmentType.UNKNOWN: 0.6,
}

OBJECT_TYPES: dict[SegmentType, ObjectType] = {
    SegmentType.TEXT_REGION: ObjectType.TEXT,
    SegmentType.IMAGE_REGION: ObjectType.IMAGE,
    SegmentType.UI_ELEMENT: ObjectType.BUTTON,
    SegmentType.BORDER: ObjectType.SHAPE,
    SegmentType.BACKGROUND: ObjectType.UNKNOWN,
    SegmentType.UNKNOWN: ObjectType.UNKNOWN,
}


@dataclass
class Segment:
    """A group of pixels in sub-image coordinates.

    ``pixels`` holds flat indices (``y * width + x``) into the sub-image.
    """

    id: int
    bounds: BoundingBox
    pixels: np.ndarray
    average_color: tuple[float, float, float]
    color_spread: float = 0.0
    """RMS distance of the member pixels from the average colour."""

    segment_type: SegmentType = SegmentType.UNKNOWN
    confidence: float = 0.0
    metadata: dict[str, float] = field(default_factory=dict)

    @property
    def pixel_count(self) -> int:
        return int(self.pixels.size)

    @property
    def label(self) -> str:
        return f"segment_{self.segment_type.value}"
