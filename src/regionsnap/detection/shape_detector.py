"""
Heuristic shape classification of a user-selected region.

The region as a whole is classified from a few sampled features (edge
strength, colour variance, aspect ratio and area) with a fixed decision
table. Two pattern checks look for a circular outline (icon) and a
rectangular outline (button) along the region geometry.
"""

import logging

import numpy as np

from ..metrics import color_variance, edge_strength, local_edge_strengths
from ..model import BoundingBox, DetectedObject, ObjectType, clamp_unit
from .base import Detector

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.4
CIRCLE_SAMPLES = 24
POINT_EDGE_THRESHOLD = 0.3
CIRCULARITY_THRESHOLD = 0.7
RECTANGULARITY_THRESHOLD = 0.8
BORDER_STEP = 3


def classify_by_features(edge: float, variance: float, aspect: float, area: float) -> ObjectType:
    """Map region features to an object type. The first matching rule wins."""
    if edge > 0.3 and 0.7 <= aspect <= 1.4 and 2000 <= area <= 50000:
        return ObjectType.BUTTON
    if edge > 0.2 and (aspect > 1.5 or aspect < 0.7) and area > 10000:
        return ObjectType.IMAGE
    if edge > 0.25 and 0.8 <= aspect <= 1.2 and area < 10000:
        return ObjectType.ICON
    if aspect > 2 and 0.2 <= variance <= 0.6:
        return ObjectType.TEXT
    if variance > 0.7:
        return ObjectType.IMAGE
    if edge > 0.15:
        return ObjectType.SHAPE
    return ObjectType.UNKNOWN


def aspect_score(aspect: float) -> float:
    if 0.8 <= aspect <= 1.2:
        return 0.8
    if 1.3 <= aspect <= 2.0:
        return 0.7
    if aspect > 2.0:
        return 0.6
    return 0.4


def shape_confidence(edge: float, variance: float, aspect: float) -> float:
    """Weighted blend of edge strength, colour variance and aspect ratio."""
    color_score = variance if 0.2 <= variance <= 0.8 else 0.3
    return clamp_unit(0.4 * edge + 0.3 * color_score + 0.3 * aspect_score(aspect))


class ShapeDetector(Detector):
    """Classifies the whole region and checks it for circular or rectangular outlines.

    All detections reuse the (clamped) region as their bounds.
    """

    name = "shape"

    def detect(self, image: np.ndarray, region: BoundingBox) -> list[DetectedObject]:
        height, width = image.shape[:2]
        box = region.clamp(width, height)
        if box.is_empty:
            return []

        edge = edge_strength(image, box)
        variance = color_variance(image, box)
        aspect = box.aspect_ratio

        results: list[DetectedObject] = []

        object_type = classify_by_features(edge, variance, aspect, box.area)
        confidence = shape_confidence(edge, variance, aspect)
        if confidence > CONFIDENCE_THRESHOLD:
            results.append(self._make(box, object_type, confidence))

        circularity = self.circularity(image, box)
        if circularity > CIRCULARITY_THRESHOLD:
            results.append(self._make(box, ObjectType.ICON, circularity))

        rectangularity = self.rectangularity(image, box)
        if rectangularity > RECTANGULARITY_THRESHOLD:
            results.append(self._make(box, ObjectType.BUTTON, rectangularity))

        logger.debug(
            f"Shape analysis: edge={edge:.3f} variance={variance:.3f} aspect={aspect:.2f} "
            f"circularity={circularity:.2f} rectangularity={rectangularity:.2f} "
            f"-> {len(results)} detections"
        )
        return results

    # Same operation under its descriptive name
    detect_shapes = detect

    def _make(self, box: BoundingBox, object_type: ObjectType, confidence: float) -> DetectedObject:
        return DetectedObject(
            bounds=box,
            object_type=object_type,
            confidence=confidence,
            label=f"shape_{object_type.value}",
            source=self.name,
        )

    def circularity(self, image: np.ndarray, box: BoundingBox) -> float:
        """Fraction of points on the inscribed circle that sit on an edge.

        Only near-square regions are considered; others score 0.
        """
        if not 0.8 <= box.aspect_ratio <= 1.2:
            return 0.0

        height, width = image.shape[:2]
        cx, cy = box.center
        radius = min(box.width, box.height) / 2
        angles = np.radians(np.arange(CIRCLE_SAMPLES) * (360 / CIRCLE_SAMPLES))
        xs = (cx + radius * np.cos(angles)).astype(np.int64)
        ys = (cy + radius * np.sin(angles)).astype(np.int64)

        in_image = (xs >= 0) & (ys >= 0) & (xs < width) & (ys < height)
        if not in_image.any():
            return 0.0

        strengths = local_edge_strengths(image, xs[in_image], ys[in_image])
        return float((strengths > POINT_EDGE_THRESHOLD).mean())

    def rectangularity(self, image: np.ndarray, box: BoundingBox) -> float:
        """Mean of the average edge strength along each of the four sides.

        Every side counts equally, whatever its length.
        """
        left, top, right, bottom = box.to_int()
        if right <= left or bottom <= top:
            return 0.0

        columns = np.arange(left, right, BORDER_STEP)
        rows = np.arange(top, bottom, BORDER_STEP)
        sides = [
            (columns, np.full(columns.size, top)),
            (columns, np.full(columns.size, bottom - 1)),
            (np.full(rows.size, left), rows),
            (np.full(rows.size, right - 1), rows),
        ]
        return float(np.mean([local_edge_strengths(image, xs, ys).mean() for xs, ys in sides]))
