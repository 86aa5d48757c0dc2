"""Layout pattern heuristics for common interface elements."""

import logging

import numpy as np

from ..metrics import clamped_edges, color_variance, region_contrast, sample_step
from ..model import BoundingBox, DetectedObject, ObjectType, clamp_unit
from .base import Detector

logger = logging.getLogger(__name__)


def rms_color_uniformity(image: np.ndarray, region: BoundingBox) -> float:
    """``1 - rms colour deviation / 255`` over a sample of the region."""
    edges = clamped_edges(image, region)
    if edges is None:
        return 0.0

    left, top, right, bottom = edges
    step = sample_step(right - left, bottom - top)
    pixels = image[top:bottom:step, left:right:step].reshape(-1, 3).astype(np.float32)
    squared = ((pixels - pixels.mean(axis=0)) ** 2).sum(axis=1)
    return clamp_unit(1.0 - float(np.sqrt(squared.mean())) / 255.0)


class LayoutPatternDetector(Detector):
    """Recognises button, text and image layouts from region geometry and colour.

    Each pattern is checked independently, so one region can yield up to
    three detections. Confidence is the measurement that triggered it.
    """

    name = "layout"

    def detect(self, image: np.ndarray, region: BoundingBox) -> list[DetectedObject]:
        height, width = image.shape[:2]
        box = region.clamp(width, height)
        if box.is_empty:
            return []

        aspect = box.aspect_ratio
        results: list[DetectedObject] = []

        # Buttons: wide, mid-sized and flat coloured
        if 1.5 <= aspect <= 4 and 2000 <= box.area <= 50000:
            uniformity = rms_color_uniformity(image, box)
            if uniformity > 0.7:
                results.append(self._make(box, ObjectType.BUTTON, uniformity, "button_pattern"))

        # Text lines: wide with strong contrast
        if aspect > 2:
            contrast = region_contrast(image, box)
            if contrast > 0.4:
                results.append(self._make(box, ObjectType.TEXT, contrast, "text_pattern"))

        variation = color_variance(image, box)
        if variation > 0.6 and 0.5 <= aspect <= 2:
            results.append(self._make(box, ObjectType.IMAGE, variation, "image_pattern"))

        logger.debug(f"Layout analysis found {len(results)} patterns")
        return results

    def _make(
        self, box: BoundingBox, object_type: ObjectType, confidence: float, label: str
    ) -> DetectedObject:
        return DetectedObject(box, object_type, confidence, label=label, source=self.name)
