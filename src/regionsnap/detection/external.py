"""Adapters for external recognisers such as OCR engines and classifiers.

A backend only has to look at a cropped image and report crop-local boxes.
``ExternalDetector.detect`` handles cropping, translating boxes back into
the full image, clamping, confidence filtering and error wrapping.
"""

from abc import abstractmethod
from dataclasses import dataclass

import numpy as np

from ..config import get_settings
from ..exceptions import DetectorError
from ..metrics import clamped_edges
from ..model import BoundingBox, DetectedObject, ObjectType, clamp_unit
from .base import Detector

# first matching group wins
_LABEL_KEYWORDS: list[tuple[ObjectType, tuple[str, ...]]] = [
    (ObjectType.FACE, ("person", "face", "human")),
    (ObjectType.TEXT, ("book", "paper", "document", "text")),
    (ObjectType.BUTTON, ("phone", "computer", "screen", "monitor", "button")),
    (ObjectType.IMAGE, ("picture", "photo", "image", "painting")),
    (ObjectType.ICON, ("icon", "symbol", "logo", "sign")),
]


def label_to_object_type(label: str | None) -> ObjectType:
    """Map a free-form classifier label to an object type by keyword."""
    if not label:
        return ObjectType.OBJECT

    lowered = label.lower()
    for object_type, keywords in _LABEL_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return object_type
    return ObjectType.OBJECT


def score_text(text: str) -> float:
    """Heuristic confidence that recognised text is real text rather than noise."""
    length = len(text)
    specials = sum(1 for c in text if not c.isalnum() and not c.isspace())

    confidence = 0.5
    if 3 <= length <= 100:
        confidence += 0.2
    if len(text.split()) >= 2:
        confidence += 0.1
    if any(c.isalpha() for c in text) and any(c.isdigit() for c in text):
        confidence += 0.1
    if specials > length // 3:
        confidence -= 0.2
    if length < 2 or length > 200:
        confidence -= 0.2

    return clamp_unit(confidence)


@dataclass
class RawDetection:
    """A backend result in crop-local pixel coordinates."""

    x: float
    y: float
    width: float
    height: float
    confidence: float | None = None
    label: str | None = None
    object_type: ObjectType | None = None


class ExternalDetector(Detector):
    """Base class for detectors backed by an external recogniser.

    Subclasses implement ``detect_in_crop``. Any exception it raises is
    reported as a DetectorError; no partial results are returned.

    Attributes:
        min_confidence: Detections below this confidence are dropped.
            Defaults to the settings field named by ``min_confidence_setting``.
    """

    name = "external"
    default_min_confidence = 0.5
    min_confidence_setting: str | None = None

    def __init__(self, min_confidence: float | None = None) -> None:
        if min_confidence is None:
            min_confidence = self.default_min_confidence
            if self.min_confidence_setting:
                min_confidence = getattr(get_settings(), self.min_confidence_setting)
        self.min_confidence = min_confidence

    @abstractmethod
    def detect_in_crop(self, crop: np.ndarray) -> list[RawDetection]:
        """Run the backend on the cropped region.

        Args:
            crop: The clamped region of interest as an RGB array

        Returns:
            Detections relative to the crop's top-left corner
        """
        pass

    def resolve_type(self, raw: RawDetection) -> ObjectType:
        return raw.object_type or label_to_object_type(raw.label)

    def resolve_confidence(self, raw: RawDetection) -> float:
        return raw.confidence if raw.confidence is not None else 0.0

    def detect(self, image: np.ndarray, region: BoundingBox) -> list[DetectedObject]:
        edges = clamped_edges(image, region)
        if edges is None:
            return []

        left, top, right, bottom = edges
        crop = image[top:bottom, left:right]

        try:
            raw_detections = self.detect_in_crop(crop)
        except DetectorError:
            raise
        except Exception as e:
            raise DetectorError(self.name, str(e)) from e

        height, width = image.shape[:2]
        results = []
        for raw in raw_detections:
            bounds = BoundingBox(raw.x + left, raw.y + top, raw.width, raw.height).clamp(
                width, height
            )
            confidence = self.resolve_confidence(raw)
            if bounds.is_empty or confidence < self.min_confidence:
                continue

            results.append(
                DetectedObject(
                    bounds=bounds,
                    object_type=self.resolve_type(raw),
                    confidence=confidence,
                    label=raw.label,
                    source=self.name,
                )
            )
        return results


class TextDetector(ExternalDetector):
    """OCR-style collaborator. Results are always TEXT.

    Backends that report no confidence get one from ``score_text``.
    """

    name = "text"
    default_min_confidence = 0.7
    min_confidence_setting = "text_min_confidence"

    def resolve_type(self, raw: RawDetection) -> ObjectType:
        return ObjectType.TEXT

    def resolve_confidence(self, raw: RawDetection) -> float:
        if raw.confidence is not None:
            return raw.confidence
        return score_text(raw.label or "")


class ClassifierDetector(ExternalDetector):
    """Generic object classifier collaborator; labels map to object types."""

    name = "classifier"
    default_min_confidence = 0.5
    min_confidence_setting = "classifier_min_confidence"
