"""Detectors that propose objects inside a region."""

from .base import Detector
from .external import (
    ClassifierDetector,
    ExternalDetector,
    RawDetection,
    TextDetector,
    label_to_object_type,
    score_text,
)
from .layout_detector import LayoutPatternDetector
from .shape_detector import ShapeDetector, classify_by_features, shape_confidence

__all__ = [
    "Detector",
    "ExternalDetector",
    "TextDetector",
    "ClassifierDetector",
    "RawDetection",
    "label_to_object_type",
    "score_text",
    "ShapeDetector",
    "classify_by_features",
    "shape_confidence",
    "LayoutPatternDetector",
]
