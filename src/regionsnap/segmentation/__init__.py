"""Flood-fill colour segmentation."""

from .segment import OBJECT_TYPES, TYPE_WEIGHTS, Segment, SegmentType
from .segmentation_engine import SegmentationEngine

__all__ = [
    "Segment",
    "SegmentType",
    "SegmentationEngine",
    "OBJECT_TYPES",
    "TYPE_WEIGHTS",
]
