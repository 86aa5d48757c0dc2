"""Core data types: rectangles, detections and image input."""

from .detection import DetectedObject, ObjectType, clamp_unit
from .geometry import BoundingBox
from .image import ImageInput, as_rgb_array, image_size

__all__ = [
    "BoundingBox",
    "DetectedObject",
    "ObjectType",
    "clamp_unit",
    "ImageInput",
    "as_rgb_array",
    "image_size",
]
