"""regionsnap - snap a rough selection on an image to the objects inside it.

Heuristic detectors (shape classification and colour segmentation) and
optional external recognisers propose candidate objects for a user-drawn
region; the fusion engine deduplicates and ranks them and memoizes the
results by image content.

Example:
    >>> from regionsnap import FusionEngine
    >>>
    >>> with FusionEngine.create() as engine:
    ...     objects = engine.analyze_region_sync("screenshot.png", [(40, 30), (220, 90)])
"""

__version__ = "0.1.0"

from .cache import AnalysisCache
from .config import RegionSnapSettings, get_settings
from .detection import (
    ClassifierDetector,
    Detector,
    ExternalDetector,
    LayoutPatternDetector,
    RawDetection,
    ShapeDetector,
    TextDetector,
)
from .exceptions import (
    DetectorError,
    InvalidImageException,
    RegionSnapException,
)
from .fusion import AnalysisProgress, FusionEngine
from .model import BoundingBox, DetectedObject, ObjectType
from .segmentation import SegmentationEngine

__all__ = [
    "__version__",
    "FusionEngine",
    "AnalysisProgress",
    "AnalysisCache",
    "RegionSnapSettings",
    "get_settings",
    "Detector",
    "ExternalDetector",
    "TextDetector",
    "ClassifierDetector",
    "RawDetection",
    "ShapeDetector",
    "LayoutPatternDetector",
    "SegmentationEngine",
    "BoundingBox",
    "DetectedObject",
    "ObjectType",
    "RegionSnapException",
    "DetectorError",
    "InvalidImageException",
]
