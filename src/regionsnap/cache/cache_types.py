"""Data types for analysis caching.

Provides type definitions for cache keys, cached entries and statistics.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..model import DetectedObject

T = TypeVar("T")


@dataclass(frozen=True)
class CacheKey:
    """Identity of a memoized detector call."""

    detector_tag: str
    """Tag of the detector (or ``"fused"`` for the engine result)."""

    image_hash: str
    """Sampled content hash of the analysed image."""

    region_hash: str
    """Hash of the rounded region edges."""

    def __str__(self) -> str:
        return f"{self.detector_tag}:{self.image_hash}:{self.region_hash}"


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with its creation time."""

    value: T
    """The cached value."""

    timestamp: float
    """Clock reading when this entry was created."""

    confidence: float = 0.0
    """Mean confidence of the cached detections (0 when empty or not applicable)."""

    size_bytes: int = 0
    """Approximate size, used by byte-bounded stores."""

    hit_count: int = 0
    """Number of times this entry has been returned."""

    def age(self, now: float) -> float:
        return now - self.timestamp

    @staticmethod
    def mean_confidence(objects: list[DetectedObject]) -> float:
        if not objects:
            return 0.0
        return sum(obj.confidence for obj in objects) / len(objects)


@dataclass
class ImageMetadata:
    """Cheap global statistics of an image."""

    width: int
    height: int
    average_color: tuple[float, float, float]
    complexity: float
    """Mean colour distance between diagonal sample neighbours, over 255."""

    dominant_colors: list[tuple[int, int, int]] = field(default_factory=list)
    """Most frequent colours after quantising each channel to multiples of 32."""

    timestamp: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "width": self.width,
            "height": self.height,
            "average_color": list(self.average_color),
            "complexity": self.complexity,
            "dominant_colors": [list(c) for c in self.dominant_colors],
            "timestamp": self.timestamp,
        }


@dataclass
class CacheStats:
    """Statistics about cache usage."""

    total_entries: int
    """Total number of entries across all stores."""

    hits: int
    """Total cache hits since startup."""

    misses: int
    """Total cache misses since startup."""

    evictions: int
    """Entries removed by expiry or LRU overflow."""

    size_bytes: int
    """Bytes held by the processed-image store."""

    average_confidence: float = 0.0
    """Mean stored confidence over cached analysis results."""

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_entries": self.total_entries,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size_bytes": self.size_bytes,
            "average_confidence": self.average_confidence,
            "hit_rate": self.hit_rate,
        }
