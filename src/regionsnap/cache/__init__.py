"""Analysis result caching.

Memoizes detector output by image content and region so repeated analysis
of the same selection is free.

Example:
    >>> from regionsnap.cache import AnalysisCache
    >>>
    >>> cache = AnalysisCache()
    >>> cache.start_sweeper()
    >>> objects = cache.memoize("shape", image, region, lambda: detector.detect(image, region))
    >>> cache.shutdown()
"""

from .analysis_cache import AnalysisCache
from .cache_types import CacheEntry, CacheKey, CacheStats, ImageMetadata
from .hashing import image_content_hash, region_hash
from .lru_store import LRUStore

__all__ = [
    "AnalysisCache",
    "LRUStore",
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "ImageMetadata",
    "image_content_hash",
    "region_hash",
]
