"""Content-addressed memoization of detector results.

Detector output is keyed by the detector tag, a sampled hash of the image
and a hash of the region. Processed image planes and whole-image metadata
live in their own stores with their own limits and lifetimes. A background
thread periodically sweeps expired entries out of all three stores.
"""

import threading
import time
from collections.abc import Callable

import numpy as np

from ..config import RegionSnapSettings, get_settings
from ..logging import get_logger
from ..model import BoundingBox, DetectedObject
from .cache_types import CacheEntry, CacheKey, CacheStats, ImageMetadata
from .hashing import image_content_hash, region_hash
from .lru_store import Clock, LRUStore

logger = get_logger(__name__)


class AnalysisCache:
    """Memoization service shared by the detectors of one engine.

    Failed computations are never stored: ``memoize`` lets the exception
    propagate and leaves the cache untouched, so the next call retries.
    There is no single-flight guarantee; concurrent misses on the same key
    both compute and the last write wins.

    Attributes:
        sweep_interval: Seconds between background sweeps.
    """

    def __init__(
        self,
        settings: RegionSnapSettings | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the cache stores from settings.

        Args:
            settings: Cache limits and lifetimes. Uses global settings if omitted.
            clock: Time source for entry ages, injectable for tests.
        """
        settings = settings or get_settings()
        self.sweep_interval = settings.sweep_interval_seconds

        self._analysis: LRUStore[CacheKey, list[DetectedObject]] = LRUStore(
            "analysis",
            max_entries=settings.analysis_cache_size,
            ttl_seconds=settings.analysis_ttl_seconds,
            clock=clock,
        )
        self._images: LRUStore[str, np.ndarray] = LRUStore(
            "processed_image",
            max_bytes=settings.image_cache_max_bytes,
            ttl_seconds=settings.image_ttl_seconds,
            clock=clock,
            sizeof=lambda array: int(array.nbytes),
        )
        self._metadata: LRUStore[str, ImageMetadata] = LRUStore(
            "metadata",
            max_entries=settings.metadata_cache_size,
            ttl_seconds=settings.metadata_ttl_seconds,
            clock=clock,
        )

        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None
        self._sweeper_lock = threading.Lock()

    # Keys

    @staticmethod
    def make_key(detector_tag: str, image: np.ndarray, region: BoundingBox) -> CacheKey:
        return CacheKey(detector_tag, image_content_hash(image), region_hash(region))

    # Detection results

    def get(self, key: CacheKey) -> list[DetectedObject] | None:
        """Cached detections for ``key``, or None on a miss or expiry."""
        objects = self._analysis.get(key)
        if objects is None:
            return None
        logger.debug("cache_hit", detector=key.detector_tag, count=len(objects))
        return list(objects)

    def put(self, key: CacheKey, objects: list[DetectedObject]) -> None:
        self._analysis.put(key, list(objects), confidence=CacheEntry.mean_confidence(objects))
        logger.debug("cache_stored", detector=key.detector_tag, count=len(objects))

    def memoize(
        self,
        detector_tag: str,
        image: np.ndarray,
        region: BoundingBox,
        compute: Callable[[], list[DetectedObject]],
    ) -> list[DetectedObject]:
        """Return cached detections or compute and store them.

        Args:
            detector_tag: Tag identifying the computation.
            image: Image being analysed.
            region: Region being analysed.
            compute: Produces the detections on a miss.

        Returns:
            The detections.

        Raises:
            Exception: Whatever ``compute`` raises; nothing is cached then.
        """
        key = self.make_key(detector_tag, image, region)
        cached = self.get(key)
        if cached is not None:
            return cached

        objects = compute()
        self.put(key, objects)
        return list(objects)

    # Processed images

    @staticmethod
    def _image_key(process_type: str, image: np.ndarray, region: BoundingBox | None) -> str:
        key = f"{process_type}:{image_content_hash(image)}"
        if region is not None:
            key += f":{region_hash(region)}"
        return key

    def get_processed_image(
        self, process_type: str, image: np.ndarray, region: BoundingBox | None = None
    ) -> np.ndarray | None:
        return self._images.get(self._image_key(process_type, image, region))

    def put_processed_image(
        self,
        process_type: str,
        image: np.ndarray,
        processed: np.ndarray,
        region: BoundingBox | None = None,
    ) -> bool:
        """Store a derived image; returns False if it is too large to cache."""
        return self._images.put(self._image_key(process_type, image, region), processed)

    def memoize_image(
        self,
        process_type: str,
        image: np.ndarray,
        region: BoundingBox | None,
        compute: Callable[[], np.ndarray],
    ) -> np.ndarray:
        cached = self.get_processed_image(process_type, image, region)
        if cached is not None:
            return cached

        processed = compute()
        self.put_processed_image(process_type, image, processed, region)
        return processed

    # Metadata

    def get_metadata(self, image: np.ndarray) -> ImageMetadata | None:
        return self._metadata.get(image_content_hash(image))

    def put_metadata(self, image: np.ndarray, metadata: ImageMetadata) -> None:
        self._metadata.put(image_content_hash(image), metadata)

    def memoize_metadata(
        self, image: np.ndarray, compute: Callable[[np.ndarray], ImageMetadata]
    ) -> ImageMetadata:
        cached = self.get_metadata(image)
        if cached is not None:
            return cached

        metadata = compute(image)
        self.put_metadata(image, metadata)
        return metadata

    # Maintenance

    def _stores(self) -> tuple[LRUStore, ...]:
        return (self._analysis, self._images, self._metadata)

    def sweep_expired(self) -> int:
        """Remove expired entries from every store.

        Returns:
            Number of entries removed.
        """
        removed = sum(store.sweep_expired() for store in self._stores())
        if removed:
            logger.debug("cache_swept", removed=removed)
        return removed

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self.sweep_interval):
            try:
                self.sweep_expired()
            except Exception as e:
                logger.error("cache_sweep_failed", error=str(e))

    def start_sweeper(self) -> None:
        """Start the background sweep thread if it is not running."""
        with self._sweeper_lock:
            if self._sweeper is not None and self._sweeper.is_alive():
                return

            self._stop_event.clear()
            self._sweeper = threading.Thread(
                target=self._sweep_loop, name="regionsnap-cache-sweeper", daemon=True
            )
            self._sweeper.start()
            logger.debug("cache_sweeper_started", interval=self.sweep_interval)

    def stop_sweeper(self, timeout: float | None = 5.0) -> None:
        """Stop the background sweep thread and wait for it to exit."""
        with self._sweeper_lock:
            sweeper = self._sweeper
            self._sweeper = None
            self._stop_event.set()

        if sweeper is not None:
            sweeper.join(timeout)
            logger.debug("cache_sweeper_stopped")

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def clear(self) -> None:
        for store in self._stores():
            store.clear()

    def shutdown(self) -> None:
        """Stop the sweeper and drop all entries. Safe to call twice."""
        self.stop_sweeper()
        self.clear()

    def stats(self) -> CacheStats:
        stores = self._stores()
        entries = self._analysis.entries()
        average = sum(e.confidence for e in entries) / len(entries) if entries else 0.0
        return CacheStats(
            total_entries=sum(len(store) for store in stores),
            hits=sum(store.hits for store in stores),
            misses=sum(store.misses for store in stores),
            evictions=sum(store.evictions for store in stores),
            size_bytes=self._images.size_bytes,
            average_confidence=average,
        )

    def __enter__(self) -> "AnalysisCache":
        self.start_sweeper()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
