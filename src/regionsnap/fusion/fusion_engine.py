"""
Region analysis orchestration.

Runs every configured detector over the user's selection, memoizing each
detector's output, then deduplicates and ranks the combined detections.
"""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import numpy as np

from ..cache import AnalysisCache, CacheStats, ImageMetadata
from ..config import RegionSnapSettings, get_settings
from ..detection import Detector, LayoutPatternDetector, ShapeDetector
from ..logging import PerformanceLogger, get_logger
from ..metrics import compute_image_metadata
from ..model import BoundingBox, DetectedObject, ImageInput, as_rgb_array
from ..segmentation import SegmentationEngine
from .result_merger import FusionConfig, ResultMerger

logger = get_logger(__name__)

FUSED_TAG = "fused"

Point = tuple[float, float]


@dataclass
class AnalysisProgress:
    """Progress update emitted while a region is analysed."""

    phase: str
    """``cache``, a detector tag, ``fusion`` or ``done``."""

    progress: float
    """Fraction of the analysis completed (0.0-1.0)."""

    message: str | None = None


ProgressCallback = Callable[[AnalysisProgress], None]


class FusionEngine:
    """
    Multi-detector region analysis.

    Each detector call is guarded: an exception from one detector is logged
    and contributes no detections, so ``analyze_region`` never raises because
    of a detector. Results of failed detectors are never cached.

    Example:
        with FusionEngine.create() as engine:
            objects = engine.analyze_region_sync(image, [(10, 10), (120, 60)])
            best = engine.select_best_object(objects, BoundingBox(10, 10, 110, 50))
    """

    def __init__(
        self,
        detectors: Iterable[Detector],
        cache: AnalysisCache | None = None,
        settings: RegionSnapSettings | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            detectors: Detectors to run, in reporting order.
            cache: Memoization service. Detectors run uncached if omitted.
            settings: Engine settings. Uses global settings if omitted.
        """
        self.settings = settings or get_settings()
        self.detectors = list(detectors)
        self.cache = cache
        self.merger = ResultMerger(FusionConfig(iou_threshold=self.settings.fusion_iou_threshold))
        self.performance = PerformanceLogger(logger)
        self._closed = False

    @classmethod
    def create(
        cls,
        settings: RegionSnapSettings | None = None,
        external_detectors: Iterable[Detector] | None = None,
        cache: AnalysisCache | None = None,
        start_sweeper: bool = True,
    ) -> "FusionEngine":
        """
        Build an engine with the built-in detectors enabled in settings.

        External detectors (text recognisers first, then classifiers) run
        before the built-in shape and segmentation detectors.
        """
        settings = settings or get_settings()
        if cache is None and settings.enable_cache:
            cache = AnalysisCache(settings)

        detectors: list[Detector] = list(external_detectors or [])
        if settings.enable_shape_detector:
            detectors.append(ShapeDetector())
        if settings.enable_segmentation:
            detectors.append(SegmentationEngine(settings, cache))
        if settings.enable_layout_patterns:
            detectors.append(LayoutPatternDetector())

        if cache is not None and start_sweeper:
            cache.start_sweeper()

        return cls(detectors, cache, settings)

    async def analyze_region(
        self,
        image: ImageInput,
        user_points: Iterable[Point],
        on_progress: ProgressCallback | None = None,
    ) -> list[DetectedObject]:
        """
        Propose objects inside the area the user outlined.

        Args:
            image: Image to analyse.
            user_points: Points of the user's gesture; only their bounding
                box is used.
            on_progress: Optional callback receiving progress updates.

        Returns:
            Deduplicated detections ranked by proximity times confidence.

        Raises:
            InvalidImageException: If ``image`` cannot be read.
        """
        array = as_rgb_array(image)
        height, width = array.shape[:2]
        user_bounds = BoundingBox.from_points(user_points).clamp(width, height)
        if user_bounds.is_empty:
            return []

        def report(phase: str, progress: float, message: str | None = None) -> None:
            if on_progress:
                on_progress(AnalysisProgress(phase, progress, message))

        report("cache", 0.0, "Checking cache")
        fused_key = None
        if self.cache is not None:
            fused_key = self.cache.make_key(FUSED_TAG, array, user_bounds)
            cached = self.cache.get(fused_key)
            if cached is not None:
                report("done", 1.0, "Served from cache")
                return cached

        outcomes = await self._run_detectors(array, user_bounds, report)

        report("fusion", 0.9, "Merging detections")
        candidates = [obj for objects, _ in outcomes for obj in objects]
        ranked = self.merger.merge(candidates, user_bounds)

        failed = [detector.name for detector, (_, ok) in zip(self.detectors, outcomes) if not ok]
        if self.cache is not None and fused_key is not None and not failed:
            self.cache.put(fused_key, ranked)

        logger.info(
            "region_analyzed",
            candidates=len(candidates),
            results=len(ranked),
            failed_detectors=failed,
        )
        report("done", 1.0, f"{len(ranked)} objects")
        return ranked

    def analyze_region_sync(
        self,
        image: ImageInput,
        user_points: Iterable[Point],
        on_progress: ProgressCallback | None = None,
    ) -> list[DetectedObject]:
        """Synchronous version of analyze_region."""
        return asyncio.run(self.analyze_region(image, user_points, on_progress))

    async def _run_detectors(
        self,
        image: np.ndarray,
        region: BoundingBox,
        report: Callable[[str, float, str | None], None],
    ) -> list[tuple[list[DetectedObject], bool]]:
        total = len(self.detectors)

        if self.settings.parallel_detectors:
            outcomes = await asyncio.gather(
                *(asyncio.to_thread(self._run_detector, d, image, region) for d in self.detectors)
            )
            for index, detector in enumerate(self.detectors):
                report(detector.name, 0.9 * (index + 1) / total, None)
            return list(outcomes)

        outcomes = []
        for index, detector in enumerate(self.detectors):
            report(detector.name, 0.9 * index / total, f"Running {detector.name}")
            outcomes.append(await asyncio.to_thread(self._run_detector, detector, image, region))
        return outcomes

    def _run_detector(
        self, detector: Detector, image: np.ndarray, region: BoundingBox
    ) -> tuple[list[DetectedObject], bool]:
        """Run one detector, returning its detections and whether it succeeded."""
        height, width = image.shape[:2]

        def compute() -> list[DetectedObject]:
            objects = []
            for obj in detector.detect(image, region):
                bounds = obj.bounds.clamp(width, height)
                if bounds.is_empty:
                    continue
                if bounds != obj.bounds:
                    obj = obj.with_bounds(bounds)
                if obj.source is None:
                    obj = obj.with_source(detector.name)
                objects.append(obj)
            return objects

        try:
            with self.performance.timed("detector", detector=detector.name):
                if self.cache is None:
                    return compute(), True
                return self.cache.memoize(detector.name, image, region, compute), True
        except Exception as e:
            logger.error("detector_failed", detector=detector.name, error=str(e))
            return [], False

    def select_best_object(
        self, candidates: list[DetectedObject], user_bounds: BoundingBox
    ) -> DetectedObject | None:
        """Pick the candidate with the best proximity, confidence and type blend."""
        return self.merger.select_best(candidates, user_bounds)

    def describe_image(self, image: ImageInput) -> ImageMetadata:
        """Global colour statistics of ``image``, cached separately from detections."""
        array = as_rgb_array(image)
        if self.cache is None:
            return compute_image_metadata(array)
        return self.cache.memoize_metadata(array, compute_image_metadata)

    def stats(self) -> CacheStats | None:
        return self.cache.stats() if self.cache is not None else None

    def shutdown(self) -> None:
        """Stop the cache sweeper and drop cached data. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        if self.cache is not None:
            self.cache.shutdown()
        logger.debug("engine_shutdown")

    def __enter__(self) -> "FusionEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
