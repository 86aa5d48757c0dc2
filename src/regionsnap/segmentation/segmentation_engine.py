"""
Colour segmentation of a user-selected region.

The region is cut out of the image and split into flat-colour segments by
flood fill. Each segment is typed from its texture, an extra border segment
is synthesised from strong Sobel responses, overlapping segments are merged,
and the survivors are re-typed from their geometry before being reported as
detections in image coordinates.
"""

import logging
from collections import deque
from dataclasses import replace

import cv2
import numpy as np

from ..cache import AnalysisCache
from ..config import RegionSnapSettings, get_settings
from ..detection.base import Detector
from ..metrics import brightness_plane, clamped_edges
from ..model import BoundingBox, DetectedObject, clamp_unit
from .segment import OBJECT_TYPES, TYPE_WEIGHTS, Segment, SegmentType

logger = logging.getLogger(__name__)

UNIFORM_SPREAD = 20.0
SIZE_SCORE_PIXELS = 1000.0
TILE_SIZE = 20
EDGE_STRIDE = 3
EDGE_MAGNITUDE_THRESHOLD = 50.0
BORDER_CONFIDENCE = 0.8
BORDER_COLOR = (128.0, 128.0, 128.0)
MERGE_IOU_THRESHOLD = 0.6
BACKGROUND_AREA_FRACTION = 0.3


class SegmentationEngine(Detector):
    """Flood-fill based region segmenter.

    A failure while processing one segment is logged and that segment is
    skipped; ``segment_image`` always returns a (possibly empty) list.

    Attributes:
        similarity_threshold: Max RGB distance from the seed colour.
        min_segment_size: Segments with fewer pixels are discarded.
        max_segment_pixels: Pixel budget of a single segment.
        max_segments: Flood fill stops after this many kept segments.
        seed_step: Grid spacing of flood fill seeds.
    """

    name = "segmentation"

    def __init__(
        self,
        settings: RegionSnapSettings | None = None,
        cache: AnalysisCache | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.similarity_threshold = settings.segment_similarity_threshold
        self.min_segment_size = settings.min_segment_size
        self.max_segment_pixels = settings.max_segment_pixels
        self.max_segments = settings.max_segments
        self.seed_step = settings.seed_step
        self.cache = cache

    def detect(self, image: np.ndarray, region: BoundingBox) -> list[DetectedObject]:
        return self.segment_image(image, region)

    def segment_image(self, image: np.ndarray, region: BoundingBox) -> list[DetectedObject]:
        """Segment ``region`` and report the segments as detections.

        Args:
            image: RGB image
            region: User-selected region in image coordinates

        Returns:
            Detections in image coordinates, in merge order
        """
        edges = clamped_edges(image, region)
        if edges is None:
            return []

        left, top, right, bottom = edges
        sub = image[top:bottom, left:right]
        height, width = image.shape[:2]

        try:
            plane = self._brightness(image, BoundingBox.from_edges(left, top, right, bottom), sub)
            segments = self.flood_fill(sub)
            logger.debug(f"Flood fill produced {len(segments)} colour segments")

            typed = []
            for segment in segments:
                try:
                    typed.append(replace(segment, segment_type=self.classify_texture(plane, segment)))
                except Exception as e:
                    logger.warning(f"Skipping segment {segment.id} during texture analysis: {e}")

            border = self.detect_edges(plane, next_id=len(segments))
            if border is not None:
                typed.append(border)

            merged = self.merge_segments(typed)

            results = []
            for segment in merged:
                try:
                    results.append(self._to_detection(segment, sub, left, top, width, height))
                except Exception as e:
                    logger.warning(f"Skipping segment {segment.id} during classification: {e}")

        except Exception as e:
            logger.error(f"Segmentation failed: {e}")
            return []

        logger.debug(f"Segmentation complete: {len(results)} objects")
        return results

    def _brightness(self, image: np.ndarray, box: BoundingBox, sub: np.ndarray) -> np.ndarray:
        if self.cache is None:
            return brightness_plane(sub)
        return self.cache.memoize_image("brightness", image, box, lambda: brightness_plane(sub))

    # Stage 1: flood fill

    def flood_fill(self, sub: np.ndarray) -> list[Segment]:
        """Split ``sub`` into 4-connected groups of similar colour.

        Seeds are taken on a regular grid. A pixel is marked visited when it
        is absorbed, so it belongs to at most one segment.
        """
        height, width = sub.shape[:2]
        flat = sub.reshape(-1, 3)
        reds = flat[:, 0].tolist()
        greens = flat[:, 1].tolist()
        blues = flat[:, 2].tolist()
        visited = bytearray(width * height)
        limit = self.similarity_threshold**2

        segments: list[Segment] = []
        next_id = 0

        for y in range(0, height, self.seed_step):
            for x in range(0, width, self.seed_step):
                if len(segments) >= self.max_segments:
                    return segments

                seed = y * width + x
                if visited[seed]:
                    continue

                sr, sg, sb = reds[seed], greens[seed], blues[seed]
                visited[seed] = 1
                members = [seed]
                queue = deque([seed])

                while queue and len(members) < self.max_segment_pixels:
                    index = queue.popleft()
                    px = index % width
                    neighbours = []
                    if px + 1 < width:
                        neighbours.append(index + 1)
                    if px > 0:
                        neighbours.append(index - 1)
                    if index + width < width * height:
                        neighbours.append(index + width)
                    if index >= width:
                        neighbours.append(index - width)

                    for n in neighbours:
                        if visited[n]:
                            continue
                        dr = reds[n] - sr
                        dg = greens[n] - sg
                        db = blues[n] - sb
                        if dr * dr + dg * dg + db * db > limit:
                            continue
                        visited[n] = 1
                        members.append(n)
                        queue.append(n)
                        if len(members) >= self.max_segment_pixels:
                            break

                if len(members) < self.min_segment_size:
                    continue

                segments.append(self._build_segment(next_id, np.array(members), flat, width))
                next_id += 1

        return segments

    def _build_segment(
        self, segment_id: int, members: np.ndarray, flat: np.ndarray, width: int
    ) -> Segment:
        xs = members % width
        ys = members // width
        colors = flat[members].astype(np.float32)
        mean = colors.mean(axis=0)
        spread = float(np.sqrt(((colors - mean) ** 2).sum(axis=1).mean()))

        segment = Segment(
            id=segment_id,
            bounds=BoundingBox.from_edges(
                int(xs.min()), int(ys.min()), int(xs.max()) + 1, int(ys.max()) + 1
            ),
            pixels=members,
            average_color=(float(mean[0]), float(mean[1]), float(mean[2])),
            color_spread=spread,
        )
        segment.confidence = self.initial_confidence(segment)
        return segment

    @staticmethod
    def is_uniform(segment: Segment) -> bool:
        return segment.color_spread < UNIFORM_SPREAD

    def initial_confidence(self, segment: Segment) -> float:
        uniformity = 0.8 if self.is_uniform(segment) else 0.4
        size = clamp_unit(segment.pixel_count / SIZE_SCORE_PIXELS)
        return (uniformity + size) / 2

    # Stage 2: texture

    def classify_texture(self, plane: np.ndarray, segment: Segment) -> SegmentType:
        """Type a segment from the brightness spread of 20x20 tiles over its bounds."""
        height, width = plane.shape
        left, top, right, bottom = segment.bounds.to_int()

        deviations = [
            float(plane[ty : ty + TILE_SIZE, tx : tx + TILE_SIZE].std())
            for ty in range(top, bottom, TILE_SIZE)
            for tx in range(left, right, TILE_SIZE)
            if tx + TILE_SIZE < width and ty + TILE_SIZE < height
        ]
        if not deviations:
            return segment.segment_type

        average = float(np.mean(deviations))
        variance = float(np.var(deviations))
        segment.metadata.update(texture_average=average, texture_variance=variance)

        if average < 10 and variance < 5:
            return SegmentType.BACKGROUND
        if average > 50 and variance > 20:
            return SegmentType.IMAGE_REGION
        if 15 <= average <= 40:
            return SegmentType.TEXT_REGION
        return SegmentType.UI_ELEMENT

    # Stage 3: edges

    def detect_edges(self, plane: np.ndarray, next_id: int = 0) -> Segment | None:
        """One BORDER segment spanning every strong Sobel response, if any."""
        height, width = plane.shape
        if width < 3 or height < 3:
            return None

        gx = cv2.Sobel(plane, cv2.CV_32F, 1, 0, ksize=3)
        gy = cv2.Sobel(plane, cv2.CV_32F, 0, 1, ksize=3)
        magnitude = cv2.magnitude(gx, gy)

        rows = np.arange(1, height - 1, EDGE_STRIDE)
        cols = np.arange(1, width - 1, EDGE_STRIDE)
        strong = magnitude[np.ix_(rows, cols)] > EDGE_MAGNITUDE_THRESHOLD
        ri, ci = np.nonzero(strong)
        if ri.size == 0:
            return None

        ys, xs = rows[ri], cols[ci]
        return Segment(
            id=next_id,
            bounds=BoundingBox.from_edges(
                int(xs.min()), int(ys.min()), int(xs.max()) + 1, int(ys.max()) + 1
            ),
            pixels=ys * width + xs,
            average_color=BORDER_COLOR,
            segment_type=SegmentType.BORDER,
            confidence=BORDER_CONFIDENCE,
        )

    # Stage 4: merge

    def merge_segments(self, segments: list[Segment]) -> list[Segment]:
        """Keep the most confident of any segments overlapping by more than 0.6 IoU."""
        merged: list[Segment] = []
        for segment in sorted(segments, key=lambda s: s.confidence, reverse=True):
            if segment.pixel_count < self.min_segment_size:
                continue
            if any(segment.bounds.iou(kept.bounds) > MERGE_IOU_THRESHOLD for kept in merged):
                continue
            merged.append(segment)
        return merged

    # Stage 5: geometry refinement and output

    def refine_type(self, segment: Segment, sub_width: int, sub_height: int) -> SegmentType:
        aspect = segment.bounds.aspect_ratio
        area = segment.bounds.area
        uniform = self.is_uniform(segment)

        if area > sub_width * sub_height * BACKGROUND_AREA_FRACTION and uniform:
            return SegmentType.BACKGROUND
        if aspect > 3 and 1000 <= area <= 20000:
            return SegmentType.TEXT_REGION
        if 0.5 <= aspect <= 2 and 2000 <= area <= 50000:
            return SegmentType.UI_ELEMENT
        if not uniform and area > 5000:
            return SegmentType.IMAGE_REGION
        return segment.segment_type

    @staticmethod
    def final_confidence(segment: Segment, segment_type: SegmentType) -> float:
        return clamp_unit(segment.confidence * TYPE_WEIGHTS[segment_type])

    def _to_detection(
        self,
        segment: Segment,
        sub: np.ndarray,
        offset_x: int,
        offset_y: int,
        image_width: int,
        image_height: int,
    ) -> DetectedObject:
        segment_type = self.refine_type(segment, sub.shape[1], sub.shape[0])
        bounds = segment.bounds.translate(offset_x, offset_y).clamp(image_width, image_height)
        return DetectedObject(
            bounds=bounds,
            object_type=OBJECT_TYPES[segment_type],
            confidence=self.final_confidence(segment, segment_type),
            label=f"segment_{segment_type.value}",
            source=self.name,
        )
