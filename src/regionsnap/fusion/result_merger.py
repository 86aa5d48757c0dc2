"""
Result fusion for region detection.

Deduplicates detections coming from several detectors using IoU and
ranks the survivors by how well they match the user's selection.
"""

import logging
from dataclasses import dataclass

from ..model import BoundingBox, DetectedObject, ObjectType, clamp_unit

logger = logging.getLogger(__name__)

TYPE_WEIGHTS: dict[ObjectType, float] = {
    ObjectType.TEXT: 1.0,
    ObjectType.BUTTON: 0.9,
    ObjectType.IMAGE: 0.8,
    ObjectType.FACE: 0.7,
    ObjectType.ICON: 0.6,
    ObjectType.OBJECT: 0.5,
    ObjectType.SHAPE: 0.4,
    ObjectType.UNKNOWN: 0.1,
}

PROXIMITY_WEIGHT = 0.4
CONFIDENCE_WEIGHT = 0.3
TYPE_WEIGHT = 0.3


@dataclass
class FusionConfig:
    """Configuration for result fusion."""

    iou_threshold: float = 0.5
    max_candidates: int | None = None


def proximity(bounds: BoundingBox, user_bounds: BoundingBox) -> float:
    """1 at the center of the selection, falling to 0 one diagonal away."""
    diagonal = user_bounds.diagonal
    if diagonal <= 0:
        return 0.0
    return 1.0 - clamp_unit(bounds.distance_to(user_bounds) / diagonal)


def selection_score(candidate: DetectedObject, user_bounds: BoundingBox) -> float:
    """Weighted blend of proximity, confidence and object-type preference."""
    return (
        PROXIMITY_WEIGHT * proximity(candidate.bounds, user_bounds)
        + CONFIDENCE_WEIGHT * candidate.confidence
        + TYPE_WEIGHT * TYPE_WEIGHTS[candidate.object_type]
    )


class ResultMerger:
    """
    Merge and rank detections from multiple detectors.

    Uses Intersection over Union (IoU) to identify overlapping detections,
    then orders the survivors by proximity to the selection times confidence.
    """

    def __init__(self, config: FusionConfig | None = None) -> None:
        """
        Initialize the result merger.

        Args:
            config: Fusion configuration. Uses defaults if not provided.
        """
        self.config = config or FusionConfig()

    def merge(self, candidates: list[DetectedObject], user_bounds: BoundingBox) -> list[DetectedObject]:
        """Deduplicate, then rank against ``user_bounds``."""
        deduplicated = self.deduplicate(candidates)
        ranked = self.rank(deduplicated, user_bounds)
        if self.config.max_candidates is not None:
            ranked = ranked[: self.config.max_candidates]

        logger.debug(f"Merged {len(candidates)} detections into {len(ranked)}")
        return ranked

    def deduplicate(self, candidates: list[DetectedObject]) -> list[DetectedObject]:
        """
        Remove overlapping detections using IoU.

        Candidates are visited in descending confidence. One that overlaps an
        accepted detection above the IoU threshold replaces it only when it is
        strictly more confident; otherwise it is dropped.
        """
        kept: list[DetectedObject] = []

        for candidate in sorted(candidates, key=lambda c: c.confidence, reverse=True):
            duplicate = False
            for idx, accepted in enumerate(kept):
                if candidate.bounds.iou(accepted.bounds) > self.config.iou_threshold:
                    if candidate.confidence > accepted.confidence:
                        kept[idx] = candidate
                    duplicate = True
                    break

            if not duplicate:
                kept.append(candidate)

        return kept

    @staticmethod
    def rank(candidates: list[DetectedObject], user_bounds: BoundingBox) -> list[DetectedObject]:
        return sorted(
            candidates,
            key=lambda c: proximity(c.bounds, user_bounds) * c.confidence,
            reverse=True,
        )

    @staticmethod
    def select_best(
        candidates: list[DetectedObject], user_bounds: BoundingBox
    ) -> DetectedObject | None:
        if not candidates:
            return None
        return max(candidates, key=lambda c: selection_score(c, user_bounds))
