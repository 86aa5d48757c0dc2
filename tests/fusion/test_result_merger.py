"""Tests for ResultMerger and the selection score."""

import pytest

from regionsnap.fusion import FusionConfig, ResultMerger, proximity, selection_score
from regionsnap.model import BoundingBox, ObjectType


@pytest.fixture
def merger():
    return ResultMerger()


@pytest.fixture
def user_bounds():
    return BoundingBox(0, 0, 100, 100)


class TestDeduplicate:
    """Tests for IoU deduplication."""

    def test_keeps_more_confident_duplicate(self, merger, make_object):
        weak = make_object(0, 0, 10, 10, confidence=0.6, source="shape")
        strong = make_object(1, 0, 10, 10, confidence=0.9, source="segmentation")

        assert merger.deduplicate([weak, strong]) == [strong]

    def test_keeps_separate_objects(self, merger, make_object):
        a = make_object(0, 0, 10, 10)
        b = make_object(50, 50, 10, 10)

        assert len(merger.deduplicate([a, b])) == 2

    def test_equal_confidence_keeps_first(self, merger, make_object):
        first = make_object(0, 0, 10, 10, confidence=0.7, label="first")
        second = make_object(0, 0, 10, 10, confidence=0.7, label="second")

        assert merger.deduplicate([first, second]) == [first]

    def test_threshold_is_exclusive(self, make_object):
        merger = ResultMerger(FusionConfig(iou_threshold=1 / 3))
        a = make_object(0, 0, 10, 10)
        b = make_object(5, 0, 10, 10)

        # IoU is exactly 1/3
        assert len(merger.deduplicate([a, b])) == 2

    def test_no_survivors_overlap(self, merger, make_object):
        candidates = [
            make_object(x, 0, 20, 20, confidence=0.1 * (x % 7 + 1)) for x in range(0, 60, 3)
        ]

        kept = merger.deduplicate(candidates)

        for i, a in enumerate(kept):
            for b in kept[i + 1 :]:
                assert a.bounds.iou(b.bounds) <= 0.5


class TestRanking:
    """Tests for ranking and best-object selection."""

    def test_proximity(self, user_bounds):
        assert proximity(BoundingBox(40, 40, 20, 20), user_bounds) == pytest.approx(1.0)
        assert proximity(BoundingBox(90, 90, 10, 10), user_bounds) == pytest.approx(0.55)
        assert proximity(BoundingBox(500, 500, 10, 10), user_bounds) == 0.0

    def test_proximity_of_degenerate_selection(self):
        assert proximity(BoundingBox(0, 0, 5, 5), BoundingBox(10, 10, 0, 0)) == 0.0

    def test_rank_by_proximity_times_confidence(self, merger, user_bounds, make_object):
        centered = make_object(45, 45, 10, 10, confidence=0.5)
        corner = make_object(90, 90, 10, 10, confidence=0.95)

        # 1.0 * 0.5 against 0.55 * 0.95
        assert merger.rank([centered, corner], user_bounds) == [corner, centered]

    def test_merge_caps_results(self, user_bounds, make_object):
        merger = ResultMerger(FusionConfig(max_candidates=1))
        objects = [make_object(0, 0, 10, 10), make_object(45, 45, 10, 10)]

        assert merger.merge(objects, user_bounds) == [objects[1]]

    def test_best_object_favours_proximity(self, merger, user_bounds, make_object):
        far = make_object(90, 90, 10, 10, confidence=0.9)
        centered = make_object(45, 45, 10, 10, confidence=0.5)

        assert selection_score(far, user_bounds) == pytest.approx(0.4 * 0.55 + 0.3 * 0.9 + 0.15)
        assert selection_score(centered, user_bounds) == pytest.approx(0.4 + 0.3 * 0.5 + 0.15)
        assert merger.select_best([far, centered], user_bounds) is centered

    def test_best_object_weighs_type(self, merger, user_bounds, make_object):
        unknown = make_object(45, 45, 10, 10, confidence=0.6, object_type=ObjectType.UNKNOWN)
        text = make_object(45, 45, 10, 10, confidence=0.6, object_type=ObjectType.TEXT)

        assert merger.select_best([unknown, text], user_bounds) is text

    def test_best_of_nothing(self, merger, user_bounds):
        assert merger.select_best([], user_bounds) is None
