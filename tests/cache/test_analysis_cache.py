"""Tests for AnalysisCache and the content hashes behind its keys."""

import time

import numpy as np
import pytest

from regionsnap.cache import AnalysisCache, CacheKey, image_content_hash, region_hash
from regionsnap.config import RegionSnapSettings
from regionsnap.metrics import compute_image_metadata
from regionsnap.model import BoundingBox, ObjectType


@pytest.fixture
def cache_settings():
    return RegionSnapSettings(
        analysis_cache_size=2,
        analysis_ttl_seconds=60,
        image_cache_max_bytes=1000,
        image_ttl_seconds=60,
        metadata_ttl_seconds=120,
        sweep_interval_seconds=0.01,
    )


@pytest.fixture
def cache(cache_settings, fake_clock):
    cache = AnalysisCache(cache_settings, clock=fake_clock)
    yield cache
    cache.shutdown()


@pytest.fixture
def image():
    rng = np.random.default_rng(3)
    return rng.integers(0, 256, (50, 80, 3), dtype=np.uint8)


@pytest.fixture
def region():
    return BoundingBox(5, 5, 30, 20)


class Counter:
    """Compute function that records how often it ran."""

    def __init__(self, result):
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.result


class TestContentHash:
    """Tests for the sampled image hash."""

    def test_same_content_same_hash(self, image):
        assert image_content_hash(image) == image_content_hash(image.copy())

    def test_size_is_part_of_hash(self):
        a = np.zeros((10, 20, 3), dtype=np.uint8)
        b = np.zeros((20, 10, 3), dtype=np.uint8)

        assert image_content_hash(a) != image_content_hash(b)

    def test_sampled_pixel_changes_hash(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        changed = image.copy()
        changed[0, 0] = 255

        assert image_content_hash(image) != image_content_hash(changed)

    def test_unsampled_pixel_does_not_change_hash(self):
        """Known limitation: only a coarse grid of pixels is read."""
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        changed = image.copy()
        changed[1, 1] = 255

        assert image_content_hash(image) == image_content_hash(changed)

    def test_tall_narrow_image_copies_only_sampled_pixels(self, monkeypatch):
        image = np.zeros((10000, 4, 3), dtype=np.uint8)
        copied = []
        contiguous = np.ascontiguousarray

        def spy(array, *args, **kwargs):
            copied.append(array.size)
            return contiguous(array, *args, **kwargs)

        monkeypatch.setattr(np, "ascontiguousarray", spy)
        digest = image_content_hash(image)

        assert copied == [100 * 3]
        changed = image.copy()
        changed[500, 0] = 255
        assert image_content_hash(changed) == digest
        changed[99, 0] = 255
        assert image_content_hash(changed) != digest

    def test_region_hash_uses_rounded_edges(self):
        assert region_hash(BoundingBox(10.2, 5, 20, 20)) == region_hash(BoundingBox(10, 5, 20, 20))
        assert region_hash(BoundingBox(11, 5, 20, 20)) != region_hash(BoundingBox(10, 5, 20, 20))


class TestAnalysisResults:
    """Tests for memoized detector output."""

    def test_make_key(self, cache, image, region):
        key = cache.make_key("shape", image, region)

        assert key == CacheKey("shape", image_content_hash(image), region_hash(region))
        assert str(key).startswith("shape:")

    def test_memoize_computes_once(self, cache, image, region, make_object):
        compute = Counter([make_object(confidence=0.8)])

        first = cache.memoize("shape", image, region, compute)
        second = cache.memoize("shape", image, region, compute)

        assert compute.calls == 1
        assert first == second

    def test_empty_result_is_cached(self, cache, image, region):
        compute = Counter([])

        cache.memoize("shape", image, region, compute)
        cache.memoize("shape", image, region, compute)

        assert compute.calls == 1

    def test_keys_differ_by_tag_and_region(self, cache, image, region):
        compute = Counter([])

        cache.memoize("shape", image, region, compute)
        cache.memoize("segmentation", image, region, compute)
        cache.memoize("shape", image, region.translate(3, 0), compute)

        assert compute.calls == 3

    def test_failed_computation_is_not_cached(self, cache, image, region, make_object):
        def broken():
            raise ValueError("detector crashed")

        with pytest.raises(ValueError):
            cache.memoize("shape", image, region, broken)

        compute = Counter([make_object()])
        assert cache.memoize("shape", image, region, compute) == [make_object()]
        assert compute.calls == 1

    def test_entry_expires(self, cache, image, region, fake_clock):
        compute = Counter([])
        cache.memoize("shape", image, region, compute)

        fake_clock.advance(59)
        cache.memoize("shape", image, region, compute)
        assert compute.calls == 1

        fake_clock.advance(1)
        cache.memoize("shape", image, region, compute)
        assert compute.calls == 2

    def test_returned_list_is_a_copy(self, cache, image, region, make_object):
        key = cache.make_key("shape", image, region)
        cache.put(key, [make_object()])

        cache.get(key).clear()

        assert len(cache.get(key)) == 1

    def test_capacity_evicts_oldest(self, cache, image):
        for x in range(3):
            cache.put(cache.make_key("shape", image, BoundingBox(x, 0, 10, 10)), [])

        assert cache.get(cache.make_key("shape", image, BoundingBox(0, 0, 10, 10))) is None
        assert cache.get(cache.make_key("shape", image, BoundingBox(2, 0, 10, 10))) == []


class TestProcessedImages:
    """Tests for the processed image store."""

    def test_memoize_image(self, cache, image, region):
        plane = np.zeros((4, 4), dtype=np.uint8)
        compute = Counter(plane)

        cache.memoize_image("brightness", image, region, compute)
        cached = cache.memoize_image("brightness", image, region, compute)

        assert compute.calls == 1
        assert cached is plane

    def test_region_is_part_of_key(self, cache, image, region):
        cache.put_processed_image("brightness", image, np.zeros(4, dtype=np.uint8), region)

        assert cache.get_processed_image("brightness", image) is None
        assert cache.get_processed_image("brightness", image, region) is not None

    def test_oversized_image_is_refused(self, cache, image):
        big = np.zeros(200, dtype=np.uint8)

        assert cache.put_processed_image("blur", image, big) is False
        assert cache.get_processed_image("blur", image) is None


class TestMetadata:
    """Tests for the metadata store."""

    def test_memoize_metadata(self, cache, image):
        calls = []

        def compute(array):
            calls.append(array)
            return compute_image_metadata(array, timestamp=0.0)

        first = cache.memoize_metadata(image, compute)
        second = cache.memoize_metadata(image, compute)

        assert len(calls) == 1
        assert first is second
        assert first.width == 80

    def test_metadata_outlives_analysis_results(self, cache, image, region, fake_clock):
        cache.put(cache.make_key("shape", image, region), [])
        cache.put_metadata(image, compute_image_metadata(image))

        fake_clock.advance(90)

        assert cache.get(cache.make_key("shape", image, region)) is None
        assert cache.get_metadata(image) is not None


class TestMaintenance:
    """Tests for sweeping, statistics and lifecycle."""

    def test_sweep_expired_counts_all_stores(self, cache, image, region, fake_clock):
        cache.put(cache.make_key("shape", image, region), [])
        cache.put_processed_image("brightness", image, np.zeros(4, dtype=np.uint8))
        cache.put_metadata(image, compute_image_metadata(image))

        fake_clock.advance(60)

        assert cache.sweep_expired() == 2
        assert cache.get_metadata(image) is not None

    def test_stats(self, cache, image, region, make_object):
        key = cache.make_key("shape", image, region)
        cache.get(key)
        cache.put(key, [make_object(confidence=0.4), make_object(x=20, confidence=0.8)])
        cache.get(key)

        stats = cache.stats()

        assert stats.total_entries == 1
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.hit_rate == pytest.approx(50.0)
        assert stats.average_confidence == pytest.approx(0.6)
        assert stats.to_dict()["hit_rate"] == pytest.approx(50.0)

    def test_stats_of_empty_cache(self, cache):
        stats = cache.stats()

        assert stats.hit_rate == 0.0
        assert stats.average_confidence == 0.0

    def test_background_sweeper_removes_expired(self, cache, image, region, fake_clock):
        key = cache.make_key("shape", image, region)
        cache.put(key, [])
        fake_clock.advance(61)

        cache.start_sweeper()
        assert cache.sweeper_running

        deadline = time.monotonic() + 2.0
        while key in cache._analysis and time.monotonic() < deadline:
            time.sleep(0.01)

        assert key not in cache._analysis

        cache.stop_sweeper()
        assert not cache.sweeper_running

    def test_context_manager_runs_sweeper(self, cache_settings, image, region):
        with AnalysisCache(cache_settings) as cache:
            assert cache.sweeper_running
            cache.put(cache.make_key("shape", image, region), [])

        assert not cache.sweeper_running
        assert cache.stats().total_entries == 0

    def test_shutdown_twice(self, cache):
        cache.start_sweeper()

        cache.shutdown()
        cache.shutdown()

        assert not cache.sweeper_running

    def test_detections_keep_their_type(self, cache, image, region, make_object):
        key = cache.make_key("shape", image, region)
        cache.put(key, [make_object(object_type=ObjectType.ICON)])

        assert cache.get(key)[0].object_type is ObjectType.ICON
