"""Tests for the sampled pixel metrics."""

import math

import numpy as np
import pytest

from regionsnap.metrics import (
    MAX_SAMPLES,
    average_brightness,
    color_uniformity,
    color_variance,
    compute_image_metadata,
    edge_strength,
    local_edge_strength,
    region_contrast,
    sample_step,
)
from regionsnap.model import BoundingBox


class TestSampleStep:
    """Tests for the sampling stride."""

    def test_small_region_reads_every_pixel(self):
        assert sample_step(64, 64) == 1

    @pytest.mark.parametrize("width,height", [(200, 200), (1000, 1000), (1920, 1080), (5000, 3)])
    def test_grid_stays_within_budget(self, width, height):
        step = sample_step(width, height)

        assert math.ceil(width / step) * math.ceil(height / step) <= MAX_SAMPLES

    def test_empty_region(self):
        assert sample_step(0, 10) == 1


class TestRegionMetrics:
    """Tests for the per-region metrics."""

    def test_empty_region_scores_zero(self, halves_image):
        empty = BoundingBox(10, 10, 0, 5)

        assert average_brightness(halves_image, empty) == 0.0
        assert edge_strength(halves_image, empty) == 0.0
        assert color_variance(halves_image, empty) == 0.0
        assert color_uniformity(halves_image, empty) == 0.0
        assert region_contrast(halves_image, empty) == 0.0

    def test_region_outside_image_scores_zero(self, halves_image):
        assert color_variance(halves_image, BoundingBox(500, 500, 20, 20)) == 0.0

    def test_uniform_region(self, uniform_image):
        region = BoundingBox(0, 0, 200, 200)

        assert average_brightness(uniform_image, region) == pytest.approx(120.0)
        assert edge_strength(uniform_image, region) == 0.0
        assert color_variance(uniform_image, region) == 0.0
        assert color_uniformity(uniform_image, region) == 1.0
        assert region_contrast(uniform_image, region) == 0.0

    def test_black_and_white_halves(self, halves_image):
        region = BoundingBox(0, 0, 100, 100)

        # every sample sits sqrt(3) * 127.5 away from the grey mean
        assert color_variance(halves_image, region) == pytest.approx(math.sqrt(3) / 2, abs=1e-3)
        assert region_contrast(halves_image, region) == pytest.approx(0.5, abs=1e-3)
        assert edge_strength(halves_image, region) > 0.0

    def test_metrics_stay_in_unit_range(self, checkerboard_image):
        region = BoundingBox(3, 7, 60, 41)

        for metric in (edge_strength, color_variance, color_uniformity, region_contrast):
            assert 0.0 <= metric(checkerboard_image, region) <= 1.0


class TestLocalEdgeStrength:
    """Tests for the point edge probe."""

    def test_border_pixel_scores_zero(self, halves_image):
        assert local_edge_strength(halves_image, 0, 10) == 0.0
        assert local_edge_strength(halves_image, 99, 10) == 0.0

    def test_pixel_next_to_boundary(self, halves_image):
        assert local_edge_strength(halves_image, 49, 10) == pytest.approx(1.0)

    def test_flat_pixel(self, halves_image):
        assert local_edge_strength(halves_image, 20, 20) == 0.0


class TestImageMetadata:
    """Tests for compute_image_metadata."""

    def test_uniform_image(self):
        image = np.zeros((40, 60, 3), dtype=np.uint8)
        image[:] = (40, 100, 200)

        metadata = compute_image_metadata(image, timestamp=12.5)

        assert (metadata.width, metadata.height) == (60, 40)
        assert metadata.average_color == pytest.approx((40.0, 100.0, 200.0))
        assert metadata.complexity == 0.0
        assert metadata.dominant_colors == [(32, 96, 192)]
        assert metadata.timestamp == 12.5

    def test_dominant_colors_by_frequency(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        image[:75, :, 0] = 255
        image[75:, :, 2] = 255

        metadata = compute_image_metadata(image)

        assert metadata.dominant_colors == [(224, 0, 0), (0, 0, 224)]

    def test_complexity_of_checkerboard(self, checkerboard_image):
        # diagonal neighbours share a colour
        assert compute_image_metadata(checkerboard_image).complexity == 0.0

    def test_complexity_of_noise(self):
        rng = np.random.default_rng(7)
        image = rng.integers(0, 256, (80, 80, 3), dtype=np.uint8)

        assert compute_image_metadata(image).complexity > 0.1

    def test_to_dict(self, uniform_image):
        data = compute_image_metadata(uniform_image, timestamp=1.0).to_dict()

        assert data["width"] == 200
        assert data["dominant_colors"] == [[96, 96, 96]]
