"""Tests for RegionSnapSettings."""

import pytest
from pydantic import ValidationError

from regionsnap.config import RegionSnapSettings, get_settings, reset_settings
from regionsnap.exceptions import ConfigurationError


class TestRegionSnapSettings:
    """Tests for settings defaults, overrides and validation."""

    def test_defaults(self, settings):
        assert settings.analysis_ttl_seconds == 1800
        assert settings.metadata_ttl_seconds == 7200
        assert settings.image_cache_max_bytes == 50 * 1024 * 1024
        assert settings.segment_similarity_threshold == 30.0
        assert settings.min_segment_size == 100
        assert settings.max_segments == 20
        assert settings.seed_step == 5
        assert settings.fusion_iou_threshold == 0.5
        assert settings.parallel_detectors is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("REGIONSNAP_MAX_SEGMENTS", "7")
        monkeypatch.setenv("REGIONSNAP_PARALLEL_DETECTORS", "true")
        reset_settings()

        settings = get_settings()

        assert settings.max_segments == 7
        assert settings.parallel_detectors is True

    def test_singleton(self):
        assert get_settings() is get_settings()

    def test_reset_builds_new_instance(self):
        first = get_settings()
        reset_settings()

        assert get_settings() is not first

    def test_segment_budget_must_hold_minimum_segment(self):
        with pytest.raises((ConfigurationError, ValidationError)):
            RegionSnapSettings(min_segment_size=500, max_segment_pixels=100)

    def test_out_of_range_threshold(self):
        with pytest.raises(ValidationError):
            RegionSnapSettings(fusion_iou_threshold=1.5)

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            RegionSnapSettings(not_a_setting=1)

    def test_configuration_error_message(self):
        error = ConfigurationError("bad value", field="seed_step")

        assert str(error) == "[CONFIGURATION_ERROR] Invalid configuration: bad value"
        assert error.context == {"reason": "bad value", "field": "seed_step"}
