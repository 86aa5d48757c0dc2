"""Configuration management for regionsnap using pydantic-settings.

Settings can be supplied through environment variables prefixed with
``REGIONSNAP_`` or a ``.env`` file in the working directory.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError


class RegionSnapSettings(BaseSettings):
    """Main configuration settings for the region detection engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REGIONSNAP_",
        case_sensitive=False,
        extra="forbid",
    )

    # Cache settings
    analysis_cache_size: int = Field(100, ge=1, description="Maximum cached analysis results")
    analysis_ttl_seconds: float = Field(
        1800.0, gt=0, description="Lifetime of a cached analysis result in seconds"
    )
    image_cache_max_bytes: int = Field(
        50 * 1024 * 1024, ge=1, description="Byte budget for processed image planes"
    )
    image_ttl_seconds: float = Field(
        1800.0, gt=0, description="Lifetime of a cached processed image in seconds"
    )
    metadata_cache_size: int = Field(200, ge=1, description="Maximum cached image metadata records")
    metadata_ttl_seconds: float = Field(
        7200.0, gt=0, description="Lifetime of cached image metadata in seconds"
    )
    sweep_interval_seconds: float = Field(
        300.0, gt=0, description="Interval between background sweeps of expired entries"
    )
    enable_cache: bool = Field(True, description="Memoize detector results")

    # Detector settings
    enable_shape_detector: bool = Field(True, description="Run the heuristic shape detector")
    enable_segmentation: bool = Field(True, description="Run the colour segmentation engine")
    enable_layout_patterns: bool = Field(
        False, description="Run the layout pattern detector as an extra detector"
    )
    parallel_detectors: bool = Field(
        False, description="Run detectors concurrently in worker threads"
    )
    text_min_confidence: float = Field(
        0.7, ge=0.0, le=1.0, description="Minimum confidence kept from text detectors"
    )
    classifier_min_confidence: float = Field(
        0.5, ge=0.0, le=1.0, description="Minimum confidence kept from object classifiers"
    )

    # Segmentation settings
    segment_similarity_threshold: float = Field(
        30.0, gt=0, description="Maximum RGB distance to the seed colour during flood fill"
    )
    min_segment_size: int = Field(100, ge=1, description="Minimum pixel count of a kept segment")
    max_segment_pixels: int = Field(50000, ge=1, description="Pixel budget of a single segment")
    max_segments: int = Field(20, ge=1, description="Maximum number of colour segments")
    seed_step: int = Field(5, ge=1, description="Grid spacing of flood fill seeds")

    # Fusion settings
    fusion_iou_threshold: float = Field(
        0.5, ge=0.0, le=1.0, description="IoU above which two detections are duplicates"
    )

    # Logging settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Log level"
    )
    log_file: Path | None = Field(None, description="Optional log file")
    structured_logs: bool = Field(False, description="Render logs as JSON")
    debug_mode: bool = Field(False, description="Enable debug logging")

    def validate_segmentation(self) -> None:
        """Check that the per-segment cap can hold a minimum-size segment."""
        if self.max_segment_pixels < self.min_segment_size:
            raise ConfigurationError(
                "max_segment_pixels must be >= min_segment_size",
                max_segment_pixels=self.max_segment_pixels,
                min_segment_size=self.min_segment_size,
            )

    def model_post_init(self, __context) -> None:
        """Post-initialization validation."""
        self.validate_segmentation()


# Singleton instance
_settings: RegionSnapSettings | None = None


def get_settings() -> RegionSnapSettings:
    """Get the singleton settings instance.

    Returns:
        RegionSnapSettings instance
    """
    global _settings

    if _settings is None:
        _settings = RegionSnapSettings()

    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (mainly for testing)."""
    global _settings
    _settings = None
