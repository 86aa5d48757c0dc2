"""Image sampling metrics."""

from .image_metrics import (
    MAX_SAMPLES,
    average_brightness,
    brightness_plane,
    clamped_edges,
    color_uniformity,
    color_variance,
    compute_image_metadata,
    edge_strength,
    local_edge_strength,
    local_edge_strengths,
    region_contrast,
    sample_step,
)

__all__ = [
    "MAX_SAMPLES",
    "average_brightness",
    "brightness_plane",
    "clamped_edges",
    "color_uniformity",
    "color_variance",
    "compute_image_metadata",
    "edge_strength",
    "local_edge_strength",
    "local_edge_strengths",
    "region_contrast",
    "sample_step",
]
