"""Pixel sampling metrics over a region of an RGB image.

Every function takes an ``H x W x 3`` uint8 array and reads a strided grid
of pixels whose size is bounded by ``MAX_SAMPLES``, so the cost does not
grow with the region. Regions are clamped to the image first; a region
with no area yields 0 for every metric.
"""

import math
import time

import numpy as np

from ..cache.cache_types import ImageMetadata
from ..model import BoundingBox, clamp_unit

MAX_SAMPLES = 4096
METADATA_MAX_SAMPLES = 10000
QUANTIZATION_STEP = 32
DOMINANT_COLOR_COUNT = 5


def sample_step(width: int, height: int, max_samples: int = MAX_SAMPLES) -> int:
    """Smallest stride whose sampling grid holds at most ``max_samples`` pixels."""
    if width <= 0 or height <= 0:
        return 1

    step = max(1, math.ceil(math.sqrt(width * height / max_samples)))
    while math.ceil(width / step) * math.ceil(height / step) > max_samples:
        step += 1
    return step


def clamped_edges(image: np.ndarray, region: BoundingBox) -> tuple[int, int, int, int] | None:
    """Integer ``(left, top, right, bottom)`` of ``region`` inside ``image``, or None if empty."""
    height, width = image.shape[:2]
    left, top, right, bottom = region.clamp(width, height).to_int()
    if right <= left or bottom <= top:
        return None
    return left, top, right, bottom


def brightness_plane(image: np.ndarray) -> np.ndarray:
    """Per-pixel mean of the three channels as float32."""
    return image.astype(np.float32).mean(axis=2)


def _brightness_at(image: np.ndarray, ys: np.ndarray, xs: np.ndarray) -> np.ndarray:
    return image[np.ix_(ys, xs)].astype(np.float32).mean(axis=2)


def _sample(image: np.ndarray, region: BoundingBox) -> np.ndarray | None:
    edges = clamped_edges(image, region)
    if edges is None:
        return None

    left, top, right, bottom = edges
    step = sample_step(right - left, bottom - top)
    return image[top:bottom:step, left:right:step].astype(np.float32)


def average_brightness(image: np.ndarray, region: BoundingBox) -> float:
    """Mean brightness of the sampled pixels, in [0, 255]."""
    sample = _sample(image, region)
    if sample is None:
        return 0.0
    return float(sample.mean())


def edge_strength(image: np.ndarray, region: BoundingBox) -> float:
    """Mean central-difference gradient magnitude over the region, in [0, 1].

    Samples start at the region edge, so a region that exactly covers an
    object sees the object's outline through the neighbours just outside it.
    """
    edges = clamped_edges(image, region)
    if edges is None:
        return 0.0

    height, width = image.shape[:2]
    left, top, right, bottom = edges
    step = sample_step(right - left, bottom - top)

    xs = np.arange(max(left, 1), min(right - 1, width - 1), step)
    ys = np.arange(max(top, 1), min(bottom - 1, height - 1), step)
    if xs.size == 0 or ys.size == 0:
        return 0.0

    gx = _brightness_at(image, ys, xs + 1) - _brightness_at(image, ys, xs - 1)
    gy = _brightness_at(image, ys + 1, xs) - _brightness_at(image, ys - 1, xs)
    magnitude = np.sqrt(gx * gx + gy * gy)
    return clamp_unit(float(magnitude.mean()) / 255.0)


def color_variance(image: np.ndarray, region: BoundingBox) -> float:
    """Mean Euclidean distance of sampled colours from their mean, over 255."""
    sample = _sample(image, region)
    if sample is None:
        return 0.0

    pixels = sample.reshape(-1, 3)
    if len(pixels) < 2:
        return 0.0

    deviation = np.linalg.norm(pixels - pixels.mean(axis=0), axis=1)
    return clamp_unit(float(deviation.mean()) / 255.0)


def color_uniformity(image: np.ndarray, region: BoundingBox) -> float:
    """``1 - color_variance``; 0 for an empty region."""
    if clamped_edges(image, region) is None:
        return 0.0
    return 1.0 - color_variance(image, region)


def region_contrast(image: np.ndarray, region: BoundingBox) -> float:
    """Standard deviation of sampled brightness, over 255."""
    sample = _sample(image, region)
    if sample is None:
        return 0.0
    return clamp_unit(float(sample.mean(axis=2).std()) / 255.0)


def local_edge_strengths(image: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Edge strength at each ``(xs[i], ys[i])``.

    The strength is the largest absolute brightness difference to the four
    neighbours, over 255. Points on or outside the image border score 0.
    """
    height, width = image.shape[:2]
    xs = np.asarray(xs, dtype=np.int64)
    ys = np.asarray(ys, dtype=np.int64)
    result = np.zeros(xs.shape, dtype=np.float32)

    inside = (xs > 0) & (ys > 0) & (xs < width - 1) & (ys < height - 1)
    if not inside.any():
        return result

    px, py = xs[inside], ys[inside]

    def brightness(yy: np.ndarray, xx: np.ndarray) -> np.ndarray:
        return image[yy, xx].astype(np.float32).mean(axis=-1)

    center = brightness(py, px)
    diffs = np.stack(
        [
            np.abs(center - brightness(py, px - 1)),
            np.abs(center - brightness(py, px + 1)),
            np.abs(center - brightness(py - 1, px)),
            np.abs(center - brightness(py + 1, px)),
        ]
    )
    result[inside] = diffs.max(axis=0) / 255.0
    return result


def local_edge_strength(image: np.ndarray, x: int, y: int) -> float:
    return float(local_edge_strengths(image, np.array([x]), np.array([y]))[0])


def compute_image_metadata(image: np.ndarray, timestamp: float | None = None) -> ImageMetadata:
    """Average colour, visual complexity and dominant colours of a whole image."""
    height, width = image.shape[:2]
    if width == 0 or height == 0:
        return ImageMetadata(width, height, (0.0, 0.0, 0.0), 0.0, [], timestamp or time.time())

    step = sample_step(width, height, METADATA_MAX_SAMPLES)
    sample = image[::step, ::step].astype(np.float32)
    count = sample.shape[0] * sample.shape[1]

    mean = sample.reshape(-1, 3).mean(axis=0)
    average_color = (float(mean[0]), float(mean[1]), float(mean[2]))

    # each sample compared with its upper-left sample neighbour
    diagonal = np.linalg.norm(sample[1:, 1:] - sample[:-1, :-1], axis=2)
    complexity = float(diagonal.sum()) / count / 255.0

    quantized = (image[::step, ::step] // QUANTIZATION_STEP * QUANTIZATION_STEP).reshape(-1, 3)
    colors, counts = np.unique(quantized, axis=0, return_counts=True)
    order = np.argsort(-counts, kind="stable")[:DOMINANT_COLOR_COUNT]
    dominant = [tuple(int(c) for c in colors[i]) for i in order]

    return ImageMetadata(
        width=width,
        height=height,
        average_color=average_color,
        complexity=complexity,
        dominant_colors=dominant,
        timestamp=timestamp if timestamp is not None else time.time(),
    )
