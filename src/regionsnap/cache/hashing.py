"""Cheap content hashes used as cache keys.

The image hash reads at most ``MAX_HASH_SAMPLES`` pixels, so two different
images of the same size can collide when their sampled pixels agree. The
analysis cache accepts that trade-off: a collision only returns a stale but
plausible detection list.
"""

import hashlib

import numpy as np

from ..model import BoundingBox

MAX_HASH_SAMPLES = 100


def _md5(payload: bytes) -> str:
    return hashlib.md5(payload, usedforsecurity=False).hexdigest()


def image_content_hash(image: np.ndarray) -> str:
    """Hash of the image size plus a coarse grid of pixel values.

    The grid stride is a tenth of the width on both axes and pixels are read
    column by column.
    """
    height, width = image.shape[:2]
    step = max(1, width // 10)
    grid = image[::step, ::step]
    columns = -(-MAX_HASH_SAMPLES // max(1, grid.shape[0]))
    # copy only the leading columns the column-major walk reaches
    grid = grid[:MAX_HASH_SAMPLES, :columns]
    samples = np.ascontiguousarray(grid.swapaxes(0, 1)).reshape(-1, grid.shape[-1])
    samples = samples[:MAX_HASH_SAMPLES]
    return _md5(f"{width}x{height}:".encode() + samples.tobytes())


def region_hash(region: BoundingBox) -> str:
    """Hash of the region's rounded edges."""
    left, top, right, bottom = region.to_int()
    return _md5(f"{left},{top},{right},{bottom}".encode())
