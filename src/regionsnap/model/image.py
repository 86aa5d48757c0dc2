"""Coercion of caller-supplied images into RGB numpy arrays."""

from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..exceptions import InvalidImageException

ImageInput = Union[np.ndarray, Image.Image, str, Path]


def as_rgb_array(image: ImageInput) -> np.ndarray:
    """Return ``image`` as an ``H x W x 3`` uint8 RGB array.

    Accepts numpy arrays (grayscale, RGB or RGBA), PIL images and file paths.
    Alpha is dropped. The caller's array is never written to.

    Raises:
        InvalidImageException: If the input cannot be interpreted as an image.
    """
    if isinstance(image, (str, Path)):
        try:
            with Image.open(image) as pil_image:
                return np.array(pil_image.convert("RGB"))
        except (OSError, UnidentifiedImageError) as e:
            raise InvalidImageException(str(image), str(e)) from e

    if isinstance(image, Image.Image):
        return np.array(image.convert("RGB"))

    if not isinstance(image, np.ndarray):
        raise InvalidImageException(type(image).__name__, "unsupported image type")

    array = image
    if array.ndim == 2:
        array = np.stack([array] * 3, axis=-1)
    elif array.ndim == 3 and array.shape[2] in (3, 4):
        array = array[:, :, :3]
    else:
        raise InvalidImageException("ndarray", f"unsupported shape {image.shape}")

    if array.dtype != np.uint8:
        array = np.clip(array, 0, 255).astype(np.uint8)

    return array


def image_size(image: np.ndarray) -> tuple[int, int]:
    """``(width, height)`` of an image array."""
    return image.shape[1], image.shape[0]
