"""Detector interface definition."""

from abc import ABC, abstractmethod

import numpy as np

from ..model import BoundingBox, DetectedObject


class Detector(ABC):
    """Interface for anything that proposes objects inside a region.

    Attributes:
        name: Short tag identifying the detector in cache keys and logs.
    """

    name: str = "detector"

    @abstractmethod
    def detect(self, image: np.ndarray, region: BoundingBox) -> list[DetectedObject]:
        """Find objects inside ``region``.

        Args:
            image: ``H x W x 3`` uint8 RGB image
            region: Region of interest in image coordinates

        Returns:
            Detections with bounds in image coordinates
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
