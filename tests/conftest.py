"""Pytest configuration and fixtures."""

import os

import numpy as np
import pytest

# Keep test output free of log lines
os.environ.setdefault("REGIONSNAP_DISABLE_CONSOLE_LOGGING", "1")

from regionsnap.config import RegionSnapSettings, reset_settings  # noqa: E402
from regionsnap.detection import Detector  # noqa: E402
from regionsnap.model import BoundingBox, DetectedObject, ObjectType  # noqa: E402


class FakeClock:
    """Manually advanced time source for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubDetector(Detector):
    """Detector returning fixed detections and counting its calls."""

    def __init__(self, name: str = "stub", objects: list[DetectedObject] | None = None):
        self.name = name
        self.objects = objects or []
        self.calls = 0

    def detect(self, image, region):
        self.calls += 1
        return list(self.objects)


class FailingDetector(Detector):
    """Detector that always raises."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    def detect(self, image, region):
        self.calls += 1
        raise RuntimeError("backend unavailable")


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reset the settings singleton around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    """Default settings without reading the environment's overrides."""
    return RegionSnapSettings()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_stub():
    """Factory for counting stub detectors."""
    return StubDetector


@pytest.fixture
def failing_detector():
    return FailingDetector()


@pytest.fixture
def uniform_image():
    """200x200 flat grey image."""
    return np.full((200, 200, 3), 120, dtype=np.uint8)


@pytest.fixture
def button_image():
    """200x100 black image with a white 100x40 rectangle at (50, 30)."""
    image = np.zeros((100, 200, 3), dtype=np.uint8)
    image[30:70, 50:150] = 255
    return image


@pytest.fixture
def button_region():
    return BoundingBox(50, 30, 100, 40)


@pytest.fixture
def halves_image():
    """100x100 image, black on the left half and white on the right."""
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    image[:, 50:] = 255
    return image


@pytest.fixture
def checkerboard_image():
    """100x100 single-pixel black and white checkerboard."""
    ys, xs = np.indices((100, 100))
    plane = ((xs + ys) % 2 * 255).astype(np.uint8)
    return np.stack([plane] * 3, axis=-1)


@pytest.fixture
def make_object():
    """Factory for detections."""

    def _make(
        x=0,
        y=0,
        width=10,
        height=10,
        confidence=0.5,
        object_type=ObjectType.OBJECT,
        label=None,
        source=None,
    ):
        return DetectedObject(
            BoundingBox(x, y, width, height), object_type, confidence, label=label, source=source
        )

    return _make
