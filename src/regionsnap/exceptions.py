"""Exception hierarchy for regionsnap.

All errors raised by the library derive from RegionSnapException so callers
can catch a single type. Detectors report their own failures through
DetectorError; the fusion engine catches those at the call site.
"""

from typing import Any


class RegionSnapException(Exception):
    """Base exception for all regionsnap errors.

    Attributes:
        message: Human-readable error message
        error_code: Optional error code for programmatic handling
        context: Additional context information
    """

    def __init__(
        self, message: str, error_code: str | None = None, context: dict[str, Any] | None = None
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message
            error_code: Optional error code
            context: Optional context dictionary
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(RegionSnapException):
    """Raised when settings are inconsistent."""

    def __init__(self, reason: str, **kwargs) -> None:
        super().__init__(
            f"Invalid configuration: {reason}",
            error_code="CONFIGURATION_ERROR",
            context={"reason": reason, **kwargs},
        )


class PerceptionException(RegionSnapException):
    """Base exception for image analysis errors."""

    pass


class InvalidImageException(PerceptionException):
    """Raised when an input image cannot be used."""

    def __init__(self, source: str, reason: str, **kwargs) -> None:
        """Initialize with image details."""
        super().__init__(
            f"Invalid image '{source}': {reason}",
            error_code="INVALID_IMAGE",
            context={"source": source, "reason": reason, **kwargs},
        )


class DetectorError(PerceptionException):
    """Raised when a detector backend fails."""

    def __init__(self, detector: str, reason: str, **kwargs) -> None:
        """Initialize with the failing detector's tag."""
        super().__init__(
            f"Detector '{detector}' failed: {reason}",
            error_code="DETECTOR_FAILED",
            context={"detector": detector, "reason": reason, **kwargs},
        )
        self.detector = detector
