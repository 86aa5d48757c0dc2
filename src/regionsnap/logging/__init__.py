"""Logging module for regionsnap."""

from .logger import PerformanceLogger, get_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "PerformanceLogger",
]
