"""Detection fusion and ranking."""

from .fusion_engine import AnalysisProgress, FusionEngine, ProgressCallback
from .result_merger import (
    TYPE_WEIGHTS,
    FusionConfig,
    ResultMerger,
    proximity,
    selection_score,
)

__all__ = [
    "FusionEngine",
    "AnalysisProgress",
    "ProgressCallback",
    "ResultMerger",
    "FusionConfig",
    "TYPE_WEIGHTS",
    "proximity",
    "selection_score",
]
