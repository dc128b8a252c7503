"""Business logic services."""

from product_intel.services.analysis import (
    AnalysisOptions,
    AnalysisResult,
    AnalysisService,
    RescoreSummary,
)

__all__ = [
    "AnalysisOptions",
    "AnalysisResult",
    "AnalysisService",
    "RescoreSummary",
]
