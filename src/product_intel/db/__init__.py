"""Database module."""

from product_intel.db.base import Base, Database
from product_intel.db.models import (
    AnalysisLogEntry,
    AnalysisType,
    FeatureVectorRecord,
    Product,
    ProductScore,
)
from product_intel.db.persistence import LogOutcome, PersistenceResult, ScorePersistence

__all__ = [
    "Base",
    "Database",
    "AnalysisLogEntry",
    "AnalysisType",
    "FeatureVectorRecord",
    "Product",
    "ProductScore",
    "LogOutcome",
    "PersistenceResult",
    "ScorePersistence",
]
