"""
Core data models for the reconciliation and cache-refresh pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .classification import Bucket, CatalogStats, CategorizedCatalog, Classification
from .liveness import LivenessSnapshot, LivenessSummary, ProbeResult
from .product import NormalizedProduct
from .refresh_result import (
    DownProduct,
    LivenessRefreshResult,
    PublishResult,
    RefreshFailure,
    RefreshResult,
    SkippedRecord,
)

__all__ = [
    "NormalizedProduct",
    "Classification",
    "Bucket",
    "CatalogStats",
    "CategorizedCatalog",
    "ProbeResult",
    "LivenessSummary",
    "LivenessSnapshot",
    "SkippedRecord",
    "PublishResult",
    "RefreshResult",
    "DownProduct",
    "LivenessRefreshResult",
    "RefreshFailure",
]
