"""
Structured results returned by one refresh pass and by the cache publisher.
"""

from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .liveness import LivenessSummary


class SkippedRecord(BaseModel):
    """
    A source record left out of the snapshot.

    Attributes:
        index: Position in the source payload
        name: Product name if one could be read
        reason: "malformed", "inactive" or "duplicate"
        detail: Error message for malformed records
    """

    index: int
    name: str | None = None
    reason: str
    detail: str | None = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PublishResult(BaseModel):
    """
    Outcome of one cache publish.

    Attributes:
        key: Cache key written
        byte_size: Size of the value that was written
        byte_size_before: Size before allow-list trimming (equals byte_size when untrimmed)
        reduction_pct: Percentage saved by trimming
        timestamp: Timestamp written alongside the value
    """

    key: str
    byte_size: int
    byte_size_before: int
    reduction_pct: float = 0.0
    timestamp: datetime


class RefreshResult(BaseModel):
    """Response body of a successful catalog refresh."""

    success: bool = True
    timestamp: datetime
    counts_processed: int
    byte_size_before: int
    byte_size_after: int
    reduction_pct: float
    skipped: list[SkippedRecord] = Field(default_factory=list)
    orphans: list[str] = Field(default_factory=list)
    bucket_counts: dict[str, int] = Field(default_factory=dict)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DownProduct(BaseModel):
    name: str
    url: str | None = None
    error: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LivenessRefreshResult(BaseModel):
    """Response body of a successful liveness refresh."""

    success: bool = True
    timestamp: datetime
    summary: LivenessSummary
    down_list: list[DownProduct] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RefreshFailure(BaseModel):
    """Response body of a rejected or failed refresh."""

    success: bool = False
    error: str
    error_type: str
    details: str | None = None
    timestamp: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
