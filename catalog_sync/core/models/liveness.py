"""
Liveness models: per-product probe outcomes and the aggregate cached for the status board.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ProbeResult(BaseModel):
    """
    Outcome of one probe. Overwritten every cycle, never merged with earlier cycles.

    Attributes:
        name: Product name
        url: URL that was probed (as given)
        status: 1 reachable, 0 unreachable or invalid
        latency_ms: Wall time spent on the probe
        http_status: Response code when a response arrived
        error: "Timeout", "Invalid URL", "HTTP 503", or the transport error text
    """

    name: str
    url: str | None = None
    status: Literal[0, 1]
    latency_ms: int = Field(0, ge=0)
    http_status: int | None = None
    error: str | None = None

    @property
    def is_up(self) -> bool:
        return self.status == 1

    @property
    def reason(self) -> str:
        """Human-readable cause for a DOWN result."""
        if self.error:
            return self.error
        if self.http_status is not None:
            return f"HTTP {self.http_status}"
        return "unknown"


class LivenessSummary(BaseModel):
    total: int = 0
    up: int = 0
    down: int = 0
    up_pct: int = 0
    avg_latency_ms: int = 0

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LivenessSnapshot(BaseModel):
    """
    Value stored under the liveness cache key.

    Attributes:
        statuses: Product name -> 1 or 0
        summary: Aggregate counts
        last_checked: When this probe cycle finished
    """

    statuses: dict[str, Literal[0, 1]] = Field(default_factory=dict)
    summary: LivenessSummary = Field(default_factory=LivenessSummary)
    last_checked: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        alias_generator = to_camel
        populate_by_name = True
