"""
Liveness prober: HEAD every product website under bounded concurrency.

Targets are probed in sequential batches; the probes inside one batch run
concurrently. Each probe carries its own deadline, so a cycle of N targets
takes at most ceil(N / batch_size) * timeout. A probe never raises: invalid
URLs, timeouts and transport errors all become DOWN results.
"""

import asyncio
import contextlib
import time
from typing import Iterable

import httpx

from catalog_sync.core.models import LivenessSummary, ProbeResult
from catalog_sync.observability import metrics
from catalog_sync.observability.logger import get_logger
from catalog_sync.utils.validation import ValidationError, validate_batch_size, validate_probe_url

logger = get_logger("probe")

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_BATCH_SIZE = 10
DEFAULT_USER_AGENT = "catalog-sync-status-checker/1.0"

INVALID_URL = "Invalid URL"
TIMEOUT = "Timeout"


class LivenessProber:
    """
    Probes product websites and aggregates the outcome.

    Args:
        timeout_ms: Default per-probe deadline
        batch_size: Default number of concurrent probes per batch
        user_agent: User-Agent header sent with every probe
        client: Shared AsyncClient (one is created per cycle when None)
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout_ms = timeout_ms
        self.batch_size = validate_batch_size(batch_size)
        self.user_agent = user_agent
        self._client = client

    def _client_scope(self, timeout_ms: int):
        if self._client is not None:
            return contextlib.nullcontext(self._client)
        return httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            timeout=httpx.Timeout(timeout_ms / 1000),
        )

    async def probe(
        self,
        name: str,
        url: str | None,
        timeout_ms: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> ProbeResult:
        """
        Probe one URL.

        2xx and 3xx (after redirects) are UP; every other status, a timeout
        or a transport error is DOWN.

        Args:
            name: Product name
            url: Website to probe
            timeout_ms: Deadline for this probe (defaults to the prober's)
            client: Client to use (defaults to the prober's, or a temporary one)

        Returns:
            ProbeResult
        """
        timeout_ms = timeout_ms or self.timeout_ms

        try:
            target = validate_probe_url(url)
        except ValidationError:
            return self._record(ProbeResult(name=name, url=url, status=0, latency_ms=0, error=INVALID_URL))

        if client is None:
            async with self._client_scope(timeout_ms) as scoped:
                return await self.probe(name, url, timeout_ms, client=scoped)

        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                client.head(target, headers={"User-Agent": self.user_agent}),
                timeout=timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            result = ProbeResult(name=name, url=url, status=0, latency_ms=_elapsed_ms(start), error=TIMEOUT)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            result = ProbeResult(
                name=name,
                url=url,
                status=0,
                latency_ms=_elapsed_ms(start),
                error=str(e) or type(e).__name__,
            )
        else:
            is_up = 200 <= response.status_code < 400
            result = ProbeResult(
                name=name,
                url=url,
                status=1 if is_up else 0,
                latency_ms=_elapsed_ms(start),
                http_status=response.status_code,
                error=None if is_up else f"HTTP {response.status_code}",
            )

        return self._record(result)

    async def probe_all(
        self,
        targets: Iterable[tuple[str, str | None]],
        batch_size: int | None = None,
        timeout_ms: int | None = None,
    ) -> list[ProbeResult]:
        """
        Probe every (name, url) target in sequential batches.

        Targets are de-duplicated by name; the first URL seen for a name wins.

        Returns:
            One ProbeResult per distinct name, in first-seen order
        """
        batch_size = validate_batch_size(batch_size or self.batch_size)
        timeout_ms = timeout_ms or self.timeout_ms

        unique: dict[str, str | None] = {}
        for name, url in targets:
            if name not in unique:
                unique[name] = url
        pending = list(unique.items())

        logger.info(
            "Probing targets",
            extra={"targets": len(pending), "batch_size": batch_size, "timeout_ms": timeout_ms},
        )

        results: list[ProbeResult] = []
        async with self._client_scope(timeout_ms) as client:
            for offset in range(0, len(pending), batch_size):
                batch = pending[offset:offset + batch_size]
                batch_results = await asyncio.gather(
                    *(self.probe(name, url, timeout_ms, client=client) for name, url in batch)
                )
                results.extend(batch_results)

        return results

    @staticmethod
    def _record(result: ProbeResult) -> ProbeResult:
        metrics.increment_counter(metrics.probe_results_total, 1, status="up" if result.is_up else "down")
        metrics.observe_histogram(metrics.probe_latency_seconds, result.latency_ms / 1000)
        if not result.is_up:
            logger.debug(
                "Probe down",
                extra={"product": result.name, "url": result.url, "reason": result.reason},
            )
        return result


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def summarize(results: list[ProbeResult]) -> LivenessSummary:
    """
    Aggregate probe results.

    Returns:
        LivenessSummary with up percentage and average latency rounded to ints
    """
    total = len(results)
    up = sum(1 for r in results if r.is_up)
    if total == 0:
        return LivenessSummary()

    return LivenessSummary(
        total=total,
        up=up,
        down=total - up,
        up_pct=round(up / total * 100),
        avg_latency_ms=round(sum(r.latency_ms for r in results) / total),
    )
