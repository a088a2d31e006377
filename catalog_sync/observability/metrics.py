"""
Prometheus metrics for catalog-sync

All metrics live in a private registry, exposed by the API's /metrics route.
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()


# =======================
# REFRESH METRICS
# =======================

refresh_runs_total = Counter(
    name="catalog_refresh_runs_total",
    documentation="Refresh passes by pipeline and outcome",
    labelnames=["pipeline", "status"],  # pipeline: catalog, liveness; status: success, failure
    registry=REGISTRY,
)

refresh_duration_seconds = Histogram(
    name="catalog_refresh_duration_seconds",
    documentation="Wall time of one refresh pass in seconds",
    labelnames=["pipeline"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

records_processed_total = Counter(
    name="catalog_records_processed_total",
    documentation="Source records seen by the catalog refresh",
    labelnames=["outcome"],  # outcome: valid, malformed, inactive, duplicate
    registry=REGISTRY,
)

orphan_products = Gauge(
    name="catalog_orphan_products",
    documentation="Products placed on no tab in the last categorization",
    registry=REGISTRY,
)

snapshot_bytes = Gauge(
    name="catalog_snapshot_bytes",
    documentation="Serialized snapshot size in the last publish",
    labelnames=["key", "stage"],  # stage: before_trim, published
    registry=REGISTRY,
)

# =======================
# LIVENESS METRICS
# =======================

probe_results_total = Counter(
    name="catalog_probe_results_total",
    documentation="Liveness probe outcomes",
    labelnames=["status"],  # status: up, down
    registry=REGISTRY,
)

probe_latency_seconds = Histogram(
    name="catalog_probe_latency_seconds",
    documentation="Latency of individual liveness probes",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

products_up = Gauge(
    name="catalog_products_up",
    documentation="Products reachable in the last probe cycle",
    registry=REGISTRY,
)

# =======================
# CACHE METRICS
# =======================

cache_writes_total = Counter(
    name="catalog_cache_writes_total",
    documentation="Edge cache upserts by key and outcome",
    labelnames=["key", "status"],  # status: success, failure, rejected
    registry=REGISTRY,
)

cache_reads_total = Counter(
    name="catalog_cache_reads_total",
    documentation="Edge cache reads by key and outcome",
    labelnames=["key", "status"],  # status: hit, miss, error
    registry=REGISTRY,
)

# =======================
# ERROR METRICS
# =======================

errors_total = Counter(
    name="catalog_errors_total",
    documentation="Errors by type and component",
    labelnames=["error_type", "component"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


class track_duration:
    """
    Context manager that observes elapsed time on a histogram

    Usage:
        with track_duration(refresh_duration_seconds, pipeline="catalog"):
            ...
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        metric = self.histogram.labels(**self.labels) if self.labels else self.histogram
        self.timer = metric.time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric; zero increments are skipped

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if value <= 0:
        return
    counter.labels(**labels).inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    metric = gauge.labels(**labels) if labels else gauge
    metric.set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    metric = histogram.labels(**labels) if labels else histogram
    metric.observe(value)


def record_error(error_type: str, component: str) -> None:
    increment_counter(errors_total, 1, error_type=error_type, component=component)
