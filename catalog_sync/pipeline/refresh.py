"""
Refresh pipeline orchestration.

Catalog path: fetch -> normalize -> deduplicate -> categorize -> trim -> publish
Liveness path: fetch -> normalize -> probe -> summarize -> publish

One pass per invocation, no cross-invocation locking; the last writer wins.
Any stage failure ends the pass with a structured failure and leaves the
previously published snapshot in place.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Iterable

from catalog_sync.cache import CachePublisher, CacheReader, EdgeCache, build_edge_cache
from catalog_sync.config import Settings
from catalog_sync.core.errors import MalformedRecordError, PipelineError
from catalog_sync.core.mapping import RecordShape, denormalize, normalize, to_legacy_updates
from catalog_sync.core.models import (
    CategorizedCatalog,
    DownProduct,
    LivenessRefreshResult,
    LivenessSnapshot,
    NormalizedProduct,
    RefreshFailure,
    RefreshResult,
    SkippedRecord,
)
from catalog_sync.core.rules import ClassificationRules, categorize, load_rules
from catalog_sync.observability import metrics
from catalog_sync.observability.logger import get_logger, log_operation
from catalog_sync.probe import LivenessProber, summarize
from catalog_sync.sources import LegacySourceClient

logger = get_logger("pipeline")


def reconcile(records: Iterable[Any]) -> tuple[list[NormalizedProduct], list[SkippedRecord]]:
    """
    Normalize legacy rows, dropping malformed, inactive and duplicate ones.

    Duplicates are detected by case-insensitive name; the first occurrence wins. Rows whose
    source carries no active column are kept.

    Returns:
        Tuple of (products in source order, skipped records)
    """
    products: list[NormalizedProduct] = []
    skipped: list[SkippedRecord] = []
    seen: set[str] = set()

    for index, record in enumerate(records):
        try:
            product = normalize(record, RecordShape.LEGACY)
        except MalformedRecordError as e:
            skipped.append(SkippedRecord(
                index=index,
                name=e.record_name,
                reason="malformed",
                detail=str(e),
            ))
            continue

        if product.active is False:
            skipped.append(SkippedRecord(index=index, name=product.name, reason="inactive"))
            continue

        if product.name.casefold() in seen:
            skipped.append(SkippedRecord(index=index, name=product.name, reason="duplicate"))
            continue

        seen.add(product.name.casefold())
        products.append(product)

    for outcome in ("malformed", "inactive", "duplicate"):
        metrics.increment_counter(
            metrics.records_processed_total,
            sum(1 for s in skipped if s.reason == outcome),
            outcome=outcome,
        )
    metrics.increment_counter(metrics.records_processed_total, len(products), outcome="valid")

    if skipped:
        logger.warning(
            "Skipped source records",
            extra={"skipped": len(skipped), "malformed": sum(1 for s in skipped if s.reason == "malformed")},
        )

    return products, skipped


def build_catalog_bundle(catalog: CategorizedCatalog, rules: ClassificationRules) -> dict[str, Any]:
    """
    Dashboard bundle: one section per tab plus stats.

    Each section carries the full dashboard records of its products, the
    flagship and everyone subsets, and a department index of product names.
    """
    views: dict[str, dict[str, Any]] = {}

    def view(product: NormalizedProduct) -> dict[str, Any]:
        if product.name not in views:
            views[product.name] = denormalize(
                product,
                RecordShape.VIEW,
                classification=catalog.classifications[product.name],
            )
        return views[product.name]

    names = {rules.org_wide_key: rules.org_wide_name}
    names.update({unit.key: unit.name for unit in rules.sub_units})

    bundle: dict[str, Any] = {}
    for key in rules.bucket_keys:
        bucket = catalog.buckets[key]
        bundle[key] = {
            "name": names[key],
            "apps": [view(p) for p in bucket.products],
            "enterpriseApps": [view(p) for p in bucket.flagship],
            "everyoneApps": [view(p) for p in bucket.everyone],
            "byDepartment": {
                department: [p.name for p in items]
                for department, items in bucket.by_department.items()
            },
        }

    bundle["stats"] = {
        "totalApps": catalog.stats.total,
        "orgWideCount": catalog.stats.org_wide_count,
        "subUnitCounts": dict(catalog.stats.sub_unit_counts),
        "orphans": list(catalog.stats.orphans),
    }
    return bundle


def _failure(error: PipelineError | Exception, message: str) -> RefreshFailure:
    return RefreshFailure(
        error=message,
        error_type=getattr(error, "error_type", "internal_error"),
        details=str(error),
        timestamp=datetime.now(timezone.utc),
    )


class RefreshPipeline:
    """
    Orchestrates catalog and liveness refresh passes.

    Args:
        settings: Runtime settings
        source: Legacy source client (built from settings when None)
        cache: Edge cache backend (built from settings when None)
        rules: Classification rules (loaded from settings when None)
        prober: Liveness prober (built from settings when None)
    """

    def __init__(
        self,
        settings: Settings,
        source: LegacySourceClient | None = None,
        cache: EdgeCache | None = None,
        rules: ClassificationRules | None = None,
        prober: LivenessProber | None = None,
    ):
        self.settings = settings
        self._source = source
        self.cache = cache if cache is not None else build_edge_cache(settings)
        self.rules = rules or load_rules(settings.rules_path)
        self.prober = prober or LivenessProber(
            timeout_ms=settings.probe_timeout_ms,
            batch_size=settings.probe_batch_size,
            user_agent=settings.probe_user_agent,
        )
        self.publisher = CachePublisher(self.cache, max_bytes=settings.snapshot_max_bytes)
        self.reader = CacheReader(
            self.cache,
            max_age_seconds=settings.cache_max_age_seconds,
            stale_seconds=settings.cache_stale_seconds,
        )

    @property
    def source(self) -> LegacySourceClient:
        if self._source is None:
            url, key = self.settings.require_source()
            self._source = LegacySourceClient(url, key, timeout_seconds=self.settings.source_timeout_seconds)
        return self._source

    def run_catalog_refresh(self) -> RefreshResult | RefreshFailure:
        """
        Run one full catalog pass.

        Returns:
            RefreshResult on success, RefreshFailure when any stage fails
        """
        try:
            with metrics.track_duration(metrics.refresh_duration_seconds, pipeline="catalog"), \
                    log_operation("catalog refresh", logger=logger) as op:
                # Step 1: Fetch every row from the source of truth
                records = self.source.fetch_all()

                # Step 2: Normalize, dropping malformed/inactive/duplicate rows
                products, skipped = reconcile(records)

                # Step 3: Categorize into tabs
                catalog = categorize(products, self.rules)
                metrics.set_gauge(metrics.orphan_products, len(catalog.stats.orphans))
                if catalog.stats.orphans:
                    logger.warning(
                        "Products on no tab",
                        extra={"orphans": catalog.stats.orphans},
                    )

                # Step 4: Trim and publish
                bundle = build_catalog_bundle(catalog, self.rules)
                published = self.publisher.publish_catalog(bundle)

                op.add_fields(
                    records=len(records),
                    products=len(products),
                    skipped=len(skipped),
                    size_after=published.byte_size,
                )
        except PipelineError as e:
            metrics.increment_counter(metrics.refresh_runs_total, 1, pipeline="catalog", status="failure")
            metrics.record_error(e.error_type, "pipeline.catalog")
            return _failure(e, "Failed to refresh catalog snapshot")
        except Exception as e:
            metrics.increment_counter(metrics.refresh_runs_total, 1, pipeline="catalog", status="failure")
            metrics.record_error("internal_error", "pipeline.catalog")
            return _failure(e, "Failed to refresh catalog snapshot")

        metrics.increment_counter(metrics.refresh_runs_total, 1, pipeline="catalog", status="success")
        return RefreshResult(
            timestamp=published.timestamp,
            counts_processed=len(products),
            byte_size_before=published.byte_size_before,
            byte_size_after=published.byte_size,
            reduction_pct=published.reduction_pct,
            skipped=skipped,
            orphans=list(catalog.stats.orphans),
            bucket_counts={key: len(bucket.products) for key, bucket in catalog.buckets.items()},
        )

    async def run_liveness_refresh(self) -> LivenessRefreshResult | RefreshFailure:
        """
        Probe every product website and publish the liveness snapshot.

        Only products with a website are probed. Probe failures never fail
        the pass; source and cache failures do.

        Returns:
            LivenessRefreshResult on success, RefreshFailure when a stage fails
        """
        try:
            with metrics.track_duration(metrics.refresh_duration_seconds, pipeline="liveness"), \
                    log_operation("liveness refresh", logger=logger) as op:
                # Step 1: Fetch and normalize
                records = await asyncio.to_thread(self.source.fetch_all)
                products, _ = reconcile(records)

                # Step 2: Probe in bounded batches
                targets = [(p.name, p.website) for p in products if p.website]
                results = await self.prober.probe_all(targets)

                # Step 3: Aggregate and publish
                summary = summarize(results)
                snapshot = LivenessSnapshot(
                    statuses={r.name: r.status for r in results},
                    summary=summary,
                    last_checked=datetime.now(timezone.utc),
                )
                published = await asyncio.to_thread(self.publisher.publish_liveness, snapshot)
                metrics.set_gauge(metrics.products_up, summary.up)

                down = [r for r in results if not r.is_up]
                if down:
                    logger.warning(
                        "Products currently down",
                        extra={"down": [f"{r.name}: {r.reason}" for r in down]},
                    )
                op.add_fields(probed=summary.total, up=summary.up, down=summary.down)
        except PipelineError as e:
            metrics.increment_counter(metrics.refresh_runs_total, 1, pipeline="liveness", status="failure")
            metrics.record_error(e.error_type, "pipeline.liveness")
            return _failure(e, "Failed to check application status")
        except Exception as e:
            metrics.increment_counter(metrics.refresh_runs_total, 1, pipeline="liveness", status="failure")
            metrics.record_error("internal_error", "pipeline.liveness")
            return _failure(e, "Failed to check application status")

        metrics.increment_counter(metrics.refresh_runs_total, 1, pipeline="liveness", status="success")
        return LivenessRefreshResult(
            timestamp=published.timestamp,
            summary=summary,
            down_list=[DownProduct(name=r.name, url=r.url, error=r.reason) for r in down],
        )

    def push_legacy_updates(
        self,
        changes: Iterable[tuple[NormalizedProduct, NormalizedProduct | None]],
    ) -> dict[str, Any]:
        """
        Write changed products back to the legacy sheet as partial updates.

        Args:
            changes: (new state, previous state or None) pairs

        Returns:
            The legacy API's response
        """
        updates = [
            item
            for product, baseline in changes
            for item in to_legacy_updates(product, baseline=baseline)
        ]
        with log_operation("legacy write-back", logger=logger, updates=len(updates)):
            return self.source.bulk_update(updates)
