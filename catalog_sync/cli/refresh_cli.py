"""
Command-line interface for the refresh pipeline.

Usage:
    catalog-sync refresh
    catalog-sync probe
    catalog-sync classify --input records.json
    catalog-sync show snapshot
    catalog-sync serve --port 8000
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from catalog_sync.config import load_settings
from catalog_sync.core.errors import PipelineError
from catalog_sync.core.models import RefreshFailure
from catalog_sync.core.rules import categorize, load_rules
from catalog_sync.observability.logger import get_logger, setup_logger
from catalog_sync.pipeline import RefreshPipeline, reconcile
from catalog_sync.sources.legacy_client import unwrap_payload

logger = get_logger("cli")


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _build_pipeline(args) -> RefreshPipeline:
    settings = load_settings(env_file=args.env_file)
    return RefreshPipeline(settings)


def refresh_command(args) -> int:
    """Run one catalog pass and print the structured result."""
    pipeline = _build_pipeline(args)
    result = pipeline.run_catalog_refresh()
    _print_json(result.model_dump(mode="json", by_alias=True))

    if isinstance(result, RefreshFailure):
        logger.error(f"Catalog refresh failed: {result.details}")
        return 1

    logger.info("=" * 60)
    logger.info("CATALOG REFRESH COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Products published: {result.counts_processed}")
    logger.info(f"Records skipped: {len(result.skipped)}")
    logger.info(f"Orphans: {len(result.orphans)}")
    logger.info(f"Snapshot size: {result.byte_size_before} -> {result.byte_size_after} bytes "
                f"({result.reduction_pct}% smaller)")
    logger.info("=" * 60)
    return 0


def probe_command(args) -> int:
    """Run one liveness pass and print the structured result."""
    pipeline = _build_pipeline(args)
    result = asyncio.run(pipeline.run_liveness_refresh())
    _print_json(result.model_dump(mode="json", by_alias=True))

    if isinstance(result, RefreshFailure):
        logger.error(f"Liveness refresh failed: {result.details}")
        return 1

    logger.info(f"Probed {result.summary.total}: {result.summary.up} up, {result.summary.down} down")
    return 0


def classify_command(args) -> int:
    """
    Dry run against a local JSON export: normalize and categorize, write nothing.
    """
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {args.input}")
        return 1

    try:
        with open(input_path, encoding="utf-8") as f:
            records = unwrap_payload(json.load(f))
    except (json.JSONDecodeError, PipelineError) as e:
        logger.error(f"Cannot read records from {args.input}: {e}")
        return 1

    rules = load_rules(args.rules)
    products, skipped = reconcile(records)
    catalog = categorize(products, rules)

    _print_json({
        "records": len(records),
        "products": len(products),
        "bucketCounts": {key: len(bucket.products) for key, bucket in catalog.buckets.items()},
        "orphans": catalog.stats.orphans,
        "skipped": [s.model_dump(by_alias=True) for s in skipped],
    })
    return 0


def show_command(args) -> int:
    """Print what the cache reader would serve for the snapshot or status."""
    pipeline = _build_pipeline(args)
    reader = pipeline.reader
    result = reader.read_snapshot() if args.what == "snapshot" else reader.read_status()
    _print_json({"statusCode": result.status_code, "headers": result.headers, "body": result.body})
    return 0 if result.status_code < 500 else 1


def serve_command(args) -> int:
    """Run the HTTP API under uvicorn."""
    import uvicorn

    from catalog_sync.api import create_app

    settings = load_settings(env_file=args.env_file)
    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)
    return 0


COMMANDS = {
    "refresh": refresh_command,
    "probe": probe_command,
    "classify": classify_command,
    "show": show_command,
    "serve": serve_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catalog-sync",
        description="Catalog reconciliation, categorization and cache refresh",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Refresh the cached catalog snapshot
  catalog-sync refresh

  # Probe every product website and publish liveness
  catalog-sync probe

  # Check how a local export would be categorized (nothing is written)
  catalog-sync classify --input data/apps-local.json

  # Show what the dashboard would receive
  catalog-sync show status
        """,
    )
    parser.add_argument("--env-file", default=None, help="Path to a .env file (default: ./.env)")
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("refresh", help="Run one catalog refresh pass")
    subparsers.add_parser("probe", help="Run one liveness pass")

    classify_parser = subparsers.add_parser("classify", help="Dry-run categorization of a JSON export")
    classify_parser.add_argument("--input", required=True, help="Path to a JSON array of legacy rows")
    classify_parser.add_argument(
        "--rules",
        default="config/classification_rules.yaml",
        help="Classification rules YAML (built-in defaults when missing)",
    )

    show_parser = subparsers.add_parser("show", help="Print a cached snapshot")
    show_parser.add_argument("what", choices=["snapshot", "status"], help="Which snapshot to read")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.log_level:
        setup_logger(level=args.log_level)

    try:
        return COMMANDS[args.command](args)
    except PipelineError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
