"""
Unit tests for structured logging and metrics helpers.
"""

import json
import logging

import pytest

from catalog_sync.core.errors import UpstreamUnavailableError
from catalog_sync.observability import metrics
from catalog_sync.observability.logger import CatalogJsonFormatter, get_logger, log_operation


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    """Attach a collecting handler to a component logger"""
    logger = get_logger("tests.observability")
    handler = ListHandler()
    logger.addHandler(handler)
    yield logger, handler.records
    logger.removeHandler(handler)


class TestLogger:
    """Tests for the logger setup"""

    def test_component_loggers_are_children(self):
        assert get_logger("probe").name == "catalog-sync.probe"
        assert get_logger().name == "catalog-sync"

    def test_json_formatter(self):
        """Test extra fields become top-level JSON keys"""
        formatter = CatalogJsonFormatter(fmt="%(timestamp)s %(level)s %(logger)s %(message)s")
        record = logging.LogRecord("catalog-sync.probe", logging.WARNING, __file__, 1, "Probe down", None, None)
        record.product = "Kami"

        line = json.loads(formatter.format(record))

        assert line["message"] == "Probe down"
        assert line["level"] == "WARNING"
        assert line["logger"] == "catalog-sync.probe"
        assert line["product"] == "Kami"


class TestLogOperation:
    """Tests for log_operation"""

    def test_success(self, captured):
        logger, records = captured

        with log_operation("catalog refresh", logger=logger, records=3) as op:
            op.add_fields(published=2)

        assert [r.getMessage() for r in records] == ["Starting: catalog refresh", "Completed: catalog refresh"]
        assert records[1].status == "success"
        assert records[1].records == 3
        assert records[1].published == 2
        assert records[1].duration_seconds >= 0

    def test_failure_is_logged_and_reraised(self, captured):
        logger, records = captured

        with pytest.raises(UpstreamUnavailableError):
            with log_operation("catalog refresh", logger=logger):
                raise UpstreamUnavailableError("Legacy API returned HTTP 502")

        failed = records[-1]
        assert failed.levelno == logging.ERROR
        assert failed.status == "error"
        assert failed.error_type == "upstream_unavailable"
        assert "502" in failed.error_message


class TestMetrics:
    """Tests for the metric helpers"""

    def test_zero_increment_is_skipped(self):
        before = metrics.REGISTRY.get_sample_value(
            "catalog_records_processed_total", {"outcome": "unit-test-zero"}
        )
        metrics.increment_counter(metrics.records_processed_total, 0, outcome="unit-test-zero")

        assert before is None
        assert metrics.REGISTRY.get_sample_value(
            "catalog_records_processed_total", {"outcome": "unit-test-zero"}
        ) is None

    def test_record_error(self):
        labels = {"error_type": "unit_test", "component": "tests"}
        before = metrics.REGISTRY.get_sample_value("catalog_errors_total", labels) or 0

        metrics.record_error("unit_test", "tests")

        assert metrics.REGISTRY.get_sample_value("catalog_errors_total", labels) == before + 1

    def test_track_duration(self):
        labels = {"pipeline": "unit-test"}

        with metrics.track_duration(metrics.refresh_duration_seconds, **labels):
            pass

        assert metrics.REGISTRY.get_sample_value("catalog_refresh_duration_seconds_count", labels) == 1

    def test_exposition(self):
        metrics.set_gauge(metrics.products_up, 7)
        output = metrics.generate_metrics().decode("utf-8")

        assert "catalog_products_up 7.0" in output
        assert metrics.get_content_type().startswith("text/plain")
