"""
Tests for logging configuration and metrics helpers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from readercore import Readability
from readercore.config import MonitoringConfig
from readercore.observability import (
    METRICS,
    configure_logging,
    configure_metrics,
    export_prometheus,
    histogram,
    increment,
    metrics_enabled,
)
from tests.helpers.documents import article_html
from tests.helpers.metric_delta import histogram_observes, metric_delta

pytestmark = pytest.mark.usefixtures("restore_logging")


@pytest.fixture
def metrics_switch():
    yield
    configure_metrics(MonitoringConfig(metrics_enabled=True))


class TestLogging:
    def test_json_lines_written_to_file(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "readercore.log"
        configure_logging(MonitoringConfig(log_file=str(log_file), log_level="INFO"))

        structlog.get_logger("readercore.test").info("hello", answer=42)
        structlog.get_logger("readercore.test").debug("filtered out")
        for handler in logging.getLogger().handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        events = [r["event"] for r in records]
        assert "hello" in events
        assert "filtered out" not in events
        hello = records[events.index("hello")]
        assert hello["answer"] == 42
        assert hello["level"] == "info"
        assert hello["logger"] == "readercore.test"

    def test_stdlib_records_use_same_format(self, tmp_path: Path):
        log_file = tmp_path / "stdlib.log"
        configure_logging(MonitoringConfig(log_file=str(log_file), log_level="WARNING"))

        logging.getLogger("readercore.metadata").warning("plain %s", "record")
        for handler in logging.getLogger().handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert records[-1]["event"] == "plain record"
        assert records[-1]["level"] == "warning"

    def test_level_applied_to_root(self):
        configure_logging(MonitoringConfig(log_level="ERROR"))
        assert logging.getLogger().level == logging.ERROR


class TestMetrics:
    def test_increment_labeled_counter(self):
        with metric_delta(METRICS["extractions_total"].labels(outcome="test"), 2):
            increment("extractions_total", 2, labels={"outcome": "test"})

    def test_histogram_observation(self):
        with histogram_observes(METRICS["content_length_chars"]):
            histogram("content_length_chars", 1234)

    def test_unknown_metric_ignored(self):
        increment("no_such_metric")
        histogram("no_such_metric", 1.0)

    def test_disabled_metrics_are_not_recorded(self, metrics_switch):
        counter = METRICS["extractions_total"].labels(outcome="success")
        configure_metrics(MonitoringConfig(metrics_enabled=False))

        assert not metrics_enabled()
        with metric_delta(counter, 0):
            increment("extractions_total", labels={"outcome": "success"})
            Readability().extract(article_html())

    def test_enabled_by_default(self, metrics_switch):
        configure_metrics(MonitoringConfig())
        assert metrics_enabled()

    def test_prometheus_export(self):
        exported = export_prometheus()

        assert "readercore_extractions_total" in exported
        assert "readercore_extraction_duration_seconds" in exported
