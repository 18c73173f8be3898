"""Logging and metrics for the extraction engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from .logging import configure_logging
from .metrics import METRICS

if TYPE_CHECKING:
    from readercore.config.config import MonitoringConfig

__all__ = [
    "configure_logging",
    "configure_metrics",
    "metrics_enabled",
    "METRICS",
    "increment",
    "histogram",
    "export_prometheus",
]

_metrics_enabled = True


def configure_metrics(config: MonitoringConfig) -> None:
    """Switch metric recording on or off for the whole process."""
    global _metrics_enabled
    _metrics_enabled = config.metrics_enabled


def metrics_enabled() -> bool:
    return _metrics_enabled


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    """Increment a counter metric."""
    if _metrics_enabled and name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).inc(value)
        else:
            metric.inc(value)


def histogram(name: str, value: float, labels: Optional[Dict[str, Any]] = None) -> None:
    """Observe a histogram metric."""
    if _metrics_enabled and name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).observe(value)
        else:
            metric.observe(value)


def export_prometheus() -> str:
    """Export metrics in Prometheus format."""
    from prometheus_client import generate_latest

    return generate_latest().decode("utf-8")
