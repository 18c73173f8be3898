"""
Defines the Prometheus metrics recorded by the extraction engine.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Re-importing this module (test collection, importlib.reload) must not fail
# with "Duplicated timeseries in CollectorRegistry".


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race; fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "extractions_total": Counter(
            "readercore_extractions_total",
            "Total number of extraction calls by outcome",
            ["outcome"],
        ),
        "extraction_attempts_total": Counter(
            "readercore_extraction_attempts_total",
            "Total number of extraction attempts by gate result",
            ["accepted"],
        ),
        "extraction_duration_seconds": Histogram(
            "readercore_extraction_duration_seconds",
            "Time taken by one extraction call",
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
        ),
        "content_length_chars": Histogram(
            "readercore_content_length_chars",
            "Length of accepted article text",
            buckets=[100, 250, 500, 1000, 2500, 5000, 10000, 25000, 50000],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()
