"""
Metric registry using prometheus_client.

Provides pre-defined metrics for a feed propagation benchmark run.
Exposed in Prometheus text format via `generate_metrics()`.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Dedicated registry; default Python process metrics are not useful here.
REGISTRY = CollectorRegistry()

_LATENCY_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

# -----------------------------------------------------------------------------
# Publishing
# -----------------------------------------------------------------------------

publish_latency = Histogram(
    "feed_bench_publish_seconds",
    "Duration of one feed update publish",
    ["node"],
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)

publish_conflicts = Counter(
    "feed_bench_publish_conflicts_total",
    "Publishes absorbed because the chunk was already stored",
    ["node"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Reading
# -----------------------------------------------------------------------------

download_latency = Histogram(
    "feed_bench_download_seconds",
    "Duration of one feed lookup",
    ["node"],
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)

divergences = Counter(
    "feed_bench_divergences_total",
    "Lookups that returned anything other than the expected index",
    ["node"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Convergence
# -----------------------------------------------------------------------------

polls = Counter(
    "feed_bench_polls_total",
    "Reader poll rounds issued",
    registry=REGISTRY,
)

rounds_verified = Counter(
    "feed_bench_rounds_verified_total",
    "Rounds in which every reader converged",
    registry=REGISTRY,
)

convergence_time = Histogram(
    "feed_bench_convergence_seconds",
    "Time from the first poll until all readers agree",
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
    registry=REGISTRY,
)

verified_index = Gauge(
    "feed_bench_verified_index",
    "Latest feed index all readers agreed on",
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
