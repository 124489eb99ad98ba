"""
Metrics module for observability.

Provides counters, gauges, and histograms for tracking a benchmark run.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    convergence_time,
    divergences,
    download_latency,
    generate_metrics,
    polls,
    publish_conflicts,
    publish_latency,
    rounds_verified,
    verified_index,
)

__all__ = [
    "REGISTRY",
    "convergence_time",
    "divergences",
    "download_latency",
    "generate_metrics",
    "polls",
    "publish_conflicts",
    "publish_latency",
    "rounds_verified",
    "verified_index",
]
