"""
Feed propagation benchmark: round loop, sync monitoring and reporting.

Provides:
- ConvergenceVerifier: publishes rounds and waits for readers to agree
- SyncMonitor: waits for upload tags to finish replicating
- run_benchmark: a complete session from a `BenchmarkConfig`
"""

from .events import (
    BenchmarkEvent,
    EventSink,
    GracePeriodStarted,
    IndexMismatch,
    LoggingEventSink,
    ManifestCreated,
    ReadersPolled,
    RecordingEventSink,
    RoundConverged,
    RoundSkipped,
    UpdatePublished,
)
from .report import ReportWriter, RoundReport
from .session import BenchmarkOutcome, run_benchmark
from .sync import SyncMonitor
from .verifier import BenchmarkState, ConvergenceVerifier, PollResult, ReaderObservation

__all__ = [
    "BenchmarkEvent",
    "BenchmarkOutcome",
    "BenchmarkState",
    "ConvergenceVerifier",
    "EventSink",
    "GracePeriodStarted",
    "IndexMismatch",
    "LoggingEventSink",
    "ManifestCreated",
    "PollResult",
    "ReaderObservation",
    "ReadersPolled",
    "RecordingEventSink",
    "ReportWriter",
    "RoundConverged",
    "RoundReport",
    "RoundSkipped",
    "SyncMonitor",
    "UpdatePublished",
    "run_benchmark",
]
