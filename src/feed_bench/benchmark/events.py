"""
Benchmark events and the sinks that consume them.

The round loop reports what it does as structured events instead of writing
to the console. A sink decides what happens to them:

::

    ConvergenceVerifier
           |
       EventSink.emit(event)
           |
           +-- LoggingEventSink    --> logging records for operators
           +-- RecordingEventSink  --> in-memory list for tests and tooling
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from feed_bench.types import Bytes32, Uint64

from .report import RoundReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ManifestCreated:
    """The feed manifest was stored; third parties can now resolve the feed."""

    node_url: str
    """Node that stored the manifest."""

    reference: Bytes32
    """Manifest address."""


@dataclass(frozen=True, slots=True)
class UpdatePublished:
    """One writer finished publishing a round's update."""

    round_index: int
    """Zero-based round number."""

    node_url: str
    """Writer node."""

    index: Uint64
    """Committed feed index."""

    reference: Bytes32
    """Committed chunk address."""

    latency_ms: float
    """Publish duration."""

    conflict: bool
    """True if the node already held the chunk."""


@dataclass(frozen=True, slots=True)
class GracePeriodStarted:
    """The loop is waiting for replication before reading."""

    round_index: int
    """Zero-based round number."""

    seconds: float
    """Length of the wait."""


@dataclass(frozen=True, slots=True)
class ReadersPolled:
    """Every reader answered one poll."""

    round_index: int
    """Zero-based round number."""

    poll: int
    """One-based poll number within the round."""

    indices: tuple[Uint64 | None, ...]
    """Index per reader; None where the node had no update."""

    latencies_ms: tuple[float, ...]
    """Download duration per reader."""


@dataclass(frozen=True, slots=True)
class IndexMismatch:
    """A reader reported an index other than the expected one."""

    round_index: int
    """Zero-based round number."""

    poll: int
    """One-based poll number within the round."""

    node_url: str
    """Reader node."""

    expected: Uint64
    """Index the writers committed."""

    observed: Uint64 | None
    """What the reader reported; None if it found nothing."""

    @property
    def ahead(self) -> bool:
        """The reader is past the expected index, which breaks the sequence contract."""
        return self.observed is not None and self.observed > self.expected


@dataclass(frozen=True, slots=True)
class RoundSkipped:
    """A round was published but not verified (download iteration)."""

    round_index: int
    """Zero-based round number."""

    index: Uint64
    """Committed feed index."""


@dataclass(frozen=True, slots=True)
class RoundConverged:
    """Every reader agreed on the expected index."""

    report: RoundReport
    """The round's report."""


BenchmarkEvent = (
    ManifestCreated
    | UpdatePublished
    | GracePeriodStarted
    | ReadersPolled
    | IndexMismatch
    | RoundSkipped
    | RoundConverged
)
"""Union of all benchmark events."""


@runtime_checkable
class EventSink(Protocol):
    """Anything that accepts benchmark events."""

    def emit(self, event: BenchmarkEvent) -> None:
        """Consume one event."""
        ...


class LoggingEventSink:
    """Forwards events to the standard logging system."""

    def emit(self, event: BenchmarkEvent) -> None:
        """Log one event at a level matching its significance."""
        match event:
            case ManifestCreated(node_url=url, reference=reference):
                logger.info("Feed manifest %s created on %s", reference.hex(), url)
            case UpdatePublished():
                logger.info(
                    "Round %d: published index %d on %s in %.3fs%s",
                    event.round_index,
                    event.index,
                    event.node_url,
                    event.latency_ms / 1000,
                    " (already committed)" if event.conflict else "",
                )
            case GracePeriodStarted(round_index=round_index, seconds=seconds):
                logger.info("Round %d: waiting %.0fs for replication", round_index, seconds)
            case ReadersPolled():
                logger.debug(
                    "Round %d poll %d: indices=%s latencies_ms=%s",
                    event.round_index,
                    event.poll,
                    [None if index is None else int(index) for index in event.indices],
                    [round(latency) for latency in event.latencies_ms],
                )
            case IndexMismatch():
                logger.warning(
                    "Feed index mismatch on %s: expected %d, got %s%s",
                    event.node_url,
                    event.expected,
                    "nothing" if event.observed is None else int(event.observed),
                    " (ahead of writer)" if event.ahead else "",
                )
            case RoundSkipped(round_index=round_index, index=index):
                logger.info("Round %d: index %d published, not verified", round_index, index)
            case RoundConverged(report=report):
                logger.info(
                    "Round converged on index %d after %d poll(s): %s",
                    report.expected_index,
                    report.polls,
                    report.to_csv_line(),
                )


@dataclass(slots=True)
class RecordingEventSink:
    """Keeps every event in memory."""

    events: list[BenchmarkEvent] = field(default_factory=list)
    """Events in emission order."""

    def emit(self, event: BenchmarkEvent) -> None:
        """Record one event."""
        self.events.append(event)

    def of_type(self, event_type: type) -> list[BenchmarkEvent]:
        """Return recorded events of one type, in order."""
        return [event for event in self.events if isinstance(event, event_type)]
