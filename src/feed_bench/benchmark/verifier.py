"""
Convergence verifier: the control loop of the benchmark.

The Propagation Problem
-----------------------
A feed update is published through one set of nodes and read through
another. The storage network is eventually consistent: for a while after a
publish some readers still return the previous update, or nothing at all.
The benchmark measures how long that while lasts.

How a Round Works
-----------------
1. Advance the payload reference so this round's update is distinguishable.
2. Publish through every writer concurrently; the first failure aborts.
3. Optionally wait for each writer's sync tag.
4. Wait a fixed replication grace period.
5. Unless this round is verified, stop here.
6. Poll every reader concurrently and compare indices with the expected one.
7. While any reader disagrees, wait and poll *all* readers again.
8. Once all agree in the same poll, report latencies and move on.

Indices rather than payloads are compared: the payload reference changes
every round, so equal indices already imply the reader saw this round's
update.

The retry loop has no bound unless `convergence_timeout` is set. A feed left
over from an earlier run on the same topic is detected while polling after a
conflicted publish and aborts the run.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from feed_bench import metrics
from feed_bench.bee import FeedUpdate
from feed_bench.exceptions import (
    ConvergenceTimeoutError,
    FeedNotEmptyError,
    FeedNotFoundError,
    WriterDivergenceError,
)
from feed_bench.feeds.encoding import increment_reference
from feed_bench.feeds.writer import PublishResult
from feed_bench.types import ZERO_HASH, Bytes32, Uint64

from .config import DEFAULT_GRACE_PERIOD, DEFAULT_POLL_INTERVAL, DEFAULT_ROUND_WAIT
from .events import (
    EventSink,
    GracePeriodStarted,
    IndexMismatch,
    LoggingEventSink,
    ReadersPolled,
    RoundConverged,
    RoundSkipped,
    UpdatePublished,
)
from .report import ReportWriter, RoundReport
from .sync import SyncMonitor
from .timing import Clock, Measured, Sleep, measure

logger = logging.getLogger(__name__)


class FeedPublisher(Protocol):
    """Writer side of the loop; satisfied by `FeedWriter`."""

    @property
    def url(self) -> str: ...

    async def publish(self, stamp: str, reference: Bytes32, *, tag: int | None = None) -> PublishResult:
        """Publish the next update."""
        ...


class FeedDownloader(Protocol):
    """Reader side of the loop; satisfied by `FeedReader`."""

    @property
    def url(self) -> str: ...

    async def download(self) -> FeedUpdate:
        """Return the latest update, or raise `FeedNotFoundError`."""
        ...


@dataclass(slots=True)
class BenchmarkState:
    """
    Counters shared by every round.

    Only the verifier mutates them, between awaited operations.
    """

    round_index: int = 0
    """Rounds completed so far."""

    reference: Bytes32 = ZERO_HASH
    """Payload reference of the latest round."""

    conflicted: bool = False
    """Every writer absorbed the latest publish as an already stored chunk."""

    def advance_reference(self) -> Bytes32:
        """Move to the next round's payload reference and return it."""
        self.reference = increment_reference(self.reference)
        return self.reference


@dataclass(frozen=True, slots=True)
class ReaderObservation:
    """What one reader returned in one poll."""

    url: str
    """Reader node."""

    update: FeedUpdate | None
    """The update, or None if the node had none."""

    started_at: float
    """Clock reading when the download was issued."""

    finished_at: float
    """Clock reading when the download completed."""

    @property
    def index(self) -> Uint64 | None:
        """Observed index, None if nothing was found."""
        return None if self.update is None else self.update.index

    @property
    def latency_ms(self) -> float:
        """Download duration in milliseconds."""
        return (self.finished_at - self.started_at) * 1000


@dataclass(frozen=True, slots=True)
class PollResult:
    """One concurrent poll of every reader."""

    poll: int
    """One-based poll number within the round."""

    observations: tuple[ReaderObservation, ...]
    """Per-reader results, in reader order."""

    @property
    def indices(self) -> tuple[Uint64 | None, ...]:
        """Observed index per reader."""
        return tuple(observation.index for observation in self.observations)

    def converged_on(self, expected: int) -> bool:
        """Whether every reader reported `expected`."""
        return all(index == expected for index in self.indices)


@dataclass(slots=True)
class ConvergenceVerifier:
    """
    Drives publish rounds and waits for readers to agree on each one.

    Writers and stamps are paired by position. Readers should be different
    nodes from the writers, otherwise the benchmark measures nothing.
    """

    writers: Sequence[FeedPublisher]
    """One writer per publishing node."""

    readers: Sequence[FeedDownloader]
    """One reader per observing node."""

    stamps: Sequence[str]
    """Postage stamp per writer."""

    topic: Bytes32
    """Feed topic, written to every report line."""

    grace_period: float = DEFAULT_GRACE_PERIOD
    """Seconds to wait after publishing, before the first poll."""

    round_wait: float = DEFAULT_ROUND_WAIT
    """Seconds to wait between rounds."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    """Seconds between polls while readers disagree."""

    convergence_timeout: float | None = None
    """Upper bound on the polling loop in seconds; None waits forever."""

    download_iteration: int = 1
    """Verify every N-th round; the last round is always verified."""

    sync_monitors: Sequence[SyncMonitor] | None = None
    """Per-writer sync monitors; None skips sync-tag waiting."""

    report_writer: ReportWriter | None = None
    """Where verified rounds are appended."""

    events: EventSink = field(default_factory=LoggingEventSink)
    """Telemetry sink."""

    sleep: Sleep = asyncio.sleep
    """Suspension primitive; replaced in tests."""

    clock: Clock = time.monotonic
    """Monotonic clock for latencies."""

    wall_clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))
    """Wall clock for report timestamps."""

    state: BenchmarkState = field(default_factory=BenchmarkState)
    """Round counter and payload reference."""

    def __post_init__(self) -> None:
        if not self.writers:
            raise ValueError("At least one writer is required")
        if not self.readers:
            raise ValueError("At least one reader is required")
        if len(self.stamps) != len(self.writers):
            raise ValueError(
                f"Got {len(self.writers)} writers but {len(self.stamps)} stamps"
            )
        if self.sync_monitors is not None and len(self.sync_monitors) != len(self.writers):
            raise ValueError("Need exactly one sync monitor per writer")
        if self.download_iteration < 1:
            raise ValueError("download_iteration must be at least 1")

    async def run(self, updates: int) -> list[RoundReport]:
        """
        Run `updates` rounds.

        Returns:
            Reports of the verified rounds, in order.

        Raises:
            PublishError: If any writer fails hard.
            SyncTimeoutError: If a sync tag stalls.
            ConvergenceTimeoutError: If readers do not agree in time.
        """
        reports: list[RoundReport] = []
        for i in range(updates):
            is_last = i == updates - 1
            report = await self.run_round(is_last=is_last)
            if report is not None:
                reports.append(report)
            if not is_last:
                await self.sleep(self.round_wait)
        return reports

    async def run_round(self, *, is_last: bool = True) -> RoundReport | None:
        """
        Publish one update and, if this round is verified, wait for convergence.

        Returns:
            The round's report, or None if the round was not verified.
        """
        round_index = self.state.round_index
        reference = self.state.advance_reference()
        timestamp = self.wall_clock()

        expected = await self.publish_round(round_index, reference)
        self.state.round_index += 1

        self.events.emit(GracePeriodStarted(round_index=round_index, seconds=self.grace_period))
        await self.sleep(self.grace_period)

        if not (is_last or (round_index + 1) % self.download_iteration == 0):
            self.events.emit(RoundSkipped(round_index=round_index, index=expected))
            return None

        report = await self.await_convergence(round_index, expected, timestamp)

        metrics.rounds_verified.inc()
        metrics.verified_index.set(int(expected))
        self.events.emit(RoundConverged(report=report))
        if self.report_writer is not None:
            self.report_writer.append(report)
        return report

    async def publish_round(self, round_index: int, reference: Bytes32) -> Uint64:
        """
        Publish `reference` through every writer at once.

        Returns:
            The index all writers committed.

        Raises:
            PublishError: The first hard failure among the writers.
            WriterDivergenceError: If writers committed different indices.
        """
        tags: list[int | None] = [None] * len(self.writers)
        if self.sync_monitors is not None:
            tags = list(await asyncio.gather(*(m.create_tag() for m in self.sync_monitors)))

        uploads: list[Measured[PublishResult]] = await asyncio.gather(
            *(
                measure(lambda w=writer, s=stamp, t=tag: w.publish(s, reference, tag=t), self.clock)
                for writer, stamp, tag in zip(self.writers, self.stamps, tags, strict=True)
            )
        )

        for writer, upload in zip(self.writers, uploads, strict=True):
            url = writer.url
            metrics.publish_latency.labels(node=url).observe(upload.elapsed_ms / 1000)
            if upload.value.conflict:
                metrics.publish_conflicts.labels(node=url).inc()
            self.events.emit(
                UpdatePublished(
                    round_index=round_index,
                    node_url=url,
                    index=upload.value.index,
                    reference=upload.value.reference,
                    latency_ms=upload.elapsed_ms,
                    conflict=upload.value.conflict,
                )
            )

        indices = [int(upload.value.index) for upload in uploads]
        if len(set(indices)) != 1:
            raise WriterDivergenceError(indices)

        expected = uploads[0].value.index
        self.state.conflicted = all(upload.value.conflict for upload in uploads)
        if self.state.conflicted:
            logger.warning("Every writer already held index %d; the feed may not have started empty", expected)

        if self.sync_monitors is not None:
            await asyncio.gather(
                *(
                    monitor.wait_synced(tag)
                    for monitor, tag in zip(self.sync_monitors, tags, strict=True)
                    if tag is not None
                )
            )

        return expected

    async def poll(self, round_index: int, poll: int) -> PollResult:
        """Download from every reader at once and record what each returned."""
        observations = await asyncio.gather(*(self._observe(reader) for reader in self.readers))
        result = PollResult(poll=poll, observations=tuple(observations))

        metrics.polls.inc()
        for observation in result.observations:
            metrics.download_latency.labels(node=observation.url).observe(observation.latency_ms / 1000)

        self.events.emit(
            ReadersPolled(
                round_index=round_index,
                poll=poll,
                indices=result.indices,
                latencies_ms=tuple(o.latency_ms for o in result.observations),
            )
        )
        return result

    async def await_convergence(
        self, round_index: int, expected: Uint64, timestamp: datetime
    ) -> RoundReport:
        """
        Poll readers until all of them report `expected` in the same poll.

        Per-reader latency runs from the start of the first poll until the
        download in which that reader started reporting `expected`. A reader
        that falls back to a stale index loses its earlier sighting.

        Raises:
            ConvergenceTimeoutError: If `convergence_timeout` elapses first.
            FeedNotEmptyError: If the publish was absorbed as a conflict and a
                reader already reports a later index.
        """
        first_poll_at = self.clock()
        seen_at: list[float | None] = [None] * len(self.readers)
        poll = 0

        while True:
            poll += 1
            result = await self.poll(round_index, poll)

            for i, observation in enumerate(result.observations):
                if observation.index == expected:
                    if seen_at[i] is None:
                        seen_at[i] = observation.finished_at
                    continue

                if (
                    self.state.conflicted
                    and observation.index is not None
                    and observation.index > expected
                ):
                    raise FeedNotEmptyError(observation.url, int(expected), int(observation.index))

                seen_at[i] = None
                metrics.divergences.labels(node=observation.url).inc()
                self.events.emit(
                    IndexMismatch(
                        round_index=round_index,
                        poll=poll,
                        node_url=observation.url,
                        expected=expected,
                        observed=observation.index,
                    )
                )

            if result.converged_on(expected):
                break

            if (
                self.convergence_timeout is not None
                and self.clock() - first_poll_at >= self.convergence_timeout
            ):
                raise ConvergenceTimeoutError(int(expected), poll, result)

            await self.sleep(self.poll_interval)

        metrics.convergence_time.observe(self.clock() - first_poll_at)

        return RoundReport(
            timestamp=timestamp,
            topic=self.topic,
            expected_index=expected,
            readers=tuple(reader.url for reader in self.readers),
            observed_indices=result.indices,
            latencies_ms=tuple(
                round((seen - first_poll_at) * 1000) for seen in seen_at if seen is not None
            ),
            polls=poll,
        )

    async def _observe(self, reader: FeedDownloader) -> ReaderObservation:
        """Download once from `reader`; a missing feed counts as no update."""
        started_at = self.clock()
        update: FeedUpdate | None
        try:
            update = await reader.download()
        except FeedNotFoundError:
            update = None
        return ReaderObservation(
            url=reader.url, update=update, started_at=started_at, finished_at=self.clock()
        )
