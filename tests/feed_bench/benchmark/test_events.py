"""Tests for benchmark events and sinks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from feed_bench.benchmark import (
    EventSink,
    GracePeriodStarted,
    IndexMismatch,
    LoggingEventSink,
    ManifestCreated,
    ReadersPolled,
    RecordingEventSink,
    RoundConverged,
    RoundReport,
    RoundSkipped,
    UpdatePublished,
)
from feed_bench.types import Bytes32, Uint64

LOGGER = "feed_bench.benchmark.events"


class TestIndexMismatch:
    """The `ahead` flag."""

    def test_behind(self) -> None:
        event = IndexMismatch(round_index=0, poll=1, node_url="r", expected=Uint64(3), observed=Uint64(2))
        assert not event.ahead

    def test_missing(self) -> None:
        event = IndexMismatch(round_index=0, poll=1, node_url="r", expected=Uint64(3), observed=None)
        assert not event.ahead

    def test_ahead(self) -> None:
        event = IndexMismatch(round_index=0, poll=1, node_url="r", expected=Uint64(3), observed=Uint64(4))
        assert event.ahead


class TestSinks:
    """Recording and logging sinks."""

    def test_sinks_satisfy_protocol(self) -> None:
        assert isinstance(LoggingEventSink(), EventSink)
        assert isinstance(RecordingEventSink(), EventSink)

    def test_recording_filters_by_type(self) -> None:
        sink = RecordingEventSink()
        skipped = RoundSkipped(round_index=0, index=Uint64(0))
        grace = GracePeriodStarted(round_index=1, seconds=40.0)
        sink.emit(skipped)
        sink.emit(grace)

        assert sink.events == [skipped, grace]
        assert sink.of_type(RoundSkipped) == [skipped]

    def test_mismatch_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        event = IndexMismatch(
            round_index=0, poll=1, node_url="http://r", expected=Uint64(1), observed=Uint64(2)
        )
        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            LoggingEventSink().emit(event)

        [record] = caplog.records
        assert record.levelno == logging.WARNING
        assert "expected 1, got 2 (ahead of writer)" in record.getMessage()

    def test_poll_logs_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        event = ReadersPolled(round_index=0, poll=2, indices=(Uint64(1), None), latencies_ms=(10.4, 20.6))
        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            LoggingEventSink().emit(event)

        [record] = caplog.records
        assert record.levelno == logging.DEBUG
        assert "indices=[1, None] latencies_ms=[10, 21]" in record.getMessage()

    def test_info_events(self, caplog: pytest.LogCaptureFixture) -> None:
        report = RoundReport(
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            topic=Bytes32.zero(),
            expected_index=Uint64(0),
            readers=("http://r",),
            observed_indices=(Uint64(0),),
            latencies_ms=(5,),
            polls=1,
        )
        events = [
            ManifestCreated(node_url="http://w", reference=Bytes32(b"\x01" * 32)),
            UpdatePublished(
                round_index=0,
                node_url="http://w",
                index=Uint64(0),
                reference=Bytes32.zero(),
                latency_ms=1500.0,
                conflict=True,
            ),
            GracePeriodStarted(round_index=0, seconds=40.0),
            RoundSkipped(round_index=0, index=Uint64(0)),
            RoundConverged(report=report),
        ]
        sink = LoggingEventSink()
        with caplog.at_level(logging.INFO, logger=LOGGER):
            for event in events:
                sink.emit(event)

        assert [r.levelno for r in caplog.records] == [logging.INFO] * len(events)
        assert "already committed" in caplog.records[1].getMessage()
        assert report.to_csv_line() in caplog.records[4].getMessage()
