"""
Benchmark session: wires configuration to clients, writers and readers.

One session is one feed:

1. Resolve the owner identity and topic.
2. Open one HTTP client per node.
3. Create the feed manifest through the first writer.
4. Hand everything to the convergence verifier and run all rounds.
5. Close every client, also on failure.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass

import httpx

from feed_bench.bee import BeeClient
from feed_bench.config import BenchmarkConfig
from feed_bench.feeds.identity import FeedAddress, Identity, resolve_topic
from feed_bench.feeds.reader import FeedReader
from feed_bench.feeds.writer import FeedWriter
from feed_bench.types import Bytes32

from .events import EventSink, LoggingEventSink, ManifestCreated
from .report import ReportWriter, RoundReport
from .sync import SyncMonitor
from .timing import Sleep
from .verifier import ConvergenceVerifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BenchmarkOutcome:
    """What a finished session produced."""

    feed: FeedAddress
    """The benchmarked feed."""

    manifest: Bytes32
    """Address of the feed manifest."""

    reports: tuple[RoundReport, ...]
    """One report per verified round."""


async def run_benchmark(
    config: BenchmarkConfig,
    *,
    events: EventSink | None = None,
    sleep: Sleep = asyncio.sleep,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BenchmarkOutcome:
    """
    Run a complete benchmark session.

    Args:
        config: Validated configuration.
        events: Telemetry sink; logs by default.
        sleep: Suspension primitive for every timed wait.
        transport: Optional HTTP transport shared by all clients, used by tests.

    Returns:
        The feed, its manifest and every round report.

    Raises:
        FeedBenchError: On any fatal publish, sync or convergence failure.
    """
    sink = events if events is not None else LoggingEventSink()
    identity = Identity.from_hex(config.private_key)
    topic = resolve_topic(config.topic, config.topic_seed)
    feed = FeedAddress(owner=identity.address, topic=topic)
    logger.info("Benchmarking feed %s", feed)

    async with AsyncExitStack() as stack:
        writer_clients = [
            await stack.enter_async_context(
                BeeClient(url, timeout=config.request_timeout, transport=transport)
            )
            for url in config.writers
        ]
        reader_clients = [
            await stack.enter_async_context(
                BeeClient(url, timeout=config.request_timeout, transport=transport)
            )
            for url in config.readers
        ]

        writers = [FeedWriter(client=client, identity=identity, topic=topic) for client in writer_clients]
        readers = [FeedReader(client=client, owner=identity.address, topic=topic) for client in reader_clients]

        manifest = await writers[0].create_manifest(config.stamps[0])
        sink.emit(ManifestCreated(node_url=writers[0].url, reference=manifest))

        sync_monitors = None
        if config.sync_tags:
            sync_monitors = [
                SyncMonitor(client=client, polling_trials=config.sync_trials, sleep=sleep)
                for client in writer_clients
            ]

        verifier = ConvergenceVerifier(
            writers=writers,
            readers=readers,
            stamps=config.stamps,
            topic=topic,
            grace_period=config.grace_period,
            round_wait=config.round_wait,
            poll_interval=config.poll_interval,
            convergence_timeout=config.convergence_timeout,
            download_iteration=config.download_iteration,
            sync_monitors=sync_monitors,
            report_writer=ReportWriter(config.report_path),
            events=sink,
            sleep=sleep,
        )
        reports = await verifier.run(config.updates)

    return BenchmarkOutcome(feed=feed, manifest=manifest, reports=tuple(reports))
