"""
Round reports and the CSV report file.

Each verified round produces one line:

    timestamp,topicHex,expectedIndex,<observed index per reader>...,<latency ms per reader>...

The file is append-only so several runs can share it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from feed_bench.types import Bytes32, Uint64

from .config import REPORT_TIMESTAMP_FORMAT


@dataclass(frozen=True, slots=True)
class RoundReport:
    """
    Outcome of one verified round.

    Observed indices and latencies are in reader order.
    """

    timestamp: datetime
    """When the round started."""

    topic: Bytes32
    """Feed topic."""

    expected_index: Uint64
    """Index the writers committed this round."""

    readers: tuple[str, ...]
    """Reader node URLs."""

    observed_indices: tuple[Uint64 | None, ...]
    """Index each reader reported in the converging poll."""

    latencies_ms: tuple[int, ...]
    """Milliseconds from the first poll until each reader first showed the expected index."""

    polls: int
    """Number of polls needed to converge."""

    @property
    def converged(self) -> bool:
        """Whether every reader reported the expected index."""
        return all(index == self.expected_index for index in self.observed_indices)

    def to_csv_line(self) -> str:
        """Render the report as one CSV line, without the trailing newline."""
        fields = [
            self.timestamp.strftime(REPORT_TIMESTAMP_FORMAT),
            self.topic.hex(),
            str(int(self.expected_index)),
            *("" if index is None else str(int(index)) for index in self.observed_indices),
            *(str(latency) for latency in self.latencies_ms),
        ]
        return ",".join(fields)


@dataclass(frozen=True, slots=True)
class ReportWriter:
    """Appends round reports to a CSV file."""

    path: Path
    """Report file; created on first append."""

    def append(self, report: RoundReport) -> None:
        """Append one report line."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(report.to_csv_line() + "\n")
