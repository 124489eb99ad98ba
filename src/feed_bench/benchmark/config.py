"""
Benchmark timing constants.

Operational parameters for the round loop and the sync-tag monitor.
"""

from __future__ import annotations

from typing import Final

SYNC_POLLING_INTERVAL: Final[float] = 1.0
"""Seconds between two sync-tag status requests."""

SYNC_POLLING_TRIALS: Final[int] = 15
"""Tag polls without progress before syncing is declared timed out."""

SYNC_SETTLE_DELAY: Final[float] = 0.5
"""Extra wait after a tag reports fully synced; chunks are not always retrievable at once."""

DEFAULT_GRACE_PERIOD: Final[float] = 40.0
"""Seconds to let the network replicate a round's chunks before reading."""

DEFAULT_ROUND_WAIT: Final[float] = 3.0
"""Seconds between two publish rounds."""

DEFAULT_POLL_INTERVAL: Final[float] = 3.0
"""Seconds between two reader polls while readers disagree."""

REPORT_TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
"""Timestamp layout of report lines."""
