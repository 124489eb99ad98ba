"""
Sync-tag monitor.

A node reports how far an upload has spread through a tag: `total` chunks
were uploaded and `synced` of them have been confirmed by the neighbourhood
responsible for storing them. Readers on other nodes cannot be expected to
find a chunk before it is synced.

The monitor polls a tag until `synced` reaches `total`. Progress resets the
trial budget, so a slow but moving upload is not cut off; a tag that stops
moving for `polling_trials` polls is a fatal timeout.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from feed_bench.bee import BeeClient, TagStatus
from feed_bench.exceptions import SyncTimeoutError

from .config import SYNC_POLLING_INTERVAL, SYNC_POLLING_TRIALS, SYNC_SETTLE_DELAY
from .timing import Sleep

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncMonitor:
    """Waits for uploads on one node to finish replicating."""

    client: BeeClient
    """Node the uploads were made to."""

    polling_interval: float = SYNC_POLLING_INTERVAL
    """Seconds between tag polls."""

    polling_trials: int = SYNC_POLLING_TRIALS
    """Polls without progress before giving up."""

    settle_delay: float = SYNC_SETTLE_DELAY
    """Wait after the tag reports synced."""

    sleep: Sleep = asyncio.sleep
    """Suspension primitive; replaced in tests."""

    async def create_tag(self) -> int:
        """Create a tag to attach to the next upload and return its uid."""
        tag = await self.client.create_tag()
        return tag.uid

    async def wait_synced(self, tag_uid: int) -> TagStatus:
        """
        Poll a tag until every chunk is synced.

        Returns:
            The final tag status.

        Raises:
            SyncTimeoutError: If the synced counter stops moving for too many polls.
            BeeError: If the node cannot be queried.
        """
        synced = 0
        total = 0
        trials = 0

        while trials < self.polling_trials:
            tag = await self.client.retrieve_tag(tag_uid)
            total = tag.total

            # Any progress restarts the budget.
            if tag.synced != synced:
                synced = tag.synced
                trials = 0

            if tag.is_synced:
                logger.debug("Tag %d synced (%d/%d) on %s", tag_uid, tag.synced, tag.total, self.client.url)
                await self.sleep(self.settle_delay)
                return tag

            trials += 1
            await self.sleep(self.polling_interval)

        raise SyncTimeoutError(tag_uid, synced, total)
