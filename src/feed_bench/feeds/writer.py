"""
Feed writer: publishes successive updates of one feed to one storage node.

Publishing is idempotent against one specific failure: if the node already
holds the exact chunk for this index (HTTP 409), a previous attempt got
through. The writer treats that as success instead of failing the run, which
makes a retry after a partial failure safe without double-counting the index.

Every other rejection is fatal and surfaces as `PublishError`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from feed_bench.bee import HTTP_CONFLICT, BeeClient
from feed_bench.exceptions import BeeRequestError, BeeResponseError, PublishError
from feed_bench.types import Bytes32, StrictBaseModel, Uint64

from .identity import FeedAddress, Identity
from .soc import sign_update

logger = logging.getLogger(__name__)


class PublishResult(StrictBaseModel):
    """Outcome of one publish call."""

    index: Uint64
    """Feed index the update was committed at."""

    reference: Bytes32
    """Address of the committed single-owner chunk."""

    conflict: bool = False
    """True when the node already held this chunk and the publish was absorbed."""


@dataclass(slots=True)
class FeedWriter:
    """
    Publishes updates for one feed through one node.

    The writer keeps its own index counter. When the same feed is published
    through several nodes, one writer per node is driven by the same round
    loop so the counters move in lockstep; nothing here enforces that.
    """

    client: BeeClient
    """Node the updates are submitted to."""

    identity: Identity
    """Owner identity that signs every update."""

    topic: Bytes32
    """Feed topic."""

    clock: Callable[[], float] = time.time
    """Wall clock used for the payload timestamp."""

    _next_index: int = field(default=0, init=False)
    """Index the next publish will use."""

    @property
    def url(self) -> str:
        """Base URL of the publishing node."""
        return self.client.url

    @property
    def feed(self) -> FeedAddress:
        """Address of the feed this writer publishes to."""
        return FeedAddress(owner=self.identity.address, topic=self.topic)

    @property
    def next_index(self) -> int:
        """Index the next successful publish will commit."""
        return self._next_index

    async def create_manifest(self, stamp: str) -> Bytes32:
        """
        Create the feed manifest on this writer's node.

        Raises:
            PublishError: If the node rejects the manifest.
        """
        try:
            return await self.client.create_feed_manifest(stamp, self.identity.address, self.topic)
        except BeeResponseError as exc:
            raise PublishError(self.client.url, self._next_index, exc.message, status=exc.status) from exc
        except BeeRequestError as exc:
            raise PublishError(self.client.url, self._next_index, exc.message) from exc

    async def publish(self, stamp: str, reference: Bytes32, *, tag: int | None = None) -> PublishResult:
        """
        Sign and upload the next update of the feed.

        Args:
            stamp: Postage batch paying for the upload.
            reference: Content address the update points to.
            tag: Optional upload tag for sync tracking.

        Returns:
            The committed index and chunk address.

        Raises:
            PublishError: On any rejection other than a duplicate-chunk conflict.
        """
        index = self._next_index
        update = sign_update(self.identity, self.topic, index, reference, int(self.clock()))

        conflict = False
        try:
            address = await self.client.upload_update(stamp, self.identity.address, update, tag=tag)
        except BeeResponseError as exc:
            if exc.status != HTTP_CONFLICT:
                raise PublishError(self.client.url, index, exc.message, status=exc.status) from exc

            # The chunk for this slot is already stored.
            #
            # A SOC address depends only on identifier and owner, so the
            # locally computed address is the one the node holds.
            logger.info("Index %d already committed on %s, treating as published", index, self.client.url)
            address = update.address
            conflict = True
        except BeeRequestError as exc:
            raise PublishError(self.client.url, index, exc.message) from exc

        self._next_index = index + 1
        return PublishResult(index=Uint64(index), reference=address, conflict=conflict)
