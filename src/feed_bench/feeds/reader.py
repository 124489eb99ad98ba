"""Feed reader: resolves the latest update of a feed from one storage node."""

from __future__ import annotations

from dataclasses import dataclass

from feed_bench.bee import HTTP_NOT_FOUND, BeeClient, FeedUpdate
from feed_bench.exceptions import BeeResponseError, FeedNotFoundError
from feed_bench.types import Bytes20, Bytes32

from .identity import FeedAddress

__all__ = ["FeedReader", "FeedUpdate"]


@dataclass(frozen=True, slots=True)
class FeedReader:
    """
    Looks up the newest update a node knows for one feed.

    Pure lookup: no caching, no retry. Polling cadence belongs to the caller.
    """

    client: BeeClient
    """Node to query."""

    owner: Bytes20
    """Feed owner."""

    topic: Bytes32
    """Feed topic."""

    @property
    def url(self) -> str:
        """Base URL of the queried node."""
        return self.client.url

    @property
    def feed(self) -> FeedAddress:
        """Address of the feed this reader resolves."""
        return FeedAddress(owner=self.owner, topic=self.topic)

    async def download(self) -> FeedUpdate:
        """
        Return the highest-index update the node currently knows.

        Raises:
            FeedNotFoundError: If the node has no update for the feed yet.
            BeeError: On any other node or network failure.
        """
        try:
            return await self.client.fetch_feed_update(self.owner, self.topic)
        except BeeResponseError as exc:
            if exc.status == HTTP_NOT_FOUND:
                raise FeedNotFoundError(self.client.url) from exc
            raise
