"""Response models for the Bee HTTP API."""

from __future__ import annotations

from pydantic import ConfigDict

from feed_bench.types import Bytes32, CamelModel, StrictBaseModel, Uint64


class FeedUpdate(StrictBaseModel):
    """The latest update a node knows for a feed."""

    index: Uint64
    """Highest feed index the node has observed."""

    reference: Bytes32
    """Reference carried by that update."""


class TagStatus(CamelModel):
    """
    Progress counters of an upload tag.

    Nodes report more fields than these; unknown ones are ignored.
    """

    model_config = CamelModel.model_config | ConfigDict(extra="ignore", frozen=True)

    uid: int
    """Tag identifier."""

    total: int = 0
    """Number of chunks the upload consists of."""

    synced: int = 0
    """Number of chunks confirmed stored by their neighbourhood."""

    @property
    def is_synced(self) -> bool:
        """Whether every chunk has been confirmed."""
        return self.synced >= self.total
