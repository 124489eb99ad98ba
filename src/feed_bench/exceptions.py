"""Exception hierarchy for feed-bench."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from feed_bench.benchmark.verifier import PollResult


class FeedBenchError(Exception):
    """
    Base exception for all feed-bench errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class BeeError(FeedBenchError):
    """Base class for errors talking to a Bee node."""


class BeeRequestError(BeeError):
    """
    Raised when the request never produced an HTTP response.

    Attributes:
        url: The URL that could not be reached.
    """

    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        super().__init__(f"Network error while connecting to {url}: {detail}")


class BeeResponseError(BeeError):
    """
    Raised when a Bee node answers with a non-success status.

    Attributes:
        url: The requested URL.
        status: The HTTP status code.
        body: The (possibly truncated) response body.
    """

    def __init__(self, url: str, status: int, body: str = "") -> None:
        self.url = url
        self.status = status
        self.body = body[:200]
        super().__init__(f"HTTP error {status} from {url}: {self.body}")


class PublishError(FeedBenchError):
    """
    Raised when a feed update could not be committed.

    Conflicts (the exact chunk already exists) are not errors and never
    raise this. Everything else is fatal to the run.

    Attributes:
        node_url: The writer node that rejected the publish.
        index: The feed index that was being published.
        status: HTTP status if the node answered, None for transport failures.
    """

    def __init__(self, node_url: str, index: int, detail: str, *, status: int | None = None) -> None:
        self.node_url = node_url
        self.index = index
        self.status = status
        super().__init__(f"Publishing index {index} to {node_url} failed: {detail}")


class FeedNotFoundError(FeedBenchError):
    """
    Raised when a reader node has no update for the feed yet.

    Attributes:
        node_url: The reader node that was queried.
    """

    def __init__(self, node_url: str) -> None:
        self.node_url = node_url
        super().__init__(f"No feed update found on {node_url}")


class SyncTimeoutError(FeedBenchError):
    """
    Raised when a sync tag does not reach its total within the trial budget.

    Attributes:
        tag_uid: The tag being polled.
        synced: Last observed synced count.
        total: Last observed total count.
    """

    def __init__(self, tag_uid: int, synced: int, total: int) -> None:
        self.tag_uid = tag_uid
        self.synced = synced
        self.total = total
        super().__init__(f"Data syncing timeout for tag {tag_uid}: {synced}/{total} synced")


class ConvergenceTimeoutError(FeedBenchError):
    """
    Raised when readers do not converge on the expected index in time.

    Attributes:
        expected_index: The index every reader should have reported.
        polls: Number of polls issued before giving up.
        last_poll: The results of the final poll.
    """

    def __init__(self, expected_index: int, polls: int, last_poll: PollResult) -> None:
        self.expected_index = expected_index
        self.polls = polls
        self.last_poll = last_poll
        super().__init__(
            f"Readers did not converge on index {expected_index} after {polls} polls: "
            f"observed {list(last_poll.indices)}"
        )


class WriterDivergenceError(FeedBenchError):
    """
    Raised when writer nodes commit different indices in the same round.

    Attributes:
        indices: The index committed by each writer, in writer order.
    """

    def __init__(self, indices: list[int]) -> None:
        self.indices = indices
        super().__init__(f"Writers are out of lockstep: committed indices {indices}")


class FeedNotEmptyError(FeedBenchError):
    """
    Raised when the feed already held updates beyond the one just published.

    A publish that every writer absorbed as a conflict, followed by a reader
    reporting a later index, means an earlier run left updates on this topic.
    Readers would never come back to the expected index.

    Attributes:
        node_url: The reader that reported the later index.
        expected_index: The index this run committed.
        observed_index: The index the reader reported.
    """

    def __init__(self, node_url: str, expected_index: int, observed_index: int) -> None:
        self.node_url = node_url
        self.expected_index = expected_index
        self.observed_index = observed_index
        super().__init__(
            f"Feed did not start empty: {node_url} reports index {observed_index} "
            f"but this run is at index {expected_index}; use a fresh topic"
        )
