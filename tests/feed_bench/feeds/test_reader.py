"""Tests for the feed reader."""

from __future__ import annotations

import httpx
import pytest

from feed_bench.bee import BeeClient
from feed_bench.exceptions import BeeResponseError, FeedNotFoundError
from feed_bench.feeds.reader import FeedReader
from tests.feed_bench.helpers import TEST_IDENTITY, ZERO_TOPIC


def _reader(handler) -> FeedReader:  # type: ignore[no-untyped-def]
    client = BeeClient("http://reader.test", transport=httpx.MockTransport(handler))
    return FeedReader(client=client, owner=TEST_IDENTITY.address, topic=ZERO_TOPIC)


async def test_download_returns_latest_update() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"reference": "44" * 32}, headers={"swarm-feed-index": "0000000000000002"}
        )

    update = await _reader(handler).download()
    assert update.index == 2
    assert update.reference.hex() == "44" * 32


async def test_not_found_is_feed_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    with pytest.raises(FeedNotFoundError) as exc_info:
        await _reader(handler).download()
    assert exc_info.value.node_url == "http://reader.test"


async def test_other_failures_propagate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(BeeResponseError) as exc_info:
        await _reader(handler).download()
    assert exc_info.value.status == 500


async def test_short_index_header_is_a_response_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"reference": "44" * 32}, headers={"swarm-feed-index": "01"})

    with pytest.raises(BeeResponseError, match="malformed response") as exc_info:
        await _reader(handler).download()
    assert exc_info.value.status == 200
