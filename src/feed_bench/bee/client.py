"""
Async client for the subset of the Bee HTTP API used by the benchmark.

Endpoints:

- POST /feeds/{owner}/{topic}    create a feed manifest
- GET  /feeds/{owner}/{topic}    resolve the latest feed update
- POST /soc/{owner}/{id}?sig=    upload a signed single-owner chunk
- POST /tags, GET /tags/{uid}    create and inspect upload tags

Hex values in paths are lowercase without a 0x prefix.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Self

import httpx
from pydantic import ValidationError

from feed_bench.exceptions import BeeRequestError, BeeResponseError
from feed_bench.feeds.encoding import decode_index
from feed_bench.feeds.soc import SignedUpdate
from feed_bench.types import Bytes20, Bytes32

from .models import FeedUpdate, TagStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final = 60.0
"""HTTP request timeout in seconds."""

FEED_TYPE: Final = "sequence"
"""Feed indexing scheme; sequence feeds count 0, 1, 2, ..."""

POSTAGE_HEADER: Final = "swarm-postage-batch-id"
"""Header carrying the postage stamp of an upload."""

TAG_HEADER: Final = "swarm-tag"
"""Header attaching an upload to a tag."""

FEED_INDEX_HEADER: Final = "swarm-feed-index"
"""Response header with the index of the resolved feed update."""

HTTP_CONFLICT: Final = 409
"""Status returned when an identical chunk is already stored."""

HTTP_NOT_FOUND: Final = 404
"""Status returned when a feed has no update yet."""


class BeeClient:
    """
    HTTP client bound to one Bee node.

    Holds one pooled `httpx.AsyncClient` for its lifetime. Use as an async
    context manager or call `aclose()` when done.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            url: Base URL of the node API (e.g., "http://localhost:1633").
            timeout: Per-request timeout in seconds.
            transport: Optional transport override, used by tests.
        """
        self.url = url.rstrip("/")
        self._http = httpx.AsyncClient(base_url=self.url, timeout=timeout, transport=transport)

    def __repr__(self) -> str:
        return f"BeeClient({self.url!r})"

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request and map failures to the Bee error hierarchy.

        Raises:
            BeeRequestError: If no response was received.
            BeeResponseError: If the node answered with a non-2xx status.
        """
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise BeeRequestError(f"{self.url}{path}", str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise BeeResponseError(f"{self.url}{path}", response.status_code, response.text)
        return response

    def _malformed(self, response: httpx.Response, detail: str) -> BeeResponseError:
        """Error for a success status whose body or headers cannot be used."""
        return BeeResponseError(str(response.url), response.status_code, f"malformed response: {detail}")

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise self._malformed(response, f"body is not JSON ({exc})") from exc

    def _reference(self, response: httpx.Response) -> Bytes32:
        """Read the `reference` field that every upload endpoint returns."""
        body = self._json(response)
        try:
            return Bytes32(body["reference"])
        except (KeyError, TypeError, ValueError) as exc:
            raise self._malformed(response, f"no valid reference in {response.text!r}") from exc

    def _tag(self, response: httpx.Response) -> TagStatus:
        try:
            return TagStatus.model_validate(self._json(response))
        except ValidationError as exc:
            raise self._malformed(response, f"invalid tag ({exc.error_count()} errors)") from exc

    async def create_feed_manifest(self, stamp: str, owner: Bytes20, topic: Bytes32) -> Bytes32:
        """
        Create the manifest that lets others resolve the feed by a single address.

        Returns:
            The manifest's content address.
        """
        response = await self._request(
            "POST",
            f"/feeds/{owner.hex()}/{topic.hex()}",
            params={"type": FEED_TYPE},
            headers={POSTAGE_HEADER: stamp},
        )
        return self._reference(response)

    async def upload_update(
        self,
        stamp: str,
        owner: Bytes20,
        update: SignedUpdate,
        *,
        tag: int | None = None,
    ) -> Bytes32:
        """
        Upload a signed feed update as a single-owner chunk.

        Returns:
            The address of the stored chunk.

        Raises:
            BeeResponseError: With status 409 if the chunk already exists.
        """
        headers = {POSTAGE_HEADER: stamp, "content-type": "application/octet-stream"}
        if tag is not None:
            headers[TAG_HEADER] = str(tag)

        response = await self._request(
            "POST",
            f"/soc/{owner.hex()}/{update.identifier.hex()}",
            params={"sig": update.signature.hex()},
            headers=headers,
            content=update.data,
        )
        return self._reference(response)

    async def fetch_feed_update(self, owner: Bytes20, topic: Bytes32) -> FeedUpdate:
        """
        Resolve the latest update of a feed.

        Raises:
            BeeResponseError: With status 404 if the node knows no update. Also raised
                when the index header or body is malformed.
        """
        response = await self._request(
            "GET",
            f"/feeds/{owner.hex()}/{topic.hex()}",
            params={"type": FEED_TYPE},
        )
        index_header = response.headers.get(FEED_INDEX_HEADER)
        if index_header is None:
            raise self._malformed(response, f"missing {FEED_INDEX_HEADER} header")
        try:
            index = decode_index(index_header)
        except ValueError as exc:
            raise self._malformed(response, f"bad {FEED_INDEX_HEADER} header {index_header!r}") from exc

        return FeedUpdate(index=index, reference=self._reference(response))

    async def create_tag(self) -> TagStatus:
        """Create a new upload tag."""
        response = await self._request("POST", "/tags")
        return self._tag(response)

    async def retrieve_tag(self, uid: int) -> TagStatus:
        """Fetch the current counters of a tag."""
        response = await self._request("GET", f"/tags/{uid}")
        return self._tag(response)
