"""
Versioned reference encoding.

A sequence feed update carries two numbers that must survive the trip through
a storage node unchanged: the feed index and the payload reference.

- The index travels as a fixed 8-byte big-endian value. Nodes echo it back
  as 16 hex characters in the `swarm-feed-index` response header.
- The payload inside the update chunk is `timestamp || reference`, where the
  timestamp is 8-byte big-endian unix seconds.

The benchmark also needs a distinct reference per round. Treating the
reference as a big-endian counter and adding one per round gives values that
are trivially distinguishable without comparing content.
"""

from __future__ import annotations

from typing import Final, TypeVar

from feed_bench.types import BaseBytes, Bytes8, Bytes32, Uint64

INDEX_LENGTH: Final = 8
"""Width of an encoded feed index in bytes."""

TIMESTAMP_LENGTH: Final = 8
"""Width of the timestamp prefix of a feed update payload."""

FEED_PAYLOAD_LENGTH: Final = TIMESTAMP_LENGTH + Bytes32.LENGTH
"""Size of a feed update payload: timestamp followed by a 32-byte reference."""

B = TypeVar("B", bound=BaseBytes)


def encode_index(index: int) -> Bytes8:
    """
    Encode a feed index as 8 big-endian bytes.

    Raises:
        OverflowError: If the index does not fit in 64 unsigned bits.
    """
    return Bytes8(Uint64(index).to_bytes(INDEX_LENGTH, "big"))


def decode_index(data: bytes | str) -> Uint64:
    """
    Decode a feed index from its wire form.

    Args:
        data: 8 raw bytes, or 16 hex characters as found in node headers.

    Raises:
        ValueError: If the input is not exactly 8 bytes long.
    """
    return Uint64.decode(Bytes8(data))


def increment_reference(reference: B) -> B:
    """
    Add one to a fixed-width byte value read as a big-endian unsigned integer.

    The carry propagates from the last byte towards the first, so
    `...00ff` becomes `...0100`.

    Raises:
        OverflowError: If every byte is 0xff; wrapping is not supported.
    """
    buffer = bytearray(reference)
    for position in reversed(range(len(buffer))):
        if buffer[position] < 0xFF:
            buffer[position] += 1
            return type(reference)(bytes(buffer))
        buffer[position] = 0

    raise OverflowError(f"{type(reference).__name__} counter overflowed")


def make_feed_payload(reference: Bytes32, timestamp: int) -> bytes:
    """Build the update chunk payload: timestamp (8 bytes, big-endian) || reference."""
    return Uint64(timestamp).to_bytes(TIMESTAMP_LENGTH, "big") + reference


def parse_feed_payload(payload: bytes) -> tuple[Uint64, Bytes32]:
    """
    Split an update chunk payload into (timestamp, reference).

    Raises:
        ValueError: If the payload does not have the feed update layout.
    """
    if len(payload) != FEED_PAYLOAD_LENGTH:
        raise ValueError(
            f"Feed payload must be {FEED_PAYLOAD_LENGTH} bytes, got {len(payload)}"
        )
    timestamp = Uint64.decode(payload[:TIMESTAMP_LENGTH])
    return timestamp, Bytes32(payload[TIMESTAMP_LENGTH:])
