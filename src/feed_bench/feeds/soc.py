"""
Single-owner chunks carrying feed updates.

A feed update is stored as a single-owner chunk (SOC). Its address does not
depend on the payload, only on who wrote it and where in the feed it sits:

    identifier = keccak256(topic || index)
    address    = keccak256(identifier || owner)

Anyone who knows the owner and topic can therefore compute where update N
lives and ask a node for it. The payload is wrapped as a content-addressed
chunk and the owner signs `keccak256(identifier || content address)`, which
binds the payload to the slot.

Content addresses use the Swarm binary Merkle tree (BMT) hash:

    span    = len(payload) as 8-byte little-endian
    root    = pairwise keccak256 over the payload zero-padded to 4096 bytes
    address = keccak256(span || root)
"""

from __future__ import annotations

from typing import Final

from pydantic import field_validator

from feed_bench.types import Bytes8, Bytes20, Bytes32, Bytes65, StrictBaseModel, Uint64

from .crypto import eth_message_digest, keccak256, recover_address
from .encoding import encode_index, make_feed_payload
from .identity import Identity

CHUNK_SIZE: Final = 4096
"""Maximum chunk payload size; the BMT always hashes a body of this size."""

SEGMENT_SIZE: Final = 32
"""Size of one BMT leaf segment."""

SPAN_LENGTH: Final = 8
"""Width of the little-endian span prefix."""


def make_span(length: int) -> Bytes8:
    """Encode a payload length as the 8-byte little-endian span."""
    return Bytes8(Uint64(length).to_bytes(SPAN_LENGTH, "little"))


def bmt_root(payload: bytes) -> Bytes32:
    """
    Compute the BMT root of a chunk payload.

    Raises:
        ValueError: If the payload exceeds the chunk size.
    """
    if len(payload) > CHUNK_SIZE:
        raise ValueError(f"Chunk payload exceeds {CHUNK_SIZE} bytes: {len(payload)}")

    level = payload + b"\x00" * (CHUNK_SIZE - len(payload))
    while len(level) > SEGMENT_SIZE:
        level = b"".join(
            keccak256(level[i : i + 2 * SEGMENT_SIZE]) for i in range(0, len(level), 2 * SEGMENT_SIZE)
        )
    return Bytes32(level)


def content_address(payload: bytes) -> Bytes32:
    """Return the content address of a chunk with this payload."""
    return keccak256(make_span(len(payload)), bmt_root(payload))


def make_identifier(topic: Bytes32, index: int) -> Bytes32:
    """Return the SOC identifier of feed update `index` under `topic`."""
    return keccak256(topic, encode_index(index))


def make_soc_address(identifier: Bytes32, owner: Bytes20) -> Bytes32:
    """Return the address of the single-owner chunk `identifier` written by `owner`."""
    return keccak256(identifier, owner)


class SignedUpdate(StrictBaseModel):
    """
    One signed feed update, ready to upload.

    Instances are immutable: once signed, any change would invalidate the signature.
    """

    index: Uint64
    """Position of this update in the feed sequence."""

    reference: Bytes32
    """Content address the update points to."""

    identifier: Bytes32
    """keccak256(topic || index)."""

    address: Bytes32
    """Address of the single-owner chunk; where nodes store this update."""

    span: Bytes8
    """Little-endian payload length."""

    payload: bytes
    """timestamp || reference."""

    signature: Bytes65
    """Owner's recoverable signature over keccak256(identifier || content address)."""

    @field_validator("payload")
    @classmethod
    def check_payload_fits(cls, v: bytes) -> bytes:
        """Payloads must fit in one chunk."""
        if len(v) > CHUNK_SIZE:
            raise ValueError(f"Chunk payload exceeds {CHUNK_SIZE} bytes: {len(v)}")
        return v

    @property
    def data(self) -> bytes:
        """Request body for the upload: span || payload."""
        return self.span + self.payload

    @property
    def signing_digest(self) -> Bytes32:
        """Digest the owner signed."""
        return keccak256(self.identifier, content_address(self.payload))

    def recover_owner(self) -> Bytes20:
        """
        Recover the address that signed this update.

        Raises:
            ValueError: If the signature is malformed.
        """
        return recover_address(eth_message_digest(self.signing_digest), self.signature)


def sign_update(
    identity: Identity,
    topic: Bytes32,
    index: int,
    reference: Bytes32,
    timestamp: int,
) -> SignedUpdate:
    """
    Build and sign the single-owner chunk for feed update `index`.

    Args:
        identity: The feed owner's identity.
        topic: The feed topic.
        index: Sequence position of the update.
        reference: Content address the update points to.
        timestamp: Unix seconds recorded in the payload.

    Returns:
        The signed update.
    """
    identifier = make_identifier(topic, index)
    payload = make_feed_payload(reference, timestamp)
    signature = identity.sign(keccak256(identifier, content_address(payload)))

    return SignedUpdate(
        index=Uint64(index),
        reference=reference,
        identifier=identifier,
        address=make_soc_address(identifier, identity.address),
        span=make_span(len(payload)),
        payload=payload,
        signature=signature,
    )
