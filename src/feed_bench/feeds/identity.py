"""
Feed identity: who owns a feed and which topic it lives under.

A feed is named by two values:

- the owner, a 20-byte Ethereum address derived from the writer's key;
- the topic, 32 opaque bytes chosen by the publisher.

Only the owner can produce updates a node will accept, because every update
is a chunk signed by the owner's key.
"""

from __future__ import annotations

import random
import secrets
from dataclasses import dataclass
from typing import Final

from cryptography.hazmat.primitives.asymmetric import ec

from feed_bench.types import Bytes20, Bytes32, Bytes33, Bytes65, StrictBaseModel

from .crypto import (
    compressed_public_key,
    eth_message_digest,
    keccak256,
    load_private_key,
    public_key_to_address,
    sign_recoverable,
)

__all__ = [
    "FeedAddress",
    "Identity",
    "TEST_PRIVATE_KEY",
    "resolve_topic",
]

TEST_PRIVATE_KEY: Final = "634fb5a872396d9693e5c9f9d7233cfa93f395c093371017ff44aa9ae6564cdd"
"""Well-known throwaway key used when the operator does not supply one."""

TOPIC_LENGTH: Final = 32
"""Topic size in bytes."""


@dataclass(frozen=True, slots=True)
class Identity:
    """
    secp256k1 signing identity of a feed owner.

    Attributes:
        private_key: The secp256k1 private key.
    """

    private_key: ec.EllipticCurvePrivateKey

    @classmethod
    def generate(cls) -> Identity:
        """Generate a fresh random identity."""
        return cls(private_key=ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def from_hex(cls, private_key_hex: str) -> Identity:
        """
        Load an identity from a hex-encoded 32-byte private key.

        Raises:
            ValueError: If the key is not valid hex or not a valid scalar.
        """
        return cls(private_key=load_private_key(bytes.fromhex(private_key_hex.removeprefix("0x"))))

    @property
    def public_key(self) -> Bytes33:
        """Compressed 33-byte public key."""
        return compressed_public_key(self.private_key.public_key())

    @property
    def address(self) -> Bytes20:
        """Ethereum address of this identity; the feed owner."""
        return public_key_to_address(self.private_key.public_key())

    def sign(self, digest: bytes) -> Bytes65:
        """
        Sign a 32-byte digest the way Bee verifies single-owner chunks.

        The digest is wrapped in the Ethereum signed-message envelope before
        signing, so the node can recover the owner address from it.
        """
        return sign_recoverable(self.private_key, eth_message_digest(digest))


class FeedAddress(StrictBaseModel):
    """
    The identity of a single logical feed.

    Two feeds with the same owner but different topics are unrelated.
    """

    owner: Bytes20
    """Ethereum address of the only account allowed to publish updates."""

    topic: Bytes32
    """Publisher-chosen topic."""

    @property
    def digest(self) -> Bytes32:
        """keccak256(owner || topic); a compact, stable name for the feed."""
        return keccak256(self.owner, self.topic)

    def __str__(self) -> str:
        return f"{self.owner.hex()}/{self.topic.hex()}"


def resolve_topic(topic: Bytes32 | None = None, seed: int | None = None) -> Bytes32:
    """
    Pick the topic for a benchmark session.

    Args:
        topic: Explicit topic; returned unchanged when given.
        seed: Seed for a reproducible topic when no explicit topic is set.

    Returns:
        The explicit topic, a seeded pseudo-random topic, or fresh random bytes.
    """
    if topic is not None:
        return topic
    if seed is not None:
        return Bytes32(random.Random(seed).randbytes(TOPIC_LENGTH))
    return Bytes32(secrets.token_bytes(TOPIC_LENGTH))
