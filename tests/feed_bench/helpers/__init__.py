"""Test helpers for feed-bench tests."""

from __future__ import annotations

from feed_bench.feeds.identity import TEST_PRIVATE_KEY, Identity
from feed_bench.types import Bytes32

from .fake_bee import FakeBeeNode, FakeSwarm, StoredChunk, server_url, start_node
from .mocks import FakeTime, FollowingReader, MockReader, MockWriter

TEST_IDENTITY = Identity.from_hex(TEST_PRIVATE_KEY)
"""Identity of the built-in test key."""

TEST_PUBLIC_KEY = "03c32bb011339667a487b6c1c35061f15f7edc36aa9a0f8648aba07a4b8bd741b4"
"""Compressed public key of the built-in test key."""

TEST_ADDRESS = "8d3766440f0d7b949a5e32995d09619a7f86e632"
"""Ethereum address of the built-in test key."""

ZERO_TOPIC = Bytes32(b"\x00" * 32)
"""All-zero topic."""


def make_bytes32(seed: int) -> Bytes32:
    """Create a deterministic Bytes32 from a seed."""
    return Bytes32(bytes([seed % 256]) * 32)


__all__ = [
    "FakeBeeNode",
    "FakeSwarm",
    "FakeTime",
    "FollowingReader",
    "MockReader",
    "MockWriter",
    "StoredChunk",
    "TEST_ADDRESS",
    "TEST_IDENTITY",
    "TEST_PUBLIC_KEY",
    "ZERO_TOPIC",
    "make_bytes32",
    "server_url",
    "start_node",
]
