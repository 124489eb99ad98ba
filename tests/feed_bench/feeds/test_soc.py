"""Tests for single-owner chunk construction."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from feed_bench.feeds.crypto import keccak256
from feed_bench.feeds.encoding import encode_index, make_feed_payload
from feed_bench.feeds.soc import (
    CHUNK_SIZE,
    SignedUpdate,
    bmt_root,
    content_address,
    make_identifier,
    make_soc_address,
    make_span,
    sign_update,
)
from feed_bench.types import Bytes32
from tests.feed_bench.helpers import TEST_IDENTITY, ZERO_TOPIC, make_bytes32


class TestAddressing:
    """Identifiers and addresses depend only on topic, index and owner."""

    def test_identifier(self) -> None:
        assert make_identifier(ZERO_TOPIC, 3) == keccak256(ZERO_TOPIC, encode_index(3))

    def test_identifier_differs_per_index(self) -> None:
        assert make_identifier(ZERO_TOPIC, 0) != make_identifier(ZERO_TOPIC, 1)

    def test_soc_address(self) -> None:
        identifier = make_identifier(ZERO_TOPIC, 0)
        assert make_soc_address(identifier, TEST_IDENTITY.address) == keccak256(
            identifier, TEST_IDENTITY.address
        )


class TestBmt:
    """Binary Merkle tree chunk hashing."""

    def test_span_is_little_endian(self) -> None:
        assert make_span(40) == b"\x28" + b"\x00" * 7

    def test_empty_payload_root_is_zero_tree(self) -> None:
        level = b"\x00" * CHUNK_SIZE
        while len(level) > 32:
            level = b"".join(keccak256(level[i : i + 64]) for i in range(0, len(level), 64))
        assert bmt_root(b"") == level

    def test_trailing_zeros_change_address_through_span(self) -> None:
        assert bmt_root(b"\x01") == bmt_root(b"\x01\x00")
        assert content_address(b"\x01") != content_address(b"\x01\x00")

    def test_oversized_payload(self) -> None:
        with pytest.raises(ValueError):
            bmt_root(b"\x00" * (CHUNK_SIZE + 1))


class TestSignUpdate:
    """Signed feed updates."""

    def test_fields(self) -> None:
        reference = make_bytes32(1)
        update = sign_update(TEST_IDENTITY, ZERO_TOPIC, 0, reference, 1_700_000_000)

        assert update.index == 0
        assert update.reference == reference
        assert update.identifier == make_identifier(ZERO_TOPIC, 0)
        assert update.address == make_soc_address(update.identifier, TEST_IDENTITY.address)
        assert update.payload == make_feed_payload(reference, 1_700_000_000)
        assert update.data == make_span(40) + update.payload

    def test_signature_recovers_owner(self) -> None:
        update = sign_update(TEST_IDENTITY, make_bytes32(5), 7, make_bytes32(2), 1)
        assert update.recover_owner() == TEST_IDENTITY.address

    def test_signing_digest_binds_payload(self) -> None:
        first = sign_update(TEST_IDENTITY, ZERO_TOPIC, 0, make_bytes32(1), 1)
        second = sign_update(TEST_IDENTITY, ZERO_TOPIC, 0, make_bytes32(2), 1)
        assert first.address == second.address
        assert first.signing_digest != second.signing_digest

    def test_immutable(self) -> None:
        update = sign_update(TEST_IDENTITY, ZERO_TOPIC, 0, make_bytes32(1), 1)
        with pytest.raises(ValidationError):
            update.index = 1  # type: ignore[misc]

    def test_rejects_oversized_payload(self) -> None:
        update = sign_update(TEST_IDENTITY, ZERO_TOPIC, 0, make_bytes32(1), 1)
        with pytest.raises(ValidationError):
            SignedUpdate(
                index=update.index,
                reference=update.reference,
                identifier=update.identifier,
                address=update.address,
                span=update.span,
                payload=b"\x00" * (CHUNK_SIZE + 1),
                signature=update.signature,
            )

    def test_rejects_unsigned_types(self) -> None:
        with pytest.raises(ValidationError):
            SignedUpdate(
                index=0,
                reference=Bytes32.zero(),
                identifier=Bytes32.zero(),
                address=Bytes32.zero(),
                span=make_span(0),
                payload=b"",
                signature=b"\x00" * 64,
            )
