"""Tests for index and reference encoding."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from feed_bench.feeds.encoding import (
    FEED_PAYLOAD_LENGTH,
    decode_index,
    encode_index,
    increment_reference,
    make_feed_payload,
    parse_feed_payload,
)
from feed_bench.types import ZERO_HASH, Bytes8, Bytes32, Uint64


class TestIndexEncoding:
    """Feed indices as 8 big-endian bytes."""

    def test_known_values(self) -> None:
        assert encode_index(0) == b"\x00" * 8
        assert encode_index(1) == b"\x00" * 7 + b"\x01"
        assert encode_index(256) == b"\x00" * 6 + b"\x01\x00"

    @given(st.integers(min_value=0, max_value=2**64 - 1))
    def test_roundtrip(self, index: int) -> None:
        assert decode_index(encode_index(index)) == index

    def test_decode_header_hex(self) -> None:
        assert decode_index("000000000000000a") == Uint64(10)

    def test_encode_out_of_range(self) -> None:
        with pytest.raises(OverflowError):
            encode_index(2**64)
        with pytest.raises(OverflowError):
            encode_index(-1)

    def test_decode_wrong_length(self) -> None:
        with pytest.raises(ValueError):
            decode_index(b"\x00" * 7)


class TestIncrementReference:
    """Big-endian counter increment over fixed-width bytes."""

    def test_from_zero(self) -> None:
        assert increment_reference(ZERO_HASH) == b"\x00" * 31 + b"\x01"

    def test_carry_into_next_byte(self) -> None:
        assert increment_reference(Bytes32(b"\x00" * 31 + b"\xff")) == b"\x00" * 30 + b"\x01\x00"

    def test_carry_across_several_bytes(self) -> None:
        value = Bytes8(b"\x00\x01" + b"\xff" * 6)
        assert increment_reference(value) == b"\x00\x02" + b"\x00" * 6

    def test_preserves_type(self) -> None:
        assert isinstance(increment_reference(Bytes8.zero()), Bytes8)

    def test_does_not_mutate_input(self) -> None:
        value = Bytes32(b"\x00" * 32)
        increment_reference(value)
        assert value == ZERO_HASH

    def test_all_ones_overflows(self) -> None:
        with pytest.raises(OverflowError):
            increment_reference(Bytes8(b"\xff" * 8))

    @given(st.integers(min_value=0, max_value=2**64 - 2))
    def test_matches_integer_addition(self, value: int) -> None:
        incremented = increment_reference(Bytes8(value.to_bytes(8, "big")))
        assert int.from_bytes(incremented, "big") == value + 1


class TestFeedPayload:
    """timestamp || reference payloads."""

    def test_layout(self) -> None:
        reference = Bytes32(b"\xab" * 32)
        payload = make_feed_payload(reference, 0x0102)
        assert len(payload) == FEED_PAYLOAD_LENGTH
        assert payload[:8] == b"\x00" * 6 + b"\x01\x02"
        assert payload[8:] == reference

    def test_parse(self) -> None:
        reference = Bytes32(b"\x11" * 32)
        timestamp, parsed = parse_feed_payload(make_feed_payload(reference, 1_700_000_000))
        assert timestamp == 1_700_000_000
        assert parsed == reference

    def test_parse_rejects_wrong_size(self) -> None:
        with pytest.raises(ValueError, match="40 bytes"):
            parse_feed_payload(b"\x00" * 39)
