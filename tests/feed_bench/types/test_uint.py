"""Tests for the Uint64 type."""

from __future__ import annotations

import pytest

from feed_bench.types import Uint64


def test_bounds() -> None:
    assert Uint64(0) == 0
    assert Uint64(2**64 - 1) == 2**64 - 1
    with pytest.raises(OverflowError):
        Uint64(2**64)
    with pytest.raises(OverflowError):
        Uint64(-1)


def test_to_bytes_defaults_to_big_endian_full_width() -> None:
    assert Uint64(1).to_bytes() == b"\x00" * 7 + b"\x01"
    assert Uint64(1).to_bytes(8, "little") == b"\x01" + b"\x00" * 7


def test_arithmetic_requires_same_type() -> None:
    assert Uint64(2) + Uint64(3) == Uint64(5)
    assert isinstance(Uint64(2) + Uint64(3), Uint64)
    with pytest.raises(TypeError):
        Uint64(2) + 3  # type: ignore[operator]


def test_subtraction_below_zero_overflows() -> None:
    with pytest.raises(OverflowError):
        Uint64(0) - Uint64(1)


def test_repr() -> None:
    assert repr(Uint64(7)) == "Uint64(7)"


def test_decode_requires_full_width() -> None:
    assert Uint64.decode(b"\x00" * 7 + b"\x02") == 2
    assert Uint64.decode(b"\x02" + b"\x00" * 7, "little") == 2
    with pytest.raises(ValueError):
        Uint64.decode(b"\x01")
