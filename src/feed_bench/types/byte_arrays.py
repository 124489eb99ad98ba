"""
Fixed-length byte types.

Every identifier on the feed protocol has a fixed width: 8-byte indices,
20-byte owner addresses, 32-byte topics and references, 65-byte signatures.
Subclasses of `BaseBytes` enforce that width at construction time.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, ClassVar, Self, SupportsIndex

from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import core_schema


def _raw(value: Any) -> bytes:
    """
    Turn constructor input into plain bytes.

    Hex strings may carry a `0x` prefix, as node APIs and config files use
    both forms. Iterables must yield integers in [0, 255].
    """
    match value:
        case bytes() | bytearray() | memoryview():
            return bytes(value)
        case str():
            return bytes.fromhex(value.removeprefix("0x"))
        case Iterable():
            return bytes(bytearray(value))
    raise TypeError(f"cannot build bytes from {type(value).__name__}")


class BaseBytes(bytes):
    """Immutable `bytes` with an exact `LENGTH` set by each subclass."""

    LENGTH: ClassVar[int]

    def __new__(cls, value: Any = b"") -> Self:
        """
        Coerce and check the length.

        Raises:
            ValueError: If the input is not valid hex or has the wrong length.
        """
        data = _raw(value)
        if len(data) != cls.LENGTH:
            raise ValueError(f"{cls.__name__} expects exactly {cls.LENGTH} bytes, got {len(data)}")
        return super().__new__(cls, data)

    @classmethod
    def zero(cls) -> Self:
        """All-zero value of this width."""
        return cls(bytes(cls.LENGTH))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        # Instances pass through; raw bytes of the right width are wrapped.
        # Models dump these as unprefixed hex.
        wrap_raw = core_schema.chain_schema(
            [
                core_schema.bytes_schema(min_length=cls.LENGTH, max_length=cls.LENGTH),
                core_schema.no_info_plain_validator_function(cls),
            ]
        )
        return core_schema.union_schema(
            [core_schema.is_instance_schema(cls), wrap_raw],
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: value.hex()
            ),
        )

    def hex(self, sep: str | bytes | None = None, bytes_per_sep: SupportsIndex = 1) -> str:
        """Lowercase hex without a `0x` prefix."""
        raw = bytes(self)
        return raw.hex() if sep is None else raw.hex(sep, bytes_per_sep)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hex()})"


class Bytes8(BaseBytes):
    """Wire form of a feed index."""

    LENGTH = 8


class Bytes20(BaseBytes):
    """Ethereum address of a feed owner."""

    LENGTH = 20


class Bytes32(BaseBytes):
    """Topics, references, identifiers and digests."""

    LENGTH = 32


class Bytes33(BaseBytes):
    """Compressed secp256k1 public key."""

    LENGTH = 33


class Bytes65(BaseBytes):
    """Recoverable signature or uncompressed public key."""

    LENGTH = 65


ZERO_HASH: Bytes32 = Bytes32.zero()
"""The 32-byte all-zero value."""
