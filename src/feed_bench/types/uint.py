"""
Unsigned 64-bit integer used for feed indices and timestamps.

Feed indices, update timestamps and chunk spans are all 8-byte unsigned
values on the wire. Indices and timestamps are big-endian, spans are
little-endian, so the byte order is always passed explicitly except for the
big-endian default.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal, Self, SupportsIndex, SupportsInt

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

ByteOrder = Literal["little", "big"]


class Uint64(int):
    """An `int` constrained to [0, 2**64 - 1]."""

    WIDTH: ClassVar[int] = 8
    """Encoded width in bytes."""

    MAX: ClassVar[int] = 2**64 - 1

    def __new__(cls, value: SupportsInt) -> Self:
        """
        Validate the range.

        Raises:
            OverflowError: If `value` does not fit in 64 unsigned bits.
        """
        number = int(value)
        if number < 0 or number > cls.MAX:
            raise OverflowError(f"{number} does not fit in {cls.__name__}")
        return super().__new__(cls, number)

    @classmethod
    def decode(cls, raw: bytes, byteorder: ByteOrder = "big") -> Self:
        """Read exactly `WIDTH` bytes."""
        if len(raw) != cls.WIDTH:
            raise ValueError(f"{cls.__name__} needs {cls.WIDTH} bytes, got {len(raw)}")
        return cls(int.from_bytes(raw, byteorder))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        def validate(value: Any) -> Uint64:
            # bool is an int subclass but never a valid index.
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{cls.__name__} expects an integer, got {type(value).__name__}")
            try:
                return cls(value)
            except OverflowError as e:
                raise ValueError(str(e)) from e

        return core_schema.no_info_plain_validator_function(
            validate,
            json_schema_input_schema=core_schema.int_schema(ge=0, le=cls.MAX),
            serialization=core_schema.plain_serializer_function_ser_schema(int),
        )

    def to_bytes(
        self,
        length: SupportsIndex | None = None,
        byteorder: ByteOrder = "big",
        *,
        signed: bool = False,
    ) -> bytes:
        """Encode as `WIDTH` big-endian bytes unless told otherwise."""
        width = self.WIDTH if length is None else int(length)
        return super().to_bytes(width, byteorder, signed=signed)

    def _same_type(self, other: Any, symbol: str) -> int:
        if not isinstance(other, Uint64):
            raise TypeError(
                f"unsupported operand type(s) for {symbol}: "
                f"'{type(self).__name__}' and '{type(other).__name__}'"
            )
        return int(other)

    def __add__(self, other: Any) -> Self:
        return type(self)(int(self) + self._same_type(other, "+"))

    def __sub__(self, other: Any) -> Self:
        return type(self)(int(self) - self._same_type(other, "-"))

    def __repr__(self) -> str:
        return f"Uint64({int(self)})"
