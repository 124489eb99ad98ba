"""Reusable type definitions for feed-bench."""

from .base import CamelModel, StrictBaseModel
from .byte_arrays import ZERO_HASH, BaseBytes, Bytes8, Bytes20, Bytes32, Bytes33, Bytes65
from .uint import Uint64

__all__ = [
    "Uint64",
    "BaseBytes",
    "Bytes8",
    "Bytes20",
    "Bytes32",
    "Bytes33",
    "Bytes65",
    "ZERO_HASH",
    "CamelModel",
    "StrictBaseModel",
]
