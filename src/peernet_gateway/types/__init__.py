"""Reusable type definitions for the Peernet web gateway."""

from .base import StrictBaseModel
from .byte_arrays import ZERO_HASH, BaseBytes, Bytes32, Bytes33, decode_strict_hex

__all__ = [
    "BaseBytes",
    "Bytes32",
    "Bytes33",
    "ZERO_HASH",
    "StrictBaseModel",
    "decode_strict_hex",
]
