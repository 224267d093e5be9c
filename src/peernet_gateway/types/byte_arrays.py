"""
Fixed-length byte types.

Peernet addresses everything with short binary values that travel in URLs as
hex: node identifiers and file hashes are 32-byte BLAKE3 digests, peer public
keys are 33-byte compressed secp256k1 points.
"""

from __future__ import annotations

import re
from typing import Any, ClassVar, Iterable, Self, SupportsIndex

_HEX_PATTERN = re.compile(r"(?:[0-9a-fA-F]{2})*")
"""Even-length run of hex digits. No prefix, no whitespace."""


def _coerce_to_bytes(value: Any) -> bytes:
    """
    Coerce a variety of inputs to raw bytes.

    Accepts:
      - `bytes` / `bytearray` (returned as immutable `bytes`)
      - Iterables of integers in [0, 255]
      - Hex strings, with or without a '0x' prefix (e.g. "0xdeadbeef" or "deadbeef")

    Raises:
      ValueError / TypeError if conversion is not possible or out-of-range.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value.removeprefix("0x"))
    if isinstance(value, Iterable):
        return bytes(bytearray(value))
    return bytes(value)


def decode_strict_hex(text: str) -> bytes | None:
    """
    Decode hex text the way URL segments must be written.

    Unlike `bytes.fromhex`, this rejects whitespace and a `0x` prefix.

    Returns:
        The decoded bytes, or None if `text` is not strict hex.
    """
    if _HEX_PATTERN.fullmatch(text) is None:
        return None
    return bytes.fromhex(text)


class BaseBytes(bytes):
    """
    A base class for fixed-length byte types that inherits from `bytes`.

    Subclasses set:
      - `LENGTH`: exact number of bytes the instance must contain.

    Instances are immutable byte objects with strict length checking.
    """

    LENGTH: ClassVar[int]
    """The exact number of bytes (overridden by subclasses)."""

    def __new__(cls, value: Any = b"") -> Self:
        """
        Create and validate a new Bytes instance.

        Args:
            value: Any value coercible to bytes (see `_coerce_to_bytes`).

        Raises:
            ValueError: If the resulting byte length differs from `LENGTH`.
        """
        if not hasattr(cls, "LENGTH"):
            raise TypeError(f"{cls.__name__} must define LENGTH")

        b = _coerce_to_bytes(value)
        if len(b) != cls.LENGTH:
            raise ValueError(f"{cls.__name__} expects exactly {cls.LENGTH} bytes, got {len(b)}")
        return super().__new__(cls, b)

    @classmethod
    def zero(cls) -> Self:
        """Create a new instance filled with zero bytes."""
        return cls(b"\x00" * cls.LENGTH)

    @classmethod
    def from_hex(cls, text: str) -> Self | None:
        """
        Decode a strict hex string of exactly `LENGTH` bytes.

        Returns:
            The decoded value, or None on bad hex or wrong length.
        """
        raw = decode_strict_hex(text)
        if raw is None or len(raw) != cls.LENGTH:
            return None
        return cls(raw)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.hex()})"

    def __hash__(self) -> int:
        return super().__hash__()

    def hex(self, sep: str | bytes | None = None, bytes_per_sep: SupportsIndex = 1) -> str:
        """Return the hexadecimal string representation of the underlying bytes."""
        if sep is None:
            return bytes(self).hex()
        return bytes(self).hex(sep, bytes_per_sep)


class Bytes32(BaseBytes):
    """Fixed-size byte array of exactly 32 bytes. Node identifiers and file hashes."""

    LENGTH = 32


class Bytes33(BaseBytes):
    """Fixed-size byte array of exactly 33 bytes. Compressed secp256k1 public keys."""

    LENGTH = 33


ZERO_HASH: Bytes32 = Bytes32.zero()
"""The all-zero 32-byte value."""
