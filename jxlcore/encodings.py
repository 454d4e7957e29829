"""Bit reading and the primitive field encodings used by codestream headers."""

from __future__ import annotations

import math
import struct
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar, Union

T = TypeVar("T")

_MAX_U64 = (1 << 64) - 1


class JxlError(Exception):
    """Raised when a codestream is malformed or cannot be decoded."""


class BitReader:
    """Reads bits least-significant first from a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._total_bits = len(self._data) * 8
        self._position = 0

    def read(self, num_bits: int) -> int:
        """Read ``num_bits`` (0 to 64) bits and return them as an integer."""
        if not 0 <= num_bits <= 64:
            raise ValueError(f"cannot read {num_bits} bits at once")
        end = self._position + num_bits
        if end > self._total_bits:
            raise JxlError(
                f"out of bounds: reading {num_bits} bits at bit {self._position} "
                f"of {self._total_bits}"
            )
        if num_bits == 0:
            return 0
        first = self._position // 8
        last = (end + 7) // 8
        chunk = int.from_bytes(self._data[first:last], "little")
        value = (chunk >> (self._position % 8)) & ((1 << num_bits) - 1)
        self._position = end
        return value

    def skip_bits(self, num_bits: int) -> None:
        """Advance past ``num_bits`` bits without decoding them."""
        if num_bits < 0:
            raise ValueError(f"cannot skip {num_bits} bits")
        end = self._position + num_bits
        if end > self._total_bits:
            raise JxlError(
                f"out of bounds: skipping {num_bits} bits at bit {self._position} "
                f"of {self._total_bits}"
            )
        self._position = end

    def jump_to_byte_boundary(self) -> None:
        """Advance to the start of the next whole byte, if not already there."""
        self._position = (self._position + 7) // 8 * 8

    def total_bits_read(self) -> int:
        """Number of bits consumed so far."""
        return self._position


@dataclass(frozen=True)
class Bits:
    """A field stored as ``n`` raw bits."""

    n: int

    def read(self, br: BitReader) -> int:
        return br.read(self.n)


@dataclass(frozen=True)
class BitsOffset:
    """A field stored as ``n`` raw bits plus a constant offset."""

    n: int
    off: int

    def read(self, br: BitReader) -> int:
        return br.read(self.n) + self.off


@dataclass(frozen=True)
class Val:
    """A constant that takes no bits."""

    val: int

    def read(self, br: BitReader) -> int:
        return self.val


Distribution = Union[Bits, BitsOffset, Val]


@dataclass(frozen=True)
class Select:
    """A two-bit selector choosing one of four distributions."""

    d0: Distribution
    d1: Distribution
    d2: Distribution
    d3: Distribution

    def read(self, br: BitReader) -> int:
        choices = (self.d0, self.d1, self.d2, self.d3)
        return choices[br.read(2)].read(br)


U32Coder = Union[Bits, BitsOffset, Val, Select]

_STRING_LENGTH = Select(Val(0), Bits(4), BitsOffset(5, 16), BitsOffset(10, 48))


def read_bool(br: BitReader) -> bool:
    """Read a single-bit flag."""
    return br.read(1) != 0


def read_f16(br: BitReader) -> float:
    """Read a 16-bit half-precision float, rejecting NaN and infinities."""
    raw = br.read(16)
    (value,) = struct.unpack("<e", raw.to_bytes(2, "little"))
    if not math.isfinite(value):
        raise JxlError("float is NaN or infinite")
    return float(value)


def read_u32(coder: U32Coder, br: BitReader) -> int:
    """Read an unsigned value with the given coder."""
    return coder.read(br)


def read_i32(coder: U32Coder, br: BitReader) -> int:
    """Read a value with the given coder and map it to the signed range."""
    return read_u32(coder, br) >> 1


def read_u64(br: BitReader) -> int:
    """Read a variable-length 64-bit unsigned value."""
    selector = br.read(2)
    if selector == 0:
        return 0
    if selector == 1:
        return 1 + br.read(4)
    if selector == 2:
        return 17 + br.read(8)
    result = br.read(12)
    shift = 12
    while br.read(1) == 1:
        if shift >= 60:
            return result | (br.read(4) << shift)
        result |= br.read(8) << shift
        shift += 8
    return result


def read_string(br: BitReader) -> str:
    """Read a length-prefixed string of 8-bit characters."""
    length = read_u32(_STRING_LENGTH, br)
    return "".join(chr(br.read(8)) for _ in range(length))


def read_vector(
    br: BitReader, size_coder: U32Coder, read_value: Callable[[BitReader], T]
) -> list[T]:
    """Read a length with ``size_coder`` followed by that many values."""
    length = read_u32(size_coder, br)
    return [read_value(br) for _ in range(length)]


def read_defaulted_vector(
    br: BitReader,
    size_coder: U32Coder,
    condition: bool,
    default: T,
    read_value: Callable[[BitReader], T],
) -> list[T]:
    """Read a length; then the values if ``condition`` holds, else defaults."""
    length = read_u32(size_coder, br)
    if condition:
        return [read_value(br) for _ in range(length)]
    return [default] * length


def read_extensions(br: BitReader) -> None:
    """Read an extension block and skip over its payload."""
    selector = read_u64(br)
    total_size = 0
    for bit in range(64):
        if selector & (1 << bit):
            total_size += read_u64(br)
            if total_size > _MAX_U64:
                raise JxlError("extension size overflow")
    br.skip_bits(total_size)