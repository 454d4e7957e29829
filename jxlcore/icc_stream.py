"""Byte stream of an entropy-coded ICC profile, with context modelling."""

from __future__ import annotations

import string
from collections.abc import Callable
from typing import BinaryIO

from .encodings import JxlError

ICC_HEADER_SIZE = 128

_LETTERS = frozenset(string.ascii_letters.encode("ascii"))
_NUMERIC = frozenset(b"0123456789.,")


def _read_varint(read_one: Callable[[], int]) -> int:
    value = 0
    shift = 0
    while shift < 63:
        byte = read_one()
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
        shift += 7
    return value


def read_varint_from_reader(reader: BinaryIO) -> int:
    """Read a little-endian base-128 varint from a binary file-like object."""

    def read_one() -> int:
        chunk = reader.read(1)
        if not chunk:
            raise JxlError("unexpected end of ICC stream")
        return chunk[0]

    return _read_varint(read_one)


def _prev_class(byte: int) -> int:
    if byte in _LETTERS:
        return 0
    if byte in _NUMERIC:
        return 1
    if byte <= 1:
        return 2 + byte
    if byte <= 15:
        return 4
    if 241 <= byte <= 254:
        return 5
    if byte == 255:
        return 6
    return 7


def _prev_prev_class(byte: int) -> int:
    if byte in _LETTERS:
        return 0
    if byte in _NUMERIC:
        return 1
    if byte <= 15:
        return 2
    if byte >= 241:
        return 3
    return 4


def icc_context(bytes_read: int, prev: int, prev_prev: int) -> int:
    """Entropy context for the next byte, given the two bytes before it."""
    if bytes_read <= ICC_HEADER_SIZE:
        return 0
    return 1 + _prev_class(prev) + 8 * _prev_prev_class(prev_prev)


class IccStream:
    """A fixed-length stream of bytes decoded one symbol at a time.

    ``read_symbol`` is called with the context of each byte and returns the
    decoded symbol.
    """

    def __init__(self, read_symbol: Callable[[int], int], length: int) -> None:
        self._read_symbol = read_symbol
        self._length = length
        self._bytes_read = 0
        self._prev = 0
        self._prev_prev = 0

    @property
    def length(self) -> int:
        return self._length

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    def remaining_bytes(self) -> int:
        """Number of bytes not yet read."""
        return self._length - self._bytes_read

    def read_one(self) -> int:
        """Decode and return the next byte."""
        if self.remaining_bytes() == 0:
            raise JxlError("unexpected end of ICC stream")
        ctx = icc_context(self._bytes_read, self._prev, self._prev_prev)
        symbol = self._read_symbol(ctx)
        if not 0 <= symbol < 256:
            raise JxlError(f"invalid symbol {symbol} in ICC stream")
        self._bytes_read += 1
        self._prev_prev = self._prev
        self._prev = symbol
        return symbol

    def read_exact(self, count: int) -> bytes:
        """Read exactly ``count`` bytes, failing before reading if too few remain."""
        if count > self.remaining_bytes():
            raise JxlError("unexpected end of ICC stream")
        return bytes(self.read_one() for _ in range(count))

    def read_varint(self) -> int:
        """Read a base-128 varint from the stream."""
        return _read_varint(self.read_one)

    def finalize(self) -> None:
        """Check that the whole stream was consumed."""
        if self._bytes_read != self._length:
            raise JxlError("ICC stream is not fully consumed")