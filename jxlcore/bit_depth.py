"""Sample bit depth of an image or extra channel."""

from __future__ import annotations

from dataclasses import dataclass

from .encodings import BitReader, BitsOffset, JxlError, Select, Val, read_bool, read_u32

_FLOAT_BITS = Select(Val(32), Val(16), Val(24), BitsOffset(6, 1))
_INT_BITS = Select(Val(8), Val(10), Val(12), BitsOffset(6, 1))
_EXPONENT_BITS = BitsOffset(4, 1)


@dataclass
class BitDepth:
    """Bits per sample, and exponent bits for floating-point samples."""

    floating_point_sample: bool = False
    bits_per_sample: int = 8
    exponent_bits_per_sample: int = 0

    @classmethod
    def read(cls, br: BitReader) -> BitDepth:
        """Read and validate a bit depth."""
        floating = read_bool(br)
        bits = read_u32(_FLOAT_BITS if floating else _INT_BITS, br)
        exponent = read_u32(_EXPONENT_BITS, br) if floating else 0
        depth = cls(floating, bits, exponent)
        depth.check()
        return depth

    def check(self) -> None:
        """Raise JxlError if the combination of fields is not allowed."""
        if self.floating_point_sample:
            exponent = self.exponent_bits_per_sample
            if not 2 <= exponent <= 8:
                raise JxlError(f"invalid exponent bits per sample: {exponent}")
            mantissa = self.bits_per_sample - exponent - 1
            if not 2 <= mantissa <= 23:
                raise JxlError(f"invalid mantissa bits per sample: {mantissa}")
        elif self.bits_per_sample > 31:
            raise JxlError(f"invalid bits per sample: {self.bits_per_sample}")