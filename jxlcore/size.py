"""Image and preview dimensions."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .encodings import BitReader, Bits, BitsOffset, Select, Val, read_bool, read_u32

_SMALL_DIM = BitsOffset(5, 1)
_LARGE_DIM = Select(Bits(9), Bits(13), Bits(18), Bits(30))
_PREVIEW_DIV8 = Select(Val(16), Val(32), BitsOffset(5, 1), BitsOffset(9, 33))
_PREVIEW_DIM = Select(Bits(6), BitsOffset(8, 64), BitsOffset(10, 320), BitsOffset(12, 1344))


class AspectRatio(enum.IntEnum):
    UNKNOWN = 0
    RATIO_1_OVER_1 = 1
    RATIO_12_OVER_10 = 2
    RATIO_4_OVER_3 = 3
    RATIO_3_OVER_2 = 4
    RATIO_16_OVER_9 = 5
    RATIO_5_OVER_4 = 6
    RATIO_2_OVER_1 = 7


_RATIOS = {
    AspectRatio.RATIO_1_OVER_1: (1, 1),
    AspectRatio.RATIO_12_OVER_10: (12, 10),
    AspectRatio.RATIO_4_OVER_3: (4, 3),
    AspectRatio.RATIO_3_OVER_2: (3, 2),
    AspectRatio.RATIO_16_OVER_9: (16, 9),
    AspectRatio.RATIO_5_OVER_4: (5, 4),
    AspectRatio.RATIO_2_OVER_1: (2, 1),
}


def map_aspect_ratio(ysize: int, ratio: AspectRatio) -> int:
    """Width implied by ``ysize`` and a known aspect ratio, rounded down."""
    if ratio is AspectRatio.UNKNOWN:
        raise ValueError("aspect ratio is unknown")
    numerator, denominator = _RATIOS[ratio]
    return ysize * numerator // denominator


@dataclass
class Size:
    """Image dimensions, possibly stored as multiples of 8 or via a ratio."""

    small: bool
    ysize_div8: Optional[int]
    explicit_ysize: Optional[int]
    ratio: AspectRatio
    xsize_div8: Optional[int]
    explicit_xsize: Optional[int]

    @classmethod
    def read(cls, br: BitReader) -> Size:
        small = read_bool(br)
        ysize_div8 = read_u32(_SMALL_DIM, br) if small else None
        ysize = None if small else 1 + read_u32(_LARGE_DIM, br)
        ratio = AspectRatio(br.read(3))
        unknown = ratio is AspectRatio.UNKNOWN
        xsize_div8 = read_u32(_SMALL_DIM, br) if small and unknown else None
        xsize = 1 + read_u32(_LARGE_DIM, br) if not small and unknown else None
        return cls(small, ysize_div8, ysize, ratio, xsize_div8, xsize)

    def ysize(self) -> int:
        if self.small:
            return self.ysize_div8 * 8
        return self.explicit_ysize

    def xsize(self) -> int:
        if self.ratio is AspectRatio.UNKNOWN:
            if self.small:
                return self.xsize_div8 * 8
            return self.explicit_xsize
        return map_aspect_ratio(self.ysize(), self.ratio)


@dataclass
class Preview:
    """Preview image dimensions."""

    div8: bool
    ysize_div8: Optional[int]
    explicit_ysize: Optional[int]
    ratio: AspectRatio
    xsize_div8: Optional[int]
    explicit_xsize: Optional[int]

    @classmethod
    def read(cls, br: BitReader) -> Preview:
        div8 = read_bool(br)
        ysize_div8 = read_u32(_PREVIEW_DIV8, br) if div8 else None
        ysize = None if div8 else 1 + read_u32(_PREVIEW_DIM, br)
        ratio = AspectRatio(br.read(3))
        unknown = ratio is AspectRatio.UNKNOWN
        xsize_div8 = read_u32(_PREVIEW_DIV8, br) if div8 and unknown else None
        xsize = 1 + read_u32(_PREVIEW_DIM, br) if not div8 and unknown else None
        return cls(div8, ysize_div8, ysize, ratio, xsize_div8, xsize)

    def ysize(self) -> int:
        if self.div8:
            return self.ysize_div8 * 8
        return self.explicit_ysize

    def xsize(self) -> int:
        if self.ratio is AspectRatio.UNKNOWN:
            if self.div8:
                return self.xsize_div8 * 8
            return self.explicit_xsize
        return map_aspect_ratio(self.ysize(), self.ratio)