"""Planar single-channel images with typed samples and rectangular views."""

from __future__ import annotations

import enum
import math
import struct
from collections.abc import Callable, Iterator
from typing import Union

Number = Union[int, float]

# Sizes at or above this bound are rejected so that coordinate arithmetic
# never has to worry about overflow.
_SIZE_LIMIT = (2**63 - 1) // 4


class DataType(enum.Enum):
    """Sample type of an image."""

    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    F32 = "f32"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    F16 = "f16"
    F64 = "f64"

    @property
    def is_float(self) -> bool:
        return self in (DataType.F16, DataType.F32, DataType.F64)


_INT_LIMITS = {
    DataType.U8: (0, 0xFF),
    DataType.U16: (0, 0xFFFF),
    DataType.U32: (0, 0xFFFFFFFF),
    DataType.I8: (-0x80, 0x7F),
    DataType.I16: (-0x8000, 0x7FFF),
    DataType.I32: (-0x80000000, 0x7FFFFFFF),
}


def _round_float(value: float, fmt: str) -> float:
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack(fmt, struct.pack(fmt, value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _to_f32(value: float) -> float:
    return _round_float(value, "<f")


def from_f64(value: float, data_type: DataType) -> Number:
    """Convert a double to ``data_type`` with saturating, truncating casts."""
    value = float(value)
    if data_type is DataType.F64:
        return value
    if data_type is DataType.F32:
        return _to_f32(value)
    if data_type is DataType.F16:
        return _round_float(value, "<e")
    low, high = _INT_LIMITS[data_type]
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return high if value > 0 else low
    return max(low, min(high, math.trunc(value)))


def to_f64(value: Number, data_type: DataType) -> float:
    """Convert a sample of ``data_type`` to a double."""
    if data_type not in DataType:
        raise TypeError(f"unknown data type {data_type!r}")
    return float(value)


def _f32_to_u8(value: float) -> int:
    scaled = _to_f32(_to_f32(value) * 255.0)
    if math.isnan(scaled):
        return 0
    clamped = min(255.0, max(0.0, scaled))
    return int(math.floor(clamped + 0.5))


def to_u8_for_writing(value: Number, data_type: DataType) -> int:
    """Map a sample to the 0..255 range used when writing 8-bit output."""
    if data_type is DataType.U8:
        return int(value)
    if data_type is DataType.U16:
        return (int(value) * 0xFF + 0x8000) // 0xFFFF
    if data_type is DataType.U32:
        return (int(value) * 0xFF + 0x80000000) // 0xFFFFFFFF
    if data_type in (DataType.F32, DataType.F16):
        return _f32_to_u8(float(value))
    raise TypeError(f"{data_type.name} samples cannot be written as 8-bit")


def _shift_right_ceil(value: int, shift: int) -> int:
    return (value + (1 << shift) - 1) >> shift


def _check_pair(name: str, pair: tuple[int, int]) -> tuple[int, int]:
    x, y = pair
    if x < 0 or y < 0:
        raise ValueError(f"{name} must not be negative: {pair}")
    return int(x), int(y)


class Image:
    """A two-dimensional array of samples of a single data type."""

    def __init__(self, size: tuple[int, int], data_type: DataType = DataType.F32) -> None:
        xsize, ysize = _check_pair("size", size)
        if xsize >= _SIZE_LIMIT or ysize >= _SIZE_LIMIT:
            raise ValueError(f"image size too large: {xsize}x{ysize}")
        if xsize == 0 or ysize == 0:
            raise ValueError(f"invalid image size: {xsize}x{ysize}")
        default: Number = 0.0 if data_type.is_float else 0
        try:
            data = [default] * (xsize * ysize)
        except (MemoryError, OverflowError) as exc:
            raise MemoryError(f"cannot allocate image of size {xsize}x{ysize}") from exc
        self._size = (xsize, ysize)
        self._data_type = data_type
        self._data: list[Number] = data

    @classmethod
    def _from_data(
        cls, size: tuple[int, int], data_type: DataType, data: list[Number]
    ) -> Image:
        image = cls.__new__(cls)
        image._size = size
        image._data_type = data_type
        image._data = data
        return image

    @classmethod
    def new_constant(
        cls, size: tuple[int, int], value: Number, data_type: DataType = DataType.F32
    ) -> Image:
        """Create an image with every sample set to ``value``."""
        image = cls(size, data_type)
        converted = from_f64(value, data_type)
        image._data = [converted] * len(image._data)
        return image

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def data_type(self) -> DataType:
        return self._data_type

    def group_rect(
        self, group_id: int, log_group_size: int | tuple[int, int]
    ) -> ImageRect:
        """Return the view covering group ``group_id`` in raster order."""
        if isinstance(log_group_size, int):
            log_x = log_y = log_group_size
        else:
            log_x, log_y = log_group_size
        xgroups = _shift_right_ceil(self._size[0], log_x)
        gx, gy = group_id % xgroups, group_id // xgroups
        origin = (gx << log_x, gy << log_y)
        if origin[1] >= self._size[1]:
            raise ValueError(f"group {group_id} is outside the image")
        size = (
            min(self._size[0] - origin[0], 1 << log_x),
            min(self._size[1] - origin[1], 1 << log_y),
        )
        return self.as_rect().rect(origin, size)

    def as_rect(self) -> ImageRect:
        """Return a view covering the whole image."""
        return ImageRect(self, (0, 0), self._size)

    def __repr__(self) -> str:
        return f"{self._data_type.name} {self._size[0]}x{self._size[1]}"


class ImageRect:
    """A rectangular view into an image; writes go to the image."""

    def __init__(
        self, image: Image, origin: tuple[int, int], size: tuple[int, int]
    ) -> None:
        self._image = image
        self._origin = _check_pair("origin", origin)
        self._size = _check_pair("size", size)
        _rect_size_check(self._origin, self._size, image.size)

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def origin(self) -> tuple[int, int]:
        return self._origin

    @property
    def image(self) -> Image:
        return self._image

    def rect(self, origin: tuple[int, int], size: tuple[int, int]) -> ImageRect:
        """Return a sub-view; ``origin`` is relative to this view."""
        origin = _check_pair("origin", origin)
        size = _check_pair("size", size)
        _rect_size_check(origin, size, self._size)
        return ImageRect(
            self._image,
            (origin[0] + self._origin[0], origin[1] + self._origin[1]),
            size,
        )

    def _row_start(self, row: int) -> int:
        if not 0 <= row < self._size[1]:
            raise IndexError(f"row {row} out of range for height {self._size[1]}")
        return (row + self._origin[1]) * self._image.size[0] + self._origin[0]

    def _index(self, position: tuple[int, int]) -> int:
        x, y = position
        if not 0 <= x < self._size[0]:
            raise IndexError(f"column {x} out of range for width {self._size[0]}")
        return self._row_start(y) + x

    def row(self, row: int) -> list[Number]:
        """Return a copy of one row of this view."""
        start = self._row_start(row)
        return self._image._data[start : start + self._size[0]]

    def set_row(self, row: int, values: list[Number]) -> None:
        """Overwrite one row of this view."""
        values = list(values)
        if len(values) != self._size[0]:
            raise ValueError(
                f"row has {len(values)} values, expected {self._size[0]}"
            )
        start = self._row_start(row)
        data_type = self._image.data_type
        self._image._data[start : start + self._size[0]] = [
            from_f64(v, data_type) for v in values
        ]

    def __getitem__(self, position: tuple[int, int]) -> Number:
        return self._image._data[self._index(position)]

    def __setitem__(self, position: tuple[int, int], value: Number) -> None:
        self._image._data[self._index(position)] = from_f64(
            value, self._image.data_type
        )

    def __iter__(self) -> Iterator[Number]:
        for y in range(self._size[1]):
            yield from self.row(y)

    def to_image(self) -> Image:
        """Copy the contents of this view into a new image."""
        return Image._from_data(self._size, self._image.data_type, list(self))

    def copy_from(self, other: ImageRect) -> None:
        """Copy every sample of ``other``, which must have the same size."""
        if other.size != self._size:
            raise ValueError(
                "cannot copy rect of size {}x{} into rect of size {}x{}".format(
                    *other.size, *self._size
                )
            )
        rows = [other.row(y) for y in range(self._size[1])]
        for y, values in enumerate(rows):
            self.set_row(y, values)

    def apply(self, func: Callable[[tuple[int, int], Number], Number]) -> None:
        """Replace each sample with ``func((x, y), value)``.

        ``(x, y)`` are the sample's coordinates in the full image.
        """
        data = self._image._data
        data_type = self._image.data_type
        ox, oy = self._origin
        for y in range(self._size[1]):
            start = self._row_start(y)
            for x in range(self._size[0]):
                data[start + x] = from_f64(func((ox + x, oy + y), data[start + x]), data_type)

    def to_pgm(self) -> bytes:
        """Encode this view as a binary 8-bit PGM image."""
        data_type = self._image.data_type
        header = f"P5\n{self._size[0]} {self._size[1]}\n255\n".encode("ascii")
        return header + bytes(to_u8_for_writing(v, data_type) for v in self)

    def __repr__(self) -> str:
        return "{} {}x{}+{}+{}".format(
            self._image.data_type.name, *self._size, *self._origin
        )


def _rect_size_check(
    origin: tuple[int, int], size: tuple[int, int], bounds: tuple[int, int]
) -> None:
    if origin[0] + size[0] > bounds[0] or origin[1] + size[1] > bounds[1]:
        raise ValueError(
            "rect {}x{}+{}+{} out of bounds for size {}x{}".format(
                *size, *origin, *bounds
            )
        )