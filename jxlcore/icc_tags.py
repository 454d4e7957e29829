"""Decoding of the ICC tag table and of the tag data commands."""

from __future__ import annotations

from typing import BinaryIO, Optional, Union

from .encodings import JxlError
from .icc_stream import ICC_HEADER_SIZE, IccStream, read_varint_from_reader

COMMON_TAGS = (
    b"rTRC", b"rXYZ", b"cprt", b"wtpt", b"bkpt", b"rXYZ", b"gXYZ", b"bXYZ", b"kXYZ",
    b"rTRC", b"gTRC", b"bTRC", b"kTRC", b"chad", b"desc", b"chrm", b"dmnd", b"dmdd",
    b"lumi",
)

COMMON_DATA = (b"XYZ ", b"desc", b"text", b"mluc", b"para", b"curv", b"sf32", b"gbd ")

_FIXED_SIZE_TAGS = frozenset(
    {b"rXYZ", b"gXYZ", b"bXYZ", b"kXYZ", b"wtpt", b"bkpt", b"lumi"}
)
_U32 = 0xFFFFFFFF


class ProfileBuffer:
    """A fixed-size output buffer with a write position."""

    def __init__(self, data: Union[bytearray, bytes], position: int = 0) -> None:
        self.data = data if isinstance(data, bytearray) else bytearray(data)
        self.position = position

    def write(self, data: bytes) -> None:
        """Write ``data`` at the current position and advance past it."""
        end = self.position + len(data)
        if end > len(self.data):
            raise JxlError("ICC profile output overflows its declared size")
        self.data[self.position : end] = data
        self.position = end

    def write_u32(self, value: int) -> None:
        """Write a big-endian 32-bit value."""
        self.write((value & _U32).to_bytes(4, "big"))

    def read_u32_at(self, position: int) -> int:
        """Read a big-endian 32-bit value without moving the write position."""
        if position < 0 or position + 4 > len(self.data):
            raise JxlError(f"cannot read 32-bit value at {position}")
        return int.from_bytes(self.data[position : position + 4], "big")


def _next_byte(commands: BinaryIO) -> Optional[int]:
    chunk = commands.read(1)
    return chunk[0] if chunk else None


def read_tag_list(
    data_stream: IccStream,
    commands: BinaryIO,
    profile: ProfileBuffer,
    num_tags: int,
    output_size: int,
) -> None:
    """Decode tag table entries until a terminating command or end of commands."""
    prev_tagstart = num_tags * 12 + ICC_HEADER_SIZE
    prev_tagsize = 0

    while (command := _next_byte(commands)) is not None:
        tagcode = command & 63
        if tagcode == 0:
            return
        if tagcode == 1:
            tag = data_stream.read_exact(4)
        elif tagcode <= 20:
            tag = COMMON_TAGS[tagcode - 2]
        else:
            raise JxlError(f"invalid ICC tag code {tagcode}")

        if command & 64:
            tagstart = read_varint_from_reader(commands) & _U32
        else:
            tagstart = (prev_tagstart + prev_tagsize) & _U32

        if command & 128:
            tagsize = read_varint_from_reader(commands) & _U32
        elif tag in _FIXED_SIZE_TAGS:
            tagsize = 20
        else:
            tagsize = prev_tagsize

        if tagstart + tagsize > output_size:
            raise JxlError(
                f"ICC tag at {tagstart} of size {tagsize} exceeds profile size {output_size}"
            )
        prev_tagstart, prev_tagsize = tagstart, tagsize

        entries = [(tag, tagstart)]
        if tagcode == 2:
            entries += [(b"gTRC", tagstart), (b"bTRC", tagstart)]
        elif tagcode == 3:
            entries += [(b"gXYZ", tagstart + tagsize), (b"bXYZ", tagstart + tagsize * 2)]
        for name, start in entries:
            profile.write(name)
            profile.write_u32(start)
            profile.write_u32(tagsize)


def shuffle_w2(data: bytes) -> bytes:
    """Interleave the two halves of ``data``."""
    height, odd = divmod(len(data), 2)
    out = bytearray()
    for first, second in zip(data[:height], data[height + odd :]):
        out += bytes((first, second))
    if odd:
        out.append(data[height])
    return bytes(out)


def shuffle_w4(data: bytes) -> bytes:
    """Interleave the four quarters of ``data``."""
    step, wide_count = divmod(len(data), 4)
    out = bytearray()
    for idx in range(step):
        base = idx
        for k in range(4):
            out.append(data[base])
            base += step + 1 if k < wide_count else step
    out.extend(data[(step + 1) * k - 1] for k in range(1, wide_count + 1))
    return bytes(out)


def _predicted_values(
    data_stream: IccStream, commands: BinaryIO, profile: ProfileBuffer
) -> None:
    flags = _next_byte(commands)
    if flags is None:
        raise JxlError("missing flags of ICC prediction command")
    width = (flags & 3) + 1
    order = (flags >> 2) & 3
    if width == 3 or order == 3:
        raise JxlError(f"invalid ICC prediction flags {flags}")

    if flags & 16:
        stride = read_varint_from_reader(commands)
        if stride < width:
            raise JxlError(f"ICC prediction stride {stride} below width {width}")
    else:
        stride = width
    if stride * 4 >= profile.position:
        raise JxlError(f"ICC prediction stride {stride} reaches before the profile")

    num = read_varint_from_reader(commands)
    data = data_stream.read_exact(num)
    if width == 2:
        data = shuffle_w2(data)
    elif width == 4:
        data = shuffle_w4(data)

    for i in range(0, num, width):
        base = profile.position
        prev = [profile.read_u32_at(base - stride * (j + 1)) for j in range(order + 1)]
        if order == 0:
            predicted = prev[0]
        elif order == 1:
            predicted = (2 * prev[0] - prev[1]) & _U32
        else:
            predicted = (3 * (prev[0] - prev[1]) + prev[2]) & _U32
        profile.write(
            bytes(
                (data[i + j] + (predicted >> (8 * (width - 1 - j)))) & 0xFF
                for j in range(min(width, num - i))
            )
        )


def read_single_command(
    data_stream: IccStream, commands: BinaryIO, profile: ProfileBuffer, command: int
) -> None:
    """Execute one tag data command, writing its output to ``profile``."""
    if command == 1:
        num = read_varint_from_reader(commands)
        profile.write(data_stream.read_exact(num))
    elif command in (2, 3):
        num = read_varint_from_reader(commands)
        data = data_stream.read_exact(num)
        profile.write(shuffle_w2(data) if command == 2 else shuffle_w4(data))
    elif command == 4:
        _predicted_values(data_stream, commands, profile)
    elif command == 10:
        profile.write(b"XYZ " + bytes(4) + data_stream.read_exact(12))
    elif 16 <= command <= 23:
        profile.write(COMMON_DATA[command - 16] + bytes(4))
    else:
        raise JxlError(f"invalid ICC command {command}")