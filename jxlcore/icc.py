"""Decoding of compressed ICC profiles."""

from __future__ import annotations

import io
from collections.abc import Callable

from .encodings import JxlError
from .icc_header import read_header
from .icc_stream import ICC_HEADER_SIZE, IccStream, read_varint_from_reader
from .icc_tags import ProfileBuffer, read_single_command, read_tag_list

MAX_ICC_LENGTH = 1 << 20
_MAX_OUTPUT_SIZE = 1 << 28


def decode_icc(stream: IccStream) -> bytes:
    """Decode an ICC profile from an already set-up byte stream."""
    output_size = stream.read_varint()
    commands_size = stream.read_varint()
    if stream.bytes_read + commands_size > stream.length:
        raise JxlError("ICC command stream exceeds the encoded data")
    if output_size > _MAX_OUTPUT_SIZE:
        raise JxlError(f"ICC profile too large: {output_size} bytes")
    if output_size + 65536 < stream.length:
        raise JxlError("ICC encoded data too large for the declared profile size")

    commands = io.BytesIO(stream.read_exact(commands_size))

    header = read_header(stream, output_size)
    if output_size <= ICC_HEADER_SIZE:
        return bytes(header)

    header.extend(bytes(output_size - len(header)))
    profile = ProfileBuffer(header, ICC_HEADER_SIZE)

    tag_count = read_varint_from_reader(commands)
    if tag_count > 0:
        num_tags = tag_count - 1
        if (output_size - ICC_HEADER_SIZE) // 12 < num_tags:
            raise JxlError(f"too many ICC tags: {num_tags}")
        profile.write_u32(num_tags)
        read_tag_list(stream, commands, profile, num_tags, output_size)

    while command := commands.read(1):
        read_single_command(stream, commands, profile, command[0])

    if profile.position != output_size:
        raise JxlError(
            f"ICC profile size mismatch: expected {output_size}, got {profile.position}"
        )
    return bytes(profile.data)


def decode_icc_symbols(read_symbol: Callable[[int], int], length: int) -> bytes:
    """Decode an ICC profile of ``length`` encoded bytes read via ``read_symbol``.

    The whole encoded stream must be consumed.
    """
    if length > MAX_ICC_LENGTH:
        raise JxlError(f"encoded ICC profile too large: {length} bytes")
    stream = IccStream(read_symbol, length)
    profile = decode_icc(stream)
    stream.finalize()
    return profile