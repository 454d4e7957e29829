import io

import pytest
from hypothesis import given
from hypothesis import strategies as st

from jxlcore.encodings import JxlError
from jxlcore.icc_stream import IccStream
from jxlcore.icc_tags import (
    ProfileBuffer,
    read_single_command,
    read_tag_list,
    shuffle_w2,
    shuffle_w4,
)


def _stream(data):
    symbols = iter(data)
    return IccStream(lambda ctx: next(symbols), len(data))


def _varint(value):
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _entries(data, start, count):
    out = []
    for k in range(count):
        chunk = data[start + 12 * k : start + 12 * (k + 1)]
        out.append(
            (bytes(chunk[:4]), int.from_bytes(chunk[4:8], "big"), int.from_bytes(chunk[8:12], "big"))
        )
    return out


def test_buffer_write_advances():
    buf = ProfileBuffer(bytearray(8), 2)
    buf.write(b"ab")
    assert buf.position == 4
    assert bytes(buf.data) == b"\x00\x00ab\x00\x00\x00\x00"


def test_buffer_write_overflow():
    buf = ProfileBuffer(bytearray(4), 2)
    with pytest.raises(JxlError):
        buf.write(b"abc")


def test_buffer_u32_round_trip():
    buf = ProfileBuffer(bytearray(8))
    buf.write_u32(0x0A0B0C0D)
    assert bytes(buf.data[:4]) == bytes([0x0A, 0x0B, 0x0C, 0x0D])
    assert buf.read_u32_at(0) == 0x0A0B0C0D
    assert buf.position == 4


def test_buffer_read_out_of_range():
    buf = ProfileBuffer(bytearray(8))
    with pytest.raises(JxlError):
        buf.read_u32_at(6)
    with pytest.raises(JxlError):
        buf.read_u32_at(-1)


@given(st.binary(max_size=64))
def test_shuffle_w2_is_permutation(data):
    out = shuffle_w2(data)
    assert sorted(out) == sorted(data)


@given(st.binary(max_size=64))
def test_shuffle_w4_is_permutation(data):
    out = shuffle_w4(data)
    assert sorted(out) == sorted(data)


@given(st.binary(max_size=32).map(lambda b: b + b[: len(b) % 2]))
def test_shuffle_w2_interleaves_halves(data):
    if len(data) % 2:
        data = data[:-1]
    half = len(data) // 2
    out = shuffle_w2(data)
    assert out[0::2] == data[:half]
    assert out[1::2] == data[half:]


def test_shuffle_w2_odd_puts_middle_last():
    data = bytes(range(7))
    assert shuffle_w2(data)[-1] == data[3]


@given(st.integers(0, 16))
def test_shuffle_w4_interleaves_quarters(step):
    data = bytes(range(step * 4))
    out = shuffle_w4(data)
    for k in range(4):
        assert out[k::4] == data[k * step : (k + 1) * step]


def test_tag_list_empty_commands():
    buf = ProfileBuffer(bytearray(300), 132)
    read_tag_list(_stream(b""), io.BytesIO(b""), buf, 1, 300)
    assert buf.position == 132


def test_tag_list_rtrc_expands_to_three():
    commands = io.BytesIO(bytes([2 | 64 | 128]) + _varint(200) + _varint(10))
    buf = ProfileBuffer(bytearray(300), 132)
    read_tag_list(_stream(b""), commands, buf, 1, 300)
    assert _entries(buf.data, 132, 3) == [
        (b"rTRC", 200, 10),
        (b"gTRC", 200, 10),
        (b"bTRC", 200, 10),
    ]
    assert buf.position == 132 + 36


def test_tag_list_rxyz_has_fixed_size():
    commands = io.BytesIO(bytes([3 | 64]) + _varint(200))
    buf = ProfileBuffer(bytearray(300), 132)
    read_tag_list(_stream(b""), commands, buf, 1, 300)
    assert _entries(buf.data, 132, 3) == [
        (b"rXYZ", 200, 20),
        (b"gXYZ", 200 + 20, 20),
        (b"bXYZ", 200 + 40, 20),
    ]


def test_tag_list_custom_tags_follow_previous():
    commands = io.BytesIO(bytes([1 | 64 | 128]) + _varint(200) + _varint(16) + bytes([1]))
    buf = ProfileBuffer(bytearray(300), 132)
    read_tag_list(_stream(b"abcdefgh"), commands, buf, 2, 300)
    assert _entries(buf.data, 132, 2) == [(b"abcd", 200, 16), (b"efgh", 200 + 16, 16)]


def test_tag_list_stops_at_code_zero():
    commands = io.BytesIO(b"\x00\x05")
    buf = ProfileBuffer(bytearray(300), 132)
    read_tag_list(_stream(b""), commands, buf, 1, 300)
    assert commands.read() == b"\x05"
    assert buf.position == 132


def test_tag_list_overflow():
    commands = io.BytesIO(bytes([2 | 64 | 128]) + _varint(290) + _varint(20))
    buf = ProfileBuffer(bytearray(300), 132)
    with pytest.raises(JxlError):
        read_tag_list(_stream(b""), commands, buf, 1, 300)


def test_tag_list_invalid_code():
    buf = ProfileBuffer(bytearray(300), 132)
    with pytest.raises(JxlError):
        read_tag_list(_stream(b""), io.BytesIO(bytes([21])), buf, 1, 300)


def test_command_copy():
    buf = ProfileBuffer(bytearray(10), 2)
    read_single_command(_stream(b"hello"), io.BytesIO(_varint(5)), buf, 1)
    assert bytes(buf.data[2:7]) == b"hello"
    assert buf.position == 7


@pytest.mark.parametrize("command, shuffle", [(2, shuffle_w2), (3, shuffle_w4)])
def test_command_shuffle(command, shuffle):
    data = bytes(range(11))
    buf = ProfileBuffer(bytearray(11))
    read_single_command(_stream(data), io.BytesIO(_varint(11)), buf, command)
    assert bytes(buf.data) == shuffle(data)


def test_command_xyz():
    payload = bytes(range(1, 13))
    buf = ProfileBuffer(bytearray(20))
    read_single_command(_stream(payload), io.BytesIO(b""), buf, 10)
    assert bytes(buf.data) == b"XYZ " + bytes(4) + payload


@pytest.mark.parametrize("command, name", [(16, b"XYZ "), (19, b"mluc"), (23, b"gbd ")])
def test_command_common_data(command, name):
    buf = ProfileBuffer(bytearray(8))
    read_single_command(_stream(b""), io.BytesIO(b""), buf, command)
    assert bytes(buf.data) == name + bytes(4)


@pytest.mark.parametrize("command", [0, 5, 9, 11, 24])
def test_command_unknown(command):
    with pytest.raises(JxlError):
        read_single_command(_stream(b""), io.BytesIO(b""), ProfileBuffer(bytearray(8)), command)


def test_predict_order0_repeats_previous_value():
    data = bytearray(24)
    data[16:20] = b"\x00\x00\x01\x02"
    buf = ProfileBuffer(data, 20)
    commands = io.BytesIO(bytes([3]) + _varint(4))
    read_single_command(_stream(bytes(4)), commands, buf, 4)
    assert bytes(buf.data[20:24]) == b"\x00\x00\x01\x02"
    assert buf.position == 24


def test_predict_order1_extrapolates():
    data = bytearray(24)
    data[12:16] = (3).to_bytes(4, "big")
    data[16:20] = (5).to_bytes(4, "big")
    buf = ProfileBuffer(data, 20)
    commands = io.BytesIO(bytes([3 | 4]) + _varint(4))
    read_single_command(_stream(bytes(4)), commands, buf, 4)
    assert int.from_bytes(buf.data[20:24], "big") == 7


@pytest.mark.parametrize(
    "commands",
    [
        b"",
        bytes([2]) + _varint(1),
        bytes([12]) + _varint(1),
        bytes([16 | 3]) + _varint(2) + _varint(4),
        bytes([16]) + _varint(5) + _varint(1),
    ],
)
def test_predict_invalid(commands):
    buf = ProfileBuffer(bytearray(30), 20)
    with pytest.raises(JxlError):
        read_single_command(_stream(bytes(8)), io.BytesIO(commands), buf, 4)