import io

import pytest
from hypothesis import given
from hypothesis import strategies as st

from jxlcore.encodings import JxlError
from jxlcore.icc_stream import (
    ICC_HEADER_SIZE,
    IccStream,
    icc_context,
    read_varint_from_reader,
)


def _leb128(value):
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _stream(data, contexts=None):
    symbols = iter(data)

    def read_symbol(ctx):
        if contexts is not None:
            contexts.append(ctx)
        return next(symbols)

    return IccStream(read_symbol, len(data))


@given(st.integers(0, 2**63 - 1))
def test_varint_round_trip_from_reader(value):
    assert read_varint_from_reader(io.BytesIO(_leb128(value))) == value


@given(st.integers(0, 2**63 - 1))
def test_varint_round_trip_from_stream(value):
    stream = _stream(_leb128(value))
    assert stream.read_varint() == value
    assert stream.remaining_bytes() == 0


def test_varint_two_bytes():
    assert read_varint_from_reader(io.BytesIO(b"\x80\x01")) == 128


def test_varint_stops_at_byte_without_continuation():
    reader = io.BytesIO(b"\x05\xff")
    assert read_varint_from_reader(reader) == 5
    assert reader.tell() == 1


@pytest.mark.parametrize("data", [b"", b"\x80", b"\xff\xff"])
def test_varint_truncated(data):
    with pytest.raises(JxlError):
        read_varint_from_reader(io.BytesIO(data))


def test_read_exact_returns_bytes():
    stream = _stream(b"abcdef")
    assert stream.read_exact(4) == b"abcd"
    assert stream.remaining_bytes() == 2
    assert stream.bytes_read == 4


def test_read_exact_beyond_end_consumes_nothing():
    stream = _stream(b"abc")
    with pytest.raises(JxlError):
        stream.read_exact(4)
    assert stream.bytes_read == 0


def test_read_one_past_end():
    stream = _stream(b"a")
    assert stream.read_one() == ord("a")
    with pytest.raises(JxlError):
        stream.read_one()


def test_symbol_out_of_range():
    stream = IccStream(lambda ctx: 256, 4)
    with pytest.raises(JxlError):
        stream.read_one()


def test_finalize_after_full_read():
    stream = _stream(b"xyz")
    stream.read_exact(3)
    stream.finalize()
    assert stream.remaining_bytes() == 0


def test_finalize_incomplete():
    stream = _stream(b"xyz")
    stream.read_exact(2)
    with pytest.raises(JxlError):
        stream.finalize()


def test_contexts_are_zero_within_header():
    contexts = []
    stream = _stream(bytes(ICC_HEADER_SIZE + 2), contexts)
    stream.read_exact(ICC_HEADER_SIZE + 2)
    assert contexts[: ICC_HEADER_SIZE + 1] == [0] * (ICC_HEADER_SIZE + 1)
    assert contexts[ICC_HEADER_SIZE + 1] == icc_context(ICC_HEADER_SIZE + 1, 0, 0)
    assert contexts[ICC_HEADER_SIZE + 1] != 0


@given(st.integers(0, ICC_HEADER_SIZE), st.integers(0, 255), st.integers(0, 255))
def test_context_zero_in_header(bytes_read, prev, prev_prev):
    assert icc_context(bytes_read, prev, prev_prev) == 0


@given(st.integers(ICC_HEADER_SIZE + 1, 10**6), st.integers(0, 255), st.integers(0, 255))
def test_context_range(bytes_read, prev, prev_prev):
    assert 1 <= icc_context(bytes_read, prev, prev_prev) < 41


def test_letters_share_a_context():
    assert icc_context(200, ord("a"), ord("Z")) == icc_context(200, ord("Q"), ord("b"))


def test_digits_and_letters_differ():
    assert icc_context(200, ord("5"), ord("a")) != icc_context(200, ord("a"), ord("a"))
    assert icc_context(200, ord("."), ord(",")) == icc_context(200, ord("7"), ord("0"))