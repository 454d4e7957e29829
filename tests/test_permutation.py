import pytest
from hypothesis import given
from hypothesis import strategies as st

from jxlcore.encodings import JxlError
from jxlcore.permutation import Permutation, decode_lehmer_code, get_context


def test_simple():
    code = [1, 1, 2, 3, 3, 6, 0, 1]
    skip, size = 4, 16
    permuted = decode_lehmer_code(code, list(range(skip, size)))
    permutation = list(range(skip)) + permuted
    assert permutation == [0, 1, 2, 3, 5, 6, 8, 10, 11, 15, 4, 9, 7, 12, 13, 14]


def test_decode_lehmer_different_length():
    code = [1, 1, 2, 3, 3, 6, 0, 1]
    permuted = decode_lehmer_code(code, list(range(4, 16)))
    assert permuted == [5, 6, 8, 10, 11, 15, 4, 9, 7, 12, 13, 14]


def test_decode_lehmer_same_length():
    code = [2, 3, 0, 0, 0]
    assert decode_lehmer_code(code, list(range(5))) == [2, 4, 0, 1, 3]


def test_lehmer_out_of_bounds():
    with pytest.raises(JxlError):
        decode_lehmer_code([4], list(range(4, 8)))


def test_lehmer_empty_slice():
    with pytest.raises(JxlError):
        decode_lehmer_code([], [])


@st.composite
def _lehmer_input(draw):
    n = draw(st.integers(1, 200))
    code = [draw(st.integers(0, n - i - 1)) for i in range(n)]
    size = draw(st.integers(n, 300))
    slice_ = draw(st.permutations(list(range(size))))
    return code, slice_


@given(_lehmer_input())
def test_decode_lehmer_is_permutation(data):
    code, slice_ = data
    result = decode_lehmer_code(code, slice_)
    assert sorted(result) == sorted(slice_)
    assert result[0] == slice_[code[0]]


@given(st.lists(st.integers(0, 1000), min_size=1, max_size=100))
def test_zero_code_is_identity(slice_):
    assert decode_lehmer_code([0] * len(slice_), slice_) == slice_


def test_get_context_values():
    assert [get_context(x) for x in (0, 1, 2, 3, 4)] == [0, 1, 2, 2, 3]
    assert get_context(10_000) == 7


def _reader(symbols, contexts):
    it = iter(symbols)

    def read(ctx):
        contexts.append(ctx)
        return next(it)

    return read


def test_permutation_decode():
    contexts = []
    code = [1, 1, 2, 3, 3, 6, 0, 1]
    perm = Permutation.decode(16, 4, _reader([len(code)] + code, contexts))
    assert list(perm) == [0, 1, 2, 3, 5, 6, 8, 10, 11, 15, 4, 9, 7, 12, 13, 14]
    assert len(perm) == 16
    assert perm[4] == 5
    assert contexts[0] == get_context(16)
    assert contexts[1] == get_context(0)
    assert contexts[2:] == [get_context(v) for v in code[:-1]]


def test_permutation_decode_end_zero_is_identity():
    perm = Permutation.decode(6, 0, _reader([0], []))
    assert list(perm) == list(range(6))


def test_permutation_decode_end_too_large():
    with pytest.raises(JxlError):
        Permutation.decode(8, 4, _reader([5], []))


def test_permutation_decode_invalid_lehmer():
    with pytest.raises(JxlError):
        Permutation.decode(4, 0, _reader([2, 0, 3], []))


def test_default_permutation_is_empty():
    assert list(Permutation()) == []
    assert len(Permutation()) == 0