"""Decoding of permutations stored as Lehmer codes."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from .encodings import JxlError


def get_context(x: int) -> int:
    """Entropy-coding context used for a value following ``x``."""
    return min((x).bit_length(), 7)


def _lowest_bit(x: int) -> int:
    return x & -x


def _invalid_lehmer(size: int, idx: int, lehmer: int) -> JxlError:
    return JxlError(
        f"invalid permutation: Lehmer code {lehmer} at index {idx} out of bounds "
        f"for size {size}"
    )


def decode_lehmer_code(code: Sequence[int], permutation_slice: Sequence[int]) -> list[int]:
    """Apply the Lehmer ``code`` to ``permutation_slice`` and return the result.

    Missing code entries are treated as zero.
    """
    n = len(permutation_slice)
    if n == 0:
        raise _invalid_lehmer(0, 0, 0)

    padded_n = 1 << (n - 1).bit_length()
    # Fenwick tree over the still-unused positions.
    tree = [_lowest_bit(x + 1) for x in range(padded_n)]
    permuted: list[int] = []

    for i in range(n):
        code_i = code[i] if i < len(code) else 0
        if code_i > n - i - 1:
            raise _invalid_lehmer(n, i, code_i)

        rank = code_i + 1
        bit = padded_n
        nxt = 0
        while bit:
            cand = nxt + bit
            if cand == 0 or cand > padded_n:
                raise _invalid_lehmer(n, i, code_i)
            bit >>= 1
            if tree[cand - 1] < rank:
                nxt = cand
                rank -= tree[cand - 1]

        permuted.append(permutation_slice[nxt])

        nxt += 1
        while nxt <= padded_n:
            tree[nxt - 1] -= 1
            nxt += _lowest_bit(nxt)

    return permuted


@dataclass(frozen=True)
class Permutation(Sequence[int]):
    """A permutation of ``0..len-1``; empty when no permutation is present."""

    values: tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def decode(
        cls, size: int, skip: int, read_symbol: Callable[[int], int]
    ) -> Permutation:
        """Decode a permutation, reading entropy-coded symbols by context."""
        end = read_symbol(get_context(size))
        return cls._decode_inner(size, skip, end, read_symbol)

    @classmethod
    def _decode_inner(
        cls, size: int, skip: int, end: int, read_symbol: Callable[[int], int]
    ) -> Permutation:
        if skip > size or end > size - skip:
            raise JxlError(
                f"invalid permutation size: size={size}, skip={skip}, end={end}"
            )

        lehmer: list[int] = []
        prev_val = 0
        for idx in range(skip, skip + end):
            val = read_symbol(get_context(prev_val))
            if val >= size - idx:
                raise _invalid_lehmer(size, idx, val)
            lehmer.append(val)
            prev_val = val

        identity = list(range(size))
        permuted = decode_lehmer_code(lehmer, identity[skip:])
        return cls(tuple(identity[:skip] + permuted))

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index):  # type: ignore[override]
        return self.values[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)