"""Prediction and decoding of the fixed-size ICC profile header."""

from __future__ import annotations

from collections.abc import Sequence

from .icc_stream import ICC_HEADER_SIZE, IccStream

_FIXED_BYTES = {70: 246, 71: 214, 73: 1, 78: 211, 79: 45}
_VENDORS = {ord("A"): b"APPL", ord("M"): b"MSFT"}
_S_VENDORS = {ord("G"): b"SGI ", ord("U"): b"SUNW"}


def predict_header(idx: int, output_size: int, header: Sequence[int]) -> int:
    """Predicted value of header byte ``idx`` given the raw header bytes."""
    if 0 <= idx <= 3:
        return (output_size & 0xFFFFFFFF).to_bytes(4, "big")[idx]
    if idx == 8:
        return 4
    if 12 <= idx <= 23:
        return b"mntrRGB XYZ "[idx - 12]
    if 36 <= idx <= 39:
        return b"acsp"[idx - 36]
    if 41 <= idx <= 43:
        vendor = _VENDORS.get(header[40])
        if vendor is not None:
            return vendor[idx - 40]
        if header[40] == ord("S") and idx >= 42:
            vendor = _S_VENDORS.get(header[41])
            if vendor is not None:
                return vendor[idx - 40]
        return 0
    if 80 <= idx <= 83:
        return header[idx - 76]
    return _FIXED_BYTES.get(idx, 0)


def read_header(data_stream: IccStream, output_size: int) -> bytearray:
    """Read and decode up to the first 128 bytes of the profile."""
    raw = data_stream.read_exact(min(output_size, ICC_HEADER_SIZE))
    return bytearray(
        (predict_header(idx, output_size, raw) + value) & 0xFF
        for idx, value in enumerate(raw)
    )