# jxlcore

Building blocks of a JPEG XL decoder in plain Python, with no third-party
dependencies. Every decoding failure raises `jxlcore.encodings.JxlError`.

## Modules

- `jxlcore.encodings`: `BitReader`, which reads bits least-significant first
  from a byte string (`read`, `skip_bits`, `jump_to_byte_boundary`,
  `total_bits_read`), and the primitive field coders `Bits`, `BitsOffset`,
  `Val` and `Select`, with the readers `read_bool`, `read_f16`, `read_u32`,
  `read_i32`, `read_u64`, `read_string`, `read_vector`,
  `read_defaulted_vector` and `read_extensions`.
- `jxlcore.bit_depth`: `BitDepth.read(br)`, validated by `BitDepth.check()`.
- `jxlcore.size`: `Size.read(br)` and `Preview.read(br)`, with `xsize()` and
  `ysize()`, plus `AspectRatio` and `map_aspect_ratio`.
- `jxlcore.transform_data`: `OpsinInverseMatrix.read(br)` and
  `CustomTransformData.read(br, xyb_encoded)`, with the default matrices and
  upsampling kernels as module constants.
- `jxlcore.permutation`: `decode_lehmer_code`, `get_context` and
  `Permutation.decode(size, skip, read_symbol)`.
- `jxlcore.image`: `Image` and `ImageRect`, typed 2-D sample buffers
  (`DataType`) with sub-rectangles, group layout, per-sample access, copying,
  `apply` and 8-bit PGM output; `from_f64`, `to_f64` and
  `to_u8_for_writing` convert samples.
- `jxlcore.icc_stream`, `jxlcore.icc_header`, `jxlcore.icc_tags` and
  `jxlcore.icc`: reconstruction of compressed ICC profiles from a stream of
  decoded byte symbols (`decode_icc_symbols`, `decode_icc`).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Reading header fields

```python
from jxlcore.encodings import BitReader
from jxlcore.size import Size

size = Size.read(BitReader(b"\x47\x00"))
print(size.xsize(), size.ysize())   # 32 32
```

## Working with images

```python
from jxlcore.image import DataType, Image

image = Image((32, 32), DataType.U8)
rect = image.as_rect().rect((8, 8), (4, 4))
rect[0, 0] = 255                    # indexed as (x, y) within the view
pgm = image.as_rect().to_pgm()      # b"P5\n32 32\n255\n..."
```

## Decoding an ICC profile

`decode_icc_symbols` takes a callable that returns the next decoded symbol
for a given context, and the encoded length; the whole encoded stream must
be consumed.

```python
from jxlcore.icc import decode_icc_symbols

symbols = iter([4, 0, 0, 0, 0, 0])
profile = decode_icc_symbols(lambda ctx: next(symbols), 6)
print(profile)                      # b'\x00\x00\x00\x04'
```

## What it does not do

jxlcore does not decode whole files. It has no entropy decoder: permutations
and ICC profiles are decoded from symbols that the caller supplies. It does
not read the full file header, the image metadata, colour encodings, extra
channel descriptions or modular group headers, and it decodes no pixel data.