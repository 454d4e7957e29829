"""Building blocks of a JPEG XL decoder: bit reading, header fields, permutations, image buffers and ICC profiles."""

__version__ = "0.1.0"
__all__ = [
    "bit_depth",
    "encodings",
    "icc",
    "icc_header",
    "icc_stream",
    "icc_tags",
    "image",
    "permutation",
    "size",
    "transform_data",
]