"""Uploaded file decoding and example file."""

from .example import EXAMPLE_CSV, write_example
from .reader import ALLOWED_EXTENSIONS, check_file, decode_file

__all__ = [
    "ALLOWED_EXTENSIONS",
    "EXAMPLE_CSV",
    "check_file",
    "decode_file",
    "write_example",
]
