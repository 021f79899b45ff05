"""Vector (de)serialization for the embeddings table."""

from __future__ import annotations

import sys
from array import array
from typing import Sequence

_ITEMSIZE = array("d").itemsize


def encode_vector(vector: Sequence[float]) -> bytes:
    """Pack floats as little-endian float64 so Python floats round-trip exactly."""
    arr = array("d", (float(value) for value in vector))
    if sys.byteorder != "little":
        arr.byteswap()
    return arr.tobytes()


def decode_vector(blob: bytes) -> list[float]:
    if len(blob) % _ITEMSIZE:
        raise ValueError(f"Embedding blob length {len(blob)} is not a multiple of {_ITEMSIZE}")
    arr = array("d")
    arr.frombytes(blob)
    if sys.byteorder != "little":
        arr.byteswap()
    return arr.tolist()


def vector_dimensions(blob: bytes) -> int:
    return len(blob) // _ITEMSIZE


__all__ = ["encode_vector", "decode_vector", "vector_dimensions"]
