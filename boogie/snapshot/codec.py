"""Binary codec for vector snapshots.

Layout (little-endian, no padding, no compression)::

    offset 0   uint32  dim
    offset 4   uint32  count
    offset 8   float32[count * dim]  row-major matrix, row 0 first

Total size is always ``8 + count * dim * 4`` bytes. Floats are written as raw
IEEE-754 bit patterns, so ``decode_vectors(encode_vectors(v))`` reproduces
``v`` exactly once it has been cast to float32.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from boogie.errors import DimensionMismatch, EmptyInput, HeaderInvalid, TruncatedInput

HEADER = struct.Struct("<II")
HEADER_SIZE = HEADER.size
FLOAT_SIZE = 4
FLOAT_DTYPE = np.dtype("<f4")
UINT32_MAX = 2**32 - 1


@dataclass(frozen=True, slots=True)
class SnapshotHeader:
    """Decoded snapshot header."""

    dim: int
    count: int

    @property
    def payload_size(self) -> int:
        return self.count * self.dim * FLOAT_SIZE

    @property
    def total_size(self) -> int:
        return HEADER_SIZE + self.payload_size


def _as_matrix(vectors: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Validate row lengths and return a contiguous little-endian float32 matrix."""
    if isinstance(vectors, np.ndarray):
        if vectors.ndim != 2:
            raise DimensionMismatch(
                f"Expected a 2D array of vectors; got shape {vectors.shape}",
                expected=2,
                actual=vectors.ndim,
            )
        if vectors.shape[0] == 0:
            raise EmptyInput("Cannot encode an empty vector snapshot")
        if vectors.shape[1] == 0:
            raise DimensionMismatch(
                "Vectors must have at least one component", index=0, expected=1, actual=0
            )
        return np.ascontiguousarray(vectors, dtype=FLOAT_DTYPE)

    if len(vectors) == 0:
        raise EmptyInput("Cannot encode an empty vector snapshot")

    dim = len(vectors[0])
    if dim == 0:
        raise DimensionMismatch(
            "Vectors must have at least one component", index=0, expected=1, actual=0
        )
    for index, vector in enumerate(vectors):
        if len(vector) != dim:
            raise DimensionMismatch(
                f"Vector at index {index} has dimension {len(vector)}, expected {dim}",
                index=index,
                expected=dim,
                actual=len(vector),
            )

    return np.asarray(vectors, dtype=FLOAT_DTYPE)


def encode_vectors(vectors: Sequence[Sequence[float]] | np.ndarray) -> bytes:
    """Encode equal-length vectors into the snapshot byte layout.

    Raises:
        EmptyInput: ``vectors`` is empty.
        DimensionMismatch: a row's length differs from the first row's.
    """
    matrix = _as_matrix(vectors)
    count, dim = matrix.shape
    if count > UINT32_MAX or dim > UINT32_MAX:
        raise HeaderInvalid(f"Snapshot shape {matrix.shape} does not fit a uint32 header")
    return HEADER.pack(dim, count) + matrix.tobytes(order="C")


def read_header(data: bytes | bytearray | memoryview) -> SnapshotHeader:
    """Parse and validate the 8-byte header without touching the payload."""
    if len(data) < HEADER_SIZE:
        raise TruncatedInput(
            f"Snapshot is {len(data)} bytes; at least {HEADER_SIZE} header bytes required"
        )
    dim, count = HEADER.unpack_from(data, 0)
    if dim == 0 or count == 0:
        raise HeaderInvalid(f"Snapshot header declares dim={dim}, count={count}")
    return SnapshotHeader(dim=dim, count=count)


def decode_vectors(data: bytes | bytearray | memoryview) -> np.ndarray:
    """Decode snapshot bytes into a ``(count, dim)`` float32 matrix.

    Raises:
        TruncatedInput: fewer bytes than the header declares.
        HeaderInvalid: zero ``dim``/``count`` or bytes beyond the declared payload.
    """
    header = read_header(data)
    actual = len(data)
    if actual < header.total_size:
        raise TruncatedInput(
            f"Snapshot declares {header.count}x{header.dim} floats "
            f"({header.total_size} bytes) but only {actual} bytes are present"
        )
    if actual > header.total_size:
        raise HeaderInvalid(
            f"Snapshot has {actual - header.total_size} trailing bytes after the declared payload"
        )

    payload = np.frombuffer(data, dtype=FLOAT_DTYPE, count=header.count * header.dim, offset=HEADER_SIZE)
    # frombuffer returns a read-only view; copy so callers own the matrix.
    return payload.reshape(header.count, header.dim).astype(np.float32, copy=True)
