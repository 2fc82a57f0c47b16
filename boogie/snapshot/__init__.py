"""Snapshot codecs and pair persistence for the boogie-vec backend."""

from boogie.snapshot.codec import (
    HEADER_SIZE,
    SnapshotHeader,
    decode_vectors,
    encode_vectors,
    read_header,
)
from boogie.snapshot.manifest import decode_ids, encode_ids
from boogie.snapshot.store import (
    Snapshot,
    SnapshotPaths,
    inspect_snapshot,
    read_snapshot,
    write_snapshot,
)

__all__ = [
    "HEADER_SIZE",
    "Snapshot",
    "SnapshotHeader",
    "SnapshotPaths",
    "decode_ids",
    "decode_vectors",
    "encode_ids",
    "encode_vectors",
    "inspect_snapshot",
    "read_header",
    "read_snapshot",
    "write_snapshot",
]
