"""Read and write the vectors.bin / ids.json pair as one unit."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from boogie.config import IDS_FILENAME, VECTORS_FILENAME
from boogie.errors import EmptyInput, LengthMismatch
from boogie.snapshot.codec import SnapshotHeader, decode_vectors, encode_vectors, read_header
from boogie.snapshot.manifest import decode_ids, encode_ids
from boogie.utils.atomic import atomic_write_many

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SnapshotPaths:
    """Locations of the two files forming a snapshot."""

    vectors_path: Path
    ids_path: Path

    @classmethod
    def in_dir(cls, directory: Path) -> "SnapshotPaths":
        directory = Path(directory)
        return cls(vectors_path=directory / VECTORS_FILENAME, ids_path=directory / IDS_FILENAME)

    def exists(self) -> bool:
        return self.vectors_path.exists() and self.ids_path.exists()


@dataclass(slots=True)
class Snapshot:
    """Decoded snapshot: ``vectors[i]`` belongs to ``ids[i]``."""

    vectors: np.ndarray
    ids: list[str]

    @property
    def count(self) -> int:
        return int(self.vectors.shape[0])

    @property
    def dim(self) -> int:
        return int(self.vectors.shape[1])


def write_snapshot(
    vectors: Sequence[Sequence[float]] | np.ndarray,
    ids: Sequence[str],
    output_dir: Path,
) -> SnapshotPaths:
    """Encode and persist a snapshot pair.

    Both payloads are encoded in memory and staged to temporary files before
    either destination is replaced, so a validation or staging failure
    never leaves a new vectors.bin beside an old ids.json.
    """
    if len(ids) == 0 or len(vectors) == 0:
        raise EmptyInput("Cannot write empty vector index")
    if len(vectors) != len(ids):
        raise LengthMismatch(
            f"Vector count ({len(vectors)}) does not match ID count ({len(ids)})"
        )

    vector_bytes = encode_vectors(vectors)
    id_bytes = encode_ids(ids)
    header = read_header(vector_bytes)

    paths = SnapshotPaths.in_dir(output_dir)
    atomic_write_many([(paths.vectors_path, vector_bytes), (paths.ids_path, id_bytes)])

    logger.info(
        "Wrote %d vectors (dim=%d) to %s", header.count, header.dim, paths.vectors_path
    )
    logger.info("Wrote %d IDs to %s", len(ids), paths.ids_path)
    return paths


def _require_pair(paths: SnapshotPaths) -> None:
    missing = [p for p in (paths.vectors_path, paths.ids_path) if not p.exists()]
    if missing:
        names = ", ".join(str(p) for p in missing)
        raise FileNotFoundError(f"Snapshot incomplete; missing {names}")


def read_snapshot(source: Path | SnapshotPaths) -> Snapshot:
    """Load and cross-check a snapshot pair from disk."""
    paths = source if isinstance(source, SnapshotPaths) else SnapshotPaths.in_dir(source)
    _require_pair(paths)

    vectors = decode_vectors(paths.vectors_path.read_bytes())
    ids = decode_ids(paths.ids_path.read_bytes())
    if len(ids) != vectors.shape[0]:
        raise LengthMismatch(
            f"Manifest {paths.ids_path} has {len(ids)} IDs but "
            f"{paths.vectors_path} holds {vectors.shape[0]} vectors"
        )
    return Snapshot(vectors=vectors, ids=ids)


def inspect_snapshot(source: Path | SnapshotPaths) -> tuple[SnapshotHeader, int]:
    """Return the snapshot header and manifest length after full validation."""
    snapshot = read_snapshot(source)
    return SnapshotHeader(dim=snapshot.dim, count=snapshot.count), len(snapshot.ids)
