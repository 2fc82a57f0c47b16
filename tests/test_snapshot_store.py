"""Manifest codec and snapshot pair persistence tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import numpy as np
import pytest

from boogie.errors import (
    DimensionMismatch,
    EmptyInput,
    LengthMismatch,
    MalformedManifest,
    TruncatedInput,
)
from boogie.snapshot import (
    SnapshotPaths,
    decode_ids,
    encode_ids,
    inspect_snapshot,
    read_snapshot,
    write_snapshot,
)


def test_manifest_preserves_order_and_duplicates() -> None:
    ids = ["z", "a", "m", "a", "ünïcode"]

    encoded = encode_ids(ids)

    assert json.loads(encoded) == ids
    assert decode_ids(encoded) == ids


@pytest.mark.parametrize(
    "payload",
    [b'{"ids": ["a"]}', b'["a", 2]', b"not json", b'"a"', b'["a", null]'],
)
def test_manifest_rejects_malformed_input(payload: bytes) -> None:
    with pytest.raises(MalformedManifest):
        decode_ids(payload)


def test_manifest_encode_rejects_non_string_ids() -> None:
    with pytest.raises(MalformedManifest):
        encode_ids(["a", 3])  # type: ignore[list-item]


def test_write_snapshot_produces_aligned_pair(temp_dir: Path) -> None:
    vectors = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
    ids = ["first", "second"]

    paths = write_snapshot(vectors, ids, temp_dir / "snap")

    assert paths.vectors_path.name == "vectors.bin"
    assert paths.ids_path.name == "ids.json"
    assert paths.vectors_path.stat().st_size == 8 + 2 * 3 * 4

    snapshot = read_snapshot(temp_dir / "snap")
    assert snapshot.ids == ids
    assert snapshot.count == 2
    assert snapshot.dim == 3
    assert np.array_equal(snapshot.vectors, np.asarray(vectors, dtype=np.float32))


def test_write_snapshot_leaves_no_temp_files(temp_dir: Path) -> None:
    write_snapshot([[1.0]], ["only"], temp_dir)

    assert sorted(p.name for p in temp_dir.iterdir()) == ["ids.json", "vectors.bin"]


def test_dimension_mismatch_writes_nothing(temp_dir: Path) -> None:
    out = temp_dir / "snap"

    with pytest.raises(DimensionMismatch):
        write_snapshot([[1.0, 2.0], [3.0]], ["a", "b"], out)

    assert not out.exists()


def test_length_mismatch_writes_nothing(temp_dir: Path) -> None:
    out = temp_dir / "snap"

    with pytest.raises(LengthMismatch):
        write_snapshot([[1.0], [2.0]], ["a"], out)

    assert not out.exists()


def test_empty_snapshot_rejected(temp_dir: Path) -> None:
    with pytest.raises(EmptyInput):
        write_snapshot([], [], temp_dir)


def test_read_snapshot_requires_both_files(temp_dir: Path) -> None:
    paths = write_snapshot([[1.0, 2.0]], ["a"], temp_dir)
    paths.ids_path.unlink()

    with pytest.raises(FileNotFoundError):
        read_snapshot(temp_dir)


def test_read_snapshot_detects_manifest_drift(temp_dir: Path) -> None:
    paths = write_snapshot([[1.0, 2.0], [3.0, 4.0]], ["a", "b"], temp_dir)
    paths.ids_path.write_text(json.dumps(["a"]), encoding="utf-8")

    with pytest.raises(LengthMismatch):
        read_snapshot(paths)


def test_read_snapshot_detects_partial_write(temp_dir: Path) -> None:
    paths = write_snapshot([[1.0, 2.0], [3.0, 4.0]], ["a", "b"], temp_dir)
    paths.vectors_path.write_bytes(paths.vectors_path.read_bytes()[:-4])

    with pytest.raises(TruncatedInput):
        read_snapshot(paths)


def test_inspect_snapshot_reports_header(temp_dir: Path) -> None:
    write_snapshot(np.ones((4, 6), dtype=np.float32), ["a", "b", "c", "d"], temp_dir)

    header, id_count = inspect_snapshot(SnapshotPaths.in_dir(temp_dir))

    assert (header.dim, header.count, id_count) == (6, 4, 4)
    assert header.total_size == 8 + 4 * 6 * 4


def test_failed_ids_write_keeps_previous_pair(
    temp_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import boogie.utils.atomic as atomic_module

    write_snapshot([[1.0, 2.0]], ["old"], temp_dir)
    original_vectors = (temp_dir / "vectors.bin").read_bytes()
    real_write_temp = atomic_module._write_temp

    def fail_on_manifest(destination: Path, data: bytes) -> str:
        if destination.name == "ids.json":
            raise OSError("disk full")
        return real_write_temp(destination, data)

    monkeypatch.setattr(atomic_module, "_write_temp", fail_on_manifest)

    with pytest.raises(OSError, match="disk full"):
        write_snapshot([[3.0, 4.0], [5.0, 6.0]], ["new1", "new2"], temp_dir)

    assert (temp_dir / "vectors.bin").read_bytes() == original_vectors
    assert read_snapshot(temp_dir).ids == ["old"]
    assert sorted(os.listdir(temp_dir)) == ["ids.json", "vectors.bin"]
