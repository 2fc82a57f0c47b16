"""File writing helpers with durability guarantees."""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any


def _write_temp(destination: Path, data: bytes) -> str:
    """Write ``data`` to a fsynced temp file beside ``destination``; return its path."""
    fd: int | None
    fd, tmp_path = tempfile.mkstemp(
        dir=str(destination.parent),
        prefix=destination.name,
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            fd = None  # Ownership transferred to file object
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
    except BaseException:
        if fd is not None:
            os.close(fd)
        _discard(tmp_path)
        raise
    return tmp_path


def _discard(tmp_path: str) -> None:
    try:
        os.unlink(tmp_path)
    except FileNotFoundError:
        pass


def atomic_write_many(items: Iterable[tuple[Path, bytes]]) -> None:
    """Write several files so that either all are replaced or none are.

    Every payload is staged to a temporary file (flushed and fsynced) before
    the first ``os.replace``. A failure while staging leaves every destination
    untouched and removes the staged files. The renames then happen in order;
    a crash between two renames can still leave a mixed set, which readers
    detect by cross-checking the files.
    """
    staged: list[tuple[str, Path]] = []
    try:
        for path, data in items:
            destination = Path(path)
            destination.parent.mkdir(parents=True, exist_ok=True)
            staged.append((_write_temp(destination, data), destination))

        while staged:
            tmp_path, destination = staged[0]
            os.replace(tmp_path, destination)
            staged.pop(0)
    finally:
        for tmp_path, _ in staged:
            _discard(tmp_path)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` atomically.

    Readers see either the previous file or the complete new one.
    """
    atomic_write_many([(Path(path), data)])


def atomic_write_json(path: Path, payload: Any, *, indent: int | None = 2) -> None:
    """Serialize ``payload`` as UTF-8 JSON and write it atomically."""
    text = json.dumps(payload, indent=indent, ensure_ascii=False)
    atomic_write_bytes(path, text.encode("utf-8"))
