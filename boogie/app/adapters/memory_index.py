"""In-process stand-in for the boogie-vec backend.

Implements the same four operations as :class:`BoogieVecClient` against a
snapshot read from local disk, with an exact scan for queries. Useful for
offline runs and tests; selected with ``BOOGIE_INDEX_CLIENT=memory``.

Each CLI command runs in a fresh process, so a client built with a
``snapshot_dir`` loads the snapshot found there on the first query or stats
call when nothing has been loaded explicitly.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import deque
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np

from boogie.app.ports.index_sync import (
    IndexSyncPort,
    LatencyPercentiles,
    LoadedIndex,
    LoadResult,
    Neighbor,
    QueryResult,
    StatsResult,
    require_positive_k,
    validate_load_options,
)
from boogie.config import IDS_FILENAME, IndexBackend, IndexMetric
from boogie.errors import (
    NO_INDEX,
    BoogieError,
    LoadFailed,
    QueryFailed,
    RemoteError,
    StatsFailed,
)
from boogie.snapshot.store import Snapshot, SnapshotPaths, read_snapshot

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class InMemoryIndexClient(IndexSyncPort):
    """Exact-scan index held in process memory."""

    def __init__(
        self,
        *,
        snapshot_dir: Path | None = None,
        dim: int | None = None,
        backend: IndexBackend = "bruteforce",
        metric: IndexMetric = "cosine",
        clock=time.monotonic,
        max_samples: int = 10_000,
    ) -> None:
        self._snapshot_dir = Path(snapshot_dir) if snapshot_dir is not None else None
        self._default_dim = dim
        self._default_backend = backend
        self._default_metric = metric
        self._clock = clock
        self._started = clock()
        self._lock = threading.Lock()
        self._autoload_lock = threading.Lock()
        self._snapshot: Snapshot | None = None
        self._matrix: np.ndarray | None = None
        self._backend: str | None = None
        self._metric: str | None = None
        self._version: str | None = None
        self._samples: deque[tuple[float, float]] = deque(maxlen=max_samples)

    def load_index(
        self,
        path: str,
        dim: int,
        *,
        ids_path: str | None = None,
        backend: IndexBackend = "bruteforce",
        metric: IndexMetric = "cosine",
        n_trees: int = 50,
        extra_params: Mapping[str, Any] | None = None,
    ) -> LoadResult:
        validate_load_options(backend, metric, extra_params)

        vectors_path = Path(path)
        paths = SnapshotPaths(
            vectors_path=vectors_path,
            ids_path=Path(ids_path) if ids_path else vectors_path.with_name(IDS_FILENAME),
        )
        try:
            snapshot = read_snapshot(paths)
        except FileNotFoundError as exc:
            raise LoadFailed("FILE_NOT_FOUND", str(exc)) from exc
        except BoogieError as exc:
            raise LoadFailed("INVALID_SNAPSHOT", str(exc)) from exc

        if snapshot.dim != dim:
            raise LoadFailed(
                "DIM_MISMATCH",
                f"Snapshot dimension {snapshot.dim} does not match requested {dim}",
            )

        matrix = snapshot.vectors
        if metric == "cosine":
            norms = np.linalg.norm(matrix, axis=1, keepdims=True)
            matrix = matrix / np.where(norms == 0, 1.0, norms)

        digest = hashlib.sha256(paths.vectors_path.read_bytes()).hexdigest()[:12]
        with self._lock:
            self._snapshot = snapshot
            self._matrix = matrix.astype(np.float32, copy=False)
            self._backend = backend
            self._metric = metric
            self._version = digest
            self._samples.clear()

        logger.info(
            "Loaded %d vectors (dim=%d, backend=%s, metric=%s)",
            snapshot.count,
            snapshot.dim,
            backend,
            metric,
        )
        return LoadResult(
            ok=True, loaded=LoadedIndex(count=snapshot.count, dim=snapshot.dim, backend=backend)
        )

    def query(self, vector: Sequence[float], k: int) -> QueryResult:
        require_positive_k(k)
        self._autoload(QueryFailed)
        start = self._clock()

        with self._lock:
            snapshot, matrix, backend, metric = (
                self._snapshot,
                self._matrix,
                self._backend,
                self._metric,
            )
        if snapshot is None or matrix is None:
            raise QueryFailed(NO_INDEX, "No index loaded. Call /load first.")

        q = np.asarray(vector, dtype=np.float32)
        if q.ndim != 1 or q.shape[0] != snapshot.dim:
            raise QueryFailed(
                "DIM_MISMATCH",
                f"Query vector must have dimension {snapshot.dim}; got {q.shape[-1] if q.ndim else 0}",
            )

        top = min(k, snapshot.count)
        if metric == "cosine":
            norm = float(np.linalg.norm(q))
            scores = matrix @ (q / norm if norm else q)
            order = np.argsort(-scores, kind="stable")[:top]
        else:
            scores = np.linalg.norm(matrix - q, axis=1)
            order = np.argsort(scores, kind="stable")[:top]

        neighbors = [Neighbor(id=snapshot.ids[int(i)], score=float(scores[i])) for i in order]
        latency_ms = (self._clock() - start) * 1000.0
        with self._lock:
            self._samples.append((self._clock(), latency_ms))
        return QueryResult(neighbors=neighbors, latency_ms=latency_ms, backend=backend or "")

    def get_stats(self) -> StatsResult:
        self._autoload(StatsFailed)
        now = self._clock()
        with self._lock:
            snapshot = self._snapshot
            recent = [lat for ts, lat in self._samples if now - ts <= WINDOW_SECONDS]
            backend, metric, version = self._backend, self._metric, self._version

        uptime = now - self._started
        if snapshot is None:
            return StatsResult(status="empty", uptime_sec=uptime)

        percentiles = LatencyPercentiles()
        if recent:
            p50, p95, p99 = np.percentile(np.asarray(recent), [50, 95, 99])
            percentiles = LatencyPercentiles(p50=float(p50), p95=float(p95), p99=float(p99))

        return StatsResult(
            status="ready",
            count=snapshot.count,
            dim=snapshot.dim,
            backend=backend,
            metric=metric,
            snapshot_version=version,
            uptime_sec=uptime,
            qps_1m=len(recent) / WINDOW_SECONDS,
            latency_ms=percentiles,
        )

    def health_check(self) -> str:
        return "ok"

    def _autoload(self, error_cls: type[RemoteError]) -> None:
        """Load ``snapshot_dir`` on first use when no index is held yet."""
        if self._snapshot is not None or self._snapshot_dir is None or self._default_dim is None:
            return
        paths = SnapshotPaths.in_dir(self._snapshot_dir)
        if not paths.exists():
            return

        with self._autoload_lock:
            if self._snapshot is not None:
                return
            logger.info("Loading snapshot from %s on first use", self._snapshot_dir)
            try:
                self.load_index(
                    str(paths.vectors_path),
                    self._default_dim,
                    ids_path=str(paths.ids_path),
                    backend=self._default_backend,
                    metric=self._default_metric,
                )
            except LoadFailed as exc:
                raise error_cls(exc.code, exc.message) from exc
