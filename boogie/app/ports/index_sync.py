"""Index sync port: load, query, and inspect a nearest-neighbour backend."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

from boogie.config import IndexBackend, IndexMetric
from boogie.errors import InvalidArgument

BACKENDS: tuple[str, ...] = ("bruteforce", "annoy")
METRICS: tuple[str, ...] = ("cosine", "l2")


class Neighbor(BaseModel):
    """One ``(id, score)`` row; score semantics are backend-defined."""

    id: str
    score: float


class QueryResult(BaseModel):
    """Neighbours in backend order (best first) plus telemetry."""

    neighbors: list[Neighbor] = Field(default_factory=list)
    latency_ms: float
    backend: str


class LoadedIndex(BaseModel):
    count: int
    dim: int
    backend: str


class LoadResult(BaseModel):
    ok: bool
    loaded: LoadedIndex | None = None


class LatencyPercentiles(BaseModel):
    p50: float = 0.0
    p95: float = 0.0
    p99: float = 0.0


class StatsResult(BaseModel):
    """Backend readiness and throughput snapshot."""

    status: Literal["ready", "empty"]
    count: int = 0
    dim: int = 0
    backend: str | None = None
    metric: str | None = None
    snapshot_version: str | None = None
    uptime_sec: float = 0.0
    qps_1m: float = 0.0
    latency_ms: LatencyPercentiles = Field(default_factory=LatencyPercentiles)

    @property
    def ready(self) -> bool:
        return self.status == "ready"


def require_positive_k(k: int) -> int:
    """Reject non-positive (or non-integer) ``k`` without touching the backend."""
    if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
        raise InvalidArgument(f"k must be a positive integer; got {k!r}")
    return k


RESERVED_LOAD_FIELDS: frozenset[str] = frozenset(
    {"path", "dim", "ids_path", "backend", "metric", "n_trees"}
)


def validate_load_options(
    backend: str, metric: str, extra_params: Mapping[str, Any] | None = None
) -> None:
    """Reject unknown options and tuning parameters that shadow request fields."""
    if backend not in BACKENDS:
        raise InvalidArgument(f"Unknown backend {backend!r}; expected one of {', '.join(BACKENDS)}")
    if metric not in METRICS:
        raise InvalidArgument(f"Unknown metric {metric!r}; expected one of {', '.join(METRICS)}")
    if extra_params:
        clashes = sorted(RESERVED_LOAD_FIELDS.intersection(extra_params))
        if clashes:
            raise InvalidArgument(
                f"extra_params may not override load fields: {', '.join(clashes)}"
            )


class IndexSyncPort(Protocol):
    """Port interface for a remote (or in-process) vector search backend.

    Each call is exactly one request/response exchange. Implementations do not
    retry, batch, or reorder calls.

    Errors:
        InvalidArgument: rejected locally before any request is made.
        RemoteError subclasses: backend answered with an application error.
        TransportError subclasses: backend unreachable or response undecodable.
    """

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
        """(Re)build the backend index from a snapshot pair on disk."""
        ...

    def query(self, vector: Sequence[float], k: int) -> QueryResult:
        """Return up to ``k`` nearest neighbours of ``vector``."""
        ...

    def get_stats(self) -> StatsResult:
        """Return readiness, size, and latency statistics."""
        ...

    def health_check(self) -> str:
        """Liveness probe; returns backend-defined text."""
        ...
