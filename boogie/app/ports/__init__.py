"""Port interfaces for the Boogie application layer.

These protocol interfaces define contracts for adapters.
Services depend on these ports, never on concrete implementations.
"""

__all__ = [
    "EmbeddingPort",
    "EmbeddingResult",
    "IndexSyncPort",
    "LatencyPercentiles",
    "LoadResult",
    "LoadedIndex",
    "Neighbor",
    "QueryResult",
    "StatsResult",
]

from boogie.app.ports.embedding import EmbeddingPort, EmbeddingResult
from boogie.app.ports.index_sync import (
    IndexSyncPort,
    LatencyPercentiles,
    LoadedIndex,
    LoadResult,
    Neighbor,
    QueryResult,
    StatsResult,
)
