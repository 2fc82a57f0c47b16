"""Online query path: embed a text query, search the backend, hydrate results."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from boogie.app.ports import EmbeddingPort, IndexSyncPort, Neighbor
from boogie.config import Settings
from boogie.errors import DimensionMismatch, InvalidArgument
from boogie.metadata import MetadataStore
from boogie.records import ScoredTrack

logger = logging.getLogger(__name__)


class SearchResponse(BaseModel):
    """Hydrated tracks in backend order plus backend telemetry."""

    query: str
    tracks: list[ScoredTrack] = Field(default_factory=list)
    latency_ms: float
    backend: str


class SearchService:
    """Turn a free-text query into ranked, hydrated tracks."""

    def __init__(
        self,
        *,
        settings: Settings,
        embedder: EmbeddingPort | None,
        index_client: IndexSyncPort,
        metadata_store: MetadataStore,
    ) -> None:
        self._settings = settings
        self._embedder = embedder
        self._index = index_client
        self._metadata = metadata_store

    def search(self, query: str, *, k: int | None = None) -> SearchResponse:
        """Search for ``query``.

        Raises:
            InvalidArgument: empty query or ``k`` outside ``[1, max_k]``.
            MetadataUnavailable: no metadata document has been written yet.
            RemoteError / TransportError: propagated from the index client.
        """
        text = (query or "").strip()
        if not text:
            raise InvalidArgument("Query is required and must be a non-empty string")

        limit = self._settings.default_k if k is None else k
        if limit <= 0 or limit > self._settings.max_k:
            raise InvalidArgument(f"k must be between 1 and {self._settings.max_k}")

        if self._embedder is None:
            raise RuntimeError(
                "No embedding provider available. Enable --online for OpenAI "
                "or set BOOGIE_EMBEDDINGS_PROVIDER=hash."
            )

        dim = self._settings.vector_dim
        vector = self._embedder.embed_query(text, dimensions=dim)
        if len(vector) != dim:
            raise DimensionMismatch(
                f"Query embedding has dimension {len(vector)}, expected {dim}",
                expected=dim,
                actual=len(vector),
            )

        result = self._index.query(vector, limit)
        return SearchResponse(
            query=text,
            tracks=self.hydrate(result.neighbors),
            latency_ms=result.latency_ms,
            backend=result.backend,
        )

    def hydrate(self, neighbors: Sequence[Neighbor]) -> list[ScoredTrack]:
        """Join neighbours to metadata, dropping IDs with no record.

        Order and scores are passed through from the backend unchanged.
        """
        catalog = self._metadata.load()
        tracks: list[ScoredTrack] = []
        for neighbor in neighbors:
            track = catalog.get(neighbor.id)
            if track is None:
                logger.warning("Track metadata not found for ID: %s", neighbor.id)
                continue
            tracks.append(ScoredTrack(**track.model_dump(), score=neighbor.score))
        return tracks
