"""Embedding port interface for vector generation.

Defines a protocol for text embedding providers and a small DTO for
returning vectors with minimal telemetry. Adapters implement this port
to support online providers (OpenAI) or offline deterministic fallbacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(slots=True)
class EmbeddingResult:
    """Embedding vectors and basic telemetry."""

    embeddings: list[list[float]]
    latency_ms: float
    token_count: int | None = None
    model: str | None = None
    dimensions: int | None = None


class EmbeddingPort(Protocol):
    """Port interface for text embedding services.

    Implementations must return one vector per input text, in input order,
    each of length ``dimensions``.

    Side effects: Network API calls for online providers.
    """

    def requires_online(self) -> bool:
        """Return True when the provider makes network calls."""
        ...

    def embed_documents(self, texts: Sequence[str], *, dimensions: int = 384) -> EmbeddingResult:
        """Embed documents for indexing.

        Args:
            texts: Document texts to embed (ordered)
            dimensions: Desired output dimension

        Returns:
            EmbeddingResult with vectors and telemetry
        """
        ...

    def embed_query(self, query: str, *, dimensions: int = 384) -> list[float]:
        """Embed a single search query vector."""
        ...
