"""Deterministic hash-seeded embeddings for offline runs and tests."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

import numpy as np

from boogie.app.ports.embedding import EmbeddingPort, EmbeddingResult


class HashEmbeddingAdapter(EmbeddingPort):
    """Map each text to a reproducible unit vector.

    The text's SHA-256 digest seeds a NumPy generator, so equal texts always
    embed identically across processes. Vectors carry no semantic meaning.
    """

    MODEL_ID = "hash-sha256"

    def requires_online(self) -> bool:
        return False

    def _embed(self, text: str, dimensions: int) -> list[float]:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "little")
        rng = np.random.default_rng(seed)
        vector = rng.standard_normal(dimensions)
        norm = np.linalg.norm(vector)
        if norm:
            vector = vector / norm
        return vector.astype(np.float32).tolist()

    def embed_documents(self, texts: Sequence[str], *, dimensions: int = 384) -> EmbeddingResult:
        return EmbeddingResult(
            embeddings=[self._embed(text, dimensions) for text in texts],
            latency_ms=0.0,
            token_count=None,
            model=self.MODEL_ID,
            dimensions=dimensions,
        )

    def embed_query(self, query: str, *, dimensions: int = 384) -> list[float]:
        return self._embed(query, dimensions)
