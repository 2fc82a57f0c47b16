"""OpenAI embedding adapter implementing EmbeddingPort."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any

import numpy as np

from boogie.app.ports.embedding import EmbeddingPort, EmbeddingResult
from boogie.utils.offline import OfflineModeGate

logger = logging.getLogger(__name__)


def normalize_vector(vector: Sequence[float]) -> list[float]:
    """Scale ``vector`` to unit length; zero vectors are returned unchanged."""
    array = np.asarray(vector, dtype=np.float64)
    magnitude = float(np.linalg.norm(array))
    if magnitude == 0.0:
        return [float(v) for v in vector]
    return (array / magnitude).tolist()


class OpenAIEmbeddingAdapter(EmbeddingPort):
    """Embedding adapter backed by the OpenAI embeddings API.

    ``text-embedding-3-*`` models accept a ``dimensions`` argument, so the
    provider returns vectors of the snapshot dimension directly. Output is
    L2-normalised for cosine similarity.
    """

    DEFAULT_MODEL = "text-embedding-3-large"

    def __init__(
        self,
        *,
        offline_gate: OfflineModeGate,
        api_key: str | None = None,
        model: str | None = None,
        client: Any | None = None,
    ) -> None:
        offline_gate.require("OpenAI embeddings")
        self._model = model or self.DEFAULT_MODEL

        if client is not None:
            self._client = client
            return

        if not api_key:
            raise RuntimeError(
                "OPENAI_API_KEY environment variable is required for OpenAI embeddings."
            )
        try:
            from openai import OpenAI
        except ModuleNotFoundError as exc:  # pragma: no cover - optional dep
            raise RuntimeError("The 'openai' package is required for OpenAI embeddings.") from exc

        self._client = OpenAI(api_key=api_key)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self._model!r})"

    @property
    def model(self) -> str:
        return self._model

    def requires_online(self) -> bool:
        return True

    def embed_documents(self, texts: Sequence[str], *, dimensions: int = 384) -> EmbeddingResult:
        if not texts:
            return EmbeddingResult(
                embeddings=[],
                latency_ms=0.0,
                token_count=0,
                model=self._model,
                dimensions=dimensions,
            )

        start = time.perf_counter()
        response = self._create(list(texts), dimensions)
        # The API may return items out of order; ``index`` is authoritative.
        items = sorted(response.data, key=lambda item: getattr(item, "index", 0))
        vectors = [normalize_vector(item.embedding) for item in items]
        latency_ms = (time.perf_counter() - start) * 1000.0

        usage = getattr(response, "usage", None)
        tokens = int(getattr(usage, "total_tokens", 0) or 0)
        logger.debug("Embedded %d texts in %.1f ms", len(texts), latency_ms)
        return EmbeddingResult(
            embeddings=vectors,
            latency_ms=latency_ms,
            token_count=tokens,
            model=self._model,
            dimensions=dimensions,
        )

    def embed_query(self, query: str, *, dimensions: int = 384) -> list[float]:
        response = self._create([query], dimensions)
        return normalize_vector(response.data[0].embedding)

    def _create(self, texts: list[str], dimensions: int) -> Any:
        try:
            return self._client.embeddings.create(
                model=self._model,
                input=texts,
                dimensions=dimensions,
            )
        except Exception as exc:  # noqa: BLE001 - SDK raises many error types
            raise RuntimeError(f"Failed to generate embeddings: {exc}") from exc
