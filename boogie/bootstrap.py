"""Application bootstrap wiring ports, adapters, and services."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from boogie.app import IngestService, SearchService
from boogie.app.adapters import (
    BoogieVecClient,
    HashEmbeddingAdapter,
    InMemoryIndexClient,
    OpenAIEmbeddingAdapter,
)
from boogie.app.ports import EmbeddingPort, IndexSyncPort
from boogie.config import Settings, get_settings
from boogie.metadata import MetadataStore
from boogie.utils.offline import OfflineModeGate

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    offline_gate: OfflineModeGate
    embedder: EmbeddingPort | None
    embedder_error: str | None
    index_client: IndexSyncPort
    metadata_store: MetadataStore
    ingest_service: IngestService
    search_service: SearchService


def create_index_client(settings: Settings) -> IndexSyncPort:
    """Return the index client selected by ``settings.index_client``."""
    if settings.index_client == "memory":
        return InMemoryIndexClient(
            snapshot_dir=settings.get_snapshot_dir(),
            dim=settings.vector_dim,
            backend=settings.index_backend,
            metric=settings.index_metric,
        )
    return BoogieVecClient(settings.vec_url, timeout=settings.request_timeout)


def create_embedder(settings: Settings, offline_gate: OfflineModeGate) -> EmbeddingPort:
    """Return the embedding adapter selected by ``settings.embeddings_provider``.

    Raises:
        RuntimeError: the provider cannot run (offline mode, missing key).
    """
    if settings.embeddings_provider == "hash":
        return HashEmbeddingAdapter()
    return OpenAIEmbeddingAdapter(
        offline_gate=offline_gate,
        api_key=settings.get_openai_api_key(),
        model=settings.embeddings_model,
    )


def bootstrap_application(settings: Settings | None = None) -> ApplicationContainer:
    """Instantiate adapters and services for CLI consumption."""

    active_settings = settings or get_settings()
    offline_gate = OfflineModeGate.from_settings(active_settings)

    embedder: EmbeddingPort | None
    embedder_error: str | None = None
    try:
        embedder = create_embedder(active_settings, offline_gate)
    except RuntimeError as exc:
        # Index management commands work without an embedder.
        logger.debug("Embedding provider unavailable: %s", exc)
        embedder = None
        embedder_error = str(exc)

    index_client = create_index_client(active_settings)
    metadata_store = MetadataStore(active_settings.get_metadata_path())

    ingest_service = IngestService(
        settings=active_settings,
        embedder=embedder,
        index_client=index_client,
        metadata_store=metadata_store,
    )
    search_service = SearchService(
        settings=active_settings,
        embedder=embedder,
        index_client=index_client,
        metadata_store=metadata_store,
    )

    return ApplicationContainer(
        settings=active_settings,
        offline_gate=offline_gate,
        embedder=embedder,
        embedder_error=embedder_error,
        index_client=index_client,
        metadata_store=metadata_store,
        ingest_service=ingest_service,
        search_service=search_service,
    )
