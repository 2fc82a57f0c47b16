"""Ingestion orchestration: records → embeddings → snapshot → optional load."""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from boogie.app.ports import EmbeddingPort, IndexSyncPort, LoadResult
from boogie.config import METADATA_FILENAME, Settings
from boogie.errors import DimensionMismatch, EmptyInput, LengthMismatch, RemoteError, TransportError
from boogie.ingest.tracks import load_track_records
from boogie.metadata import MetadataStore
from boogie.records import TrackRecord, build_searchable_text
from boogie.snapshot.store import write_snapshot

logger = logging.getLogger(__name__)

StageStatus = Literal["pending", "completed", "skipped", "failed"]


@dataclass(slots=True)
class PipelineStage:
    """Represents the status of an ingestion phase."""

    name: str
    status: StageStatus = "pending"
    detail: str | None = None
    duration_seconds: float | None = None
    metrics: dict[str, Any] | None = None


class IngestResult(BaseModel):
    """Summary of an ingestion run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    count: int
    dim: int
    vectors_path: Path
    ids_path: Path
    metadata_path: Path
    load: LoadResult | None = None
    stages: list[PipelineStage] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    @property
    def loaded(self) -> bool:
        return self.load is not None and self.load.ok


class IngestService:
    """Sequence validate → embed → write snapshot + metadata → load.

    Every step before the load aborts the run on failure, and nothing is
    written until all vectors have been produced and checked. A failed load
    is reported as a note because the files on disk remain usable.
    """

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

    @contextmanager
    def _stage(
        self,
        stages: list[PipelineStage],
        name: str,
    ) -> Iterator[PipelineStage]:
        """Context manager to standardize stage error handling."""

        stage = PipelineStage(name=name)
        stages.append(stage)
        start_time = time.monotonic()
        try:
            yield stage
        except Exception as exc:
            stage.status = "failed"
            stage.detail = str(exc)
            raise
        else:
            if stage.status == "pending":
                stage.status = "completed"
        finally:
            stage.duration_seconds = time.monotonic() - start_time

    def run_csv(self, csv_path: Path, **kwargs: Any) -> IngestResult:
        """Load and validate ``csv_path`` then run ingestion on its records."""
        return self.run(load_track_records(csv_path), **kwargs)

    def run(
        self,
        records: Sequence[TrackRecord],
        *,
        output_dir: Path | None = None,
        auto_load: bool | None = None,
        batch_size: int | None = None,
    ) -> IngestResult:
        """Execute the ingestion pipeline."""

        dim = self._settings.vector_dim
        target_dir = Path(output_dir) if output_dir is not None else self._settings.get_snapshot_dir()
        should_load = self._settings.auto_load if auto_load is None else auto_load
        step = batch_size or self._settings.embed_batch_size

        stages: list[PipelineStage] = []
        notes: list[str] = []

        with self._stage(stages, "validate") as stage:
            if not records:
                raise EmptyInput("No records to ingest")
            duplicates = [key for key, seen in Counter(r.id for r in records).items() if seen > 1]
            if duplicates:
                message = (
                    f"{len(duplicates)} duplicate track IDs; later records shadow earlier "
                    f"ones in metadata (e.g. {duplicates[0]})"
                )
                logger.warning(message)
                notes.append(message)
            stage.metrics = {"records": len(records), "duplicates": len(duplicates)}

        with self._stage(stages, "embed") as stage:
            vectors = self._embed_all(records, dim=dim, batch_size=step)
            stage.metrics = {"vectors": len(vectors), "dim": dim}

        ids = [record.id for record in records]

        with self._stage(stages, "write_snapshot"):
            paths = write_snapshot(vectors, ids, target_dir)

        metadata_path = target_dir / METADATA_FILENAME
        with self._stage(stages, "write_metadata"):
            if metadata_path.resolve() == self._metadata.path.resolve():
                self._metadata.write(records)
                self._metadata.reset()
            else:
                MetadataStore(metadata_path).write(records)

        load_result: LoadResult | None = None
        with self._stage(stages, "load") as stage:
            if not should_load:
                stage.status = "skipped"
                stage.detail = "auto-load disabled"
            else:
                try:
                    load_result = self._index.load_index(
                        str(paths.vectors_path.resolve()),
                        dim,
                        ids_path=str(paths.ids_path.resolve()),
                        backend=self._settings.index_backend,
                        metric=self._settings.index_metric,
                        n_trees=self._settings.n_trees,
                    )
                except (RemoteError, TransportError) as exc:
                    stage.status = "failed"
                    stage.detail = str(exc)
                    message = (
                        f"Snapshot written but index load failed: {exc}. "
                        "Run 'boogie index load' once the backend is available."
                    )
                    logger.warning(message)
                    notes.append(message)

        return IngestResult(
            count=len(ids),
            dim=dim,
            vectors_path=paths.vectors_path,
            ids_path=paths.ids_path,
            metadata_path=metadata_path,
            load=load_result,
            stages=stages,
            notes=notes,
        )

    def _embed_all(
        self, records: Sequence[TrackRecord], *, dim: int, batch_size: int
    ) -> list[list[float]]:
        if self._embedder is None:
            raise RuntimeError(
                "No embedding provider available. Enable --online for OpenAI "
                "or set BOOGIE_EMBEDDINGS_PROVIDER=hash."
            )

        vectors: list[list[float]] = []
        for start in range(0, len(records), batch_size):
            batch = records[start : start + batch_size]
            result = self._embedder.embed_documents(
                [build_searchable_text(record) for record in batch], dimensions=dim
            )
            if len(result.embeddings) != len(batch):
                raise LengthMismatch(
                    f"Embedding provider returned {len(result.embeddings)} vectors "
                    f"for {len(batch)} texts"
                )
            for offset, vector in enumerate(result.embeddings):
                if len(vector) != dim:
                    index = start + offset
                    raise DimensionMismatch(
                        f"Embedding for {batch[offset].id} (row {index}) has dimension "
                        f"{len(vector)}, expected {dim}",
                        index=index,
                        expected=dim,
                        actual=len(vector),
                    )
            vectors.extend(result.embeddings)
            logger.info("Embedded %d/%d records", len(vectors), len(records))
        return vectors
