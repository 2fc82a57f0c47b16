"""Ingestion pipeline tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from boogie.app.adapters import HashEmbeddingAdapter, InMemoryIndexClient
from boogie.app.ingest_service import IngestService
from boogie.app.ports.embedding import EmbeddingResult
from boogie.config import Settings
from boogie.errors import DimensionMismatch, EmptyInput, LengthMismatch, Unreachable
from boogie.metadata import MetadataStore
from boogie.records import TrackRecord
from boogie.snapshot import read_snapshot


class ShortEmbedder(HashEmbeddingAdapter):
    """Returns vectors one element too short for the second text."""

    def embed_documents(self, texts, *, dimensions=384):
        result = super().embed_documents(texts, dimensions=dimensions)
        if len(result.embeddings) > 1:
            result.embeddings[1] = result.embeddings[1][:-1]
        return result


class DroppingEmbedder(HashEmbeddingAdapter):
    def embed_documents(self, texts, *, dimensions=384):
        result = super().embed_documents(texts, dimensions=dimensions)
        return EmbeddingResult(embeddings=result.embeddings[:-1], latency_ms=0.0)


class RecordingEmbedder(HashEmbeddingAdapter):
    def __init__(self) -> None:
        self.batches: list[list[str]] = []

    def embed_documents(self, texts, *, dimensions=384):
        self.batches.append(list(texts))
        return super().embed_documents(texts, dimensions=dimensions)


class DownIndexClient(InMemoryIndexClient):
    def load_index(self, path, dim, **kwargs):
        raise Unreachable("POST http://127.0.0.1:1/load failed: connection refused")


def make_service(settings: Settings, *, embedder=None, index_client=None) -> IngestService:
    return IngestService(
        settings=settings,
        embedder=embedder if embedder is not None else HashEmbeddingAdapter(),
        index_client=index_client or InMemoryIndexClient(),
        metadata_store=MetadataStore(settings.get_metadata_path()),
    )


def test_run_writes_aligned_snapshot_and_metadata(
    override_settings: Settings, sample_tracks: list[TrackRecord]
) -> None:
    service = make_service(override_settings)

    result = service.run(sample_tracks)

    assert result.count == 3
    assert result.dim == 8
    assert not result.loaded
    snapshot = read_snapshot(result.vectors_path.parent)
    assert snapshot.ids == ["t1", "t2", "t3"]
    assert snapshot.dim == 8

    metadata = json.loads(result.metadata_path.read_text(encoding="utf-8"))
    assert set(metadata) == {"t1", "t2", "t3"}
    assert metadata["t2"]["has_vocals"] is True

    statuses = {stage.name: stage.status for stage in result.stages}
    assert statuses == {
        "validate": "completed",
        "embed": "completed",
        "write_snapshot": "completed",
        "write_metadata": "completed",
        "load": "skipped",
    }


def test_vectors_match_embedder_output_row_by_row(
    override_settings: Settings, sample_tracks: list[TrackRecord]
) -> None:
    embedder = HashEmbeddingAdapter()
    result = make_service(override_settings, embedder=embedder).run(sample_tracks)

    snapshot = read_snapshot(result.vectors_path.parent)
    expected = embedder.embed_documents(
        ["Sunday Porch Hollow Pines folk acoustic"], dimensions=8
    ).embeddings[0]
    assert snapshot.vectors[1].tolist() == pytest.approx(expected)


def test_dimension_mismatch_aborts_before_writing(
    override_settings: Settings, sample_tracks: list[TrackRecord], temp_dir: Path
) -> None:
    out = temp_dir / "out"
    service = make_service(override_settings, embedder=ShortEmbedder())

    with pytest.raises(DimensionMismatch) as excinfo:
        service.run(sample_tracks, output_dir=out)

    assert excinfo.value.index == 1
    assert not out.exists()


def test_embedder_count_mismatch_aborts(
    override_settings: Settings, sample_tracks: list[TrackRecord], temp_dir: Path
) -> None:
    service = make_service(override_settings, embedder=DroppingEmbedder())

    with pytest.raises(LengthMismatch):
        service.run(sample_tracks, output_dir=temp_dir / "out")

    assert not (temp_dir / "out").exists()


def test_empty_records_rejected(override_settings: Settings) -> None:
    with pytest.raises(EmptyInput):
        make_service(override_settings).run([])


def test_batches_respect_batch_size(
    override_settings: Settings, sample_tracks: list[TrackRecord]
) -> None:
    embedder = RecordingEmbedder()

    make_service(override_settings, embedder=embedder).run(sample_tracks, batch_size=2)

    assert [len(batch) for batch in embedder.batches] == [2, 1]


def test_auto_load_uses_absolute_paths(
    override_settings: Settings, sample_tracks: list[TrackRecord]
) -> None:
    index_client = InMemoryIndexClient()
    service = make_service(override_settings, index_client=index_client)

    result = service.run(sample_tracks, auto_load=True)

    assert result.loaded
    assert result.load.loaded.count == 3
    assert index_client.get_stats().ready
    assert result.stages[-1].status == "completed"


def test_load_failure_is_reported_not_raised(
    override_settings: Settings, sample_tracks: list[TrackRecord]
) -> None:
    service = make_service(override_settings, index_client=DownIndexClient())

    result = service.run(sample_tracks, auto_load=True)

    assert not result.loaded
    assert result.vectors_path.exists()
    assert result.stages[-1].status == "failed"
    assert any("index load failed" in note for note in result.notes)


def test_duplicate_ids_produce_note(override_settings: Settings) -> None:
    records = [
        TrackRecord(id="d", title="One", artist="A"),
        TrackRecord(id="d", title="Two", artist="B"),
    ]

    result = make_service(override_settings).run(records)

    assert result.count == 2
    assert any("duplicate" in note for note in result.notes)
    assert MetadataStore(result.metadata_path).lookup("d").title == "Two"


def test_missing_embedder_raises(override_settings: Settings, sample_tracks: list[TrackRecord]) -> None:
    service = IngestService(
        settings=override_settings,
        embedder=None,
        index_client=InMemoryIndexClient(),
        metadata_store=MetadataStore(override_settings.get_metadata_path()),
    )

    with pytest.raises(RuntimeError, match="embedding provider"):
        service.run(sample_tracks)


def test_shared_metadata_store_is_reset(
    override_settings: Settings, sample_tracks: list[TrackRecord]
) -> None:
    store = MetadataStore(override_settings.get_metadata_path())
    service = IngestService(
        settings=override_settings,
        embedder=HashEmbeddingAdapter(),
        index_client=InMemoryIndexClient(),
        metadata_store=store,
    )

    service.run(sample_tracks[:1])
    assert set(store.load()) == {"t1"}

    service.run(sample_tracks)
    assert set(store.load()) == {"t1", "t2", "t3"}


def test_run_csv(override_settings: Settings, tracks_csv: Path) -> None:
    result = make_service(override_settings).run_csv(tracks_csv)

    assert result.count == 2
    assert read_snapshot(result.vectors_path.parent).ids == ["a1", "a2"]
