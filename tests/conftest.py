"""Pytest configuration and fixtures."""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from boogie.config import Settings
from boogie.records import TrackRecord

TRACK_CSV_HEADER = "id,title,artist,tags,url,preview_url,bpm,has_vocals\n"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of Settings."""
    for name in (
        "BOOGIE_ONLINE",
        "BOOGIE_VEC_URL",
        "BOOGIE_VECTOR_DIM",
        "VECTOR_DIM",
        "BOOGIE_EMBEDDINGS_PROVIDER",
        "EMBEDDINGS_PROVIDER",
        "BOOGIE_INDEX_CLIENT",
        "BOOGIE_AUTO_LOAD",
        "BOOGIE_INDEX_BACKEND",
        "BOOGIE_INDEX_METRIC",
        "BOOGIE_DATA_DIR",
        "OPENAI_API_KEY",
        "BOOGIE_OPENAI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def override_settings(temp_dir: Path) -> Generator[Settings, None, None]:
    """Provide isolated Boogie settings scoped to tests."""

    import boogie.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    data_dir = temp_dir / "appdata"
    data_dir.mkdir(parents=True, exist_ok=True)

    settings = config_module.Settings(
        _env_file=None,
        data_dir=data_dir,
        vector_dim=8,
        embeddings_provider="hash",
        index_client="memory",
    )

    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings


@pytest.fixture
def sample_tracks() -> list[TrackRecord]:
    """Three valid tracks."""
    return [
        TrackRecord(
            id="t1",
            title="Night Drive",
            artist="Neon Coast",
            tags="synthwave retro",
            url="https://example.com/t1",
            preview_url="https://example.com/t1.mp3",
            bpm="110",
            has_vocals=False,
        ),
        TrackRecord(
            id="t2",
            title="Sunday Porch",
            artist="Hollow Pines",
            tags="folk acoustic",
            url="https://example.com/t2",
            preview_url="https://example.com/t2.mp3",
            has_vocals=True,
        ),
        TrackRecord(
            id="t3",
            title="Breakbeat Alley",
            artist="DJ Cass",
            tags="breakbeat dance",
            url="https://example.com/t3",
            preview_url="https://example.com/t3.mp3",
            bpm="172",
            has_vocals=False,
        ),
    ]


@pytest.fixture
def tracks_csv(temp_dir: Path) -> Path:
    """CSV file with two valid rows."""
    path = temp_dir / "tracks.csv"
    path.write_text(
        TRACK_CSV_HEADER
        + "a1,Low Tide,Marina Bay,ambient chill,https://x/a1,https://x/a1.mp3,80,false\n"
        + "a2,Fast Lane,Redline,drum and bass,https://x/a2,https://x/a2.mp3,174,true\n",
        encoding="utf-8",
    )
    return path
