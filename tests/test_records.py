"""Track record schema and CSV loading tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from boogie.errors import InvalidRecord
from boogie.ingest import load_track_records
from boogie.records import TrackRecord, build_searchable_text

TRACK_CSV_HEADER = "id,title,artist,tags,url,preview_url,bpm,has_vocals\n"


def test_has_vocals_parses_csv_strings() -> None:
    assert TrackRecord(id="1", title="t", artist="a", has_vocals="true").has_vocals is True
    assert TrackRecord(id="1", title="t", artist="a", has_vocals="TRUE").has_vocals is True
    assert TrackRecord(id="1", title="t", artist="a", has_vocals="false").has_vocals is False
    assert TrackRecord(id="1", title="t", artist="a", has_vocals="yes").has_vocals is False


def test_blank_bpm_becomes_none() -> None:
    assert TrackRecord(id="1", title="t", artist="a", bpm="  ").bpm is None
    assert TrackRecord(id="1", title="t", artist="a", bpm=120).bpm == "120"


def test_searchable_text_joins_title_artist_tags() -> None:
    track = TrackRecord(id="1", title="Song", artist="Band", tags="rock loud")
    assert build_searchable_text(track) == "Song Band rock loud"

    untagged = TrackRecord(id="2", title="Song", artist="Band")
    assert build_searchable_text(untagged) == "Song Band"


def test_empty_id_rejected() -> None:
    with pytest.raises(ValueError):
        TrackRecord(id=" ", title="t", artist="a")


def test_load_track_records_parses_rows(tracks_csv: Path) -> None:
    records = load_track_records(tracks_csv)

    assert [r.id for r in records] == ["a1", "a2"]
    assert records[0].bpm == "80"
    assert records[0].has_vocals is False
    assert records[1].has_vocals is True


def test_load_track_records_skips_blank_rows(temp_dir: Path) -> None:
    path = temp_dir / "tracks.csv"
    path.write_text(
        TRACK_CSV_HEADER + "a1,T,A,,,,,false\n\n,,,,,,,\n",
        encoding="utf-8",
    )

    assert [r.id for r in load_track_records(path)] == ["a1"]


def test_load_track_records_reports_bad_row(temp_dir: Path) -> None:
    path = temp_dir / "tracks.csv"
    path.write_text(
        TRACK_CSV_HEADER + "a1,T,A,,,,,false\na2,Missing artist\n",
        encoding="utf-8",
    )

    with pytest.raises(InvalidRecord) as excinfo:
        load_track_records(path)

    assert excinfo.value.row == 2


def test_load_track_records_missing_file(temp_dir: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_track_records(temp_dir / "absent.csv")
