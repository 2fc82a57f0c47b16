"""Track metadata record schema.

``TrackRecord`` is the canonical shape stored in ``tracks.json``. Older
documents used Spotify-style keys (``track_id``, ``track_name``, ``artists``,
``track_genre``); those are migrated on validation so both load the same way.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

LEGACY_FIELD_MAP = {
    "track_id": "id",
    "track_name": "title",
    "artists": "artist",
    "artist_name": "artist",
    "track_genre": "tags",
}


class TrackRecord(BaseModel):
    """Descriptive metadata for a single track."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    artist: str
    tags: str = ""
    url: str = ""
    preview_url: str = ""
    bpm: str | None = None
    has_vocals: bool = False

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "id" in data:
            return data
        migrated = dict(data)
        for legacy, canonical in LEGACY_FIELD_MAP.items():
            if legacy in migrated and canonical not in migrated:
                migrated[canonical] = migrated.pop(legacy)
        return migrated

    @field_validator("id", "title", "artist", "tags", "url", "preview_url", "bpm", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        # CSV cells arrive as strings but JSON documents may carry numbers.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("bpm", mode="after")
    @classmethod
    def _blank_bpm(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("has_vocals", mode="before")
    @classmethod
    def _parse_has_vocals(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() == "true"

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("id must be a non-empty string")
        return value


class ScoredTrack(TrackRecord):
    """Track metadata joined with the backend's neighbour score."""

    score: float


def build_searchable_text(track: TrackRecord) -> str:
    """Combine title, artist, and tags into the text that gets embedded."""
    return f"{track.title} {track.artist} {track.tags}".strip()
