"""Source record ingestion."""

from boogie.ingest.tracks import load_track_records

__all__ = ["load_track_records"]
