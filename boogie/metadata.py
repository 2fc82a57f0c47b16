"""Lazily loaded, process-lifetime cache of track metadata.

The store reads ``tracks.json`` once, on first use, and keeps the parsed
mapping until :meth:`MetadataStore.reset` is called. A new process (or a reset)
picks up a newly written document. Consumers receive the store by reference
from the bootstrap container rather than through module globals.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import ValidationError

from boogie.errors import MetadataUnavailable
from boogie.records import TrackRecord
from boogie.utils.atomic import atomic_write_json

logger = logging.getLogger(__name__)

UNAVAILABLE_HINT = "Track metadata not available. Run 'boogie ingest run' first."


class MetadataStore:
    """Map external IDs to :class:`TrackRecord` for result hydration."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache: Mapping[str, TrackRecord] | None = None
        self._reads = 0

    @property
    def loaded(self) -> bool:
        return self._cache is not None

    @property
    def read_count(self) -> int:
        """Number of times the document has actually been read from disk."""
        return self._reads

    def load(self) -> Mapping[str, TrackRecord]:
        """Return the cached mapping, reading the document on first call.

        Concurrent first calls converge on a single read.

        Raises:
            MetadataUnavailable: the document is missing or cannot be parsed.
        """
        cache = self._cache
        if cache is not None:
            return cache

        with self._lock:
            if self._cache is None:
                self._cache = MappingProxyType(self._read())
            return self._cache

    def lookup(self, identifier: str) -> TrackRecord | None:
        """Return the record for ``identifier`` or ``None`` when unknown."""
        return self.load().get(identifier)

    def reset(self) -> None:
        """Drop the cached mapping so the next load re-reads the document."""
        with self._lock:
            self._cache = None

    def write(self, records: Iterable[TrackRecord]) -> int:
        """Persist ``records`` as the keyed metadata document.

        Later records with a duplicate ID replace earlier ones. Returns the
        number of distinct IDs written.
        """
        document: dict[str, dict] = {}
        for record in records:
            if record.id in document:
                logger.warning("Duplicate track ID %s; later record wins", record.id)
            document[record.id] = record.model_dump(mode="json")

        atomic_write_json(self.path, document)
        logger.info("Wrote metadata for %d tracks to %s", len(document), self.path)
        return len(document)

    def _read(self) -> dict[str, TrackRecord]:
        self._reads += 1
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            logger.error("Failed to load %s: %s", self.path, exc)
            raise MetadataUnavailable(UNAVAILABLE_HINT) from exc
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("Failed to load %s: %s", self.path, exc)
            raise MetadataUnavailable(UNAVAILABLE_HINT) from exc

        if not isinstance(raw, dict):
            logger.error("Metadata document %s is not a JSON object", self.path)
            raise MetadataUnavailable(UNAVAILABLE_HINT)

        records: dict[str, TrackRecord] = {}
        for key, value in raw.items():
            try:
                records[key] = TrackRecord.model_validate(value)
            except ValidationError as exc:
                logger.error("Metadata entry %s in %s is invalid: %s", key, self.path, exc)
                raise MetadataUnavailable(UNAVAILABLE_HINT) from exc
        return records
