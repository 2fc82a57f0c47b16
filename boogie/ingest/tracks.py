"""CSV loading and validation of track records."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from pydantic import ValidationError

from boogie.errors import InvalidRecord
from boogie.records import TrackRecord

logger = logging.getLogger(__name__)


def load_track_records(csv_path: Path) -> list[TrackRecord]:
    """Parse a headered CSV into validated :class:`TrackRecord` objects.

    Blank lines are skipped. The first invalid row aborts loading with
    :class:`InvalidRecord` naming its 1-based data row.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Track CSV not found: {path}")

    records: list[TrackRecord] = []
    with open(path, encoding="utf-8", newline="") as fh:
        reader = csv.DictReader(fh)
        for row_number, row in enumerate(reader, start=1):
            # Extra cells beyond the header land under a None key.
            fields = {key: value for key, value in row.items() if key is not None}
            if not any(isinstance(v, str) and v.strip() for v in fields.values()):
                continue
            try:
                records.append(TrackRecord.model_validate(fields))
            except ValidationError as exc:
                raise InvalidRecord(
                    f"Row {row_number} of {path} is invalid: {exc.errors()[0]['msg']}",
                    row=row_number,
                ) from exc

    logger.info("Parsed %d records from %s", len(records), path)
    return records
