"""CLI JSON output wrapper.

Wraps machine-readable CLI output with schema metadata (schema_id,
schema_version, producer, produced_at) so consumers can detect format changes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from boogie import __version__


def json_response(
    schema_id: str,
    schema_version: int,
    **data: Any,
) -> str:
    """Create schema-wrapped JSON response for CLI output.

    Example:
        >>> json_response("index_stats", 1, status="empty")
        {
          "schema_id": "index_stats",
          "schema_version": 1,
          "producer": "boogie-0.1.0",
          "produced_at": "2026-10-18T10:30:00+00:00",
          "status": "empty"
        }
    """
    wrapped = {
        "schema_id": schema_id,
        "schema_version": schema_version,
        "producer": f"boogie-{__version__}",
        "produced_at": datetime.now(UTC).isoformat(timespec="seconds"),
        **data,
    }
    return json.dumps(wrapped, indent=2, default=str)
