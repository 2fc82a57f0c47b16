"""JSON codec for the ID manifest aligned with snapshot rows."""

from __future__ import annotations

import json
from collections.abc import Sequence

from boogie.errors import MalformedManifest


def encode_ids(ids: Sequence[str]) -> bytes:
    """Serialize identifiers as an ordered JSON array.

    Position ``i`` in the array is the external ID of snapshot row ``i``.
    Emptiness is checked by the snapshot writer, not here.
    """
    for index, identifier in enumerate(ids):
        if not isinstance(identifier, str):
            raise MalformedManifest(
                f"Identifier at index {index} is {type(identifier).__name__}, expected str"
            )
    return json.dumps(list(ids), indent=2, ensure_ascii=False).encode("utf-8")


def decode_ids(data: bytes | str) -> list[str]:
    """Parse a manifest back into its ordered list of identifiers."""
    try:
        payload = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedManifest(f"Manifest is not valid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise MalformedManifest(
            f"Manifest must be a JSON array; got {type(payload).__name__}"
        )

    for index, identifier in enumerate(payload):
        if not isinstance(identifier, str):
            raise MalformedManifest(
                f"Manifest entry {index} is {type(identifier).__name__}, expected str"
            )
    return payload
