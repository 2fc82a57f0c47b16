"""Offline-first gating utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from boogie.config import Settings

_BOOL = TypeAdapter(bool)


def _env_flag(name: str) -> bool | None:
    """Read ``name`` with the same boolean rules pydantic-settings applies."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return _BOOL.validate_python(raw.strip())
    except ValidationError:
        return None


@dataclass(slots=True)
class OfflineModeGate:
    """Centralized guard for online-only capabilities."""

    online_enabled: bool

    @classmethod
    def from_settings(cls, settings: "Settings") -> "OfflineModeGate":
        """Construct gate using configuration and environment overrides.

        ``BOOGIE_ONLINE=false`` (or ``0``/``no``/``off``) keeps the gate closed;
        an unparsable value is ignored.
        """

        online_enabled = settings.online or _env_flag("BOOGIE_ONLINE") is True
        return cls(online_enabled=online_enabled)

    def is_online_enabled(self) -> bool:
        return self.online_enabled

    def require(self, feature: str) -> None:
        """Raise if ``feature`` cannot execute under offline-only mode."""

        if self.online_enabled:
            return

        raise RuntimeError(
            f"{feature} requires online mode. Enable with `--online` or set BOOGIE_ONLINE=1."
        )
