"""Configuration management with Pydantic and XDG base directory support."""

import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, PrivateAttr, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

VECTORS_FILENAME = "vectors.bin"
IDS_FILENAME = "ids.json"
METADATA_FILENAME = "tracks.json"

IndexClientKind = Literal["http", "memory"]
IndexBackend = Literal["bruteforce", "annoy"]
IndexMetric = Literal["cosine", "l2"]
EmbeddingsProvider = Literal["openai", "hash"]


def get_xdg_data_home() -> Path:
    """Get XDG_DATA_HOME directory, defaulting to ~/.local/share."""
    xdg_data = os.getenv("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


class Settings(BaseSettings):
    """Boogie configuration settings.

    Precedence: CLI flag > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOOGIE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Online mode control
    online: bool = Field(
        default=False,
        description="Enable online features (embedding provider API calls)",
    )

    data_dir: Path | None = Field(
        default=None,
        description="Override data directory (defaults to XDG_DATA_HOME/boogie)",
    )

    # Remote search backend
    vec_url: str = Field(
        default="http://127.0.0.1:8080",
        description="Base URL of the boogie-vec search backend",
    )

    index_client: IndexClientKind = Field(
        default="http",
        description="Index client implementation: http (remote backend) or memory (in-process)",
    )

    index_backend: IndexBackend = Field(
        default="bruteforce",
        description="Search algorithm requested from the backend on load",
    )

    index_metric: IndexMetric = Field(
        default="cosine",
        description="Distance function requested from the backend on load",
    )

    n_trees: int = Field(
        default=50,
        ge=1,
        description="Annoy tree count (only sent when index_backend=annoy)",
    )

    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Per-request HTTP timeout in seconds",
    )

    auto_load: bool = Field(
        default=False,
        description="Ask the backend to load the snapshot after ingestion",
    )

    # Embeddings
    vector_dim: int = Field(
        default=384,
        ge=1,
        validation_alias=AliasChoices("vector_dim", "BOOGIE_VECTOR_DIM", "VECTOR_DIM"),
        description="Embedding dimension shared by every snapshot row",
    )

    embeddings_provider: EmbeddingsProvider = Field(
        default="openai",
        validation_alias=AliasChoices(
            "embeddings_provider", "BOOGIE_EMBEDDINGS_PROVIDER", "EMBEDDINGS_PROVIDER"
        ),
        description="Embedding provider: openai (online) or hash (offline, deterministic)",
    )

    embeddings_model: str = Field(
        default="text-embedding-3-large",
        description="OpenAI embedding model name",
    )

    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "BOOGIE_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="OpenAI API key for embeddings",
    )

    embed_batch_size: int = Field(
        default=64,
        ge=1,
        description="Number of texts per embedding request during ingestion",
    )

    # Search
    default_k: int = Field(default=20, ge=1, description="Default number of neighbours")
    max_k: int = Field(default=100, ge=1, description="Largest k accepted by search")

    _resolved_data_dir: Path | None = PrivateAttr(default=None)

    def get_data_dir(self) -> Path:
        """Get the data directory, creating if necessary."""
        if self._resolved_data_dir is not None:
            return self._resolved_data_dir

        if self.data_dir:
            data_dir = self.data_dir
            data_dir.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = data_dir
            return data_dir

        primary_dir = get_xdg_data_home() / "boogie"
        try:
            primary_dir.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = primary_dir
            return primary_dir
        except PermissionError as exc:
            fallback = Path.cwd() / ".boogie-data"
            fallback.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = fallback
            print(
                f"Warning: cannot create data directory at {primary_dir} ({exc}). "
                f"Using local '{fallback}' instead. Pass --data-dir to override.",
                file=sys.stderr,
            )
            return fallback

    def get_snapshot_dir(self) -> Path:
        """Directory holding vectors.bin, ids.json, and tracks.json."""
        return self.get_data_dir() / "snapshot"

    def get_metadata_path(self) -> Path:
        """Path of the persisted track metadata document."""
        return self.get_snapshot_dir() / METADATA_FILENAME

    def get_openai_api_key(self) -> str | None:
        """Plaintext OpenAI key, if configured."""
        if self.openai_api_key is None:
            return None
        return self.openai_api_key.get_secret_value()


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
