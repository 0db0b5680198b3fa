"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_home() -> Path:
    return Path.home() / ".bfound"


class Settings(BaseSettings):
    """Runtime settings for the client workspace and the backend services."""

    # local key-value store lives here
    home: Path = Field(default_factory=_default_home)
    # remote table store: a file path, or a full SQLAlchemy URL in db_url
    db_path: Optional[Path] = None
    db_url: str = Field(default="")
    object_store_dir: Optional[Path] = None

    secret_key: str = Field(default="temporary_dev_secret")
    token_ttl_minutes: int = Field(default=60 * 24 * 30)
    public_url: str = Field(default="http://localhost:8000")

    trash_retention_days: int = Field(default=14)
    points_per_note: int = Field(default=5)

    log_level: str = Field(default="INFO")
    service_name: str = Field(default="bfound")
    environment: str = Field(default="development")

    model_config = SettingsConfigDict(
        env_prefix="BFOUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url
        db_path = self.db_path or (self.home / "remote.db")
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path}"

    @property
    def buckets_dir(self) -> Path:
        return self.object_store_dir or (self.home / "buckets")

    @property
    def local_storage_path(self) -> Path:
        return self.home / "local_storage.json"


@lru_cache
def get_settings() -> Settings:
    """Return application settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
