from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import Settings, get_settings
from .exceptions import NotFoundError, RemoteError, ValidationError


class ObjectStore:
    """File system buckets standing in for the hosted object store."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.root = Path(self.settings.buckets_dir)

    def _path(self, bucket: str, path: str) -> Path:
        base = (self.root / bucket).resolve()
        target = (base / path).resolve()
        if base not in target.parents:
            raise ValidationError(f"Invalid object path: {path}")
        return target

    def upload(self, bucket: str, path: str, data: bytes, upsert: bool = False) -> str:
        target = self._path(bucket, path)
        if target.exists() and not upsert:
            raise RemoteError(f"{bucket}/{path} already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise RemoteError(f"upload to {bucket}/{path} failed: {exc}") from exc
        return path

    def download(self, bucket: str, path: str) -> bytes:
        target = self._path(bucket, path)
        if not target.is_file():
            raise NotFoundError(f"{bucket}/{path} not found")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise RemoteError(f"download of {bucket}/{path} failed: {exc}") from exc

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.settings.public_url.rstrip('/')}/storage/{bucket}/{path}"
