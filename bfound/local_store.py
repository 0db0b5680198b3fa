from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from .models import Note

logger = logging.getLogger(__name__)

NOTES_KEY = "notes"
PROFILE_KEY = "profile"
APP_SETTINGS_KEY = "app_settings"
VAULT_PIN_KEY = "vault_pin"
SYNC_MESSAGE_KEY = "sync_message_shown"
SESSION_KEY = "session"


class LocalStorage:
    """On-device key-value store: string keys holding JSON-encoded values.

    The whole store is one JSON document, read on every access and rewritten on
    every change. There is no cross-process coordination; the last writer wins.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            logger.error("local storage is corrupt, starting empty", extra={"path": str(self.path)})
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)

    def keys(self) -> list[str]:
        return list(self._load())

    # JSON helpers
    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error("error parsing stored value", extra={"key": key})
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))


class NoteCache:
    """The serialized note list kept in local storage."""

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    def load(self) -> list[Note]:
        notes = []
        for item in self.storage.get_json(NOTES_KEY, []) or []:
            try:
                notes.append(Note.model_validate(item))
            except ValueError:
                logger.warning("skipping unreadable cached note", extra={"note": repr(item)[:200]})
        return notes

    def replace(self, notes: list[Note]) -> None:
        self.storage.set_json(NOTES_KEY, [n.to_json() for n in notes])

    def get(self, note_id: str) -> Optional[Note]:
        return next((n for n in self.load() if n.id == note_id), None)

    def upsert(self, note: Note) -> bool:
        """Insert or replace by id; returns True when the id was new."""
        notes = self.load()
        for i, existing in enumerate(notes):
            if existing.id == note.id:
                notes[i] = note
                self.replace(notes)
                return False
        notes.append(note)
        self.replace(notes)
        return True

    def remove(self, note_id: str) -> bool:
        notes = self.load()
        kept = [n for n in notes if n.id != note_id]
        self.replace(kept)
        return len(kept) != len(notes)


__all__ = [
    "LocalStorage",
    "NoteCache",
    "NOTES_KEY",
    "PROFILE_KEY",
    "APP_SETTINGS_KEY",
    "VAULT_PIN_KEY",
    "SYNC_MESSAGE_KEY",
    "SESSION_KEY",
]
