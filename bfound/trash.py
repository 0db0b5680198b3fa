from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from .models import Note, utcnow

DEFAULT_RETENTION_DAYS = 14


def is_expired(note: Note, now: Optional[datetime] = None, retention_days: int = DEFAULT_RETENTION_DAYS) -> bool:
    """True once a trashed note is older than the retention window.

    Expired notes are only hidden; nothing removes them from storage.
    """
    if note.deleted_at is None:
        return False
    now = now or utcnow()
    return now - note.deleted_at > timedelta(days=retention_days)


def trash_view(
    notes: Iterable[Note],
    now: Optional[datetime] = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> list[Note]:
    """Trashed, non-private notes still inside the retention window, newest deletion first."""
    now = now or utcnow()
    visible = [
        n for n in notes
        if n.is_deleted and not n.is_private and not is_expired(n, now, retention_days)
    ]
    return sorted(visible, key=lambda n: n.deleted_at, reverse=True)


def soft_delete(note: Note, now: Optional[datetime] = None) -> Note:
    note.deleted_at = now or utcnow()
    return note


def restore(note: Note) -> Note:
    note.deleted_at = None
    return note
