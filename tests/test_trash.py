from datetime import UTC, datetime, timedelta

from bfound.models import Note
from bfound.trash import is_expired, restore, soft_delete, trash_view

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=UTC)


def _trashed(note_id, days_ago, tags=None):
    return Note(id=note_id, title=note_id, tags=tags or [], deleted_at=NOW - timedelta(days=days_ago))


def test_soft_delete_and_restore():
    note = Note(id="a", title="a")
    soft_delete(note, NOW)
    assert note.is_deleted and note.deleted_at == NOW
    restore(note)
    assert not note.is_deleted


def test_expired_after_retention_window():
    assert not is_expired(_trashed("a", 14), NOW)
    assert is_expired(_trashed("b", 15), NOW)
    assert not is_expired(Note(id="c", title="c"), NOW)


def test_trash_view_hides_old_private_and_active_notes():
    notes = [
        _trashed("recent", 1),
        _trashed("older", 5),
        _trashed("expired", 20),
        _trashed("secret", 1, tags=["private"]),
        Note(id="active", title="active"),
    ]
    assert [n.id for n in trash_view(notes, NOW)] == ["recent", "older"]


def test_trash_view_respects_custom_retention():
    notes = [_trashed("a", 3)]
    assert trash_view(notes, NOW, retention_days=2) == []
