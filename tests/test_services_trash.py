from datetime import timedelta

import pytest

from bfound import services
from bfound.exceptions import NotFoundError
from bfound.models import utcnow


def test_soft_delete_and_restore(ws):
    note = services.save_note(ws, "doomed")
    deleted = services.delete_note(ws, note.id)
    assert deleted.deleted_at is not None
    assert services.list_notes(ws) == []
    assert [n.id for n in services.trash(ws)] == [note.id]

    services.restore_note(ws, note.id)
    assert [n.id for n in services.list_notes(ws)] == [note.id]
    assert services.trash(ws) == []


def test_trash_hides_old_deletions_but_keeps_them(ws):
    note = services.save_note(ws, "old")
    services.delete_note(ws, note.id)

    later = utcnow() + timedelta(days=15)
    assert services.trash(ws, now=later) == []
    assert ws.cache.get(note.id) is not None


def test_purge_removes_note(ws):
    note = services.save_note(ws, "gone")
    services.delete_note(ws, note.id)
    services.purge_note(ws, note.id)
    assert ws.cache.get(note.id) is None
    with pytest.raises(NotFoundError):
        services.purge_note(ws, note.id)


def test_purge_removes_remote_row(signed_in):
    ws = signed_in
    note = services.save_note(ws, "synced")
    user_id = ws.session.user.id
    assert [n.id for n in ws.remote.fetch_notes(user_id)] == [note.id]

    services.purge_note(ws, note.id)
    assert ws.remote.fetch_notes(user_id) == []
