from bfound import services
from bfound.exceptions import DeserializationError, RemoteError
from bfound.models import Note
from bfound.sync import push_note, sync_notes


def test_sync_without_session_returns_local(ws):
    services.save_note(ws, "local only")
    assert [n.title for n in sync_notes(ws)] == ["local only"]


def test_sync_uploads_local_notes_when_remote_is_empty(ws):
    services.save_note(ws, "a")
    services.save_note(ws, "b")
    ws.session.sign_up("bob@example.com", "secret1")

    merged = sync_notes(ws)
    assert {n.title for n in merged} == {"a", "b"}
    remote = ws.remote.fetch_notes(ws.session.user.id)
    assert {n.title for n in remote} == {"a", "b"}


def test_remote_rows_replace_local_cache(signed_in):
    ws = signed_in
    user_id = ws.session.user.id
    ws.remote.upsert_note(user_id, Note(id="r1", title="from elsewhere"))
    ws.cache.replace([Note(id="l1", title="stale local")])

    merged = sync_notes(ws)
    assert [n.id for n in merged] == ["r1"]
    assert [n.id for n in ws.cache.load()] == ["r1"]


def test_sync_disabled_keeps_local(signed_in):
    ws = signed_in
    ws.update_settings(sync_enabled=False)
    ws.remote.upsert_note(ws.session.user.id, Note(id="r1", title="remote"))
    ws.cache.replace([Note(id="l1", title="local")])
    assert [n.id for n in sync_notes(ws)] == ["l1"]


def test_remote_failure_is_logged_and_local_kept(signed_in, monkeypatch, caplog):
    ws = signed_in
    ws.cache.replace([Note(id="l1", title="local")])

    def boom(user_id):
        raise RemoteError("store unavailable")

    monkeypatch.setattr(ws.remote, "fetch_notes", boom)
    assert [n.id for n in sync_notes(ws)] == ["l1"]
    assert "sync failed" in caplog.text


def test_malformed_remote_row_keeps_local(signed_in, monkeypatch, caplog):
    ws = signed_in
    ws.cache.replace([Note(id="l1", title="local")])

    def bad(user_id):
        raise DeserializationError("notes", "r1", "title missing")

    monkeypatch.setattr(ws.remote, "fetch_notes", bad)
    assert [n.id for n in sync_notes(ws)] == ["l1"]
    assert "malformed" in caplog.text


def test_push_failure_does_not_block_save(signed_in, monkeypatch):
    ws = signed_in

    def boom(user_id, note):
        raise RemoteError("store unavailable")

    monkeypatch.setattr(ws.remote, "upsert_note", boom)
    note = services.save_note(ws, "still saved")
    assert ws.cache.get(note.id) is not None
    assert push_note(ws, note) is False


def test_upload_of_another_users_note_id_keeps_local(signed_in, caplog):
    ws = signed_in
    ws.remote.upsert_note(ws.session.user.id, Note(id="taken", title="ada's"))
    ws.session.sign_out()
    ws.session.sign_up("eve@example.com", "secret1", "eve")
    ws.cache.replace([Note(id="taken", title="eve's copy")])

    assert [n.title for n in sync_notes(ws)] == ["eve's copy"]
    assert "owned by another user" in caplog.text
    assert ws.remote.fetch_notes(ws.session.user.id) == []
