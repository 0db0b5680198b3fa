import pytest

from bfound import services, social
from bfound.exceptions import AuthError, NotFoundError, ValidationError


def test_publish_generates_and_unpublish_clears_share_id(signed_in):
    ws = signed_in
    note = services.save_note(ws, "hello world", "**hi**", ["greeting"])

    published = services.toggle_publish(ws, note.id)
    assert published.is_published
    assert published.share_id
    assert services.share_url(ws, published) == f"http://localhost:8000/shared/{published.share_id}"

    shared = services.get_shared_note(ws, published.share_id)
    assert shared.title == "hello world"
    assert shared.author == "ada"
    assert shared.tags == ["greeting"]

    unpublished = services.toggle_publish(ws, note.id)
    assert not unpublished.is_published
    assert unpublished.share_id is None
    assert services.share_url(ws, unpublished) is None
    with pytest.raises(NotFoundError):
        services.get_shared_note(ws, published.share_id)


def test_publish_pushes_even_with_sync_disabled(signed_in):
    ws = signed_in
    ws.update_settings(sync_enabled=False)
    note = services.save_note(ws, "offline")
    assert ws.remote.fetch_notes(ws.session.user.id) == []

    published = services.toggle_publish(ws, note.id)
    assert services.get_shared_note(ws, published.share_id).id == note.id


def test_unknown_share_id(ws):
    with pytest.raises(NotFoundError, match="not publicly available"):
        services.get_shared_note(ws, "missing")


def _publish_as_ada_then_switch_to_eve(ws):
    note = services.save_note(ws, "ada's essay", "original text")
    services.toggle_publish(ws, note.id)
    ada_id = ws.session.user.id
    ws.session.sign_out()
    ws.session.sign_up("eve@example.com", "secret1", "eve")
    ws.cache.replace([])
    return ada_id


def test_another_user_cannot_overwrite_a_note_by_id(signed_in):
    ws = signed_in
    ada_id = _publish_as_ada_then_switch_to_eve(ws)
    leaked_id = social.published_notes(ws)[0].id

    with pytest.raises(AuthError, match="another user"):
        services.save_note(ws, "defaced", "pwned", note_id=leaked_id)

    assert [n.title for n in ws.remote.fetch_notes(ada_id)] == ["ada's essay"]
    assert ws.remote.fetch_notes(ws.session.user.id) == []
    assert ws.cache.get(leaked_id) is None


def test_import_cannot_claim_another_users_note(signed_in):
    ws = signed_in
    ada_id = _publish_as_ada_then_switch_to_eve(ws)
    leaked_id = social.published_notes(ws)[0].id

    with pytest.raises(AuthError):
        services.import_notes(ws, [{"id": leaked_id, "title": "mine now"}])
    assert ws.remote.fetch_notes(ada_id)[0].title == "ada's essay"


def test_private_notes_cannot_be_published(signed_in):
    ws = signed_in
    ws.vault.setup_pin("1234", "1234")
    ws.vault.unlock("1234")
    diary = services.save_private_note(ws, "diary")

    with pytest.raises(ValidationError, match="Private"):
        services.toggle_publish(ws, diary.id)
    assert not services.get_note(ws, diary.id).is_published
    assert social.published_notes(ws) == []


def test_published_note_tagged_private_later_is_hidden(signed_in):
    ws = signed_in
    note = services.toggle_publish(ws, services.save_note(ws, "was public").id)
    services.edit_note(ws, note.id, tags=["private"])

    assert social.published_notes(ws) == []
    with pytest.raises(NotFoundError):
        services.get_shared_note(ws, note.share_id)
