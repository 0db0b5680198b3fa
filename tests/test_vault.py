import pytest

from bfound import services
from bfound.exceptions import AuthError, ValidationError
from bfound.vault import with_private_tag


def test_setup_rejects_short_or_mismatched_pin(ws):
    with pytest.raises(ValidationError, match="at least 4"):
        ws.vault.setup_pin("123", "123")
    with pytest.raises(ValidationError, match="don't match"):
        ws.vault.setup_pin("1234", "4321")
    assert not ws.vault.is_setup


def test_unlock_compares_pin(ws):
    ws.vault.setup_pin("1234", "1234")
    assert ws.vault.unlock("0000") is False
    assert ws.vault.unlock("1234") is True


def test_private_notes_need_unlock(ws):
    ws.vault.setup_pin("1234", "1234")
    with pytest.raises(AuthError):
        ws.vault.private_notes()
    with pytest.raises(AuthError):
        services.save_private_note(ws, "diary")


def test_private_notes_stay_out_of_general_views(ws):
    ws.vault.setup_pin("1234", "1234")
    ws.vault.unlock("1234")
    secret = services.save_private_note(ws, "diary", "dear diary", ["personal"])
    services.save_note(ws, "public", tags=["personal"])

    assert secret.tags == ["personal", "private"]
    assert [n.title for n in ws.vault.private_notes()] == ["diary"]
    assert [n.title for n in services.list_notes(ws)] == ["public"]
    assert services.tags_with_count(ws) == {"personal": 1}

    services.toggle_favorite(ws, secret.id)
    services.delete_note(ws, secret.id)
    assert services.favorites(ws) == []
    assert services.trash(ws) == []


def test_reset_pin_locks_vault(ws):
    ws.vault.setup_pin("1234", "1234")
    ws.vault.unlock("1234")
    ws.vault.reset_pin()
    assert not ws.vault.is_setup
    assert not ws.vault.unlocked


def test_with_private_tag_is_idempotent():
    assert with_private_tag(["a"]) == ["a", "private"]
    assert with_private_tag(["private"]) == ["private"]
