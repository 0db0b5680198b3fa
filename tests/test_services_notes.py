from datetime import date, timedelta

import pytest

from bfound import services
from bfound.exceptions import NotFoundError, ValidationError


def test_first_save_awards_points_and_streak(ws):
    note = services.save_note(ws, "hello", "world", tags=["Work", " ideas", ""])
    assert note.id
    assert note.points == 5
    assert note.tags == ["Work", "ideas"]

    profile = ws.local_profile()
    assert profile.points == 5
    assert profile.streak == 1
    assert profile.last_note_date == date.today().isoformat()


def test_resaving_does_not_award_again(ws):
    note = services.save_note(ws, "hello")
    again = services.save_note(ws, "hello again", "more", note_id=note.id)
    assert again.id == note.id
    assert again.points == 5
    assert ws.local_profile().points == 5
    assert len(ws.cache.load()) == 1


def test_streak_over_consecutive_days(ws):
    day = date(2024, 1, 1)
    services.save_note(ws, "one", today=day)
    services.save_note(ws, "two", today=day + timedelta(days=1))
    services.save_note(ws, "three", today=day + timedelta(days=1))
    profile = ws.local_profile()
    assert profile.streak == 2
    assert profile.points == 15


def test_title_is_required(ws):
    with pytest.raises(ValidationError):
        services.save_note(ws, "   ")


def test_edit_updates_fields_and_mentions(ws):
    note = services.save_note(ws, "draft")
    edited = services.edit_note(ws, note.id, content="ping @ada", tags=["x"])
    assert edited.title == "draft"
    assert edited.mentions == ["ada"]
    assert services.get_note(ws, note.id).tags == ["x"]


def test_missing_note_raises(ws):
    with pytest.raises(NotFoundError):
        services.get_note(ws, "nope")
    with pytest.raises(NotFoundError):
        services.edit_note(ws, "nope", title="x")


def test_list_filters_and_sorts(ws):
    services.save_note(ws, "banana", "yellow fruit", ["food"])
    services.save_note(ws, "Apple", "red fruit", ["food", "red"])
    services.save_note(ws, "car", "red vehicle", ["red"])

    assert [n.title for n in services.list_notes(ws, sort="title")] == ["Apple", "banana", "car"]
    assert [n.title for n in services.list_notes(ws)] == ["car", "Apple", "banana"]
    assert {n.title for n in services.list_notes(ws, tag="food")} == {"Apple", "banana"}
    assert {n.title for n in services.list_notes(ws, search="RED")} == {"Apple", "car"}
    with pytest.raises(ValidationError):
        services.list_notes(ws, sort="updated")


def test_tags_with_count(ws):
    services.save_note(ws, "a", tags=["x"])
    services.save_note(ws, "b", tags=["x", "y"])
    services.save_note(ws, "c", tags=["y"])
    assert services.tags_with_count(ws) == {"x": 2, "y": 2}
    assert {n.title for n in services.notes_by_tag(ws, "y")} == {"b", "c"}


def test_favorites_toggle(ws):
    note = services.save_note(ws, "fav me")
    assert services.toggle_favorite(ws, note.id).is_favorite
    assert [n.id for n in services.favorites(ws)] == [note.id]
    assert not services.toggle_favorite(ws, note.id).is_favorite
    assert services.favorites(ws) == []


def test_daily_notes(ws):
    note = services.save_note(ws, "today")
    today = note.date.astimezone().date()
    assert [n.id for n in services.daily_notes(ws, today)] == [note.id]
    assert services.daily_notes(ws, today - timedelta(days=3)) == []


def test_export_then_import_into_fresh_cache(ws):
    services.save_note(ws, "keep", "body", ["t"])
    exported = services.export_notes(ws)
    assert exported[0]["title"] == "keep"
    assert "isFavorite" in exported[0]

    ws.cache.replace([])
    assert services.import_notes(ws, exported) == 1
    assert services.list_notes(ws)[0].title == "keep"
    assert ws.local_profile().points == 5


def test_import_rejects_bad_items(ws):
    with pytest.raises(ValidationError):
        services.import_notes(ws, [{"title": "no id"}])
