from bfound.local_store import NOTES_KEY, LocalStorage, NoteCache
from bfound.models import Note


def test_values_roundtrip_as_json_strings(tmp_path):
    storage = LocalStorage(tmp_path / "ls.json")
    storage.set_json("flag", True)
    assert storage.get_item("flag") == "true"
    assert storage.get_json("flag") is True
    storage.remove_item("flag")
    assert storage.get_json("flag", "missing") == "missing"


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "ls.json"
    path.write_text("{not json", encoding="utf-8")
    assert LocalStorage(path).keys() == []


def test_unparseable_value_falls_back_to_default(tmp_path):
    storage = LocalStorage(tmp_path / "ls.json")
    storage.set_item("notes", "[oops")
    assert storage.get_json("notes", []) == []


def test_note_cache_upsert_and_remove(tmp_path):
    cache = NoteCache(LocalStorage(tmp_path / "ls.json"))
    assert cache.upsert(Note(id="a", title="first")) is True
    assert cache.upsert(Note(id="a", title="renamed")) is False
    assert cache.get("a").title == "renamed"
    assert cache.remove("a") is True
    assert cache.remove("a") is False
    assert cache.load() == []


def test_note_cache_uses_camel_case_records(tmp_path):
    storage = LocalStorage(tmp_path / "ls.json")
    NoteCache(storage).upsert(Note(id="a", title="t", is_favorite=True))
    stored = storage.get_json(NOTES_KEY)[0]
    assert stored["isFavorite"] is True
    assert "deletedAt" in stored


def test_note_cache_skips_bad_records(tmp_path):
    storage = LocalStorage(tmp_path / "ls.json")
    storage.set_json(NOTES_KEY, [{"id": "a", "title": "ok"}, {"title": "no id"}])
    assert [n.id for n in NoteCache(storage).load()] == ["a"]
