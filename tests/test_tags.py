from bfound.models import Note
from bfound.tags import filter_by_tag, normalize_tags, tag_counts


def _note(i, tags):
    return Note(id=str(i), title=f"n{i}", tags=tags)


def test_tag_counts_in_first_occurrence_order():
    notes = [_note(1, ["x"]), _note(2, ["x", "y"]), _note(3, ["y"])]
    counts = tag_counts(notes)
    assert counts == {"x": 2, "y": 2}
    assert list(counts) == ["x", "y"]


def test_normalize_tags_strips_and_keeps_duplicates():
    assert normalize_tags([" work", "", "  ", "ideas", "work"]) == ["work", "ideas", "work"]
    assert normalize_tags(None) == []


def test_filter_by_tag_is_exact():
    notes = [_note(1, ["work"]), _note(2, ["workout"])]
    assert [n.id for n in filter_by_tag(notes, "work")] == ["1"]
