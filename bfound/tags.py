from __future__ import annotations

from typing import Iterable, Optional

from .models import Note


def normalize_tags(tags: Optional[Iterable[str]]) -> list[str]:
    """Strip whitespace and drop blanks; order and duplicates are kept."""
    if not tags:
        return []
    return [t.strip() for t in tags if t and t.strip()]


def tag_counts(notes: Iterable[Note]) -> dict[str, int]:
    """Tag -> occurrence count, in order of first occurrence."""
    counts: dict[str, int] = {}
    for note in notes:
        for tag in note.tags:
            counts[tag] = counts.get(tag, 0) + 1
    return counts


def filter_by_tag(notes: Iterable[Note], tag: str) -> list[Note]:
    return [n for n in notes if tag in n.tags]
