from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional
from uuid import uuid4

from .exceptions import AuthError, NotFoundError, ValidationError
from .models import Note, PublishedNote
from .render import extract_mentions
from .social import get_profile, push_profile
from .streak import award_first_save
from .sync import drop_remote_note, push_note
from .tags import filter_by_tag, normalize_tags, tag_counts
from .trash import restore, soft_delete, trash_view
from .vault import with_private_tag
from .workspace import Workspace

logger = logging.getLogger(__name__)

SORTS = ("date", "title")


def new_note_id() -> str:
    return str(uuid4())


def _require(ws: Workspace, note_id: str) -> Note:
    note = ws.cache.get(note_id)
    if note is None:
        raise NotFoundError(f"Note '{note_id}' not found")
    return note


def _store(ws: Workspace, note: Note) -> Note:
    # remote first: a refused id (AuthError) must not land in the local cache
    push_note(ws, note)
    ws.cache.upsert(note)
    return note


def save_note(
    ws: Workspace,
    title: str,
    content: str = "",
    tags: Optional[Iterable[str]] = None,
    note_id: Optional[str] = None,
    today: Optional[date] = None,
) -> Note:
    """Create or overwrite a note.

    The first save of an identifier assigns the note its points and credits the
    profile (points and streak). Saving an existing identifier edits it in place.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    tags_list = normalize_tags(tags)
    existing = ws.cache.get(note_id) if note_id else None

    if existing is not None:
        note = existing.model_copy(
            update={"title": title, "content": content, "tags": tags_list, "mentions": extract_mentions(content)}
        )
        note.touch()
        return _store(ws, note)

    points = ws.settings.points_per_note
    note = Note(
        id=note_id or new_note_id(),
        title=title,
        content=content,
        tags=tags_list,
        points=points,
        mentions=extract_mentions(content),
    )
    push_note(ws, note)
    ws.cache.upsert(note)
    profile = award_first_save(get_profile(ws), points, today)
    ws.save_local_profile(profile)
    push_profile(ws, profile)
    logger.info("note created", extra={"note_id": note.id, "streak": profile.streak})
    return note


def edit_note(
    ws: Workspace,
    note_id: str,
    *,
    title: Optional[str] = None,
    content: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
) -> Note:
    """Update the given fields and bump the note's date."""
    note = _require(ws, note_id)
    if title is not None:
        if not title.strip():
            raise ValidationError("Title is required")
        note.title = title.strip()
    if content is not None:
        note.content = content
        note.mentions = extract_mentions(content)
    if tags is not None:
        note.tags = normalize_tags(tags)
    note.touch()
    return _store(ws, note)


def save_private_note(
    ws: Workspace,
    title: str,
    content: str = "",
    tags: Optional[Iterable[str]] = None,
    note_id: Optional[str] = None,
) -> Note:
    """Save through the vault: the note always carries the ``private`` tag."""
    if not ws.vault.unlocked:
        raise AuthError("Vault is locked")
    return save_note(ws, title, content, with_private_tag(normalize_tags(tags)), note_id=note_id)


def get_note(ws: Workspace, note_id: str) -> Note:
    return _require(ws, note_id)


def active_notes(ws: Workspace) -> list[Note]:
    """The general listing: not deleted and not private."""
    return [n for n in ws.cache.load() if not n.is_deleted and not n.is_private]


def list_notes(
    ws: Workspace,
    tag: Optional[str] = None,
    search: Optional[str] = None,
    favorites_only: bool = False,
    sort: str = "date",
) -> list[Note]:
    """
    Return notes from the general listing with optional filtering and sorting.
    - tag: exact tag match
    - search: case-insensitive substring of title or content
    - sort: date (newest first) | title
    """
    if sort not in SORTS:
        raise ValidationError(f"sort must be one of {', '.join(SORTS)}")
    notes = active_notes(ws)
    if tag:
        notes = filter_by_tag(notes, tag)
    if search:
        needle = search.lower()
        notes = [n for n in notes if needle in n.title.lower() or needle in n.content.lower()]
    if favorites_only:
        notes = [n for n in notes if n.is_favorite]
    if sort == "title":
        return sorted(notes, key=lambda n: n.title.lower())
    return sorted(notes, key=lambda n: n.date, reverse=True)


def favorites(ws: Workspace) -> list[Note]:
    return list_notes(ws, favorites_only=True)


def toggle_favorite(ws: Workspace, note_id: str) -> Note:
    note = _require(ws, note_id)
    note.is_favorite = not note.is_favorite
    return _store(ws, note)


def delete_note(ws: Workspace, note_id: str) -> Note:
    """Move a note to the trash."""
    return _store(ws, soft_delete(_require(ws, note_id)))


def restore_note(ws: Workspace, note_id: str) -> Note:
    return _store(ws, restore(_require(ws, note_id)))


def purge_note(ws: Workspace, note_id: str) -> None:
    """Remove a note for good, locally and remotely."""
    if not ws.cache.remove(note_id):
        raise NotFoundError(f"Note '{note_id}' not found")
    drop_remote_note(ws, note_id)
    logger.info("note purged", extra={"note_id": note_id})


def trash(ws: Workspace, now: Optional[datetime] = None) -> list[Note]:
    return trash_view(ws.cache.load(), now, ws.settings.trash_retention_days)


def tags_with_count(ws: Workspace) -> dict[str, int]:
    return tag_counts(active_notes(ws))


def notes_by_tag(ws: Workspace, tag: str) -> list[Note]:
    return list_notes(ws, tag=tag)


def daily_notes(ws: Workspace, day: date) -> list[Note]:
    """Notes whose date falls on ``day`` in local time."""
    return [n for n in list_notes(ws) if n.date.astimezone().date() == day]


def toggle_publish(ws: Workspace, note_id: str) -> Note:
    """Publish or unpublish; a share id is minted on publish and dropped on unpublish."""
    note = _require(ws, note_id)
    if note.is_private and not note.is_published:
        raise ValidationError("Private notes can't be published")
    note.is_published = not note.is_published
    if note.is_published and not note.share_id:
        note.share_id = uuid4().hex
    elif not note.is_published:
        note.share_id = None
    push_note(ws, note, force=True)
    ws.cache.upsert(note)
    return note


def share_url(ws: Workspace, note: Note) -> Optional[str]:
    if not note.share_id:
        return None
    return f"{ws.settings.public_url.rstrip('/')}/shared/{note.share_id}"


def get_shared_note(ws: Workspace, share_id: str) -> PublishedNote:
    note = ws.remote.note_by_share_id(share_id)
    if note is None:
        raise NotFoundError("Note not found or not publicly available")
    return note


def export_notes(ws: Workspace) -> list[dict[str, Any]]:
    return [n.to_json() for n in ws.cache.load()]


def import_notes(ws: Workspace, items: Iterable[dict[str, Any]]) -> int:
    """Load exported notes; existing identifiers are overwritten, no points are awarded."""
    count = 0
    for item in items:
        try:
            note = Note.model_validate(item)
        except ValueError as exc:
            raise ValidationError(f"Invalid note in import: {exc}") from exc
        _store(ws, note)
        count += 1
    return count
