"""Typed access to the remote table store.

Every row read is validated into its client model; a row that doesn't fit raises
``DeserializationError`` instead of being dropped. Store failures surface as
``RemoteError``. Callers decide whether to log and carry on.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as DBSession, select

from .db import session_scope
from .exceptions import AuthError, DeserializationError, RemoteError
from .models import PRIVATE_TAG, Note, NoteRow, ProfileRow, PublishedNote, UserProfile, utcnow


@contextmanager
def _remote(action: str) -> Iterator[DBSession]:
    try:
        with session_scope() as s:
            yield s
    except SQLAlchemyError as exc:
        raise RemoteError(f"{action} failed: {exc}") from exc


def note_from_row(row: NoteRow) -> Note:
    try:
        return Note.model_validate(row.model_dump(exclude={"user_id"}))
    except PydanticValidationError as exc:
        raise DeserializationError("notes", row.id, str(exc)) from exc


def profile_from_row(row: ProfileRow) -> UserProfile:
    try:
        return UserProfile.model_validate(row.model_dump(exclude={"updated_at"}))
    except PydanticValidationError as exc:
        raise DeserializationError("profiles", row.id, str(exc)) from exc


def _published(row: NoteRow, author: Optional[UserProfile]) -> PublishedNote:
    note = note_from_row(row)
    return PublishedNote(
        id=note.id,
        share_id=note.share_id or "",
        title=note.title,
        content=note.content,
        tags=note.tags,
        date=note.date,
        author_id=row.user_id,
        author=(author.username if author and author.username else "Anonymous"),
        author_avatar=author.avatar_url if author else None,
    )


def _is_private(row: NoteRow) -> bool:
    # tags are a JSON column; matched in Python
    return PRIVATE_TAG in (row.tags or [])


class RemoteStore:
    """The ``notes`` and ``profiles`` tables."""

    # notes
    def fetch_notes(self, user_id: str) -> list[Note]:
        with _remote("fetch notes") as s:
            rows = list(s.exec(select(NoteRow).where(NoteRow.user_id == user_id)))
        return [note_from_row(r) for r in rows]

    def upsert_note(self, user_id: str, note: Note) -> None:
        """Insert or overwrite one of ``user_id``'s rows; another user's id is refused."""
        with _remote("upsert note") as s:
            existing = s.get(NoteRow, note.id)
            if existing is not None and existing.user_id != user_id:
                raise AuthError(f"Note '{note.id}' belongs to another user")
            s.merge(NoteRow(user_id=user_id, **note.model_dump()))

    def delete_note(self, user_id: str, note_id: str) -> bool:
        with _remote("delete note") as s:
            row = s.get(NoteRow, note_id)
            if row is None or row.user_id != user_id:
                return False
            s.delete(row)
            return True

    def note_by_share_id(self, share_id: str) -> Optional[PublishedNote]:
        with _remote("fetch shared note") as s:
            row = s.exec(
                select(NoteRow).where(NoteRow.share_id == share_id, NoteRow.is_published == True)  # noqa: E712
            ).first()
            author = s.get(ProfileRow, row.user_id) if row else None
        if row is None or _is_private(row):
            return None
        return _published(row, profile_from_row(author) if author else None)

    def published_notes(self, user_ids: Optional[Iterable[str]] = None) -> list[PublishedNote]:
        """Published, non-deleted, non-private notes, newest first; optionally only from ``user_ids``."""
        with _remote("fetch published notes") as s:
            stmt = select(NoteRow).where(NoteRow.is_published == True, NoteRow.deleted_at == None)  # noqa: E711,E712
            if user_ids is not None:
                stmt = stmt.where(NoteRow.user_id.in_(list(user_ids)))
            rows = [r for r in s.exec(stmt.order_by(NoteRow.date.desc())) if not _is_private(r)]
            authors = {
                p.id: p for p in s.exec(select(ProfileRow).where(ProfileRow.id.in_(list({r.user_id for r in rows}))))
            }
        return [
            _published(r, profile_from_row(authors[r.user_id]) if r.user_id in authors else None)
            for r in rows
        ]

    # profiles
    def fetch_profile(self, user_id: str) -> Optional[UserProfile]:
        with _remote("fetch profile") as s:
            row = s.get(ProfileRow, user_id)
        return profile_from_row(row) if row else None

    def upsert_profile(self, profile: UserProfile) -> None:
        if not profile.id:
            raise RemoteError("profile has no user id")
        with _remote("upsert profile") as s:
            s.merge(ProfileRow(**profile.model_dump(), updated_at=utcnow()))

    def search_profiles(self, query: str, limit: int = 20) -> list[UserProfile]:
        with _remote("search profiles") as s:
            rows = list(
                s.exec(
                    select(ProfileRow)
                    .where(ProfileRow.username.ilike(f"%{query}%"))
                    .order_by(ProfileRow.username)
                    .limit(limit)
                )
            )
        return [profile_from_row(r) for r in rows]
