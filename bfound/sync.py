"""Reconciliation between the local note cache and the remote ``notes`` table.

Last write wins: when the remote table has any rows for the user they replace
the local cache wholesale; otherwise every local note is uploaded, one call per
note. There is no per-note merge, conflict detection or retry, so edits made on
two devices between syncs can be lost, and an upload interrupted half way leaves
the remote table partially filled.
"""

from __future__ import annotations

import logging

from .exceptions import AuthError, DeserializationError, RemoteError
from .models import Note
from .workspace import Workspace

logger = logging.getLogger(__name__)


def sync_notes(ws: Workspace) -> list[Note]:
    local = ws.cache.load()
    user = ws.session.user
    if user is None or not ws.app_settings().sync_enabled:
        return local
    try:
        remote_notes = ws.remote.fetch_notes(user.id)
        if remote_notes:
            merged = remote_notes
        else:
            for note in local:
                ws.remote.upsert_note(user.id, note)
            logger.info("uploaded local notes", extra={"count": len(local)})
            merged = local
    except DeserializationError as exc:
        logger.error("remote note is malformed, keeping local notes", extra={"row_id": exc.row_id})
        return local
    except AuthError:
        logger.error("a local note id is owned by another user, keeping local notes", exc_info=True)
        return local
    except RemoteError:
        logger.error("sync failed, keeping local notes", exc_info=True)
        return local
    ws.cache.replace(merged)
    logger.info("notes synced", extra={"count": len(merged), "user_id": user.id})
    return merged


def push_note(ws: Workspace, note: Note, force: bool = False) -> bool:
    """Write one note to the remote table when signed in; failures are logged.

    ``force`` pushes even with sync switched off (publishing needs the row).
    An id owned by another user raises ``AuthError``; it is not swallowed.
    """
    user = ws.session.user
    if user is None or not (force or ws.app_settings().sync_enabled):
        return False
    try:
        ws.remote.upsert_note(user.id, note)
    except RemoteError:
        logger.error("could not push note", exc_info=True, extra={"note_id": note.id})
        return False
    return True


def drop_remote_note(ws: Workspace, note_id: str) -> bool:
    user = ws.session.user
    if user is None:
        return False
    try:
        return ws.remote.delete_note(user.id, note_id)
    except RemoteError:
        logger.error("could not delete remote note", exc_info=True, extra={"note_id": note_id})
        return False
