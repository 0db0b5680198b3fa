from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Optional

from .exceptions import NotFoundError, RemoteError, ValidationError
from .models import Activity, PublishedNote, UserProfile
from .workspace import Workspace

logger = logging.getLogger(__name__)

AVATAR_BUCKET = "avatars"
MIN_SEARCH_LENGTH = 2


def push_profile(ws: Workspace, profile: UserProfile) -> bool:
    """Best-effort write of the profile row; used after point awards."""
    if ws.session.user is None or not profile.id:
        return False
    try:
        ws.remote.upsert_profile(profile)
    except RemoteError:
        logger.error("could not push profile", exc_info=True, extra={"user_id": profile.id})
        return False
    return True


def get_profile(ws: Workspace) -> UserProfile:
    """The signed-in user's remote profile, else the local copy."""
    user = ws.session.user
    local = ws.local_profile()
    if user is None:
        return local
    try:
        remote = ws.remote.fetch_profile(user.id)
    except RemoteError:
        logger.warning("profile fetch failed, using local copy", exc_info=True)
        return local
    if remote is None:
        return local
    ws.save_local_profile(remote)
    return remote


def _remote_profile(ws: Workspace, user_id: str) -> UserProfile:
    profile = ws.remote.fetch_profile(user_id)
    if profile is None:
        raise NotFoundError(f"User '{user_id}' not found")
    return profile


def update_profile(ws: Workspace, username: str) -> UserProfile:
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    ws.session.require_user()
    profile = get_profile(ws)
    profile.username = username
    ws.remote.upsert_profile(profile)
    ws.save_local_profile(profile)
    return profile


def upload_avatar(ws: Workspace, filename: str, data: bytes) -> UserProfile:
    """Store the image at ``<user id>/avatar.<ext>`` and point the profile at it."""
    user = ws.session.require_user()
    ext = PurePath(filename).suffix.lstrip(".").lower()
    if not ext:
        raise ValidationError("Avatar file needs an extension")
    path = f"{user.id}/avatar.{ext}"
    ws.objects.upload(AVATAR_BUCKET, path, data, upsert=True)
    profile = get_profile(ws)
    profile.avatar_url = ws.objects.public_url(AVATAR_BUCKET, path)
    ws.remote.upsert_profile(profile)
    ws.save_local_profile(profile)
    logger.info("avatar uploaded", extra={"user_id": user.id, "path": path})
    return profile


def follow(ws: Workspace, user_id: str) -> UserProfile:
    me = ws.session.require_user()
    if user_id == me.id:
        raise ValidationError("You can't follow yourself")
    mine = _remote_profile(ws, me.id)
    theirs = _remote_profile(ws, user_id)
    if user_id not in mine.following:
        mine.following.append(user_id)
    if me.id not in theirs.followers:
        theirs.followers.append(me.id)
    ws.remote.upsert_profile(mine)
    ws.remote.upsert_profile(theirs)
    ws.save_local_profile(mine)
    return mine


def unfollow(ws: Workspace, user_id: str) -> UserProfile:
    me = ws.session.require_user()
    mine = _remote_profile(ws, me.id)
    theirs = _remote_profile(ws, user_id)
    mine.following = [u for u in mine.following if u != user_id]
    theirs.followers = [u for u in theirs.followers if u != me.id]
    ws.remote.upsert_profile(mine)
    ws.remote.upsert_profile(theirs)
    ws.save_local_profile(mine)
    return mine


def friend_activity(ws: Workspace) -> list[Activity]:
    """Published notes of the users I follow, newest first."""
    me = ws.session.require_user()
    following = _remote_profile(ws, me.id).following
    if not following:
        return []
    return [
        Activity(
            user_id=n.author_id,
            username=n.author,
            avatar_url=n.author_avatar,
            action="published",
            note_title=n.title,
            share_id=n.share_id,
            date=n.date,
        )
        for n in ws.remote.published_notes(following)
    ]


def published_notes(ws: Workspace, query: Optional[str] = None) -> list[PublishedNote]:
    notes = ws.remote.published_notes()
    if not query:
        return notes
    q = query.lower()
    return [
        n for n in notes
        if q in n.title.lower() or q in n.author.lower() or any(q in t.lower() for t in n.tags)
    ]


def search_users(ws: Workspace, query: str) -> list[UserProfile]:
    query = (query or "").strip()
    if len(query) < MIN_SEARCH_LENGTH:
        return []
    return ws.remote.search_profiles(query)
