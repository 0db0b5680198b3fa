from __future__ import annotations

import html
import logging
import mimetypes
from datetime import date
from typing import Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, Field

from . import services, social
from .exceptions import AuthError, DomainError, NotFoundError, RemoteError, ValidationError
from .models import Activity, AppSettings, Note, PublishedNote, SessionUser, UserProfile
from .render import render_markdown
from .sync import sync_notes
from .workspace import Workspace

logger = logging.getLogger(__name__)

app = FastAPI(title="BFound Notes API")

_WORKSPACE: Optional[Workspace] = None


def get_workspace() -> Workspace:
    """The process-wide client workspace; tests swap it via dependency_overrides."""
    global _WORKSPACE
    if _WORKSPACE is None:
        _WORKSPACE = Workspace.open()
    return _WORKSPACE


_STATUS = [
    (NotFoundError, 404),
    (ValidationError, 400),
    (AuthError, 401),
    (RemoteError, 502),
]


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status = next((code for cls, code in _STATUS if isinstance(exc, cls)), 400)
    logger.warning("request failed", extra={"path": request.url.path, "status": status, "detail": str(exc)})
    return JSONResponse(status_code=status, content={"detail": str(exc)})


# ---------- Schemas ----------
class Credentials(BaseModel):
    email: str
    password: str
    username: Optional[str] = None


class NoteCreate(BaseModel):
    title: str
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    id: Optional[str] = None


class NoteEdit(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[list[str]] = None


class PublishOut(BaseModel):
    note: Note
    share_url: Optional[str] = None


class ProfileEdit(BaseModel):
    username: str


class PinSetup(BaseModel):
    pin: str
    confirm: str


class PinIn(BaseModel):
    pin: str


class SettingsPatch(BaseModel):
    minimalist_mode: Optional[bool] = None
    sync_enabled: Optional[bool] = None
    encryption_enabled: Optional[bool] = None
    notifications_enabled: Optional[bool] = None


# ---------- Auth ----------
@app.post("/auth/signup", response_model=SessionUser, status_code=201)
def auth_signup(payload: Credentials, ws: Workspace = Depends(get_workspace)):
    return ws.session.sign_up(payload.email, payload.password, payload.username).user


@app.post("/auth/login", response_model=SessionUser)
def auth_login(payload: Credentials, ws: Workspace = Depends(get_workspace)):
    session = ws.session.sign_in(payload.email, payload.password)
    sync_notes(ws)
    return session.user


@app.post("/auth/logout")
def auth_logout(ws: Workspace = Depends(get_workspace)):
    ws.session.sign_out()
    return {"ok": True}


@app.get("/auth/me", response_model=SessionUser)
def auth_me(ws: Workspace = Depends(get_workspace)):
    return ws.session.require_user()


# ---------- Notes ----------
@app.get("/api/notes", response_model=list[Note])
def api_list_notes(
    tag: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = Query("date", pattern="^(date|title)$"),
    ws: Workspace = Depends(get_workspace),
):
    return services.list_notes(ws, tag=tag, search=search, sort=sort)


@app.post("/api/notes", response_model=Note, status_code=201)
def api_create_note(payload: NoteCreate, ws: Workspace = Depends(get_workspace)):
    return services.save_note(ws, payload.title, payload.content, payload.tags, note_id=payload.id)


@app.get("/api/notes/{note_id}", response_model=Note)
def api_get_note(note_id: str, ws: Workspace = Depends(get_workspace)):
    return services.get_note(ws, note_id)


@app.patch("/api/notes/{note_id}", response_model=Note)
def api_edit_note(note_id: str, payload: NoteEdit, ws: Workspace = Depends(get_workspace)):
    return services.edit_note(ws, note_id, title=payload.title, content=payload.content, tags=payload.tags)


@app.delete("/api/notes/{note_id}", response_model=Note)
def api_delete_note(note_id: str, ws: Workspace = Depends(get_workspace)):
    return services.delete_note(ws, note_id)


@app.post("/api/notes/{note_id}/restore", response_model=Note)
def api_restore(note_id: str, ws: Workspace = Depends(get_workspace)):
    return services.restore_note(ws, note_id)


@app.post("/api/notes/{note_id}/purge")
def api_purge(note_id: str, ws: Workspace = Depends(get_workspace)):
    services.purge_note(ws, note_id)
    return {"ok": True}


@app.post("/api/notes/{note_id}/favorite", response_model=Note)
def api_favorite(note_id: str, ws: Workspace = Depends(get_workspace)):
    return services.toggle_favorite(ws, note_id)


@app.post("/api/notes/{note_id}/publish", response_model=PublishOut)
def api_publish(note_id: str, ws: Workspace = Depends(get_workspace)):
    note = services.toggle_publish(ws, note_id)
    return PublishOut(note=note, share_url=services.share_url(ws, note))


@app.get("/api/notes/{note_id}/html", response_class=HTMLResponse)
def api_note_html(note_id: str, ws: Workspace = Depends(get_workspace)):
    return HTMLResponse(render_markdown(services.get_note(ws, note_id).content))


@app.get("/api/favorites", response_model=list[Note])
def api_favorites(ws: Workspace = Depends(get_workspace)):
    return services.favorites(ws)


@app.get("/api/trash", response_model=list[Note])
def api_trash(ws: Workspace = Depends(get_workspace)):
    return services.trash(ws)


@app.get("/api/tags")
def api_tags(ws: Workspace = Depends(get_workspace)) -> dict[str, int]:
    return services.tags_with_count(ws)


@app.get("/api/tags/{tag}", response_model=list[Note])
def api_notes_by_tag(tag: str, ws: Workspace = Depends(get_workspace)):
    return services.notes_by_tag(ws, tag)


@app.get("/api/daily/{day}", response_model=list[Note])
def api_daily(day: date, ws: Workspace = Depends(get_workspace)):
    return services.daily_notes(ws, day)


@app.post("/api/sync", response_model=list[Note])
def api_sync(ws: Workspace = Depends(get_workspace)):
    return sync_notes(ws)


# ---------- Vault ----------
@app.post("/api/vault/setup")
def api_vault_setup(payload: PinSetup, ws: Workspace = Depends(get_workspace)):
    ws.vault.setup_pin(payload.pin, payload.confirm)
    return {"ok": True}


@app.post("/api/vault/unlock", response_model=list[Note])
def api_vault_unlock(payload: PinIn, ws: Workspace = Depends(get_workspace)):
    if not ws.vault.unlock(payload.pin):
        raise AuthError("Incorrect PIN")
    return ws.vault.private_notes()


@app.post("/api/vault/lock")
def api_vault_lock(ws: Workspace = Depends(get_workspace)):
    ws.vault.lock()
    return {"ok": True}


@app.post("/api/vault/reset")
def api_vault_reset(ws: Workspace = Depends(get_workspace)):
    ws.vault.reset_pin()
    return {"ok": True}


@app.post("/api/vault/notes", response_model=Note, status_code=201)
def api_vault_note(payload: NoteCreate, ws: Workspace = Depends(get_workspace)):
    return services.save_private_note(ws, payload.title, payload.content, payload.tags, note_id=payload.id)


# ---------- Settings ----------
@app.get("/api/settings", response_model=AppSettings)
def api_settings(ws: Workspace = Depends(get_workspace)):
    return ws.app_settings()


@app.patch("/api/settings", response_model=AppSettings)
def api_update_settings(payload: SettingsPatch, ws: Workspace = Depends(get_workspace)):
    return ws.update_settings(**payload.model_dump(exclude_none=True))


# ---------- Social ----------
@app.get("/api/profile", response_model=UserProfile)
def api_profile(ws: Workspace = Depends(get_workspace)):
    return social.get_profile(ws)


@app.patch("/api/profile", response_model=UserProfile)
def api_update_profile(payload: ProfileEdit, ws: Workspace = Depends(get_workspace)):
    return social.update_profile(ws, payload.username)


@app.put("/api/profile/avatar", response_model=UserProfile)
def api_avatar(
    filename: str,
    data: bytes = Body(..., media_type="application/octet-stream"),
    ws: Workspace = Depends(get_workspace),
):
    return social.upload_avatar(ws, filename, data)


@app.post("/api/follow/{user_id}", response_model=UserProfile)
def api_follow(user_id: str, ws: Workspace = Depends(get_workspace)):
    return social.follow(ws, user_id)


@app.delete("/api/follow/{user_id}", response_model=UserProfile)
def api_unfollow(user_id: str, ws: Workspace = Depends(get_workspace)):
    return social.unfollow(ws, user_id)


@app.get("/api/feed", response_model=list[Activity])
def api_feed(ws: Workspace = Depends(get_workspace)):
    return social.friend_activity(ws)


@app.get("/api/users", response_model=list[UserProfile])
def api_users(q: str = "", ws: Workspace = Depends(get_workspace)):
    return social.search_users(ws, q)


@app.get("/api/world", response_model=list[PublishedNote])
def api_world(q: Optional[str] = None, ws: Workspace = Depends(get_workspace)):
    return social.published_notes(ws, q)


@app.get("/api/shared/{share_id}", response_model=PublishedNote)
def api_shared(share_id: str, ws: Workspace = Depends(get_workspace)):
    return services.get_shared_note(ws, share_id)


@app.get("/storage/{bucket}/{path:path}")
def storage_object(bucket: str, path: str, ws: Workspace = Depends(get_workspace)):
    data = ws.objects.download(bucket, path)
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)


# ---------- Pages ----------
_PAGE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width,initial-scale=1"/>
  <title>{title}</title>
  <style>
    body {{ max-width: 720px; margin: 2rem auto; padding: 0 1rem; font-family: system-ui, sans-serif;
           line-height: 1.6; color: #0f172a; }}
    .meta {{ color: #64748b; font-size: .9rem; }}
    .tag {{ padding: 2px 8px; border-radius: 999px; font-size: 12px; border: 1px solid #cbd5e1; }}
    .mention {{ color: #2563eb; font-weight: 600; }}
    code {{ background: rgba(148,163,184,.2); padding: 0 .25rem; border-radius: .25rem; }}
    pre {{ padding: .75rem; border-radius: .5rem; overflow: auto; background: #0f172a; color: #e2e8f0; }}
    blockquote {{ border-left: 3px solid #94a3b8; padding-left: .75rem; color: #64748b; }}
  </style>
</head>
<body>
{body}
</body>
</html>
"""


def _shared_page(note: PublishedNote) -> str:
    tags = " ".join(f'<span class="tag">#{html.escape(t)}</span>' for t in note.tags)
    body = (
        f"<h1>{html.escape(note.title)}</h1>\n"
        f'<p class="meta">by {html.escape(note.author)} &middot; {note.date:%Y-%m-%d}</p>\n'
        f"<article>\n{render_markdown(note.content)}\n</article>\n"
        f"<p>{tags}</p>"
    )
    return _PAGE.format(title=html.escape(note.title), body=body)


@app.get("/shared/{share_id}", response_class=HTMLResponse)
def shared_page(share_id: str, ws: Workspace = Depends(get_workspace)):
    try:
        note = services.get_shared_note(ws, share_id)
    except NotFoundError as exc:
        body = f"<h1>Not found</h1>\n<p>{html.escape(str(exc))}</p>"
        return HTMLResponse(_PAGE.format(title="Not found", body=body), status_code=404)
    return HTMLResponse(_shared_page(note))


_INDEX_BODY = """<h1>BFound Notes</h1>
<p class="meta">Markdown notes with a private vault, daily streaks and public sharing.</p>
<ul>
  <li><a href="/docs">API docs</a></li>
  <li><a href="/api/world">Published notes (JSON)</a></li>
</ul>"""


@app.get("/", response_class=HTMLResponse)
def index():
    return HTMLResponse(content=_PAGE.format(title="BFound Notes", body=_INDEX_BODY))
