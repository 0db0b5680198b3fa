from __future__ import annotations

import functools
import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from . import services, social
from .exceptions import DomainError
from .logging import setup_logging
from .models import Note
from .render import plain_excerpt
from .sync import sync_notes
from .workspace import Workspace

app = typer.Typer(help="BFound: markdown notes with a vault, streaks and sharing")
vault_app = typer.Typer(help="PIN-gated private notes")
app.add_typer(vault_app, name="vault")
console = Console()


@app.callback()
def _boot(ctx: typer.Context):
    ctx.obj = Workspace.open()


def _ws(ctx: typer.Context) -> Workspace:
    # sub-app commands get a child context
    return ctx.find_root().obj


def _handled(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except DomainError as exc:
            console.print(f"[red]Error[/]: {exc}")
            raise typer.Exit(1)
    return wrapper


def _tags(raw: Optional[str]) -> list[str]:
    return (raw or "").split(",")


def _when(n: Note) -> str:
    return n.date.astimezone().isoformat(timespec="minutes")


def _notes_table(title: str, notes: list[Note], deleted: bool = False) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Tags", style="magenta")
    table.add_column("Fav")
    table.add_column("Shared")
    table.add_column("Deleted" if deleted else "Date")
    for n in notes:
        table.add_row(
            n.id, n.title, ", ".join(n.tags),
            "★" if n.is_favorite else "", "✓" if n.is_published else "",
            n.deleted_at.astimezone().isoformat(timespec="minutes") if deleted and n.deleted_at else _when(n),
        )
    return table


# ---------- account ----------
@app.command()
@_handled
def signup(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", "-e"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True),
    username: Optional[str] = typer.Option(None, "--username", "-u"),
):
    session = _ws(ctx).session.sign_up(email, password, username)
    console.print(f"[green]Signed up[/] as {session.user.email}")


@app.command()
@_handled
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", "-e"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
):
    ws = _ws(ctx)
    session = ws.session.sign_in(email, password)
    console.print(f"[green]Signed in[/] as {session.user.email}")
    notes = sync_notes(ws)
    if not ws.sync_message_shown:
        console.print(f"[dim]Your notes now sync across devices ({len(notes)} synced).[/]")
        ws.set_sync_message_shown(True)


@app.command()
def logout(ctx: typer.Context):
    _ws(ctx).session.sign_out()
    console.print("[yellow]Signed out[/]")


@app.command()
def whoami(ctx: typer.Context):
    user = _ws(ctx).session.user
    if user is None:
        console.print("[dim]Not signed in (notes stay on this device)[/]")
        raise typer.Exit(1)
    console.print(f"{user.email} [dim]({user.id})[/]")


@app.command()
@_handled
def sync(ctx: typer.Context):
    ws = _ws(ctx)
    ws.session.require_user()
    notes = sync_notes(ws)
    social.get_profile(ws)
    console.print(f"[green]Synced[/] {len(notes)} notes")


# ---------- notes ----------
@app.command()
@_handled
def add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t"),
    content: str = typer.Option("", "--content", "-c"),
    tags: Optional[str] = typer.Option(None, "--tags", "-g", help="comma separated"),
):
    ws = _ws(ctx)
    n = services.save_note(ws, title, content, _tags(tags))
    profile = ws.local_profile()
    console.print(f"[green]Created[/] {n.id}: {n.title} [dim](+{n.points} points, streak {profile.streak})[/]")


@app.command()
@_handled
def edit(
    ctx: typer.Context,
    note_id: str,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    content: Optional[str] = typer.Option(None, "--content", "-c"),
    tags: Optional[str] = typer.Option(None, "--tags", "-g"),
):
    n = services.edit_note(
        _ws(ctx), note_id, title=title, content=content, tags=(None if tags is None else _tags(tags))
    )
    console.print(f"[green]Updated[/] {n.id}: {n.title}")


@app.command("list")
@_handled
def _list(
    ctx: typer.Context,
    tag: Optional[str] = typer.Option(None, "--tag"),
    search: Optional[str] = typer.Option(None, "--search"),
    sort: str = typer.Option("date", "--sort", help="date|title"),
):
    notes = services.list_notes(_ws(ctx), tag=tag, search=search, sort=sort)
    console.print(_notes_table("Notes", notes))


@app.command()
@_handled
def show(ctx: typer.Context, note_id: str):
    ws = _ws(ctx)
    n = services.get_note(ws, note_id)
    console.rule(f"{n.title}")
    console.print(f"[dim]{_when(n)}[/]")
    if n.tags:
        console.print(f"[dim]tags:[/] {', '.join(n.tags)}")
    console.print(Markdown(n.content or "_<empty>_"))
    if n.mentions:
        console.print(f"[dim]mentions:[/] {', '.join('@' + m for m in n.mentions)}")
    url = services.share_url(ws, n)
    if n.is_published and url:
        console.print(f"[dim]shared at:[/] {url}")


@app.command()
@_handled
def delete(ctx: typer.Context, note_id: str):
    n = services.delete_note(_ws(ctx), note_id)
    console.print(f"[yellow]Moved to trash[/] {n.id}: {n.title}")


@app.command()
@_handled
def restore(ctx: typer.Context, note_id: str):
    n = services.restore_note(_ws(ctx), note_id)
    console.print(f"[green]Restored[/] {n.id}: {n.title}")


@app.command()
@_handled
def purge(ctx: typer.Context, note_id: str):
    services.purge_note(_ws(ctx), note_id)
    console.print(f"[red]Purged[/]: {note_id}")


@app.command()
def trash(ctx: typer.Context):
    ws = _ws(ctx)
    notes = services.trash(ws)
    console.print(_notes_table(f"Trash (kept {ws.settings.trash_retention_days} days)", notes, deleted=True))


@app.command()
@_handled
def fav(ctx: typer.Context, note_id: str):
    n = services.toggle_favorite(_ws(ctx), note_id)
    console.print(f"[green]{'Favorited' if n.is_favorite else 'Unfavorited'}[/] {n.id}: {n.title}")


@app.command()
def favorites(ctx: typer.Context):
    console.print(_notes_table("Favorites", services.favorites(_ws(ctx))))


@app.command()
def tags(ctx: typer.Context, tag: Optional[str] = typer.Argument(None)):
    ws = _ws(ctx)
    if tag:
        console.print(_notes_table(f"#{tag}", services.notes_by_tag(ws, tag)))
        return
    table = Table(title="Tags")
    table.add_column("Tag", style="magenta")
    table.add_column("Notes", justify="right")
    for name, count in services.tags_with_count(ws).items():
        table.add_row(name, str(count))
    console.print(table)


@app.command()
def daily(
    ctx: typer.Context,
    day: Optional[str] = typer.Argument(None, help="YYYY-MM-DD, defaults to today"),
):
    try:
        when = date.fromisoformat(day) if day else date.today()
    except ValueError:
        console.print(f"[red]Error[/]: invalid date {day!r}")
        raise typer.Exit(1)
    console.print(_notes_table(f"Notes for {when.isoformat()}", services.daily_notes(_ws(ctx), when)))


# ---------- sharing & social ----------
@app.command()
@_handled
def publish(ctx: typer.Context, note_id: str):
    ws = _ws(ctx)
    n = services.toggle_publish(ws, note_id)
    if n.is_published:
        console.print(f"[green]Published[/] {n.title}: {services.share_url(ws, n)}")
        if ws.session.user is None:
            console.print("[dim]Sign in so others can open the link.[/]")
    else:
        console.print(f"[yellow]Unpublished[/] {n.title}")


@app.command()
@_handled
def shared(ctx: typer.Context, share_id: str):
    n = services.get_shared_note(_ws(ctx), share_id)
    console.rule(n.title)
    console.print(f"[dim]by {n.author} · {n.date:%Y-%m-%d}[/]")
    console.print(Markdown(n.content or "_<empty>_"))


@app.command()
@_handled
def world(ctx: typer.Context, query: Optional[str] = typer.Argument(None)):
    table = Table(title="World")
    table.add_column("Share ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Tags", style="magenta")
    table.add_column("Preview", style="dim")
    table.add_column("Date")
    for n in social.published_notes(_ws(ctx), query):
        table.add_row(
            n.share_id, n.title, n.author, ", ".join(n.tags),
            plain_excerpt(n.content, 60), f"{n.date:%Y-%m-%d}",
        )
    console.print(table)


@app.command()
@_handled
def follow(ctx: typer.Context, user_id: str):
    social.follow(_ws(ctx), user_id)
    console.print(f"[green]Following[/] {user_id}")


@app.command()
@_handled
def unfollow(ctx: typer.Context, user_id: str):
    social.unfollow(_ws(ctx), user_id)
    console.print(f"[yellow]Unfollowed[/] {user_id}")


@app.command()
@_handled
def feed(ctx: typer.Context):
    items = social.friend_activity(_ws(ctx))
    if not items:
        console.print("[dim]No activity from people you follow[/]")
        return
    for a in items:
        console.print(f"[bold]{a.username}[/] {a.action} [cyan]{a.note_title}[/] [dim]{a.date:%Y-%m-%d}[/]")


@app.command()
@_handled
def users(ctx: typer.Context, query: str):
    table = Table(title="Users")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Username", style="bold")
    table.add_column("Points", justify="right")
    table.add_column("Followers", justify="right")
    for p in social.search_users(_ws(ctx), query):
        table.add_row(p.id or "", p.username, str(p.points), str(len(p.followers)))
    console.print(table)


@app.command()
@_handled
def profile(
    ctx: typer.Context,
    username: Optional[str] = typer.Option(None, "--username", "-u"),
    avatar: Optional[Path] = typer.Option(None, "--avatar", exists=True, dir_okay=False),
):
    ws = _ws(ctx)
    p = social.get_profile(ws)
    if username:
        p = social.update_profile(ws, username)
    if avatar:
        p = social.upload_avatar(ws, avatar.name, avatar.read_bytes())
    console.print(f"[bold]{p.username or '(no username)'}[/]")
    console.print(f"points {p.points} · streak {p.streak} · followers {len(p.followers)} · following {len(p.following)}")
    if p.avatar_url:
        console.print(f"[dim]avatar:[/] {p.avatar_url}")


@app.command()
def streak(ctx: typer.Context):
    p = social.get_profile(_ws(ctx))
    console.print(f"🔥 {p.streak} day streak · {p.points} points")
    if p.last_note_date:
        console.print(f"[dim]last note on {p.last_note_date}[/]")


# ---------- vault ----------
@vault_app.command("setup")
@_handled
def vault_setup(
    ctx: typer.Context,
    pin: str = typer.Option(..., "--pin", prompt=True, hide_input=True),
    confirm: str = typer.Option(..., "--confirm", prompt="Confirm PIN", hide_input=True),
):
    _ws(ctx).vault.setup_pin(pin, confirm)
    console.print("[green]Vault PIN set[/]")


def _unlock(ws: Workspace, pin: str) -> None:
    if not ws.vault.is_setup:
        console.print("[red]Error[/]: vault has no PIN yet, run `bfound vault setup`")
        raise typer.Exit(1)
    if not ws.vault.unlock(pin):
        console.print("[red]Incorrect PIN[/]")
        raise typer.Exit(1)


@vault_app.command("unlock")
@_handled
def vault_unlock(ctx: typer.Context, pin: str = typer.Option(..., "--pin", prompt=True, hide_input=True)):
    ws = _ws(ctx)
    _unlock(ws, pin)
    console.print(_notes_table("Vault", ws.vault.private_notes()))


@vault_app.command("add")
@_handled
def vault_add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t"),
    content: str = typer.Option("", "--content", "-c"),
    tags: Optional[str] = typer.Option(None, "--tags", "-g"),
    pin: str = typer.Option(..., "--pin", prompt=True, hide_input=True),
):
    ws = _ws(ctx)
    _unlock(ws, pin)
    n = services.save_private_note(ws, title, content, _tags(tags))
    console.print(f"[green]Saved to vault[/] {n.id}: {n.title}")


@vault_app.command("reset")
def vault_reset(ctx: typer.Context, yes: bool = typer.Option(False, "--yes", "-y")):
    if not yes and not typer.confirm("Remove the vault PIN?"):
        raise typer.Exit(1)
    _ws(ctx).vault.reset_pin()
    console.print("[yellow]Vault PIN removed[/]")


# ---------- settings & data ----------
@app.command()
@_handled
def settings(
    ctx: typer.Context,
    minimalist: Optional[bool] = typer.Option(None, "--minimalist/--no-minimalist"),
    sync_enabled: Optional[bool] = typer.Option(None, "--sync/--no-sync"),
    encryption: Optional[bool] = typer.Option(None, "--encryption/--no-encryption"),
    notifications: Optional[bool] = typer.Option(None, "--notifications/--no-notifications"),
):
    ws = _ws(ctx)
    changes = {
        k: v for k, v in {
            "minimalist_mode": minimalist,
            "sync_enabled": sync_enabled,
            "encryption_enabled": encryption,
            "notifications_enabled": notifications,
        }.items() if v is not None
    }
    current = ws.update_settings(**changes) if changes else ws.app_settings()
    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in current.model_dump().items():
        table.add_row(key, "on" if value else "off")
    console.print(table)


@app.command()
def export(ctx: typer.Context, to: Path = typer.Option(..., "--to")):
    payload = services.export_notes(_ws(ctx))
    to.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    console.print(f"[green]Exported[/] {len(payload)} notes → {to}")


@app.command("import")
@_handled
def import_(ctx: typer.Context, from_: Path = typer.Option(..., "--from", exists=True, dir_okay=False)):
    try:
        data = json.loads(from_.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error[/]: {from_} is not valid JSON ({exc})")
        raise typer.Exit(1)
    count = services.import_notes(_ws(ctx), data)
    console.print(f"[green]Imported[/] {count} notes")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Run the HTTP API and share pages."""
    import uvicorn

    uvicorn.run("bfound.app:app", host=host, port=port)


def main():
    setup_logging()
    app()


if __name__ == "__main__":
    main()
