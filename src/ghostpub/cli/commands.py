"""CLI command implementations"""

import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import SQLModel

from ghostpub.config import Settings, load_config
from ghostpub.core.lexical.convert import markdown_to_lexical
from ghostpub.core.frontmatter import strip_header
from ghostpub.core.render import markdown_to_html
from ghostpub.exceptions import GhostPubError
from ghostpub.ghost.client import GhostClient
from ghostpub.sync.calendar import month_entries
from ghostpub.sync.engine import StatusEvent, SyncEngine, SyncOutcome, SyncStatus
from ghostpub.sync.ledger import SyncLedger, init_db, make_engine
from ghostpub.sync.notes import add_properties, create_post_note
from ghostpub.sync.scheduler import SyncScheduler
from ghostpub.sync.store import LocalFileStore, in_folder, is_markdown


VaultOpt = Annotated[Optional[str], typer.Option("--vault-dir", help="Notes vault root")]
FolderOpt = Annotated[Optional[str], typer.Option("--sync-folder", help="Vault-relative folder to sync")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _client(settings: Settings) -> GhostClient:
    return GhostClient.from_settings(settings)


def _ledger(settings: Settings) -> SyncLedger:
    engine = make_engine(settings.db_url)
    init_db(engine)
    return SyncLedger(engine)


def _echo_event(event: StatusEvent) -> None:
    if event.notice:
        typer.echo(event.message, err=event.status is SyncStatus.error)


def _run(coro):
    """Run a coroutine, mapping ghostpub errors to a CLI failure."""
    try:
        return asyncio.run(coro)
    except GhostPubError as e:
        _fail(str(e))


async def _sync(settings: Settings, path: Optional[str], force: bool) -> bool:
    async with _client(settings) as client:
        engine = SyncEngine(settings, client, LocalFileStore(settings.vault_dir), ledger=_ledger(settings))
        engine.add_listener(_echo_event)
        if path:
            outcome = await engine.sync_file(path, force=force)
            if outcome is SyncOutcome.skipped:
                typer.echo(f"Skipped {path}: no Ghost properties or no_sync is set")
            elif outcome is SyncOutcome.unchanged:
                typer.echo(f"Unchanged: {path}")
            ok = outcome is not SyncOutcome.failed
        else:
            summary = await engine.sync_all(force=force)
            ok = summary.failed == 0
        await engine.wait_pending()
        return ok


def sync_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Vault-relative note path; omit to sync the whole folder")] = None,
    force: Annotated[bool, typer.Option("--force", help="Push even if the note is unchanged since the last sync")] = False,
    vault: VaultOpt = None,
    folder: FolderOpt = None,
    ):
    """Sync notes in the sync folder to Ghost."""
    settings = _settings(overrides={"vault_dir": vault, "sync_folder": folder})
    if path:
        path = Path(path).as_posix()
        if not (is_markdown(path) and in_folder(path, settings.sync_folder)):
            _fail(f"{path} is not a Markdown note inside '{settings.sync_folder}'")
    if not _run(_sync(settings, path, force)):
        raise typer.Exit(1)


async def _watch(settings: Settings, poll: float) -> None:
    store = LocalFileStore(settings.vault_dir)
    async with _client(settings) as client:
        engine = SyncEngine(settings, client, store, ledger=_ledger(settings))
        engine.add_listener(_echo_event)
        scheduler = SyncScheduler.from_settings(engine)
        scheduler.start()
        seen = await store.modified_times(settings.sync_folder)
        try:
            while True:
                await asyncio.sleep(poll)
                current = await store.modified_times(settings.sync_folder)
                for changed, mtime in current.items():
                    if seen.get(changed) != mtime:
                        scheduler.notify_changed(changed)
                seen = current
        finally:
            await scheduler.shutdown()


def watch_cmd(
    poll: Annotated[float, typer.Option("--poll", min=0.1, help="Seconds between change checks")] = 1.0,
    vault: VaultOpt = None,
    folder: FolderOpt = None,
    ):
    """Sync changed notes after a quiet period, and everything every sync_interval minutes."""
    settings = _settings(overrides={"vault_dir": vault, "sync_folder": folder})
    typer.echo(f"Watching '{settings.sync_folder}' in {Path(settings.vault_dir).resolve()} (Ctrl-C to stop)")
    try:
        _run(_watch(settings, poll))
    except KeyboardInterrupt:
        typer.echo("Stopped.")


async def _test_connection(settings: Settings) -> bool:
    async with _client(settings) as client:
        return await client.test_connection()


def test_connection_cmd():
    """Check the Ghost URL and Admin API key."""
    settings = _settings()
    try:
        asyncio.run(_test_connection(settings))
    except GhostPubError as e:
        _fail("Connection failed", e)
    typer.echo("Successfully connected to Ghost!")


def new_post_cmd(
    title: Annotated[Optional[str], typer.Argument(help="Title heading of the new post")] = None,
    vault: VaultOpt = None,
    folder: FolderOpt = None,
    ):
    """Create a new note in the sync folder with default Ghost properties."""
    settings = _settings(overrides={"vault_dir": vault, "sync_folder": folder})
    try:
        path = asyncio.run(create_post_note(LocalFileStore(settings.vault_dir), settings, title))
    except OSError as e:
        _fail("Failed to create new post", e)
    typer.echo(f"New Ghost post created: {path}")


def add_properties_cmd(
    path: Annotated[str, typer.Argument(help="Vault-relative note path")],
    vault: VaultOpt = None,
    folder: FolderOpt = None,
    ):
    """Add missing Ghost properties to a note and move it into the sync folder."""
    settings = _settings(overrides={"vault_dir": vault, "sync_folder": folder})
    store = LocalFileStore(settings.vault_dir)
    try:
        result = asyncio.run(add_properties(store, settings, Path(path).as_posix()))
    except (OSError, ValueError) as e:
        _fail("Failed to add Ghost properties", e)
    if not result.changed:
        typer.echo("This note already has all Ghost properties")
        return
    if result.completed:
        typer.echo("Missing Ghost properties added.")
    else:
        typer.echo("Ghost properties added! This note will now sync with Ghost.")
    if result.path != Path(path).as_posix():
        typer.echo(f"File moved to sync folder: {result.path}")


def convert_cmd(
    path: Annotated[Path, typer.Argument(help="Markdown file to convert")],
    html: Annotated[bool, typer.Option("--html", help="Render HTML instead of Lexical JSON")] = False,
    ):
    """Print the Lexical JSON (or HTML) that a note would be published with."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}", e)
    if html:
        typer.echo(markdown_to_html(text))
        return
    body = strip_header(text)
    try:
        doc = markdown_to_lexical(body)
    except GhostPubError as e:
        _fail("Conversion failed", e)
    typer.echo(json.dumps(doc.to_dict(), indent=2))


def _parse_month(value: Optional[str]) -> tuple[int, int]:
    if not value:
        today = date.today()
        return today.year, today.month
    try:
        year, month = (int(part) for part in value.split("-"))
        date(year, month, 1)
    except ValueError:
        _fail(f"Invalid month {value!r}, expected YYYY-MM")
    return year, month


async def _calendar(settings: Settings, year: int, month: int):
    async with _client(settings) as client:
        return await month_entries(
            client, LocalFileStore(settings.vault_dir),
            settings.ghost_url, settings.yaml_prefix, year, month,
        )


def calendar_cmd(
    month: Annotated[Optional[str], typer.Option("--month", help="Month as YYYY-MM (default: current)")] = None,
    vault: VaultOpt = None,
    ):
    """List published and scheduled posts of a month, marking those linked to a local note."""
    settings = _settings(overrides={"vault_dir": vault})
    year, mon = _parse_month(month)
    try:
        entries = asyncio.run(_calendar(settings, year, mon))
    except GhostPubError as e:
        _fail("Could not load posts", e)
    if not entries:
        typer.echo(f"No published or scheduled posts in {year:04d}-{mon:02d}.")
        return
    for e in entries:
        where = e.note_path or e.admin_url
        typer.echo(f"{e.published_at.astimezone():%Y-%m-%d %H:%M}  {e.status:<9}  {e.title}  [{where}]")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate the sync ledger")] = False,
    ):
    """Initialize the sync ledger database. Use --reset to forget previous syncs."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing data cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def forget_cmd(
    path: Annotated[str, typer.Argument(help="Vault-relative note path")],
    ):
    """Forget the last sync of one note so its next sync is pushed even if unchanged."""
    settings = _settings()
    if _ledger(settings).forget(Path(path).as_posix()):
        typer.echo(f"Forgot last sync of {path}")
    else:
        typer.echo(f"No sync recorded for {path}")
