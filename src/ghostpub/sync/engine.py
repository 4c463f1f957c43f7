"""Sync orchestration: push notes to Ghost and record the assigned id back in the note.

For each note the engine reads the header, skips notes without Ghost
properties or with ``no_sync``, converts the body, works out the publish
status, then creates or updates the post. After a create, the id and slug
are written into the note's header once ``stamp_delay_seconds`` has passed;
until that write-back completes the note is held as *pending* and is not
synced again, so a resync racing the write-back cannot create a duplicate.

All entry points share one lock: at most one sync is in flight at a time.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Callable, Optional

from ghostpub.config import Settings
from ghostpub.core.frontmatter import parse_metadata, stamp_remote_id, strip_header
from ghostpub.core.lexical.convert import document_title, markdown_to_lexical
from ghostpub.core.lexical.nodes import LexicalDocument
from ghostpub.core.models import GhostMetadata
from ghostpub.core.publish import format_timestamp, resolve_status
from ghostpub.core.utils.hashing import payload_hash
from ghostpub.core.utils.slug import slugify
from ghostpub.ghost.client import GhostClient
from ghostpub.sync.ledger import SyncLedger
from ghostpub.sync.store import FileStore, HeaderCache, MetadataCache, in_folder, is_markdown


logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    idle = "idle"
    syncing = "syncing"
    success = "success"
    error = "error"


class SyncOutcome(str, Enum):
    synced = "synced"           # post created or updated
    unchanged = "unchanged"     # same payload already pushed
    skipped = "skipped"         # no Ghost properties, or no_sync
    pending = "pending"         # id write-back still outstanding
    failed = "failed"

    @property
    def ok(self) -> bool:
        return self in (SyncOutcome.synced, SyncOutcome.unchanged)


@dataclass(frozen=True)
class StatusEvent:
    status: SyncStatus
    message: str = ""
    path: Optional[str] = None
    notice: bool = False        # user-facing; already filtered by show_notifications


Listener = Callable[[StatusEvent], None]


@dataclass
class SyncSummary:
    synced: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.synced + self.unchanged + self.skipped + self.failed

    def add(self, outcome: SyncOutcome) -> None:
        if outcome is SyncOutcome.pending:
            self.skipped += 1
        else:
            setattr(self, outcome.value, getattr(self, outcome.value) + 1)


def build_payload(
    metadata: GhostMetadata,
    document: LexicalDocument,
    title: str,
    now: Optional[datetime] = None,
    ) -> dict[str, Any]:
    """Compose the Ghost post payload for one note."""
    status, published_at = resolve_status(metadata, now)
    payload: dict[str, Any] = {
        "title": title,
        "lexical": document.to_json(),
        "status": status.value,
        "visibility": metadata.post_access.value,
        "featured": metadata.featured,
    }
    slug = metadata.slug or slugify(title)
    if slug:
        payload["slug"] = slug
    if published_at:
        payload["published_at"] = format_timestamp(published_at)
    if metadata.excerpt:
        payload["excerpt"] = metadata.excerpt
    if metadata.feature_image:
        payload["feature_image"] = metadata.feature_image
    if metadata.tags:
        payload["tags"] = [{"name": name} for name in metadata.tags]
    return payload


class SyncEngine:

    def __init__(
        self,
        settings: Settings,
        client: GhostClient,
        store: FileStore,
        cache: Optional[MetadataCache] = None,
        ledger: Optional[SyncLedger] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._store = store
        self._cache = cache or HeaderCache(store)
        self._ledger = ledger
        self._listeners: list[Listener] = []
        self._pending: dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        return self._settings

    def apply_settings(self, settings: Settings) -> None:
        """Swap in new settings; takes effect from the next sync."""
        self._settings = settings

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, status: SyncStatus, message: str = "", path: Optional[str] = None, notice: bool = False) -> None:
        event = StatusEvent(status, message, path, notice and self._settings.show_notifications)
        for listener in list(self._listeners):
            listener(event)

    def should_sync(self, path: str) -> bool:
        """Markdown notes inside the sync folder."""
        return is_markdown(path) and in_folder(path, self._settings.sync_folder)

    def is_pending(self, path: str) -> bool:
        return path in self._pending

    async def sync_file(self, path: str, force: bool = False) -> SyncOutcome:
        async with self._lock:
            return await self._sync_file(path, force)

    async def sync_all(self, force: bool = False) -> SyncSummary:
        """Sync every eligible note in order. A failing note never stops the batch."""
        async with self._lock:
            summary = SyncSummary()
            folder = self._settings.sync_folder
            if not await self._store.exists(folder):
                self._emit(SyncStatus.error, f"Sync folder not found: {folder}", notice=True)
                return summary

            paths = [p for p in await self._store.list_files(folder) if self.should_sync(p)]
            if not paths:
                self._emit(SyncStatus.idle, "No files to sync", notice=True)
                return summary

            self._emit(SyncStatus.syncing, f"Syncing {len(paths)} file(s)...", notice=True)
            for path in paths:
                summary.add(await self._sync_file(path, force))

            logger.info("Sync complete: %s", summary)
            self._emit(
                SyncStatus.error if summary.failed else SyncStatus.success,
                f"Sync complete: {summary.synced} synced, {summary.unchanged} unchanged, "
                f"{summary.skipped} skipped, {summary.failed} failed",
                notice=True,
            )
            return summary

    async def _read_header(self, path: str) -> Optional[dict[str, Any]]:
        header = await self._cache.get_header(path)
        if header is None and self._settings.header_retry_seconds > 0:
            # cache may not have caught up with a fresh write
            await asyncio.sleep(self._settings.header_retry_seconds)
            header = await self._cache.get_header(path)
        return header

    async def _sync_file(self, path: str, force: bool) -> SyncOutcome:
        if path in self._pending:
            logger.info("Skipping %s: id write-back still pending", path)
            return SyncOutcome.pending

        try:
            content = await self._store.read(path)
            metadata = parse_metadata(await self._read_header(path), self._settings.yaml_prefix)
            if metadata is None or metadata.no_sync:
                logger.debug("Skipping %s: %s", path, "no_sync set" if metadata else "no Ghost properties")
                return SyncOutcome.skipped

            logger.info("Starting sync for %s", path)
            self._emit(SyncStatus.syncing, "Syncing...", path)

            body = strip_header(content)
            document = markdown_to_lexical(body)
            title = document_title(document, body)
            payload = build_payload(metadata, document, title)
            digest = payload_hash(payload)
            logger.debug("Payload for %s: status=%s slug=%s hash=%s",
                         path, payload["status"], payload.get("slug"), digest[:12])

            record = self._ledger.get(path) if self._ledger else None
            remote_id = metadata.remote_id or (record.remote_id if record else None)

            if not force and record and remote_id and record.remote_id == remote_id and record.content_hash == digest:
                logger.info("Unchanged since last sync: %s", path)
                if metadata.remote_id is None:
                    self._schedule_stamp(path, remote_id, record.slug or payload.get("slug", ""))
                self._emit(SyncStatus.success, f"Unchanged: {title}", path)
                return SyncOutcome.unchanged

            if remote_id:
                logger.info("Updating post %s from %s", remote_id, path)
                article = await self._client.update_article(remote_id, payload)
                verb = "Updated"
            else:
                logger.info("Creating new post from %s", path)
                article = await self._client.create_article(payload)
                verb = "Created"

            if self._ledger:
                self._ledger.record(
                    path, content_hash=digest, remote_id=article.id,
                    slug=article.slug, status=article.status.value,
                )
            if metadata.remote_id != article.id:
                self._schedule_stamp(path, article.id, article.slug)

            self._emit(SyncStatus.success, f"{verb} in Ghost: {title}", path, notice=True)
            return SyncOutcome.synced

        except Exception as e:
            logger.exception("Error syncing %s", path)
            self._emit(SyncStatus.error, f"Failed to sync {PurePosixPath(path).name}: {e}", path, notice=True)
            return SyncOutcome.failed

    def _schedule_stamp(self, path: str, remote_id: str, slug: str) -> None:
        task = asyncio.get_running_loop().create_task(self._stamp_later(path, remote_id, slug))
        self._pending[path] = task

    async def _stamp_later(self, path: str, remote_id: str, slug: str) -> None:
        """Write id/slug into the note's current content after the configured delay."""
        try:
            await asyncio.sleep(self._settings.stamp_delay_seconds)
            content = await self._store.read(path)
            updated = stamp_remote_id(content, remote_id, slug, self._settings.yaml_prefix)
            if updated != content:
                await self._store.write(path, updated)
            logger.info("Recorded Ghost id %s in %s", remote_id, path)
        except asyncio.CancelledError:
            logger.warning("Dropped id write-back for %s (Ghost id %s)", path, remote_id)
            raise
        except Exception as e:
            logger.exception("Could not record Ghost id in %s", path)
            self._emit(SyncStatus.error, f"Could not record Ghost id in {path}: {e}", path, notice=True)
        finally:
            self._pending.pop(path, None)

    async def wait_pending(self) -> None:
        """Wait for every scheduled id write-back to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending.values()), return_exceptions=True)
            for path, task in list(self._pending.items()):
                if task.done():
                    del self._pending[path]

    def cancel_pending(self) -> list[asyncio.Task]:
        """Cancel outstanding write-backs (shutdown). Returns the cancelled tasks."""
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        return tasks
