"""Month view of published and scheduled Ghost posts, linked to local notes by Ghost id"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ghostpub.core.frontmatter import read_header
from ghostpub.ghost.client import GhostClient, month_filter
from ghostpub.sync.store import FileStore, is_markdown


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarEntry:
    id: str
    title: str
    status: str
    published_at: datetime
    note_path: Optional[str]     # local note carrying this Ghost id, if any
    admin_url: str


async def index_notes(store: FileStore, prefix: str) -> dict[str, str]:
    """Map Ghost id -> note path for every note in the vault whose header carries an id."""
    index: dict[str, str] = {}
    for path in await store.list_files(""):
        if not is_markdown(path):
            continue
        header = read_header(await store.read(path)) or {}
        ghost_id = header.get(f"{prefix}id")
        if isinstance(ghost_id, str) and ghost_id:
            index[ghost_id] = path
    return index


async def month_entries(
    client: GhostClient,
    store: FileStore,
    base_url: str,
    prefix: str,
    year: int,
    month: int,
    ) -> list[CalendarEntry]:
    """Published and scheduled posts of one month, sorted by publish time."""
    posts = await client.list_articles(filter=month_filter(year, month), limit="all")
    notes = await index_notes(store, prefix)
    base_url = base_url.rstrip("/")

    entries = []
    for post in posts:
        if not post.published_at:
            continue
        entries.append(CalendarEntry(
            id=post.id,
            title=post.title or "(untitled)",
            status=post.status.value,
            published_at=datetime.fromisoformat(post.published_at),
            note_path=notes.get(post.id),
            admin_url=f"{base_url}/ghost/#/editor/post/{post.id}",
        ))
    logger.debug("Calendar %04d-%02d: %d post(s), %d linked", year, month,
                 len(entries), sum(1 for e in entries if e.note_path))
    return sorted(entries, key=lambda e: e.published_at)
