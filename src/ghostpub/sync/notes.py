"""Note-level actions: new post notes and adding Ghost properties to existing notes"""

import logging
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import NamedTuple, Optional

from ghostpub.config import Settings
from ghostpub.core.frontmatter import ensure_properties, has_ghost_properties, new_post_template
from ghostpub.sync.store import FileStore, in_folder


logger = logging.getLogger(__name__)


def new_post_filename(now: Optional[datetime] = None) -> str:
    """ghost-post-<UTC timestamp>.md with ':' and '.' replaced so the name is filesystem-safe."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"ghost-post-{stamp.replace(':', '-').replace('.', '-')}.md"


async def create_post_note(
    store: FileStore,
    settings: Settings,
    title: Optional[str] = None,
    now: Optional[datetime] = None,
    ) -> str:
    """Create a note in the sync folder with the default Ghost properties. Returns its path."""
    folder = settings.sync_folder.strip().strip("/")
    if folder and not await store.exists(folder):
        await store.create_folder(folder)
    path = str(PurePosixPath(folder) / new_post_filename(now)) if folder else new_post_filename(now)
    if await store.exists(path):
        raise FileExistsError(path)
    await store.write(path, new_post_template(settings.yaml_prefix, title))
    logger.info("Created new post note %s", path)
    return path


class AddedProperties(NamedTuple):
    changed: bool       # the note was rewritten
    path: str           # the note's location afterwards
    completed: bool     # it already had Ghost properties; only missing ones were added


async def add_properties(store: FileStore, settings: Settings, path: str) -> AddedProperties:
    """Add missing Ghost properties to a note and move it into the sync folder.

    A note that already carries every property is left where it is.
    """
    content = await store.read(path)
    completed = has_ghost_properties(content, settings.yaml_prefix)
    updated = ensure_properties(content, settings.yaml_prefix)
    if updated == content:
        return AddedProperties(False, path, completed)

    await store.write(path, updated)
    logger.info("%s Ghost properties in %s", "Completed" if completed else "Added", path)

    if in_folder(path, settings.sync_folder):
        return AddedProperties(True, path, completed)

    folder = settings.sync_folder.strip().strip("/")
    if not await store.exists(folder):
        await store.create_folder(folder)
    new_path = str(PurePosixPath(folder) / PurePosixPath(path).name)
    if await store.exists(new_path):
        raise FileExistsError(new_path)
    await store.move(path, new_path)
    logger.info("Moved %s to %s", path, new_path)
    return AddedProperties(True, new_path, completed)
