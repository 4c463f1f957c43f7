"""Unit tests for sync/notes.py and sync/calendar.py"""

from datetime import datetime, timezone

import pytest

from ghostpub.core.frontmatter import read_header
from ghostpub.core.models import RemoteArticle
from ghostpub.sync.calendar import index_notes, month_entries
from ghostpub.sync.notes import add_properties, create_post_note, new_post_filename


WHEN = datetime(2024, 3, 5, 10, 20, 30, 123000, tzinfo=timezone.utc)


def test_new_post_filename_is_filesystem_safe():
    """The timestamp in the file name has no ':' or '.' apart from the extension."""
    assert new_post_filename(WHEN) == "ghost-post-2024-03-05T10-20-30-123Z.md"


@pytest.mark.asyncio
async def test_create_post_note(store, settings):
    """A new note lands in the sync folder with default properties and the title."""
    path = await create_post_note(store, settings, "Hello There", WHEN)
    assert path == "Ghost Posts/ghost-post-2024-03-05T10-20-30-123Z.md"
    assert "Ghost Posts" in store.folders
    header = read_header(store.files[path])
    assert header["ghost_published"] is False
    assert "# Hello There" in store.files[path]


@pytest.mark.asyncio
async def test_create_post_note_refuses_to_overwrite(store, settings):
    """An existing file with the generated name is not replaced."""
    await create_post_note(store, settings, None, WHEN)
    with pytest.raises(FileExistsError):
        await create_post_note(store, settings, None, WHEN)


@pytest.mark.asyncio
async def test_add_properties_moves_note_into_sync_folder(store, settings):
    """Properties are added and a note outside the folder is moved in."""
    store.files["Drafts/idea.md"] = "# Idea\n"
    result = await add_properties(store, settings, "Drafts/idea.md")
    assert result.changed is True
    assert result.completed is False
    assert result.path == "Ghost Posts/idea.md"
    assert "Drafts/idea.md" not in store.files
    assert read_header(store.files[result.path])["ghost_post_access"] == "paid"


@pytest.mark.asyncio
async def test_add_properties_in_folder_stays(store, settings):
    """A note already in the sync folder is edited in place and reported as completed."""
    store.files["Ghost Posts/idea.md"] = "---\nghost_published: true\n---\n# Idea\n"
    result = await add_properties(store, settings, "Ghost Posts/idea.md")
    assert result.changed is True
    assert result.completed is True
    assert result.path == "Ghost Posts/idea.md"
    assert read_header(store.files[result.path])["ghost_published"] is True


@pytest.mark.asyncio
async def test_add_properties_old_prefix_is_not_completed(store, settings):
    """Keys under another prefix do not count as existing Ghost properties; they are replaced."""
    store.files["Drafts/idea.md"] = "---\ng_published: true\n---\n# Idea\n"
    result = await add_properties(store, settings, "Drafts/idea.md")
    assert result.completed is False
    header = read_header(store.files[result.path])
    assert "g_published" not in header
    assert header["ghost_published"] is False


@pytest.mark.asyncio
async def test_add_properties_complete_note_untouched(store, settings):
    """A note with every property is neither rewritten nor moved."""
    store.files["Drafts/idea.md"] = "# Idea\n"
    first = await add_properties(store, settings, "Drafts/idea.md")
    store.writes.clear()

    again = await add_properties(store, settings, first.path)
    assert again.changed is False
    assert again.completed is True
    assert again.path == first.path
    assert store.writes == []


class CalendarGhost:
    def __init__(self, posts):
        self.posts = posts
        self.filters = []

    async def list_articles(self, filter=None, limit=None):
        self.filters.append((filter, limit))
        return self.posts


@pytest.mark.asyncio
async def test_index_notes_maps_ids_to_paths(store):
    """Only notes whose header carries a string id are indexed."""
    store.files["Ghost Posts/a.md"] = "---\nghost_id: p1\n---\n"
    store.files["Other/b.md"] = "---\nghost_id: p2\n---\n"
    store.files["Other/c.md"] = "---\nghost_id: 12\n---\n"
    store.files["Other/d.txt"] = "---\nghost_id: p4\n---\n"
    assert await index_notes(store, "ghost_") == {"p1": "Ghost Posts/a.md", "p2": "Other/b.md"}


@pytest.mark.asyncio
async def test_month_entries_sorted_and_linked(store):
    """Entries are sorted by publish time and linked to notes by id."""
    store.files["Ghost Posts/a.md"] = "---\nghost_id: p2\n---\n"
    ghost = CalendarGhost([
        RemoteArticle(id="p1", title="", status="scheduled", published_at="2024-03-20T09:00:00.000Z"),
        RemoteArticle(id="p2", title="Second", status="published", published_at="2024-03-02T09:00:00.000Z"),
        RemoteArticle(id="p3", title="No date", status="published"),
    ])

    entries = await month_entries(ghost, store, "https://blog.example.com/", "ghost_", 2024, 3)

    assert [e.id for e in entries] == ["p2", "p1"]
    assert entries[0].note_path == "Ghost Posts/a.md"
    assert entries[1].note_path is None
    assert entries[1].title == "(untitled)"
    assert entries[1].admin_url == "https://blog.example.com/ghost/#/editor/post/p1"
    assert ghost.filters[0][1] == "all"
    assert "2024-03-31T23:59:59.000Z" in ghost.filters[0][0]
