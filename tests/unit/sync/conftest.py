"""Shared fixtures for sync unit tests: in-memory vault, fake Ghost client, in-memory ledger"""

from pathlib import PurePosixPath

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel

from ghostpub.config import Settings
from ghostpub.core.models import RemoteArticle
from ghostpub.exceptions import BackendError
from ghostpub.sync.engine import SyncEngine
from ghostpub.sync.ledger import SyncLedger


class MemoryStore:
    """FileStore over a dict of path -> text."""

    def __init__(self, files=None):
        self.files: dict[str, str] = dict(files or {})
        self.folders: set[str] = set()
        self.writes: list[str] = []

    async def read(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    async def write(self, path, text):
        self.files[path] = text
        self.writes.append(path)

    async def exists(self, path):
        path = path.strip("/")
        if path in self.files or path in self.folders:
            return True
        return any(PurePosixPath(path) in PurePosixPath(p).parents for p in self.files)

    async def list_files(self, folder):
        folder = folder.strip("/")
        if not folder:
            return sorted(self.files)
        return sorted(p for p in self.files if PurePosixPath(folder) in PurePosixPath(p).parents)

    async def create_folder(self, path):
        self.folders.add(path.strip("/"))

    async def move(self, path, new_path):
        self.files[new_path] = self.files.pop(path)


class FakeGhost:
    """Stands in for GhostClient: records calls and stores posts by id."""

    def __init__(self):
        self.posts: dict[str, dict] = {}
        self.calls: list[tuple[str, ...]] = []
        self.fail_on: set[str] = set()     # titles that make create/update fail
        self._next = 0

    def _article(self, post_id, payload):
        return RemoteArticle(id=post_id, slug=payload.get("slug", post_id), title=payload["title"],
                             status=payload["status"], visibility=payload["visibility"])

    async def create_article(self, payload):
        self.calls.append(("create", payload["title"]))
        if payload["title"] in self.fail_on:
            raise BackendError("create post", 500, "boom")
        self._next += 1
        post_id = f"post{self._next}"
        self.posts[post_id] = payload
        return self._article(post_id, payload)

    async def update_article(self, post_id, payload):
        self.calls.append(("update", post_id))
        if payload["title"] in self.fail_on:
            raise BackendError("update post", 500, "boom")
        if post_id not in self.posts:
            raise BackendError("fetch post", 404, "not found")
        self.posts[post_id] = payload
        return self._article(post_id, payload)

    async def list_articles(self, filter=None, limit=None):
        self.calls.append(("list", filter))
        return [
            RemoteArticle(id=pid, title=p["title"], status=p["status"], published_at=p.get("published_at"))
            for pid, p in self.posts.items()
        ]


@pytest.fixture(name="settings")
def settings_fixture():
    """Fast timings so write-backs land within a test."""
    return Settings(
        ghost_url="https://blog.example.com",
        sync_folder="Ghost Posts",
        debounce_seconds=0.01,
        stamp_delay_seconds=0.05,
        header_retry_seconds=0,
    )


@pytest.fixture(name="store")
def store_fixture():
    return MemoryStore()


@pytest.fixture(name="ghost")
def ghost_fixture():
    return FakeGhost()


@pytest.fixture(name="ledger")
def ledger_fixture():
    """Ledger on an in-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield SyncLedger(engine)
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="engine")
def engine_fixture(settings, ghost, store, ledger):
    return SyncEngine(settings, ghost, store, ledger=ledger)


@pytest.fixture(name="events")
def events_fixture(engine):
    """Collect every status event the engine publishes."""
    seen = []
    engine.add_listener(seen.append)
    return seen


@pytest.fixture(name="note")
def note_fixture():
    """Build note text with ghost_ properties from keyword args."""
    def make(body="# Hello\n\nWorld.\n", **props):
        lines = "".join(f"ghost_{k}: {v}\n" for k, v in props.items())
        return f"---\n{lines}---\n{body}"
    return make
