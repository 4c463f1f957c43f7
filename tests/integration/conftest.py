"""Shared fixtures for integration tests: a fake Ghost Admin API behind httpx.MockTransport"""

import json
import re

import httpx
import pytest


API_KEY = "6489aa1b2c3d4e5f60718293:" + "ab" * 32
BASE_URL = "https://blog.example.com"

_POST_RE = re.compile(r"^/ghost/api/admin/posts/([^/]+)/$")


class FakeGhostServer:
    """Keeps posts in memory and answers the Admin API calls the client makes."""

    def __init__(self):
        self.posts: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self._next = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not request.headers.get("Authorization", "").startswith("Ghost "):
            return httpx.Response(401, text="missing token")
        path = request.url.path

        if path == "/ghost/api/admin/site/":
            return httpx.Response(200, json={"site": {"title": "Test"}})
        if path == "/ghost/api/admin/posts/" and request.method == "POST":
            self._next += 1
            post = {**json.loads(request.content)["posts"][0], "id": f"post{self._next}",
                    "updated_at": "2024-01-01T00:00:00.000Z"}
            post.setdefault("slug", post["id"])
            self.posts[post["id"]] = post
            return httpx.Response(201, json={"posts": [post]})
        if path == "/ghost/api/admin/posts/" and request.method == "GET":
            return httpx.Response(200, json={"posts": list(self.posts.values())})

        m = _POST_RE.match(path)
        if m and m.group(1) in self.posts:
            post_id = m.group(1)
            if request.method == "GET":
                return httpx.Response(200, json={"posts": [self.posts[post_id]]})
            if request.method == "PUT":
                self.posts[post_id].update(json.loads(request.content)["posts"][0])
                return httpx.Response(200, json={"posts": [self.posts[post_id]]})
        return httpx.Response(404, text="not found")

    def calls(self, method: str) -> int:
        return sum(1 for r in self.requests if r.method == method and "/posts/" in r.url.path)


@pytest.fixture(name="ghost_server")
def ghost_server_fixture():
    return FakeGhostServer()


@pytest.fixture(name="vault")
def vault_fixture(tmp_path, monkeypatch):
    """Empty vault in tmp_path, used as cwd, with fast timings and a ledger file."""
    vault = tmp_path / "vault"
    (vault / "Ghost Posts").mkdir(parents=True)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GHOST_ADMIN_API_KEY", API_KEY)
    monkeypatch.setenv("GHOSTPUB_GHOST_URL", BASE_URL)
    monkeypatch.setenv("GHOSTPUB_VAULT_DIR", str(vault))
    monkeypatch.setenv("GHOSTPUB_DB_URL", f"sqlite:///{tmp_path}/test.db")
    monkeypatch.setenv("GHOSTPUB_DEBOUNCE_SECONDS", "0.01")
    monkeypatch.setenv("GHOSTPUB_STAMP_DELAY_SECONDS", "0.05")
    monkeypatch.setenv("GHOSTPUB_HEADER_RETRY_SECONDS", "0")
    return vault
