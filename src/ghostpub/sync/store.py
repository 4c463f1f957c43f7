"""File store and metadata cache interfaces, with local-directory implementations"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any, Optional, Protocol, runtime_checkable

import aiofiles

from ghostpub.core.frontmatter import read_header


@runtime_checkable
class FileStore(Protocol):
    """Note storage addressed by vault-relative POSIX paths."""

    async def read(self, path: str) -> str:
        ...

    async def write(self, path: str, text: str) -> None:
        ...

    async def exists(self, path: str) -> bool:
        ...

    async def list_files(self, folder: str) -> list[str]:
        """All file paths under folder, recursively, sorted."""
        ...

    async def create_folder(self, path: str) -> None:
        ...

    async def move(self, path: str, new_path: str) -> None:
        ...


@runtime_checkable
class MetadataCache(Protocol):
    """Parsed header lookup. May lag behind a write for a moment."""

    async def get_header(self, path: str) -> Optional[dict[str, Any]]:
        ...


class LocalFileStore:
    """FileStore over a directory on disk. Paths may not escape the root."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        full = (self.root / path).resolve()
        if full != self.root and self.root not in full.parents:
            raise ValueError(f"Path escapes the vault: {path}")
        return full

    def _relative(self, full: Path) -> str:
        return full.relative_to(self.root).as_posix()

    async def read(self, path: str) -> str:
        async with aiofiles.open(self._resolve(path), "r", encoding="utf-8", newline="") as f:
            return await f.read()

    async def write(self, path: str, text: str) -> None:
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(full, "w", encoding="utf-8", newline="") as f:
            await f.write(text)

    async def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    async def list_files(self, folder: str) -> list[str]:
        base = self._resolve(folder)
        if not base.is_dir():
            return []
        return sorted(self._relative(p) for p in base.rglob("*") if p.is_file())

    async def create_folder(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    async def move(self, path: str, new_path: str) -> None:
        target = self._resolve(new_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        self._resolve(path).rename(target)

    async def modified_times(self, folder: str) -> dict[str, float]:
        """mtime per file under folder; used for change polling."""
        base = self._resolve(folder)
        if not base.is_dir():
            return {}
        return {self._relative(p): p.stat().st_mtime for p in base.rglob("*") if p.is_file()}


class HeaderCache:
    """MetadataCache that parses the header straight from the store on each lookup."""

    def __init__(self, store: FileStore) -> None:
        self._store = store

    async def get_header(self, path: str) -> Optional[dict[str, Any]]:
        if not await self._store.exists(path):
            return None
        return read_header(await self._store.read(path))


def is_markdown(path: str) -> bool:
    return PurePosixPath(path).suffix == ".md"


def in_folder(path: str, folder: str) -> bool:
    """True if path lies under folder ('' or '.' means the whole vault)."""
    folder = folder.strip().strip("/")
    if folder in ("", "."):
        return True
    return PurePosixPath(folder) in PurePosixPath(path).parents
