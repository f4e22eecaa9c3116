"""Concurrent walk of a workspace into a tree of ``FileNode``."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from repo_scraper.config import DEFAULT_CONCURRENCY, RESERVED_DIRS, FileKind, FileNode
from repo_scraper.exceptions import EntryReadError
from repo_scraper.ignore import DEFAULT_POLICY, IgnorePolicy
from repo_scraper.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


@dataclass(frozen=True)
class Entry:
    """One directory listing entry, classified without following symlinks."""

    name: str
    path: Path
    is_dir: bool
    is_file: bool


def relpath(path: Path, root: Path) -> str:
    """Return the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path).replace("\\", "/")


def list_entries(directory: Path, base: Path) -> list[Entry]:
    """List the immediate entries of ``directory`` in the order the OS returns them.

    Args:
        directory (Path): the directory to list
        base (Path): tree root, used for error reporting

    Raises:
        EntryReadError: if the directory cannot be listed

    Returns:
        list[Entry]: the entries, unfiltered
    """
    try:
        with os.scandir(directory) as it:
            return [
                Entry(
                    name=e.name,
                    path=Path(e.path),
                    is_dir=e.is_dir(follow_symlinks=False),
                    is_file=e.is_file(follow_symlinks=False),
                )
                for e in it
            ]
    except OSError as e:
        raise EntryReadError(path=relpath(directory, base), reason=str(e)) from e


def read_text(path: Path, base: Path) -> tuple[str, int]:
    """Read a file as UTF-8 text.

    Undecodable bytes are replaced rather than rejected.

    Args:
        path (Path): file to read
        base (Path): tree root, used for error reporting

    Raises:
        EntryReadError: if the file cannot be read

    Returns:
        tuple[str, int]: decoded text and size in bytes
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise EntryReadError(path=relpath(path, base), reason=str(e)) from e
    return raw.decode("utf-8", errors="replace"), len(raw)


def is_excluded(entry: Entry, rel: str, policy: IgnorePolicy) -> bool:
    return entry.name in RESERVED_DIRS or policy.should_skip(rel, entry.name)


class TreeWalker:
    """Builds ``FileNode`` trees with a bounded number of in-flight filesystem calls.

    Within one directory, ``concurrency`` workers pull indices from a shared
    cursor and store each result in the slot of its listing position, so the
    emitted order is the listing order whatever order the reads complete in.
    """

    def __init__(
        self,
        base: Path,
        policy: IgnorePolicy = DEFAULT_POLICY,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.base = base
        self.policy = policy
        self.concurrency = max(1, concurrency)
        self._io = asyncio.Semaphore(self.concurrency)

    async def _io_call(self, func: Callable[..., T], *args: Any) -> T:  # noqa: ANN401
        async with self._io:
            return await asyncio.to_thread(func, *args)

    async def walk(self, directory: Path) -> list[FileNode]:
        entries = await self._io_call(list_entries, directory, self.base)
        slots: list[FileNode | None] = [None] * len(entries)
        cursor = iter(range(len(entries)))

        async def worker() -> None:
            for index in cursor:
                slots[index] = await self.visit(entries[index])

        await asyncio.gather(*(worker() for _ in range(min(self.concurrency, len(entries)))))
        return [node for node in slots if node is not None]

    async def visit(self, entry: Entry) -> FileNode | None:
        rel = relpath(entry.path, self.base)
        if is_excluded(entry, rel, self.policy):
            return None
        try:
            if entry.is_dir:
                children = await self.walk(entry.path)
                return FileNode(name=entry.name, path=rel, kind=FileKind.DIRECTORY, children=children)
            if entry.is_file:
                text, _size = await self._io_call(read_text, entry.path, self.base)
                return FileNode(name=entry.name, path=rel, kind=FileKind.FILE, content=text)
        except EntryReadError as e:
            logger.warning("entry_unreadable", path=e.path, error=e.reason)
            return None
        logger.debug("entry_skipped", path=rel, reason="not a regular file or directory")
        return None


async def walk_directory(
    directory: Path,
    base: Path | None = None,
    policy: IgnorePolicy = DEFAULT_POLICY,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[FileNode]:
    """Walk ``directory`` into the filtered children of the tree root.

    The root itself is not materialized as a node. An unlistable root yields
    an empty tree and a warning.

    Args:
        directory (Path): directory to walk
        base (Path | None): root that node paths are relative to; ``directory`` by default
        policy (IgnorePolicy): exclusion rules
        concurrency (int): cap on concurrent filesystem operations

    Returns:
        list[FileNode]: root children in directory listing order
    """
    walker = TreeWalker(base or directory, policy, concurrency=concurrency)
    try:
        return await walker.walk(directory)
    except EntryReadError as e:
        logger.warning("entry_unreadable", path=e.path, error=e.reason)
        return []
