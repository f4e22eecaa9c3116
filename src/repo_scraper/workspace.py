"""Temporary workspaces holding one cloned repository each."""

from __future__ import annotations

import asyncio
import contextlib
import os
import re
import shutil
import stat
import subprocess  # noqa: S404
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from repo_scraper.config import FALLBACK_LABEL, MAX_LABEL_LENGTH
from repo_scraper.exceptions import CloneError, GitCommandError, InvalidRepositoryIdentifierError
from repo_scraper.logging import logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

_UNSAFE_LABEL_CHARS = re.compile(r"[^a-z0-9._-]")
_DASH_RUNS = re.compile(r"-{2,}")
_SEPARATORS = re.compile(r"[/\\]")


def derive_label(identifier: str) -> str:
    """Derive a filesystem-safe directory label from a repository identifier.

    Keeps the last path segment, strips a trailing ``.git`` suffix from it,
    lowercases it and replaces characters outside ``[a-z0-9._-]``
    with dashes. Dash runs are collapsed, edge dashes trimmed and the result
    truncated to 64 characters.

    Args:
        identifier (str): repository URL or path

    Raises:
        InvalidRepositoryIdentifierError: if no path segment is left to name the repository

    Returns:
        str: the label, or ``FALLBACK_LABEL`` when sanitizing leaves nothing usable
    """
    raw = (identifier or "").strip().rstrip("/\\")
    segment = _SEPARATORS.split(raw)[-1] if raw else ""
    if segment.lower().endswith(".git"):
        segment = segment[: -len(".git")]
    if not segment:
        raise InvalidRepositoryIdentifierError(identifier=identifier)

    label = _UNSAFE_LABEL_CHARS.sub("-", segment.lower())
    label = _DASH_RUNS.sub("-", label).strip("-")[:MAX_LABEL_LENGTH]
    if not label.strip("."):
        return FALLBACK_LABEL
    return label


class Cloner(Protocol):
    """Materializes a repository working tree at ``destination`` or raises ``CloneError``."""

    def clone(self, identifier: str, destination: Path) -> None: ...


class GitCloner:
    """Clone with the ``git`` executable."""

    def __init__(self, *, depth: int | None = 1, git_bin: str = "git") -> None:
        self.depth = depth
        self.git_bin = git_bin

    def command(self, identifier: str, destination: Path) -> list[str]:
        cmd = [self.git_bin, "clone"]
        if self.depth:
            cmd.extend(["--depth", str(self.depth)])
        cmd.extend(["--", identifier, str(destination)])
        return cmd

    def clone(self, identifier: str, destination: Path) -> None:
        """Run ``git clone`` into ``destination``.

        Args:
            identifier (str): repository URL or local path
            destination (Path): directory to create; must not exist yet

        Raises:
            CloneError: if git is missing or the clone fails (bad URL, network, auth)
        """
        cmd = self.command(identifier, destination)
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            subprocess.run(  # noqa: S603
                cmd,
                text=True,
                capture_output=True,
                check=True,
                env=env,
            )
        except FileNotFoundError as e:
            raise CloneError(identifier=identifier, reason=f"`{self.git_bin}` not found in PATH") from e
        except subprocess.CalledProcessError as e:
            err = GitCommandError(
                command=" ".join(cmd),
                returncode=e.returncode,
                stdout=e.stdout or "",
                stderr=e.stderr or "",
            )
            raise CloneError(identifier=identifier, reason=str(err)) from err


def _force_remove(func: Callable[[str], object], path: str, _exc: BaseException) -> None:
    # git marks pack files read-only
    os.chmod(path, stat.S_IWRITE)  # noqa: PTH101
    func(path)


class Workspace:
    """An isolated temporary directory owned by a single scrape operation.

    Attributes:
        root: The unique temporary directory, removed on release.
        path: ``root / label``, where the working tree is materialized.
        label: Filesystem-safe name derived from the repository identifier.
    """

    def __init__(self, root: Path, label: str) -> None:
        self.root = root
        self.label = label
        self.path = root / label
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Remove the workspace recursively. Failures are logged, never raised."""
        if self._released:
            return
        self._released = True
        try:
            shutil.rmtree(self.root, onexc=_force_remove)
        except OSError as e:
            logger.warning("workspace_cleanup_failed", root=str(self.root), error=str(e))
        else:
            logger.info("workspace_removed", root=str(self.root))


def provision(identifier: str, *, temp_dir: Path | None = None) -> Workspace:
    """Create a fresh temporary workspace for ``identifier``.

    The label is derived first, so an invalid identifier never creates a directory.

    Args:
        identifier (str): repository URL or path
        temp_dir (Path | None): parent of the temporary directory; the system temp root by default

    Returns:
        Workspace: the new, still empty workspace
    """
    label = derive_label(identifier)
    root = Path(tempfile.mkdtemp(prefix="repo-scraper-", dir=temp_dir))
    return Workspace(root, label)


@contextlib.asynccontextmanager
async def provisioned_workspace(
    identifier: str,
    cloner: Cloner,
    *,
    temp_dir: Path | None = None,
) -> AsyncIterator[Workspace]:
    """Provision a workspace, clone ``identifier`` into it and release it on exit.

    Release runs on every exit path, including a failed clone and errors
    raised by the ``async with`` body.

    Raises:
        InvalidRepositoryIdentifierError: before anything is created on disk
        CloneError: propagated from ``cloner``
    """
    workspace = provision(identifier, temp_dir=temp_dir)
    try:
        logger.info("clone_started", repo=identifier, destination=str(workspace.path))
        await asyncio.to_thread(cloner.clone, identifier, workspace.path)
        logger.info("clone_finished", repo=identifier)
        yield workspace
    finally:
        await asyncio.to_thread(workspace.release)
