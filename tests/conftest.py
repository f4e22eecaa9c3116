from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

import pytest

from repo_scraper.exceptions import CloneError


class CopyCloner:
    """Materializes a prepared directory instead of running git."""

    def __init__(self, source: Path) -> None:
        self.source = source
        self.calls: list[tuple[str, Path]] = []

    def clone(self, identifier: str, destination: Path) -> None:
        self.calls.append((identifier, destination))
        shutil.copytree(self.source, destination)


class FailingCloner:
    def __init__(self) -> None:
        self.destinations: list[Path] = []

    def clone(self, identifier: str, destination: Path) -> None:
        self.destinations.append(destination)
        destination.mkdir(parents=True)
        (destination / "partial").write_text("x", encoding="utf-8")
        raise CloneError(identifier=identifier, reason="network unreachable")


class CharTokenizer:
    """One token per character."""

    def encode(self, text: str) -> list[int]:
        return [ord(c) for c in text]


class JsonTabularEncoder:
    """Deterministic stand-in for the TOON encoder."""

    def __init__(self) -> None:
        self.calls: list[tuple[dict[str, Any], dict[str, Any]]] = []

    def encode(self, tree: dict[str, Any], options: dict[str, Any]) -> str:
        self.calls.append((tree, options))
        return json.dumps(tree, sort_keys=True, separators=(",", ":"))


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def sample_repo(tmp_path: Path) -> Path:
    """A small working tree with a .git directory and an ignored lockfile."""
    repo = tmp_path / "sample"
    write(repo / "README.md", "hello\n")
    write(repo / "src" / "main.ts", "x")
    write(repo / "src" / "util" / "strings.ts", "export const a = 1;\n")
    write(repo / "node_modules" / "pkg" / "index.js", "module.exports = 1;\n")
    write(repo / "package-lock.json", "{}\n")
    write(repo / "assets" / "logo.png", "not really a png")
    write(repo / ".git" / "HEAD", "ref: refs/heads/main\n")
    write(repo / ".git" / "config", "[core]\n")
    return repo


@pytest.fixture
def git_only_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "bare"
    write(repo / ".git" / "HEAD", "ref: refs/heads/main\n")
    write(repo / ".git" / "objects" / "ab" / "cdef", "blob")
    return repo


@pytest.fixture
def workspaces(tmp_path: Path) -> Path:
    """Parent directory for scraper workspaces, to check they are removed."""
    path = tmp_path / "workspaces"
    path.mkdir()
    return path


@pytest.fixture
def write_file():  # noqa: ANN201
    return write


@pytest.fixture
def char_tokenizer() -> CharTokenizer:
    return CharTokenizer()


@pytest.fixture
def tabular_encoder() -> JsonTabularEncoder:
    return JsonTabularEncoder()


@pytest.fixture
def copy_cloner():  # noqa: ANN201
    """Factory building a cloner that copies the given directory."""
    return CopyCloner


@pytest.fixture
def failing_cloner() -> FailingCloner:
    return FailingCloner()
