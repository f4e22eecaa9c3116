from __future__ import annotations

from enum import StrEnum, auto
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_CONCURRENCY = 10
DEFAULT_ENCODING = "cl100k_base"
FALLBACK_LABEL = "repository"
MAX_LABEL_LENGTH = 64

# Version-control metadata directories; never descended into.
RESERVED_DIRS: frozenset[str] = frozenset({".git"})

IGNORED_NAMES: frozenset[str] = frozenset({"package-lock.json"})

IGNORED_PREFIXES: tuple[str, ...] = (
    "package-lock",
    "yarn-lock",
    "npm-debug",
    "yarn-debug",
    "yarn-error",
    "tsconfig",
    "jest.config",
)

IGNORED_SUFFIXES: tuple[str, ...] = (
    ".pdf",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".svg",
    ".webp",
    ".woff",
    ".woff2",
    ".eot",
    ".ttf",
    ".otf",
    ".mp4",
    ".avi",
    ".webm",
    ".mov",
    ".mp3",
    ".wav",
    ".flac",
    ".ogg",
)

LANGUAGE_TAGS: dict[str, str] = {
    ".bash": "bash",
    ".c": "c",
    ".cc": "cpp",
    ".cfg": "ini",
    ".cjs": "js",
    ".conf": "ini",
    ".cpp": "cpp",
    ".cs": "cs",
    ".css": "css",
    ".go": "go",
    ".h": "c",
    ".hpp": "cpp",
    ".htm": "html",
    ".html": "html",
    ".ini": "ini",
    ".java": "java",
    ".js": "js",
    ".json": "json",
    ".jsx": "jsx",
    ".kt": "kotlin",
    ".less": "less",
    ".md": "md",
    ".mjs": "js",
    ".php": "php",
    ".py": "py",
    ".rb": "ruby",
    ".rs": "rust",
    ".scss": "scss",
    ".sh": "sh",
    ".sql": "sql",
    ".swift": "swift",
    ".toml": "toml",
    ".ts": "ts",
    ".tsx": "tsx",
    ".txt": "text",
    ".vue": "vue",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".zsh": "zsh",
}

DEFAULT_OUTPUTS: dict[str, str] = {
    "json": "files.json",
    "toon": "files.toon",
    "transcript": "files.txt",
}


def language_tag(name: str) -> str:
    """Short language tag derived from a file name's extension, or "" if unmapped."""
    return LANGUAGE_TAGS.get(PurePosixPath(name).suffix.lower(), "")


class FileKind(StrEnum):
    """Variant of a scraped filesystem entry."""

    FILE = auto()
    DIRECTORY = auto()


class FileNode(BaseModel):
    """One entry of the scraped tree.

    Attributes:
        name: Base name of the entry.
        path: Slash-normalized path relative to the tree root.
        kind: File or directory; serialized under the ``type`` key.
        content: Decoded text, only for files.
        children: Ordered child nodes, only for directories.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Base name of the entry")
    path: str = Field(..., min_length=1, description="Path relative to the tree root, '/'-separated")
    kind: FileKind = Field(..., alias="type", description="Entry variant")
    content: str | None = Field(default=None, description="File text (files only)")
    children: list[FileNode] | None = Field(default=None, description="Child entries (directories only)")

    @model_validator(mode="after")
    def _check_variant(self) -> FileNode:
        if "\\" in self.path:
            msg = f"path must be '/'-separated: {self.path!r}"
            raise ValueError(msg)
        if self.kind is FileKind.FILE and (self.content is None or self.children is not None):
            msg = f"file node {self.path!r} must carry content and no children"
            raise ValueError(msg)
        if self.kind is FileKind.DIRECTORY and (self.children is None or self.content is not None):
            msg = f"directory node {self.path!r} must carry children and no content"
            raise ValueError(msg)
        return self

    @property
    def is_dir(self) -> bool:
        return self.kind is FileKind.DIRECTORY

    def iter_files(self) -> list[FileNode]:
        """Flatten this node into the file nodes it contains, in tree order."""
        if not self.is_dir:
            return [self]
        out: list[FileNode] = []
        for child in self.children or []:
            out.extend(child.iter_files())
        return out


def count_file_nodes(nodes: list[FileNode]) -> int:
    """Number of file-kind nodes anywhere under ``nodes``."""
    return sum(len(node.iter_files()) for node in nodes)
