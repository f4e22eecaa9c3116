"""Exclusion rules shared by every walker and encoder."""

from __future__ import annotations

import fnmatch
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from repo_scraper.config import IGNORED_NAMES, IGNORED_PREFIXES, IGNORED_SUFFIXES, RESERVED_DIRS

if TYPE_CHECKING:
    from collections.abc import Sequence


def normalize_globs(globs: Sequence[str]) -> list[str]:
    """Normalize a sequence of glob patterns.

    Strips whitespace, drops empty entries and replaces backslashes with
    forward slashes.

    Args:
        globs (Sequence[str]): the glob patterns to normalize

    Returns:
        list[str]: the normalized glob patterns
    """
    out: list[str] = []
    for g in globs:
        g2 = (g or "").strip()
        if not g2:
            continue
        out.append(g2.replace("\\", "/"))
    return out


def is_ignored_name(name: str) -> bool:
    """Check a base name against the fixed lockfile, config and media rules.

    Matching is case-insensitive: exact names, name prefixes and suffixes.

    Args:
        name (str): file or directory base name

    Returns:
        bool: True if the entry must be left out of every output
    """
    low = name.lower()
    return low in IGNORED_NAMES or low.startswith(IGNORED_PREFIXES) or low.endswith(IGNORED_SUFFIXES)


def is_reserved_path(rel: str) -> bool:
    """Check whether any segment of a relative path is a version-control metadata dir."""
    return any(part in RESERVED_DIRS for part in rel.replace("\\", "/").split("/"))


class IgnorePolicy(BaseModel):
    """Pure predicate set deciding whether an entry is excluded from the walk.

    The fixed name, prefix, suffix and reserved-directory rules always apply.
    ``extra_patterns`` adds user globs matched against both the relative path
    and the base name.
    """

    model_config = ConfigDict(frozen=True)

    extra_patterns: tuple[str, ...] = Field(default=(), description="Additional exclude globs")

    @field_validator("extra_patterns", mode="before")
    @classmethod
    def _normalize(cls, value: Sequence[str] | None) -> tuple[str, ...]:
        return tuple(normalize_globs(value or ()))

    def ignores_name(self, name: str) -> bool:
        return is_ignored_name(name)

    def ignores_path(self, rel: str) -> bool:
        if is_reserved_path(rel):
            return True
        return any(fnmatch.fnmatch(rel, pat) for pat in self.extra_patterns)

    def should_skip(self, rel: str, name: str) -> bool:
        """Return True when the entry at ``rel`` (base name ``name``) is excluded."""
        if self.ignores_path(rel) or self.ignores_name(name):
            return True
        return any(fnmatch.fnmatch(name, pat) for pat in self.extra_patterns)


DEFAULT_POLICY = IgnorePolicy()
