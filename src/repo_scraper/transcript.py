"""Plain-text transcript with ``[DIR_START]``/``[FILE_START]`` markers."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

from repo_scraper.config import language_tag
from repo_scraper.exceptions import EntryReadError
from repo_scraper.ignore import DEFAULT_POLICY, IgnorePolicy
from repo_scraper.logging import logger
from repo_scraper.options import TranscriptOptions
from repo_scraper.walker import Entry, is_excluded, list_entries, read_text, relpath

if TYPE_CHECKING:
    from pathlib import Path


def meta_line(name: str, size: int) -> str:
    """Build the ``meta:`` line for a file; ``lang=`` is omitted for unmapped extensions."""
    tag = language_tag(name)
    if tag:
        return f"meta: lang={tag} size={size}\n"
    return f"meta: size={size}\n"


def ensure_trailing_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


def _render_entries(
    out: io.StringIO,
    entries: list[Entry],
    base: Path,
    policy: IgnorePolicy,
    options: TranscriptOptions,
) -> None:
    kept = [(e, relpath(e.path, base)) for e in entries]
    kept = [(e, rel) for e, rel in kept if not is_excluded(e, rel, policy)]
    for entry, rel in kept:
        if not (entry.is_dir or entry.is_file):
            logger.debug("entry_skipped", path=rel, reason="not a regular file or directory")
    dirs = sorted((item for item in kept if item[0].is_dir), key=lambda item: item[0].name)
    files = sorted((item for item in kept if item[0].is_file), key=lambda item: item[0].name)

    for entry, rel in dirs:
        try:
            children = list_entries(entry.path, base)
        except EntryReadError as e:
            logger.warning("entry_unreadable", path=e.path, error=e.reason)
            continue
        out.write(f"[DIR_START] {rel}\n")
        _render_entries(out, children, base, policy, options)
        out.write(f"[DIR_END] {rel}\n\n")

    for entry, rel in files:
        try:
            text, size = read_text(entry.path, base)
        except EntryReadError as e:
            logger.warning("entry_unreadable", path=e.path, error=e.reason)
            continue
        out.write(f"[FILE_START] {rel}\n")
        if options.include_meta:
            out.write(meta_line(entry.name, size))
        out.write(ensure_trailing_newline(text))
        out.write(f"[FILE_END] {rel}\n\n")


def render_transcript(
    directory: Path,
    base: Path | None = None,
    policy: IgnorePolicy = DEFAULT_POLICY,
    options: TranscriptOptions | None = None,
) -> str:
    """Render the tree under ``directory`` as a transcript.

    At each level, subdirectories come first, then files, each group sorted
    by name, so the output does not depend on the filesystem listing order.
    Unreadable entries are skipped with a warning.

    Args:
        directory (Path): directory to render
        base (Path | None): root that display paths are relative to; ``directory`` by default
        policy (IgnorePolicy): exclusion rules
        options (TranscriptOptions | None): transcript options

    Returns:
        str: the transcript text
    """
    base = base or directory
    opts = options or TranscriptOptions()
    out = io.StringIO()
    try:
        entries = list_entries(directory, base)
    except EntryReadError as e:
        logger.warning("entry_unreadable", path=e.path, error=e.reason)
        return ""
    _render_entries(out, entries, base, policy, opts)
    return out.getvalue()
