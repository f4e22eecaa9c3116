"""Structured (JSON) and tabular (TOON) encoders for scraped trees."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Protocol

import toon_format
from pydantic import TypeAdapter

from repo_scraper.config import FileNode
from repo_scraper.options import JsonOptions, ToonOptions

if TYPE_CHECKING:
    from collections.abc import Sequence

_NODE_LIST = TypeAdapter(list[FileNode])


def node_records(files: Sequence[FileNode]) -> list[dict[str, Any]]:
    """Plain records for ``files``: ``name``, ``path``, ``type`` and ``content`` or ``children``."""
    return [node.model_dump(mode="json", by_alias=True, exclude_none=True) for node in files]


def encode_json(files: Sequence[FileNode], options: JsonOptions | None = None) -> str:
    """Serialize a tree as a JSON array of nested records.

    Args:
        files (Sequence[FileNode]): root children of the tree
        options (JsonOptions | None): indentation width; 0 yields compact output

    Returns:
        str: the JSON document, without trailing newline
    """
    opts = options or JsonOptions()
    return json.dumps(node_records(files), indent=opts.indent or None, ensure_ascii=False)


def decode_json(text: str) -> list[FileNode]:
    """Parse the output of ``encode_json`` back into nodes."""
    return _NODE_LIST.validate_json(text)


class TabularEncoder(Protocol):
    """Pure transform from a ``{"files": [...]}`` tree to compact text."""

    def encode(self, tree: dict[str, Any], options: dict[str, Any]) -> str: ...


class ToonEncoder:
    """TOON notation via the ``toon_format`` package; ``options`` are its keyword arguments."""

    def encode(self, tree: dict[str, Any], options: dict[str, Any]) -> str:
        return toon_format.encode(tree, **options)


def encode_toon(
    files: Sequence[FileNode],
    options: ToonOptions | None = None,
    *,
    encoder: TabularEncoder | None = None,
) -> str:
    """Serialize a tree wrapped as ``{"files": [...]}`` with a tabular encoder.

    Args:
        files (Sequence[FileNode]): root children of the tree
        options (ToonOptions | None): indentation and delimiter
        encoder (TabularEncoder | None): encoder to use; TOON by default

    Returns:
        str: the encoded document
    """
    opts = options or ToonOptions()
    return (encoder or ToonEncoder()).encode({"files": node_records(files)}, opts.as_encoder_options())
