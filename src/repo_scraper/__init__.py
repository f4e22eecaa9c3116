"""repo_scraper: export a git repository as JSON, TOON or a plain-text transcript."""

from __future__ import annotations

__version__ = "0.3.0"

from repo_scraper.config import FileKind, FileNode
from repo_scraper.options import (
    JsonOptions,
    JsonScrapeResult,
    TokenCountOptions,
    ToonOptions,
    ToonScrapeResult,
    TranscriptOptions,
    TranscriptScrapeResult,
)
from repo_scraper.scraper import RepoScraper, scrape_to_json, scrape_to_toon, scrape_to_transcript
from repo_scraper.tokens import count_tokens

__all__ = [
    "FileKind",
    "FileNode",
    "JsonOptions",
    "JsonScrapeResult",
    "RepoScraper",
    "TokenCountOptions",
    "ToonOptions",
    "ToonScrapeResult",
    "TranscriptOptions",
    "TranscriptScrapeResult",
    "__version__",
    "count_tokens",
    "scrape_to_json",
    "scrape_to_toon",
    "scrape_to_transcript",
]
