"""Orchestration: clone, walk, encode and count tokens for one repository."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

from repo_scraper.config import DEFAULT_CONCURRENCY, count_file_nodes
from repo_scraper.encoders import ToonEncoder, encode_json, encode_toon
from repo_scraper.ignore import DEFAULT_POLICY, IgnorePolicy
from repo_scraper.logging import logger, scrape_context
from repo_scraper.options import (
    JsonOptions,
    JsonScrapeResult,
    TokenCountOptions,
    ToonOptions,
    ToonScrapeResult,
    TranscriptOptions,
    TranscriptScrapeResult,
)
from repo_scraper.tokens import count_tokens
from repo_scraper.transcript import render_transcript
from repo_scraper.walker import walk_directory
from repo_scraper.workspace import GitCloner, provisioned_workspace

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from repo_scraper.encoders import TabularEncoder
    from repo_scraper.tokens import Tokenizer
    from repo_scraper.workspace import Cloner, Workspace


class RepoScraper:
    """Scrape repositories into JSON, TOON or transcript documents.

    Every call provisions its own temporary workspace, clones into it and
    removes it before returning, whether encoding succeeded or not. Only an
    invalid identifier or a failed clone is raised to the caller.

    Args:
        cloner: materializes the repository; ``git clone`` by default.
        tabular_encoder: TOON encoder by default.
        tokenizer: overrides the tiktoken encoding named in token options.
        policy: exclusion rules shared by all three formats.
        concurrency: cap on concurrent filesystem operations in the structured walk.
        temp_dir: parent directory for workspaces; the system temp root by default.
    """

    def __init__(
        self,
        *,
        cloner: Cloner | None = None,
        tabular_encoder: TabularEncoder | None = None,
        tokenizer: Tokenizer | None = None,
        policy: IgnorePolicy = DEFAULT_POLICY,
        concurrency: int = DEFAULT_CONCURRENCY,
        temp_dir: Path | None = None,
    ) -> None:
        self.cloner = cloner or GitCloner()
        self.tabular_encoder = tabular_encoder or ToonEncoder()
        self.tokenizer = tokenizer
        self.policy = policy
        self.concurrency = concurrency
        self.temp_dir = temp_dir

    @contextlib.asynccontextmanager
    async def _workspace(self, identifier: str, output_format: str) -> AsyncIterator[Workspace]:
        with scrape_context(identifier, output_format):
            async with provisioned_workspace(identifier, self.cloner, temp_dir=self.temp_dir) as workspace:
                yield workspace

    async def _count(self, text: str, options: TokenCountOptions | None) -> int:
        tokens = await asyncio.to_thread(count_tokens, text, options, tokenizer=self.tokenizer)
        logger.info("tokens_counted", tokens=tokens, chars=len(text))
        return tokens

    async def to_json(
        self,
        identifier: str,
        options: JsonOptions | None = None,
        token_options: TokenCountOptions | None = None,
    ) -> JsonScrapeResult:
        async with self._workspace(identifier, "json") as workspace:
            files = await walk_directory(workspace.path, workspace.path, self.policy, concurrency=self.concurrency)
            serialized = encode_json(files, options)
            token_count = await self._count(serialized, token_options)
        return JsonScrapeResult(
            files=files,
            serialized=serialized,
            token_count=token_count,
            file_count=count_file_nodes(files),
        )

    async def to_toon(
        self,
        identifier: str,
        options: ToonOptions | None = None,
        token_options: TokenCountOptions | None = None,
    ) -> ToonScrapeResult:
        async with self._workspace(identifier, "toon") as workspace:
            files = await walk_directory(workspace.path, workspace.path, self.policy, concurrency=self.concurrency)
            serialized = encode_toon(files, options, encoder=self.tabular_encoder)
            token_count = await self._count(serialized, token_options)
        return ToonScrapeResult(serialized=serialized, token_count=token_count)

    async def to_transcript(
        self,
        identifier: str,
        options: TranscriptOptions | None = None,
        token_options: TokenCountOptions | None = None,
    ) -> TranscriptScrapeResult:
        async with self._workspace(identifier, "transcript") as workspace:
            serialized = await asyncio.to_thread(
                render_transcript,
                workspace.path,
                workspace.path,
                self.policy,
                options,
            )
            token_count = await self._count(serialized, token_options)
        return TranscriptScrapeResult(serialized=serialized, token_count=token_count)


async def scrape_to_json(
    identifier: str,
    options: JsonOptions | None = None,
    token_options: TokenCountOptions | None = None,
) -> JsonScrapeResult:
    """Clone ``identifier`` and export it as JSON with the default collaborators."""
    return await RepoScraper().to_json(identifier, options, token_options)


async def scrape_to_toon(
    identifier: str,
    options: ToonOptions | None = None,
    token_options: TokenCountOptions | None = None,
) -> ToonScrapeResult:
    """Clone ``identifier`` and export it as TOON with the default collaborators."""
    return await RepoScraper().to_toon(identifier, options, token_options)


async def scrape_to_transcript(
    identifier: str,
    options: TranscriptOptions | None = None,
    token_options: TokenCountOptions | None = None,
) -> TranscriptScrapeResult:
    """Clone ``identifier`` and export it as a transcript with the default collaborators."""
    return await RepoScraper().to_transcript(identifier, options, token_options)
