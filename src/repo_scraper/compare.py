"""Side-by-side comparison of the three output formats for one repository."""

from __future__ import annotations

import io
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from repo_scraper.exceptions import RepoScraperError
from repo_scraper.logging import logger
from repo_scraper.options import JsonScrapeResult, TokenCountOptions, TranscriptOptions

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_scraper.scraper import RepoScraper

FORMAT_LABELS: dict[str, str] = {
    "json": "JSON",
    "toon": "TOON",
    "transcript": "Plain Text",
}


class FormatReport(BaseModel):
    """Measurements for one format."""

    model_config = ConfigDict(frozen=True)

    format: str
    duration_ms: float = Field(..., ge=0)
    token_count: int = Field(default=0, ge=0)
    output_bytes: int = Field(default=0, ge=0)
    file_count: int | None = None
    error: str | None = None


def now_iso() -> str:
    """Return the current date and time in ISO 8601 format with timezone."""
    return datetime.now(UTC).astimezone().isoformat(timespec="seconds")


async def compare_formats(
    scraper: RepoScraper,
    identifier: str,
    *,
    token_options: TokenCountOptions | None = None,
    transcript_options: TranscriptOptions | None = None,
) -> list[FormatReport]:
    """Scrape ``identifier`` once per format and measure each export.

    A failing format is recorded in its report and does not stop the others.

    Args:
        scraper (RepoScraper): the configured scraper
        identifier (str): repository URL or path
        token_options (TokenCountOptions | None): options for every token count
        transcript_options (TranscriptOptions | None): options for the transcript run

    Returns:
        list[FormatReport]: one report per format, in JSON, TOON, transcript order
    """
    reports: list[FormatReport] = []
    for fmt in FORMAT_LABELS:
        start = time.perf_counter()
        try:
            if fmt == "json":
                result = await scraper.to_json(identifier, token_options=token_options)
            elif fmt == "toon":
                result = await scraper.to_toon(identifier, token_options=token_options)
            else:
                result = await scraper.to_transcript(identifier, transcript_options, token_options)
        except RepoScraperError as e:
            logger.warning("format_failed", format=fmt, repo=identifier, error=str(e))
            reports.append(FormatReport(format=fmt, duration_ms=_elapsed_ms(start), error=str(e)))
            continue
        reports.append(
            FormatReport(
                format=fmt,
                duration_ms=_elapsed_ms(start),
                token_count=result.token_count,
                output_bytes=len(result.serialized.encode("utf-8")),
                file_count=result.file_count if isinstance(result, JsonScrapeResult) else None,
            ),
        )
    return reports


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def render_report(
    identifier: str,
    reports: Sequence[FormatReport],
    *,
    encoding: str,
    generated_at: str | None = None,
) -> str:
    """Render comparison reports as a markdown table.

    Args:
        identifier (str): the repository that was scraped
        reports (Sequence[FormatReport]): measurements to render
        encoding (str): tokenizer encoding name shown in the header
        generated_at (str | None): timestamp; now by default

    Returns:
        str: the markdown document, ending with a single newline
    """
    out = io.StringIO()
    out.write("# Repository export comparison\n\n")
    out.write(f"Repository: {identifier}\n")
    out.write(f"Generated: {generated_at or now_iso()}\n")
    out.write(f"Tokenizer: {encoding}\n\n")
    out.write("| Format | Duration | Token Count | Output Bytes | Extra |\n")
    out.write("| --- | ---: | ---: | ---: | --- |\n")
    for rep in reports:
        if rep.error:
            extra = "error"
        elif rep.file_count is not None:
            extra = f"files: {rep.file_count}"
        else:
            extra = ""
        label = FORMAT_LABELS.get(rep.format, rep.format)
        out.write(f"| {label} | {rep.duration_ms:.2f}ms | {rep.token_count:,} | {rep.output_bytes:,} | {extra} |\n")

    errors = [rep for rep in reports if rep.error]
    for rep in errors:
        out.write(f"\nError ({FORMAT_LABELS.get(rep.format, rep.format)}): {rep.error}\n")
    return out.getvalue()
