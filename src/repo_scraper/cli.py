"""
repo_scraper: export a git repository for an LLM.

Overview
--------
Clones a repository into a temporary workspace, walks its tree and writes one
of three documents:

1) **Transcript (`--format transcript`, default)**: plain text with
   `[DIR_START]`/`[FILE_START]` markers, directories before files, sorted.
2) **JSON (`--format json`)**: nested records with `name`, `path`, `type`
   and `content` or `children`.
3) **TOON (`--format toon`)**: the JSON tree in compact tabular notation.

The `compare` subcommand runs all three and writes a markdown table of
durations, token counts and sizes.

Usage
-----
    repo-scraper https://github.com/octocat/Hello-World --tokens
    repo-scraper https://github.com/octocat/Hello-World --format json --output tree.json
    repo-scraper https://github.com/octocat/Hello-World --meta --exclude-glob "docs/*"
    repo-scraper compare https://github.com/octocat/Hello-World
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING, Any

from repo_scraper import __version__
from repo_scraper.compare import compare_formats, render_report
from repo_scraper.exceptions import RepoScraperError
from repo_scraper.ignore import IgnorePolicy
from repo_scraper.logging import logger, setup_logging
from repo_scraper.options import JsonOptions, TokenCountOptions, ToonOptions, TranscriptOptions
from repo_scraper.scraper import RepoScraper
from repo_scraper.settings import Settings, env_defaults, load_config_file
from repo_scraper.workspace import GitCloner

if TYPE_CHECKING:
    from collections.abc import Sequence

COMMANDS = ("compare",)


def build_parser(command: str = "export") -> argparse.ArgumentParser:
    """Build the argument parser; unset options are left out of the namespace.

    Args:
        command (str): "export" or "compare"

    Returns:
        argparse.ArgumentParser: the parser
    """
    p = argparse.ArgumentParser(
        prog="repo-scraper" if command == "export" else "repo-scraper compare",
        description="Export a git repository for LLM consumption (transcript/json/toon).",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("repo", help="Repository URL or path.")
    if command == "export":
        p.add_argument(
            "--format",
            type=str.lower,
            choices=["json", "toon", "transcript"],
            help="Output format (default: transcript).",
        )
        p.add_argument("-t", "--tokens", "--token-count", dest="show_tokens", action="store_true", help="Print the token count.")
    p.add_argument("--output", type=str, help="Output file (default depends on format).")
    p.add_argument("--meta", dest="include_meta", action="store_true", help="Add meta lines to the transcript.")
    p.add_argument("--no-meta", dest="include_meta", action="store_false", help="No meta lines (default).")
    p.add_argument("--encoding", type=str, help="Tokenizer encoding (default: cl100k_base).")
    p.add_argument("--concurrency", type=int, help="Concurrent filesystem operations (default: 10).")
    p.add_argument("--indent", type=int, help="Indentation for json/toon output.")
    p.add_argument("--delimiter", choices=[",", "\t", "|"], help="TOON array delimiter.")
    p.add_argument("--depth", type=int, help="Clone depth, 0 for full history (default: 1).")
    p.add_argument(
        "--exclude-glob",
        action="append",
        help="Exclude glob on paths or names (repeatable).",
    )
    p.add_argument("--log-file", type=str, help="Log file path.")
    p.add_argument("--config", dest="config_file", type=str, help="YAML config file.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None, *, command: str = "export") -> Settings:
    """Merge environment, config file and CLI values into ``Settings``.

    Precedence: CLI flags, then the YAML config file, then ``REPO_SCRAPER_*``
    environment values.
    """
    args = build_parser(command).parse_args(argv)
    explicit: dict[str, Any] = vars(args)
    values: dict[str, Any] = dict(env_defaults())
    config_file = explicit.get("config_file") or values.get("config_file")
    if config_file:
        values.update(load_config_file(config_file))
    values.update(explicit)
    values["command"] = command
    return Settings(**values)


def build_scraper(settings: Settings) -> RepoScraper:
    return RepoScraper(
        cloner=GitCloner(depth=settings.depth or None),
        policy=IgnorePolicy(extra_patterns=settings.exclude_glob),
        concurrency=settings.concurrency,
    )


async def export(scraper: RepoScraper, settings: Settings) -> tuple[str, int]:
    """Run the export selected by ``settings.format``.

    Returns:
        tuple[str, int]: file content to write and token count
    """
    token_options = TokenCountOptions(encoding=settings.encoding)
    if settings.format == "json":
        res = await scraper.to_json(settings.repo, JsonOptions(indent=settings.indent), token_options)
        return f"{res.serialized}\n", res.token_count
    if settings.format == "toon":
        toon_options = ToonOptions(indent=max(settings.indent, 1), delimiter=settings.delimiter)
        res = await scraper.to_toon(settings.repo, toon_options, token_options)
        return f"{res.serialized}\n", res.token_count
    transcript_options = TranscriptOptions(include_meta=settings.include_meta)
    res = await scraper.to_transcript(settings.repo, transcript_options, token_options)
    return res.serialized, res.token_count


async def compare(scraper: RepoScraper, settings: Settings) -> str:
    reports = await compare_formats(
        scraper,
        settings.repo,
        token_options=TokenCountOptions(encoding=settings.encoding),
        transcript_options=TranscriptOptions(include_meta=settings.include_meta),
    )
    return render_report(settings.repo, reports, encoding=settings.encoding)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the repo-scraper command.

    Args:
        argv (Sequence[str] | None): arguments without the program name; ``sys.argv[1:]`` by default

    Returns:
        int: process exit code, 1 when the repository could not be scraped
    """
    args = list(sys.argv[1:] if argv is None else argv)
    command = "export"
    if args and args[0] in COMMANDS:
        command = args.pop(0)
    settings = parse_args(args, command=command)
    if settings.log_file:
        setup_logging(settings.log_file)

    scraper = build_scraper(settings)
    out_path = settings.output_path
    try:
        if command == "compare":
            content = asyncio.run(compare(scraper, settings))
            token_count = None
        else:
            content, token_count = asyncio.run(export(scraper, settings))
    except RepoScraperError as e:
        logger.error("scrape_failed", repo=settings.repo, error=str(e))
        sys.stderr.write(f"error: {e}\n")
        return 1

    out_path.write_text(content, encoding="utf-8")
    if command == "compare":
        print(f"Comparison has been saved to {out_path}")
        return 0

    print(f"{settings.format} export has been saved to {out_path}")
    if settings.show_tokens:
        print(f"Token count ({settings.encoding}): {token_count}")
    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
