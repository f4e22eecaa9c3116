from __future__ import annotations

import contextlib
import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_LOGGING_CONFIGURED = False


def _file_handler(filename: str | Path) -> logging.Handler:
    return logging.FileHandler(str(filename), encoding="utf-8")


def setup_logging(filename: str | Path | None = None, level: int = logging.INFO) -> structlog.BoundLogger:
    """Set up structured logging for the repo_scraper package.

    Events are rendered as JSON lines. Values bound with ``scrape_context`` are
    merged into every event emitted while the context is active, including
    events from worker threads started with ``asyncio.to_thread``.

    The first call configures structlog; a log file requested by a later call
    is attached to the root logger as an extra handler.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        level: Minimum level of the events that are kept.

    Returns:
        A structlog logger instance named after the repo_scraper package.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED:
        if filename:
            logging.getLogger().addHandler(_file_handler(filename))
        return structlog.get_logger("repo_scraper")

    handler = _file_handler(filename) if filename else logging.StreamHandler(sys.stderr)
    logging.basicConfig(level=level, handlers=[handler], format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _LOGGING_CONFIGURED = True
    return structlog.get_logger("repo_scraper")


@contextlib.contextmanager
def scrape_context(repo: str, output_format: str) -> Iterator[None]:
    """Tag log events with the repository and output format of one scrape."""
    with structlog.contextvars.bound_contextvars(repo=repo, format=output_format):
        yield


logger = setup_logging()
