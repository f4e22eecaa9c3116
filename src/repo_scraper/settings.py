from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from repo_scraper.config import DEFAULT_CONCURRENCY, DEFAULT_ENCODING, DEFAULT_OUTPUTS

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "REPO_SCRAPER_"
COMPARE_OUTPUT = "benchmark.md"


class Settings(BaseModel):
    """Configuration settings for the repo_scraper command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    command: Literal["export", "compare"] = Field(default="export", description="Subcommand.")
    repo: str = Field(..., description="Repository URL or path.")
    format: Literal["json", "toon", "transcript"] = Field(default="transcript", description="Output format.")
    output: Path | None = Field(default=None, description="Output file.")
    include_meta: bool = Field(default=False, description="Add meta lines to the transcript.")
    show_tokens: bool = Field(default=False, description="Print the token count.")
    encoding: str = Field(default=DEFAULT_ENCODING, description="Tokenizer encoding.")
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1, description="Concurrent filesystem operations.")
    indent: int = Field(default=2, ge=0, description="Indentation for json/toon, 0 for compact json.")
    delimiter: Literal[",", "\t", "|"] = Field(default=",", description="TOON array delimiter.")
    exclude_glob: list[str] = Field(default_factory=list, description="Extra exclude globs.")
    depth: int = Field(default=1, ge=0, description="Clone depth, 0 for full history.")
    log_file: str = Field(default="", description="Log file path.")
    config_file: str = Field(default="", description="YAML config file.")

    @field_validator("exclude_glob", mode="before")
    @classmethod
    def _split_globs(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @property
    def output_path(self) -> Path:
        if self.output is not None:
            return self.output
        if self.command == "compare":
            return Path(COMPARE_OUTPUT)
        return Path(DEFAULT_OUTPUTS[self.format])


def env_defaults(env_file: str = ENV_FILE) -> dict[str, str]:
    """Collect ``REPO_SCRAPER_*`` values from the .env file and the process environment.

    The process environment wins over the .env file. Keys are returned without
    the prefix and lowercased, e.g. ``REPO_SCRAPER_ENCODING`` -> ``encoding``.

    Args:
        env_file (str): path of the .env file; empty to skip it

    Returns:
        dict[str, str]: settings values keyed by field name
    """
    values: dict[str, str | None] = dict(dotenv_values(env_file)) if env_file else {}
    values.update(os.environ)
    return {
        key[len(ENV_PREFIX) :].lower(): value
        for key, value in values.items()
        if key.startswith(ENV_PREFIX) and value is not None
    }


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load settings values from a YAML mapping; dashes in keys become underscores.

    Args:
        path (str | Path): YAML file path

    Raises:
        ValueError: if the document is not a mapping

    Returns:
        dict[str, Any]: settings values keyed by field name
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        msg = f"Config file {path} must contain a mapping"
        raise ValueError(msg)
    return {str(key).replace("-", "_"): value for key, value in data.items()}
