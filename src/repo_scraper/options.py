from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from repo_scraper.config import DEFAULT_ENCODING, FileNode


class JsonOptions(BaseModel):
    """Pretty-printing options for the structured encoder."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    indent: int = Field(default=2, ge=0, description="Indentation width")


class ToonOptions(BaseModel):
    """Options forwarded to the TOON encoder as ``indent_size`` and ``delimiter``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    indent: int = Field(default=2, ge=1, description="Indentation width")
    delimiter: Literal[",", "\t", "|"] = Field(default=",", description="Array value delimiter")

    def as_encoder_options(self) -> dict[str, Any]:
        return {"indent_size": self.indent, "delimiter": self.delimiter}


class TranscriptOptions(BaseModel):
    """Options for the transcript encoder."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    include_meta: bool = Field(default=False, description="Emit a `meta:` line after each file marker")


class TokenCountOptions(BaseModel):
    """Options for the token estimator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    join_with: str = Field(default="\n", description="Delimiter used to join a sequence of segments")
    encoding: str = Field(default=DEFAULT_ENCODING, description="Tokenizer encoding name")


class JsonScrapeResult(BaseModel):
    """Structured export of a repository."""

    model_config = ConfigDict(frozen=True)

    files: list[FileNode]
    serialized: str
    token_count: int = Field(..., ge=0)
    file_count: int = Field(..., ge=0)


class ToonScrapeResult(BaseModel):
    """Tabular (TOON) export of a repository."""

    model_config = ConfigDict(frozen=True)

    serialized: str
    token_count: int = Field(..., ge=0)


class TranscriptScrapeResult(BaseModel):
    """Transcript export of a repository."""

    model_config = ConfigDict(frozen=True)

    serialized: str
    token_count: int = Field(..., ge=0)
