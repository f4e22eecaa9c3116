"""Token estimation for scraped documents."""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Protocol

import tiktoken

from repo_scraper.options import TokenCountOptions

if TYPE_CHECKING:
    from collections.abc import Sequence


class Tokenizer(Protocol):
    """Anything that turns text into a sequence of token ids."""

    def encode(self, text: str) -> Sequence[int]: ...


@lru_cache(maxsize=8)
def get_tokenizer(encoding: str) -> Tokenizer:
    """Return the cached tiktoken encoding named ``encoding``."""
    return tiktoken.get_encoding(encoding)


class TiktokenTokenizer:
    """Tokenizer backed by a tiktoken encoding, resolved lazily on first use."""

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding

    def encode(self, text: str) -> Sequence[int]:
        # Special-token text found in repositories is counted as plain text.
        return get_tokenizer(self.encoding).encode(text, disallowed_special=())


def count_tokens(
    segments: str | Sequence[str],
    options: TokenCountOptions | None = None,
    *,
    tokenizer: Tokenizer | None = None,
) -> int:
    """Count tokens in a string or in an ordered sequence of strings.

    Args:
        segments (str | Sequence[str]): the text, or segments joined with
            ``options.join_with`` before counting
        options (TokenCountOptions | None): join delimiter and encoding name
        tokenizer (Tokenizer | None): overrides the tiktoken encoding from ``options``

    Returns:
        int: the number of tokens, 0 for empty text
    """
    opts = options or TokenCountOptions()
    text = segments if isinstance(segments, str) else opts.join_with.join(segments)
    if not text:
        return 0
    tok = tokenizer or TiktokenTokenizer(opts.encoding)
    return len(tok.encode(text))
