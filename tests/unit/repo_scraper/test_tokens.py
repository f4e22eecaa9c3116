from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from repo_scraper import tokens
from repo_scraper.options import TokenCountOptions
from repo_scraper.tokens import TiktokenTokenizer, count_tokens

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_count_tokens_of_empty_text_is_zero(char_tokenizer) -> None:  # noqa: ANN001
    assert count_tokens("", tokenizer=char_tokenizer) == 0
    assert count_tokens([], tokenizer=char_tokenizer) == 0


@pytest.mark.unit
def test_count_tokens_joins_segments_with_newline_by_default(char_tokenizer) -> None:  # noqa: ANN001
    assert count_tokens(["ab", "cd"], tokenizer=char_tokenizer) == len("ab\ncd")


@pytest.mark.unit
def test_count_tokens_custom_delimiter(char_tokenizer) -> None:  # noqa: ANN001
    options = TokenCountOptions(join_with=" -- ")

    assert count_tokens(["ab", "cd", "e"], options, tokenizer=char_tokenizer) == len("ab -- cd -- e")


@pytest.mark.unit
def test_count_tokens_monotonic_in_length(char_tokenizer) -> None:  # noqa: ANN001
    text = "def main():\n    return 42\n"
    counts = [count_tokens(text[:i], tokenizer=char_tokenizer) for i in range(len(text) + 1)]

    assert counts == sorted(counts)
    assert all(c >= 0 for c in counts)


@pytest.mark.unit
def test_count_tokens_uses_encoding_from_options(mocker: MockerFixture, char_tokenizer) -> None:  # noqa: ANN001
    fake = mocker.MagicMock()
    fake.encode.return_value = [1, 2, 3]
    get_tokenizer = mocker.patch.object(tokens, "get_tokenizer", return_value=fake)

    total = count_tokens("hello world", TokenCountOptions(encoding="o200k_base"))

    assert total == 3
    get_tokenizer.assert_called_once_with("o200k_base")
    fake.encode.assert_called_once_with("hello world", disallowed_special=())


@pytest.mark.unit
def test_tiktoken_tokenizer_is_lazy(mocker: MockerFixture) -> None:
    get_tokenizer = mocker.patch.object(tokens, "get_tokenizer")

    TiktokenTokenizer("cl100k_base")

    get_tokenizer.assert_not_called()
