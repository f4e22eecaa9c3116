from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_scraper import __version__, cli
from repo_scraper.exceptions import CloneError, InvalidRepositoryIdentifierError
from repo_scraper.options import JsonScrapeResult, ToonScrapeResult, TranscriptScrapeResult

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def _isolated_env(mocker: MockerFixture) -> None:
    mocker.patch.object(cli, "env_defaults", return_value={})


@pytest.mark.unit
def test_parse_args_defaults() -> None:
    settings = cli.parse_args(["https://github.com/octocat/Hello-World"])

    assert settings.repo == "https://github.com/octocat/Hello-World"
    assert settings.command == "export"
    assert settings.format == "transcript"
    assert settings.show_tokens is False
    assert settings.exclude_glob == []


@pytest.mark.unit
def test_parse_args_flags() -> None:
    settings = cli.parse_args(
        [
            "repo",
            "--format",
            "JSON",
            "--meta",
            "-t",
            "--concurrency",
            "4",
            "--exclude-glob",
            "docs/*",
            "--exclude-glob",
            "*.snap",
            "--output",
            "out.json",
        ],
    )

    assert settings.format == "json"
    assert settings.include_meta is True
    assert settings.show_tokens is True
    assert settings.concurrency == 4
    assert settings.exclude_glob == ["docs/*", "*.snap"]
    assert settings.output_path == Path("out.json")


@pytest.mark.unit
def test_parse_args_rejects_unknown_format() -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["repo", "--format", "xml"])

    assert exc_info.value.code == 2


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_parse_args_precedence(tmp_path: Path, mocker: MockerFixture) -> None:
    config = tmp_path / "scraper.yaml"
    config.write_text("format: toon\nencoding: p50k_base\n", encoding="utf-8")
    mocker.patch.object(
        cli,
        "env_defaults",
        return_value={"format": "json", "encoding": "r50k_base", "concurrency": "3"},
    )

    settings = cli.parse_args(["repo", "--config", str(config), "--encoding", "o200k_base"])

    assert settings.format == "toon"
    assert settings.encoding == "o200k_base"
    assert settings.concurrency == 3


@pytest.mark.unit
def test_main_writes_transcript_and_token_count(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    to_transcript = mocker.patch.object(
        cli.RepoScraper,
        "to_transcript",
        return_value=TranscriptScrapeResult(serialized="[FILE_START] a\na\n[FILE_END] a\n\n", token_count=12),
    )
    output = tmp_path / "files.txt"

    exit_code = cli.main(["https://host/org/repo", "--meta", "--tokens", "--output", str(output)])

    assert exit_code == 0
    assert output.read_text(encoding="utf-8") == "[FILE_START] a\na\n[FILE_END] a\n\n"
    assert to_transcript.call_args.args[1].include_meta is True
    out = capsys.readouterr().out
    assert "Token count (cl100k_base): 12" in out


@pytest.mark.unit
def test_main_appends_newline_to_json_and_toon(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(
        cli.RepoScraper,
        "to_json",
        return_value=JsonScrapeResult(files=[], serialized="[]", token_count=1, file_count=0),
    )
    mocker.patch.object(cli.RepoScraper, "to_toon", return_value=ToonScrapeResult(serialized="files[0]:", token_count=3))

    cli.main(["repo", "--format", "json", "--output", str(tmp_path / "files.json")])
    cli.main(["repo", "--format", "toon", "--output", str(tmp_path / "files.toon")])

    assert (tmp_path / "files.json").read_text(encoding="utf-8") == "[]\n"
    assert (tmp_path / "files.toon").read_text(encoding="utf-8") == "files[0]:\n"


@pytest.mark.unit
@pytest.mark.parametrize(
    "error",
    [
        CloneError(identifier="https://host/org/repo", reason="network unreachable"),
        InvalidRepositoryIdentifierError(identifier=""),
    ],
)
def test_main_reports_fatal_errors(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
    error: Exception,
) -> None:
    mocker.patch.object(cli.RepoScraper, "to_transcript", side_effect=error)
    output = tmp_path / "files.txt"

    exit_code = cli.main(["https://host/org/repo", "--output", str(output)])

    assert exit_code == 1
    assert not output.exists()
    assert capsys.readouterr().err.startswith("error: ")


@pytest.mark.unit
def test_build_scraper_uses_settings() -> None:
    settings = cli.parse_args(["repo", "--depth", "0", "--concurrency", "2", "--exclude-glob", "docs/*"])

    scraper = cli.build_scraper(settings)

    assert scraper.concurrency == 2
    assert scraper.policy.extra_patterns == ("docs/*",)
    assert scraper.cloner.depth is None
