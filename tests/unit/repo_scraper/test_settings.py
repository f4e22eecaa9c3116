from pathlib import Path

import pytest

from repo_scraper.settings import Settings, env_defaults, load_config_file


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings(repo="https://github.com/octocat/Hello-World")

    assert settings.format == "transcript"
    assert settings.include_meta is False
    assert settings.encoding == "cl100k_base"
    assert settings.concurrency == 10
    assert settings.output_path == Path("files.txt")


@pytest.mark.unit
@pytest.mark.parametrize(
    ("command", "fmt", "expected"),
    [("export", "json", "files.json"), ("export", "toon", "files.toon"), ("compare", "json", "benchmark.md")],
)
def test_settings_default_output_paths(command: str, fmt: str, expected: str) -> None:
    settings = Settings(repo="r", command=command, format=fmt)

    assert settings.output_path == Path(expected)


@pytest.mark.unit
def test_settings_split_comma_globs() -> None:
    settings = Settings(repo="r", exclude_glob="docs/*, *.snap,")

    assert settings.exclude_glob == ["docs/*", "*.snap"]


@pytest.mark.unit
def test_env_defaults_prefers_process_env_over_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("REPO_SCRAPER_ENCODING=p50k_base\nREPO_SCRAPER_CONCURRENCY=4\nOTHER=1\n", encoding="utf-8")
    monkeypatch.setenv("REPO_SCRAPER_ENCODING", "o200k_base")

    values = env_defaults(str(env_file))

    assert values["encoding"] == "o200k_base"
    assert values["concurrency"] == "4"
    assert "other" not in values


@pytest.mark.unit
def test_load_config_file_normalizes_keys(tmp_path: Path) -> None:
    path = tmp_path / "scraper.yaml"
    path.write_text("format: json\ninclude-meta: true\nexclude-glob:\n  - docs/*\n", encoding="utf-8")

    values = load_config_file(path)

    assert values == {"format": "json", "include_meta": True, "exclude_glob": ["docs/*"]}


@pytest.mark.unit
def test_load_config_file_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "scraper.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_config_file(path)
