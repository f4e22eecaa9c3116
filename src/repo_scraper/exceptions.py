from dataclasses import dataclass


@dataclass(eq=False)
class RepoScraperError(Exception):
    """Base exception for errors in the repo_scraper module."""


@dataclass(eq=False)
class InvalidRepositoryIdentifierError(RepoScraperError):
    """Raised when a repository identifier cannot be reduced to a workspace label."""

    identifier: str
    message: str = "The repository identifier does not name a repository."

    def __str__(self) -> str:
        return f"{self.message} ({self.identifier!r})"


@dataclass(eq=False)
class GitCommandError(RepoScraperError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip()
        return f"`{self.command}` exited with {self.returncode}: {detail}"


@dataclass(eq=False)
class CloneError(RepoScraperError):
    """Raised when a repository cannot be materialized into a workspace."""

    identifier: str
    reason: str

    def __str__(self) -> str:
        return f"Could not clone {self.identifier}: {self.reason}"


@dataclass(eq=False)
class EntryReadError(RepoScraperError):
    """Raised when a single file or directory entry cannot be read."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"Unreadable entry {self.path}: {self.reason}"
