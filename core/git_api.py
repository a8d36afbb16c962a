"""Read-only Git repository helpers backed by pygit2."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pygit2


class GitRepositoryError(RuntimeError):
    """Raised when a path cannot be opened as a Git repository."""


class GitRepository:
    """
    Read access to a repository's metadata.

    Only READ operations are offered; nothing here mutates the repository.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).resolve()
        self._repo: Optional[pygit2.Repository] = None

    def open(self) -> None:
        """Opens the repository. Raises GitRepositoryError if not found."""
        try:
            self._repo = pygit2.Repository(str(self.path))
        except pygit2.GitError as e:
            raise GitRepositoryError(f"Failed to open repository at {self.path}: {e}") from e

    @property
    def repo(self) -> pygit2.Repository:
        if self._repo is None:
            self.open()
        return self._repo  # type: ignore

    @property
    def is_valid(self) -> bool:
        """Checks if the path is a valid git repository."""
        if not self.path.exists():
            return False
        try:
            self.open()
            return True
        except GitRepositoryError:
            return False

    @property
    def root_dir(self) -> Path:
        if self.repo.is_bare:
            return Path(self.repo.path)
        workdir = self.repo.workdir
        return Path(workdir) if workdir else self.path

    def list_remotes(self) -> List[str]:
        """List remote names."""
        return [remote.name for remote in self.repo.remotes]

    def get_remote_url(self, name: str = "origin") -> Optional[str]:
        """Return the fetch URL of remote ``name`` or ``None`` when it is not configured."""
        for remote in self.repo.remotes:
            if remote.name == name:
                return remote.url
        return None


def detect_remote_url(path: Path | str, remote: str = "origin") -> Optional[str]:
    """Return the URL of ``remote`` for the repository at ``path``.

    Raises :class:`GitRepositoryError` when ``path`` is not inside a repository.
    """

    return GitRepository(path).get_remote_url(remote)


__all__ = ["GitRepository", "GitRepositoryError", "detect_remote_url"]
