"""Git metadata for ingested files.

Security requirements:
- shell=False always (no command injection).
- The file path is passed after ``--`` so it is never read as an option.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from codecontext.db.models import GitMetadata
from codecontext.errors import VCSFailure

logger = logging.getLogger(__name__)

# ASCII unit separator; does not occur in author names or subjects.
_FIELD_SEP = "\x1f"


@dataclass
class CommitInfo:
    hash: str
    author: str
    message: str


class VcsClient(Protocol):
    def last_commit(self, path: str) -> CommitInfo | None: ...

    def current_branch(self, path: str) -> str: ...


class GitClient:
    """Version-control capability backed by the ``git`` executable.

    Commands run in the directory containing the queried file, so each file
    resolves against its own enclosing repository.
    """

    def __init__(self, git: str = "git") -> None:
        self._git = git

    def last_commit(self, path: str) -> CommitInfo | None:
        """Return the most recent commit touching *path*, or None if it has none."""
        out = self._run(
            ["log", "-1", f"--format=%H{_FIELD_SEP}%an{_FIELD_SEP}%s", "--", path], path
        )
        if not out:
            return None
        commit_hash, author, message = (out.split(_FIELD_SEP, 2) + ["", ""])[:3]
        return CommitInfo(hash=commit_hash, author=author, message=message)

    def current_branch(self, path: str) -> str:
        """Return the checked-out branch of the repository containing *path*."""
        return self._run(["rev-parse", "--abbrev-ref", "HEAD"], path)

    def _run(self, args: list[str], path: str) -> str:
        cwd = Path(path).parent
        try:
            result = subprocess.run(
                [self._git, *args],
                cwd=cwd,
                shell=False,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise VCSFailure(f"git {args[0]} failed in {cwd}: {exc.stderr.strip()}") from None
        except OSError as exc:
            raise VCSFailure(f"git unavailable in {cwd}: {exc}") from exc
        return result.stdout.strip()


class VcsMetadataFetcher:
    """Resolve ``GitMetadata`` for a path; never raises."""

    def __init__(self, client: VcsClient | None = None) -> None:
        self._client = client or GitClient()

    async def fetch(self, file_path: str) -> GitMetadata:
        return await asyncio.to_thread(self.fetch_sync, file_path)

    def fetch_sync(self, file_path: str) -> GitMetadata:
        try:
            commit = self._client.last_commit(file_path)
            branch = self._client.current_branch(file_path)
        except Exception as exc:
            logger.warning("Error getting git metadata for %s: %s", file_path, exc)
            return GitMetadata()
        if commit is None:
            return GitMetadata(branch=branch)
        return GitMetadata(
            last_commit=commit.hash,
            author=commit.author,
            commit_message=commit.message,
            branch=branch,
        )
