"""Repository data access contract consumed by checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Protocol

from ..models import RepositoryHandle


class RepoClientError(RuntimeError):
    """Raised when repository data cannot be read."""


@dataclass(frozen=True)
class WorkflowRun:
    """A completed CI workflow run."""

    url: str
    status: str
    created_at: str


class RepoClient(Protocol):
    """Read-only view of one repository's files and CI history."""

    def list_files(self, predicate: Callable[[str], bool]) -> List[str]:
        """Return repository-relative paths accepted by ``predicate``."""

    def get_file_content(self, path: str) -> bytes:
        """Return the raw content of ``path``."""

    def list_successful_workflow_runs(self, workflow_file: str) -> List[WorkflowRun]:
        """Return successful runs of the named workflow file, newest first."""


RepoClientFactory = Callable[[RepositoryHandle], RepoClient]


__all__ = ["RepoClient", "RepoClientError", "RepoClientFactory", "WorkflowRun"]
