"""Repository client backed by a local checkout."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

from .base import RepoClientError, WorkflowRun

_SKIP_DIRS = {".git", "node_modules", "__pycache__", ".venv", "venv"}


class LocalRepoClient:
    """Serves files from a directory on disk; CI run history is unavailable."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser().resolve()
        if not self.root.is_dir():
            raise RepoClientError(f"Local repository not found at {self.root}")

    def list_files(self, predicate: Callable[[str], bool]) -> List[str]:
        matched: List[str] = []
        for path in sorted(self.root.rglob("*")):
            relative = path.relative_to(self.root)
            if any(part in _SKIP_DIRS for part in relative.parts):
                continue
            if not path.is_file():
                continue
            rel = relative.as_posix()
            if predicate(rel):
                matched.append(rel)
        return matched

    def get_file_content(self, path: str) -> bytes:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise RepoClientError(f"Path escapes repository root: {path}")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise RepoClientError(f"Unable to read {path}: {exc}") from exc

    def list_successful_workflow_runs(self, workflow_file: str) -> List[WorkflowRun]:
        return []


__all__ = ["LocalRepoClient"]
