"""GitHub REST API implementation of the repository client."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional
from urllib.parse import quote

from .base import RepoClientError, WorkflowRun
from ..logging import get_logger
from ..models import RepositoryHandle
from ..transport import DEFAULT_TIMEOUT, FetchError, Fetcher, fetch_json, urllib_fetch

DEFAULT_API_URL = "https://api.github.com"
_API_VERSION = "2022-11-28"
_RUNS_PER_PAGE = 30


class GitHubRepoClient:
    """Reads files and Actions history for one GitHub repository.

    The git tree of the default branch is fetched once and cached for the
    lifetime of the client; a client instance serves a single evaluation task.
    """

    def __init__(
        self,
        repository: RepositoryHandle,
        *,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        fetch: Fetcher | None = None,
    ) -> None:
        self.repository = repository
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._fetch = fetch or urllib_fetch
        self._tree: Optional[List[str]] = None
        self.logger = get_logger("clients.github")

    def list_files(self, predicate: Callable[[str], bool]) -> List[str]:
        return [path for path in self._load_tree() if predicate(path)]

    def get_file_content(self, path: str) -> bytes:
        url = f"{self._repo_url()}/contents/{quote(path)}"
        headers = self._headers(accept="application/vnd.github.raw")
        try:
            return self._fetch(url, headers, self.timeout)
        except FetchError as exc:
            raise RepoClientError(f"Unable to read {path} from {self.repository}: {exc}") from exc

    def list_successful_workflow_runs(self, workflow_file: str) -> List[WorkflowRun]:
        url = (
            f"{self._repo_url()}/actions/workflows/{quote(workflow_file)}/runs"
            f"?status=success&per_page={_RUNS_PER_PAGE}"
        )
        try:
            payload = fetch_json(self._fetch, url, headers=self._headers(), timeout=self.timeout)
        except FetchError as exc:
            if exc.status == 404:
                # Workflow files that never ran are unknown to the Actions API.
                return []
            raise RepoClientError(
                f"Unable to list runs of {workflow_file} for {self.repository}: {exc}"
            ) from exc

        runs: List[WorkflowRun] = []
        for entry in payload.get("workflow_runs", []) if isinstance(payload, dict) else []:
            if not isinstance(entry, dict) or entry.get("conclusion") != "success":
                continue
            runs.append(
                WorkflowRun(
                    url=str(entry.get("html_url", "")),
                    status=str(entry.get("status", "")),
                    created_at=str(entry.get("created_at", "")),
                )
            )
        return runs

    def _load_tree(self) -> List[str]:
        if self._tree is not None:
            return self._tree
        url = f"{self._repo_url()}/git/trees/HEAD?recursive=1"
        try:
            payload = fetch_json(self._fetch, url, headers=self._headers(), timeout=self.timeout)
        except FetchError as exc:
            raise RepoClientError(f"Unable to list files of {self.repository}: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("tree"), list):
            raise RepoClientError(f"Unexpected tree payload for {self.repository}")
        if payload.get("truncated"):
            self.logger.warning("File listing for %s is truncated by the API", self.repository)
        self._tree = [
            str(entry["path"])
            for entry in payload["tree"]
            if isinstance(entry, dict) and entry.get("type") == "blob" and "path" in entry
        ]
        return self._tree

    def _repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.repository.slug}"

    def _headers(self, *, accept: str = "application/vnd.github+json") -> Dict[str, str]:
        headers = {"Accept": accept, "X-GitHub-Api-Version": _API_VERSION}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


__all__ = ["DEFAULT_API_URL", "GitHubRepoClient"]
