"""Tests for the GitHub repository client."""

from __future__ import annotations

import http.client
import json
from typing import Dict, List, Mapping, Tuple

import pytest

from scoregate import transport
from scoregate.clients import GitHubRepoClient, RepoClientError
from scoregate.models import RepositoryHandle
from scoregate.workflows import is_workflow_file
from scoregate.transport import FetchError

API = "https://api.github.test"
REPO = f"{API}/repos/acme/widget"


class RecordingFetch:
    def __init__(self, responses: Mapping[str, object]) -> None:
        self.responses = dict(responses)
        self.calls: List[Tuple[str, Dict[str, str]]] = []

    def __call__(self, url: str, headers: Mapping[str, str], timeout: float) -> bytes:
        self.calls.append((url, dict(headers)))
        body = self.responses.get(url)
        if body is None:
            raise FetchError(f"GET {url} failed with status 404", url=url, status=404)
        if isinstance(body, Exception):
            raise body
        if isinstance(body, bytes):
            return body
        return json.dumps(body).encode("utf-8")


def _client(fetch: RecordingFetch, token: str | None = "t0ken") -> GitHubRepoClient:
    return GitHubRepoClient(
        RepositoryHandle("github.com", "acme", "widget"),
        token=token,
        api_url=API + "/",
        fetch=fetch,
    )


def test_list_files_reads_tree_once() -> None:
    fetch = RecordingFetch(
        {
            f"{REPO}/git/trees/HEAD?recursive=1": {
                "tree": [
                    {"path": ".github", "type": "tree"},
                    {"path": ".github/workflows/release.yml", "type": "blob"},
                    {"path": "README.md", "type": "blob"},
                ],
                "truncated": False,
            }
        }
    )
    client = _client(fetch)

    assert client.list_files(is_workflow_file) == [".github/workflows/release.yml"]
    assert client.list_files(lambda path: True) == [".github/workflows/release.yml", "README.md"]
    assert len(fetch.calls) == 1
    assert fetch.calls[0][1]["Authorization"] == "Bearer t0ken"


def test_get_file_content_requests_raw_media_type() -> None:
    fetch = RecordingFetch({f"{REPO}/contents/.github/workflows/release.yml": b"name: release\n"})

    content = _client(fetch, token=None).get_file_content(".github/workflows/release.yml")

    assert content == b"name: release\n"
    headers = fetch.calls[0][1]
    assert headers["Accept"] == "application/vnd.github.raw"
    assert "Authorization" not in headers


def test_list_successful_workflow_runs_filters_conclusions() -> None:
    url = f"{REPO}/actions/workflows/release.yml/runs?status=success&per_page=30"
    fetch = RecordingFetch(
        {
            url: {
                "workflow_runs": [
                    {
                        "html_url": "https://github.com/acme/widget/actions/runs/2",
                        "status": "completed",
                        "conclusion": "success",
                        "created_at": "2024-05-02T00:00:00Z",
                    },
                    {"html_url": "x", "status": "completed", "conclusion": "failure"},
                ]
            }
        }
    )

    runs = _client(fetch).list_successful_workflow_runs("release.yml")

    assert [run.url for run in runs] == ["https://github.com/acme/widget/actions/runs/2"]


def test_unknown_workflow_has_no_runs() -> None:
    assert _client(RecordingFetch({})).list_successful_workflow_runs("release.yml") == []


def test_transport_failures_become_client_errors() -> None:
    failure = FetchError("GET failed with status 403: rate limited", url="x", status=403)
    fetch = RecordingFetch(
        {
            f"{REPO}/git/trees/HEAD?recursive=1": failure,
            f"{REPO}/actions/workflows/release.yml/runs?status=success&per_page=30": failure,
        }
    )
    client = _client(fetch)

    with pytest.raises(RepoClientError):
        client.list_files(lambda path: True)
    with pytest.raises(RepoClientError):
        client.list_successful_workflow_runs("release.yml")
    with pytest.raises(RepoClientError):
        client.get_file_content("missing.txt")


class _BrokenBody:
    def __enter__(self) -> "_BrokenBody":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def read(self) -> bytes:
        raise http.client.IncompleteRead(b"{\"tree\": [")


def test_dropped_connection_becomes_client_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def reset(request, timeout):  # type: ignore[no-untyped-def]
        raise ConnectionResetError("connection reset by peer")

    monkeypatch.setattr(transport, "urlopen", reset)
    client = GitHubRepoClient(RepositoryHandle("github.com", "acme", "widget"), api_url=API)

    with pytest.raises(RepoClientError, match="ConnectionResetError"):
        client.list_files(lambda path: True)


def test_truncated_body_becomes_client_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(transport, "urlopen", lambda request, timeout: _BrokenBody())
    client = GitHubRepoClient(RepositoryHandle("github.com", "acme", "widget"), api_url=API)

    with pytest.raises(RepoClientError, match="IncompleteRead"):
        client.get_file_content("SECURITY.md")
