"""Repository clients used by checks to read repository data."""

from .base import RepoClient, RepoClientError, RepoClientFactory, WorkflowRun
from .github import DEFAULT_API_URL, GitHubRepoClient
from .local import LocalRepoClient

__all__ = [
    "DEFAULT_API_URL",
    "GitHubRepoClient",
    "LocalRepoClient",
    "RepoClient",
    "RepoClientError",
    "RepoClientFactory",
    "WorkflowRun",
]
