from __future__ import annotations

import logging

import pytest

from scoregate.checks.base import CheckRequest
from scoregate.models import RepositoryHandle
from tests._fixtures.fake_repo import FakeRepoClient


@pytest.fixture
def repository() -> RepositoryHandle:
    return RepositoryHandle(host="github.com", owner="acme", name="widget")


@pytest.fixture
def make_request(repository: RepositoryHandle):
    """Build a check request around a fake client."""

    def _make(client: FakeRepoClient) -> CheckRequest:
        return CheckRequest(
            repository=repository,
            client=client,
            logger=logging.getLogger("scoregate.tests"),
        )

    return _make
