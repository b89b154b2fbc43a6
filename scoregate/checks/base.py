"""Base classes for security check plugins."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..clients.base import RepoClient
from ..models import (
    INCONCLUSIVE_SCORE,
    MAX_CONFIDENCE,
    MAX_SCORE,
    MIN_CONFIDENCE,
    MIN_SCORE,
    CheckResult,
    RepositoryHandle,
)


class CheckRuntimeError(RuntimeError):
    """Raised when a check could not evaluate a repository."""

    def __init__(self, check: str, message: str) -> None:
        super().__init__(f"{check}: {message}")
        self.check = check
        self.detail = message


@dataclass
class CheckRequest:
    """Everything a check may read while evaluating one repository."""

    repository: RepositoryHandle
    client: RepoClient
    logger: logging.Logger


class Check(ABC):
    """Contract for checks that score one repository's security posture."""

    name: str = ""

    @abstractmethod
    def run(self, request: CheckRequest) -> CheckResult:
        """Return exactly one result, or raise :class:`CheckRuntimeError`."""


def max_score_result(name: str, reason: str, *, confidence: int = MAX_CONFIDENCE) -> CheckResult:
    return CheckResult(name=name, score=MAX_SCORE, confidence=confidence, passed=True, reason=reason)


def min_score_result(name: str, reason: str, *, confidence: int = MAX_CONFIDENCE) -> CheckResult:
    return CheckResult(name=name, score=MIN_SCORE, confidence=confidence, passed=False, reason=reason)


def inconclusive_result(name: str, reason: str) -> CheckResult:
    return CheckResult(
        name=name,
        score=INCONCLUSIVE_SCORE,
        confidence=MIN_CONFIDENCE,
        passed=False,
        reason=reason,
    )
