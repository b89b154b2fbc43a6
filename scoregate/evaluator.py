"""Concurrent evaluation of resolved repositories against the check registry."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .checks import CheckRegistry, CheckRequest, CheckRuntimeError
from .clients.base import RepoClientError, RepoClientFactory
from .config import DEFAULT_MAX_WORKERS
from .logging import get_logger
from .models import AggregateResult, CheckResult, Dependency, Diagnostic, RepositoryHandle, aggregate_score

Target = Tuple[Dependency, RepositoryHandle]


@dataclass
class EvaluationReport:
    """Aggregates in input order plus diagnostics recorded during evaluation."""

    results: List[AggregateResult] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class _TaskOutcome:
    result: Optional[AggregateResult]
    diagnostics: List[Diagnostic]


class ConcurrentEvaluator:
    """Runs every registered check for each repository on a bounded worker pool.

    Tasks share no mutable state: each builds its own repository client and
    returns its aggregate and diagnostics to the collecting thread. The pool is
    joined before the report is returned, so every dispatched task has
    finished by then. ``cancel_event`` is consulted when a task starts; a task
    that has started always runs all of its checks.
    """

    def __init__(
        self,
        registry: CheckRegistry,
        client_factory: RepoClientFactory,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.registry = registry
        self.client_factory = client_factory
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()
        self.logger = get_logger("evaluator")

    def evaluate(self, targets: Sequence[Target]) -> EvaluationReport:
        outcomes: Dict[int, _TaskOutcome] = {}
        if not targets:
            return EvaluationReport()

        workers = min(self.max_workers, len(targets))
        self.logger.debug("Evaluating %d repositories with %d workers", len(targets), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scoregate-eval") as pool:
            futures: Dict[Future[_TaskOutcome], int] = {
                pool.submit(self._evaluate_one, dependency, repository): index
                for index, (dependency, repository) in enumerate(targets)
            }
            try:
                for future in as_completed(futures):
                    outcomes[futures[future]] = future.result()
            except KeyboardInterrupt:
                self.logger.warning("Interrupted; waiting for running evaluations to finish")
                self.cancel_event.set()
                raise

        report = EvaluationReport()
        for index in range(len(targets)):
            outcome = outcomes[index]
            if outcome.result is not None:
                report.results.append(outcome.result)
            report.diagnostics.extend(outcome.diagnostics)
        return report

    def _evaluate_one(self, dependency: Dependency, repository: RepositoryHandle) -> _TaskOutcome:
        if self.cancel_event.is_set():
            return _TaskOutcome(
                result=None,
                diagnostics=[Diagnostic("cancelled", dependency.name, "evaluation cancelled before start")],
            )

        diagnostics: List[Diagnostic] = []
        logger = get_logger(f"checks.{repository.owner}.{repository.name}")
        try:
            client = self.client_factory(repository)
        except RepoClientError as exc:
            diagnostics.append(Diagnostic("check", dependency.name, f"repository client unavailable: {exc}"))
            return _TaskOutcome(result=None, diagnostics=diagnostics)

        request = CheckRequest(repository=repository, client=client, logger=logger)
        results: List[CheckResult] = []
        for check in self.registry:
            started = time.perf_counter()
            try:
                result = check.run(request)
            except CheckRuntimeError as exc:
                self.logger.debug("Check %s failed for %s: %s", check.name, repository, exc)
                diagnostics.append(Diagnostic("check", dependency.name, str(exc)))
                continue
            except Exception as exc:
                self.logger.debug("Check %s crashed for %s", check.name, repository, exc_info=True)
                message = f"{check.name}: unexpected {exc.__class__.__name__}: {exc}"
                diagnostics.append(Diagnostic("check", dependency.name, message))
                continue
            self.logger.debug(
                "Check %s on %s scored %d (confidence %d) in %.2fs",
                check.name,
                repository,
                result.score,
                result.confidence,
                time.perf_counter() - started,
            )
            results.append(result)

        aggregate = AggregateResult(
            dependency=dependency,
            repository=repository,
            score=aggregate_score(results),
            checks=results,
        )
        return _TaskOutcome(result=aggregate, diagnostics=diagnostics)


__all__ = ["ConcurrentEvaluator", "EvaluationReport", "Target"]
