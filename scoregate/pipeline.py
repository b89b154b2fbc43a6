"""Gate pipeline: manifest to dependencies to repositories to violations."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .checks import CheckRegistry
from .clients.base import RepoClientFactory
from .config import ConfigError, PolicyConfig
from .evaluator import ConcurrentEvaluator, Target
from .logging import get_logger
from .manifests import ManifestParser, default_parsers, select_parser
from .models import AggregateResult, Dependency, Diagnostic
from .policy import PolicyEngine, Violation
from .resolver import RepositoryResolver, ResolutionError


@dataclass
class GateReport:
    """Everything one gate run produced."""

    dependencies: List[Dependency] = field(default_factory=list)
    resolved: List[Target] = field(default_factory=list)
    results: List[AggregateResult] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.violations


class Gate:
    """Coordinates parsing, resolution, evaluation and policy enforcement."""

    def __init__(
        self,
        policy: PolicyConfig,
        registry: CheckRegistry,
        resolver: RepositoryResolver,
        client_factory: RepoClientFactory,
        *,
        parsers: Optional[Sequence[ManifestParser]] = None,
        max_workers: Optional[int] = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.policy = policy
        self.registry = registry
        self.resolver = resolver
        self.parsers = list(parsers) if parsers is not None else default_parsers()
        self.evaluator = ConcurrentEvaluator(
            registry,
            client_factory,
            max_workers=max_workers or policy.max_workers,
            cancel_event=cancel_event,
        )
        self.engine = PolicyEngine(policy)
        self.logger = get_logger("pipeline")

    def run(self, manifest_path: Path | str) -> GateReport:
        """Run the gate over one manifest.

        Raises ``ParseError`` for unreadable or malformed manifests and
        ``ConfigError`` when the policy requires checks that are not registered.
        Everything else is recorded in the report's diagnostics.
        """
        self._validate_policy()
        path = Path(manifest_path)
        report = GateReport()

        parser = select_parser(path, self.parsers)
        if parser is None:
            self._record(report, Diagnostic("manifest", str(path), "no parser supports this manifest"))
            return report

        report.dependencies = parser.get_dependencies(path, self.policy.ignore)
        self.logger.info("Found %d dependencies in %s", len(report.dependencies), path.name)

        for dependency in report.dependencies:
            try:
                handle = self.resolver.resolve(dependency)
            except ResolutionError as exc:
                self._record(report, Diagnostic("resolution", dependency.name, str(exc)))
                continue
            report.resolved.append((dependency, handle))

        self.logger.info(
            "Evaluating %d repositories with %d checks",
            len(report.resolved),
            len(self.registry),
        )
        evaluation = self.evaluator.evaluate(report.resolved)
        report.results = evaluation.results
        for diagnostic in evaluation.diagnostics:
            self._record(report, diagnostic)

        report.violations = self.engine.evaluate(report.results)
        return report

    def _validate_policy(self) -> None:
        unknown = [check.name for check in self.policy.required_checks if check.name not in self.registry]
        if unknown:
            raise ConfigError(f"Policy requires unknown checks: {', '.join(unknown)}")

    def _record(self, report: GateReport, diagnostic: Diagnostic) -> None:
        self.logger.warning("%s", diagnostic)
        report.diagnostics.append(diagnostic)


__all__ = ["Gate", "GateReport"]
