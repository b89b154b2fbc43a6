"""Packaging check: detects automated package publishing in CI workflows.

A repository counts as publishing-capable when one job of one of its GitHub
Actions workflows carries a complete publishing signature from
:data:`JOB_MATCH_SPECS`. Each signature lists action references (optionally
pinned to one ``with:`` parameter value) and run-command patterns. A job
satisfies a signature once every pattern has been consumed by a distinct step
of that job. Consumption state is private to one signature evaluation, so the
same step can count towards several signatures.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Pattern, Sequence, Tuple

from .base import (
    Check,
    CheckRequest,
    CheckRuntimeError,
    inconclusive_result,
    max_score_result,
    min_score_result,
)
from ..clients.base import RepoClientError
from ..models import CheckResult
from ..workflows import ActionStep, Job, RunStep, Workflow, WorkflowParseError, is_workflow_file, parse_workflow

NPM_REGISTRY_URL = "https://registry.npmjs.org"


@dataclass(frozen=True)
class ActionPattern:
    """An action reference prefix, optionally requiring one exact ``with:`` value."""

    prefix: str
    required_param: Optional[Tuple[str, str]] = None

    def matches(self, step: ActionStep) -> bool:
        reference = step.reference
        if reference != self.prefix and not reference.startswith(f"{self.prefix}@"):
            return False
        if self.required_param is None:
            return True
        key, value = self.required_param
        return step.params.get(key) == value


@dataclass(frozen=True)
class JobMatchSpec:
    """Declarative signature of one publishing mechanism."""

    label: str
    action_patterns: Tuple[ActionPattern, ...] = ()
    command_patterns: Tuple[Pattern[str], ...] = ()


@dataclass(frozen=True)
class Classification:
    """Where a publishing signature was found."""

    workflow_path: str
    job_id: str
    label: str


Outstanding = Tuple[Tuple[ActionPattern, ...], Tuple[Pattern[str], ...]]


def _commands(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern) for pattern in patterns)


# Declaration order is match priority.
JOB_MATCH_SPECS: Tuple[JobMatchSpec, ...] = (
    JobMatchSpec(
        label="Node/npm",
        action_patterns=(ActionPattern("actions/setup-node", ("registry-url", NPM_REGISTRY_URL)),),
        command_patterns=_commands(r"npm.*publish"),
    ),
    JobMatchSpec(
        label="Java/Maven",
        action_patterns=(ActionPattern("actions/setup-java"),),
        command_patterns=_commands(r"mvn.*deploy"),
    ),
    JobMatchSpec(
        label="Java/Gradle",
        action_patterns=(ActionPattern("actions/setup-java"),),
        command_patterns=_commands(r"gradle.*publish"),
    ),
    JobMatchSpec(label="Ruby/gem", command_patterns=_commands(r"gem.*push")),
    JobMatchSpec(label=".NET/NuGet", command_patterns=_commands(r"nuget.*push")),
    JobMatchSpec(label="Container", command_patterns=_commands(r"docker.*push")),
    JobMatchSpec(label="Container", action_patterns=(ActionPattern("docker/build-push-action"),)),
    JobMatchSpec(
        label="Python/PyPI",
        action_patterns=(
            ActionPattern("actions/setup-python"),
            ActionPattern("pypa/gh-action-pypi-publish"),
        ),
    ),
    JobMatchSpec(
        label="Go module release",
        action_patterns=(
            ActionPattern("actions/setup-go"),
            ActionPattern("goreleaser/goreleaser-action"),
        ),
    ),
    JobMatchSpec(label="Rust/crates", command_patterns=_commands(r"cargo.*publish")),
)


def scan_job(spec: JobMatchSpec, job: Job) -> Iterator[Outstanding]:
    """Scan ``job`` against ``spec``, yielding the outstanding patterns after each step.

    An action step consumes the first outstanding action pattern it matches; a
    run step consumes the first outstanding command pattern found in its text.
    A step consumes at most one pattern. Scanning stops once nothing is
    outstanding.
    """
    actions: List[ActionPattern] = list(spec.action_patterns)
    commands: List[Pattern[str]] = list(spec.command_patterns)
    for step in job.steps:
        if not actions and not commands:
            return
        if isinstance(step, ActionStep):
            for index, pattern in enumerate(actions):
                if pattern.matches(step):
                    del actions[index]
                    break
        elif isinstance(step, RunStep):
            for index, regex in enumerate(commands):
                if regex.search(step.command):
                    del commands[index]
                    break
        yield tuple(actions), tuple(commands)


def job_matches(spec: JobMatchSpec, job: Job) -> bool:
    """Return True when every pattern of ``spec`` is consumed by a step of ``job``."""
    if not spec.action_patterns and not spec.command_patterns:
        return False
    for actions, commands in scan_job(spec, job):
        if not actions and not commands:
            return True
    return False


def classify_workflow(
    workflow: Workflow, specs: Sequence[JobMatchSpec] = JOB_MATCH_SPECS
) -> Optional[Classification]:
    """Return the first satisfied signature, scanning jobs in order, then specs in order."""
    for job in workflow.jobs:
        for spec in specs:
            if job_matches(spec, job):
                return Classification(workflow_path=workflow.path, job_id=job.job_id, label=spec.label)
    return None


class PackagingCheck(Check):
    """Scores whether a repository publishes packages from a working CI workflow."""

    name = "Packaging"

    def __init__(self, specs: Sequence[JobMatchSpec] = JOB_MATCH_SPECS) -> None:
        self.specs = tuple(specs)

    def run(self, request: CheckRequest) -> CheckResult:
        client = request.client
        logger = request.logger
        try:
            workflow_files = client.list_files(is_workflow_file)
        except RepoClientError as exc:
            raise CheckRuntimeError(self.name, f"listing workflow files: {exc}") from exc

        unused: Optional[Classification] = None
        for path in workflow_files:
            try:
                workflow = parse_workflow(client.get_file_content(path), path)
            except RepoClientError as exc:
                raise CheckRuntimeError(self.name, f"reading {path}: {exc}") from exc
            except WorkflowParseError as exc:
                raise CheckRuntimeError(self.name, str(exc)) from exc

            classification = classify_workflow(workflow, self.specs)
            if classification is None:
                logger.debug("%s: not a publishing workflow", path)
                continue
            logger.debug(
                "%s: candidate %s publishing workflow (job %s)",
                path,
                classification.label,
                classification.job_id,
            )

            try:
                runs = client.list_successful_workflow_runs(posixpath.basename(path))
            except RepoClientError as exc:
                raise CheckRuntimeError(self.name, f"listing runs of {path}: {exc}") from exc
            if runs:
                return max_score_result(
                    self.name,
                    f"{classification.label} publishing workflow {path} used in run {runs[0].url}",
                )
            logger.debug("%s: publishing workflow not used in runs", path)
            if unused is None:
                unused = classification

        if unused is not None:
            return min_score_result(
                self.name,
                f"workflow present but unused: {unused.label} publishing workflow {unused.workflow_path}",
            )
        logger.debug("no publishing workflow detected")
        return inconclusive_result(self.name, "no publishing workflow detected")


__all__ = [
    "ActionPattern",
    "Classification",
    "JOB_MATCH_SPECS",
    "JobMatchSpec",
    "NPM_REGISTRY_URL",
    "PackagingCheck",
    "classify_workflow",
    "job_matches",
    "scan_job",
]
