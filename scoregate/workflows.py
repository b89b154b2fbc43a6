"""Structured view of GitHub Actions workflow definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple, Union

import yaml

WORKFLOW_DIR = ".github/workflows/"
WORKFLOW_SUFFIXES = (".yml", ".yaml")


class WorkflowParseError(ValueError):
    """Raised when a workflow file cannot be parsed into jobs and steps."""


@dataclass(frozen=True)
class ActionStep:
    """A step that references an action (``uses:``)."""

    reference: str
    params: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RunStep:
    """A step that runs a shell command (``run:``)."""

    command: str


Step = Union[ActionStep, RunStep]


@dataclass(frozen=True)
class Job:
    job_id: str
    name: str
    steps: Tuple[Step, ...] = ()


@dataclass(frozen=True)
class Workflow:
    path: str
    name: str
    jobs: Tuple[Job, ...] = ()


def is_workflow_file(path: str) -> bool:
    """Return True for YAML files under ``.github/workflows/``."""
    lowered = path.replace("\\", "/").lower()
    return lowered.startswith(WORKFLOW_DIR) and lowered.endswith(WORKFLOW_SUFFIXES)


def parse_workflow(content: bytes | str, path: str) -> Workflow:
    """Parse workflow YAML into a :class:`Workflow`.

    Steps that carry neither ``uses`` nor ``run`` are dropped; jobs that call a
    reusable workflow have no steps.
    """
    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkflowParseError(f"{path}: invalid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise WorkflowParseError(f"{path}: workflow must be a mapping")
    raw_jobs = data.get("jobs")
    if not isinstance(raw_jobs, dict):
        raise WorkflowParseError(f"{path}: 'jobs' must be a mapping")

    jobs = [_parse_job(path, str(job_id), raw) for job_id, raw in raw_jobs.items()]
    name = data.get("name")
    return Workflow(path=path, name=str(name) if name is not None else path, jobs=tuple(jobs))


def _parse_job(path: str, job_id: str, raw: Any) -> Job:
    if not isinstance(raw, dict):
        raise WorkflowParseError(f"{path}: job '{job_id}' must be a mapping")
    raw_steps = raw.get("steps") or []
    if not isinstance(raw_steps, list):
        raise WorkflowParseError(f"{path}: steps of job '{job_id}' must be a list")

    steps: List[Step] = []
    for index, raw_step in enumerate(raw_steps):
        if not isinstance(raw_step, dict):
            raise WorkflowParseError(f"{path}: step {index} of job '{job_id}' must be a mapping")
        uses = raw_step.get("uses")
        run = raw_step.get("run")
        if isinstance(uses, str):
            steps.append(ActionStep(reference=uses.strip(), params=_parse_params(raw_step.get("with"))))
        elif run is not None:
            steps.append(RunStep(command=str(run)))
    name = raw.get("name")
    return Job(job_id=job_id, name=str(name) if name is not None else job_id, steps=tuple(steps))


def _parse_params(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    params: Dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[str(key)] = "true" if value else "false"
        else:
            params[str(key)] = str(value)
    return params


__all__ = [
    "ActionStep",
    "Job",
    "RunStep",
    "Step",
    "Workflow",
    "WorkflowParseError",
    "is_workflow_file",
    "parse_workflow",
]
