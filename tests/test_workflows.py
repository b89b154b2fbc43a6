"""Tests for workflow parsing."""

from __future__ import annotations

import pytest

from scoregate.workflows import ActionStep, RunStep, WorkflowParseError, is_workflow_file, parse_workflow


def test_parse_workflow_builds_jobs_and_steps() -> None:
    content = b"""
name: release
on: push
jobs:
  build:
    name: Build and publish
    runs-on: ubuntu-latest
    steps:
      - name: checkout
        uses: actions/checkout@v4
      - uses: docker/build-push-action@v5
        with:
          push: true
          tags: acme/widget:latest
      - name: no-op
        shell: bash
      - run: |
          docker login
          docker push acme/widget
  reuse:
    uses: acme/workflows/.github/workflows/shared.yml@main
"""

    workflow = parse_workflow(content, ".github/workflows/release.yml")

    assert workflow.name == "release"
    assert [job.job_id for job in workflow.jobs] == ["build", "reuse"]
    build = workflow.jobs[0]
    assert build.name == "Build and publish"
    assert build.steps[0] == ActionStep("actions/checkout@v4", {})
    assert build.steps[1] == ActionStep(
        "docker/build-push-action@v5", {"push": "true", "tags": "acme/widget:latest"}
    )
    assert isinstance(build.steps[2], RunStep)
    assert "docker push acme/widget" in build.steps[2].command
    assert workflow.jobs[1].steps == ()


@pytest.mark.parametrize(
    "content",
    [
        "jobs: [unterminated\n",
        "- just\n- a list\n",
        "name: no jobs\n",
        "jobs:\n  build: not-a-mapping\n",
        "jobs:\n  build:\n    steps: run\n",
        "jobs:\n  build:\n    steps:\n      - plain string\n",
    ],
)
def test_parse_workflow_rejects_malformed_definitions(content: str) -> None:
    with pytest.raises(WorkflowParseError):
        parse_workflow(content, "w.yml")


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        (".github/workflows/release.yml", True),
        (".github/workflows/ci.yaml", True),
        (".GitHub/Workflows/CI.YML", True),
        (".github/workflows/README.md", False),
        ("ci/.github/workflows/release.yml", False),
    ],
)
def test_is_workflow_file(path: str, expected: bool) -> None:
    assert is_workflow_file(path) is expected
