"""End-to-end tests for the gate pipeline with in-memory collaborators."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from scoregate.checks import Check, CheckRegistry, PackagingCheck, max_score_result
from scoregate.config import ConfigError, PolicyConfig, RequiredCheck
from scoregate.manifests import ParseError
from scoregate.models import RepositoryHandle
from scoregate.pipeline import Gate
from scoregate.policy import BELOW_MINIMUM_SCORE
from scoregate.resolver import RepositoryResolver
from tests._fixtures.fake_repo import FakeRepoClient, successful_run

GO_SUM = """\
github.com/acme/alpha v1.0.0 h1:aaaa=
github.com/acme/beta v1.0.0 h1:bbbb=
github.com/acme/gamma v1.0.0 h1:cccc=
"""

RELEASE = """
jobs:
  release:
    steps:
      - uses: actions/setup-go@v5
      - uses: goreleaser/goreleaser-action@v5
"""


class StaticSource:
    def __init__(self, urls: Dict[str, Optional[str]]) -> None:
        self.urls = urls
        self.queried: List[str] = []

    def repository_url(self, name: str) -> Optional[str]:
        self.queried.append(name)
        return self.urls.get(name)


class Recorder(Check):
    name = "Recorder"

    def __init__(self) -> None:
        self.seen: List[str] = []

    def run(self, request):  # type: ignore[no-untyped-def]
        self.seen.append(request.repository.name)
        return max_score_result(self.name, "seen")


def _github_source() -> StaticSource:
    return StaticSource(
        {
            "github.com/acme/alpha": "https://github.com/acme/alpha",
            "github.com/acme/beta": "https://github.com/acme/beta",
            "github.com/acme/gamma": "https://github.com/acme/gamma",
        }
    )


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_ignored_dependencies_are_never_resolved_or_evaluated(tmp_path: Path) -> None:
    source = _github_source()
    recorder = Recorder()
    registry = CheckRegistry()
    registry.register(recorder)
    gate = Gate(
        PolicyConfig(ignore=frozenset({"github.com/acme/beta"})),
        registry,
        RepositoryResolver({"go": source}),
        lambda repository: FakeRepoClient(),
    )

    report = gate.run(_write(tmp_path, "go.sum", GO_SUM))

    assert [dep.name for dep in report.dependencies] == ["github.com/acme/alpha", "github.com/acme/gamma"]
    assert source.queried == ["github.com/acme/alpha", "github.com/acme/gamma"]
    assert sorted(recorder.seen) == ["alpha", "gamma"]
    assert len(report.results) == 2
    assert report.passed is True


def test_unresolvable_dependencies_are_dropped_with_diagnostics(tmp_path: Path) -> None:
    source = StaticSource(
        {
            "github.com/acme/alpha": "https://github.com/acme/alpha",
            "github.com/acme/beta": "https://gitlab.com/acme/beta",
        }
    )
    registry = CheckRegistry()
    registry.register(Recorder())
    gate = Gate(PolicyConfig(), registry, RepositoryResolver({"go": source}), lambda repository: FakeRepoClient())

    report = gate.run(_write(tmp_path, "go.sum", GO_SUM))

    assert [handle for _, handle in report.resolved] == [RepositoryHandle("github.com", "acme", "alpha")]
    assert [result.dependency.name for result in report.results] == ["github.com/acme/alpha"]
    assert [(diag.kind, diag.subject) for diag in report.diagnostics] == [
        ("resolution", "github.com/acme/beta"),
        ("resolution", "github.com/acme/gamma"),
    ]


def test_check_runtime_error_does_not_abort_the_gate(tmp_path: Path) -> None:
    clients = {
        "alpha": FakeRepoClient(
            files={".github/workflows/release.yml": RELEASE},
            runs={"release.yml": [successful_run()]},
        ),
        "beta": FakeRepoClient(files={".github/workflows/release.yml": "jobs: [broken\n"}),
    }

    class Baseline(Check):
        name = "Baseline"

        def run(self, request):  # type: ignore[no-untyped-def]
            return max_score_result(self.name, "ok")

    registry = CheckRegistry()
    registry.register(PackagingCheck())
    registry.register(Baseline())
    manifest = _write(tmp_path, "go.sum", "\n".join(GO_SUM.splitlines()[:2]) + "\n")
    gate = Gate(
        PolicyConfig(min_score=5, required_checks=[RequiredCheck("Packaging", 8)]),
        registry,
        RepositoryResolver({"go": _github_source()}),
        lambda repository: clients[repository.name],
    )

    report = gate.run(manifest)

    alpha, beta = report.results
    assert [check.name for check in alpha.checks] == ["Packaging", "Baseline"]
    assert [check.name for check in beta.checks] == ["Baseline"]
    assert beta.score == 10
    assert report.violations == []
    assert [(diag.kind, diag.subject) for diag in report.diagnostics] == [("check", "github.com/acme/beta")]


def test_gate_reports_violations(tmp_path: Path) -> None:
    registry = CheckRegistry()
    registry.register(PackagingCheck())
    gate = Gate(
        PolicyConfig(min_score=5),
        registry,
        RepositoryResolver({"go": _github_source()}),
        lambda repository: FakeRepoClient(files={".github/workflows/release.yml": RELEASE}),
    )

    report = gate.run(_write(tmp_path, "go.sum", "github.com/acme/alpha v1.0.0 h1:aaaa=\n"))

    assert report.passed is False
    assert [violation.kind for violation in report.violations] == [BELOW_MINIMUM_SCORE]


def test_unsupported_manifest_yields_no_dependencies(tmp_path: Path) -> None:
    gate = Gate(PolicyConfig(), CheckRegistry(), RepositoryResolver({}), lambda repository: FakeRepoClient())

    report = gate.run(_write(tmp_path, "Cargo.lock", "[[package]]\n"))

    assert report.dependencies == []
    assert report.passed is True
    assert report.diagnostics[0].kind == "manifest"


def test_malformed_manifest_is_fatal(tmp_path: Path) -> None:
    gate = Gate(PolicyConfig(), CheckRegistry(), RepositoryResolver({}), lambda repository: FakeRepoClient())

    with pytest.raises(ParseError):
        gate.run(_write(tmp_path, "go.sum", "not a go.sum line\n"))


def test_unknown_required_check_is_a_config_error(tmp_path: Path) -> None:
    gate = Gate(
        PolicyConfig(required_checks=[RequiredCheck("Nope", 0)]),
        CheckRegistry(),
        RepositoryResolver({}),
        lambda repository: FakeRepoClient(),
    )

    with pytest.raises(ConfigError, match="Nope"):
        gate.run(_write(tmp_path, "go.sum", GO_SUM))
