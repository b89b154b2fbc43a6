"""Tests for the policy engine."""

from __future__ import annotations

from scoregate.config import PolicyConfig, RequiredCheck
from scoregate.models import INCONCLUSIVE_SCORE, AggregateResult, CheckResult, Dependency, RepositoryHandle
from scoregate.policy import BELOW_MINIMUM_SCORE, REQUIRED_CHECK_FAILED, PolicyEngine


def _aggregate(name: str, score: int, *checks: CheckResult) -> AggregateResult:
    return AggregateResult(
        dependency=Dependency(name),
        repository=RepositoryHandle("github.com", "acme", name),
        score=score,
        checks=list(checks),
    )


def test_score_below_minimum_is_a_violation() -> None:
    engine = PolicyEngine(PolicyConfig(min_score=7))

    violations = engine.evaluate([_aggregate("widget", 6), _aggregate("gadget", 7)])

    assert len(violations) == 1
    assert violations[0].kind == BELOW_MINIMUM_SCORE
    assert str(violations[0]) == "Score of 6 for widget is below the minimum score of 7."


def test_inconclusive_aggregate_is_not_held_to_minimum_score() -> None:
    engine = PolicyEngine(PolicyConfig(min_score=7))

    assert engine.evaluate([_aggregate("widget", INCONCLUSIVE_SCORE)]) == []


def test_low_confidence_required_check_is_skipped() -> None:
    engine = PolicyEngine(PolicyConfig(required_checks=[RequiredCheck("X", 8)]))
    result = _aggregate("widget", 10, CheckResult("X", 0, 5, False, "failed"))

    assert engine.evaluate([result]) == []


def test_confident_failed_required_check_is_a_violation() -> None:
    engine = PolicyEngine(PolicyConfig(required_checks=[RequiredCheck("X", 8)]))
    result = _aggregate("widget", 10, CheckResult("X", 0, 8, False, "failed"))

    violations = engine.evaluate([result])

    assert [violation.kind for violation in violations] == [REQUIRED_CHECK_FAILED]
    assert violations[0].message == "Required check X did not pass for widget (confidence 8)."


def test_missing_required_check_result_is_skipped() -> None:
    engine = PolicyEngine(PolicyConfig(required_checks=[RequiredCheck("X", 0)]))

    assert engine.evaluate([_aggregate("widget", 10, CheckResult("Y", 0, 10, False, ""))]) == []


def test_violations_accumulate_in_order() -> None:
    policy = PolicyConfig(
        min_score=5,
        required_checks=[RequiredCheck("A", 0), RequiredCheck("B", 0)],
    )
    engine = PolicyEngine(policy)
    first = _aggregate(
        "first",
        0,
        CheckResult("A", 0, 10, False, ""),
        CheckResult("B", 0, 10, False, ""),
    )
    second = _aggregate("second", 10, CheckResult("B", 10, 10, True, ""))

    violations = engine.evaluate([first, second])

    assert [(violation.dependency, violation.kind) for violation in violations] == [
        ("first", BELOW_MINIMUM_SCORE),
        ("first", REQUIRED_CHECK_FAILED),
        ("first", REQUIRED_CHECK_FAILED),
    ]
