"""Policy enforcement over per-repository aggregate results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .config import PolicyConfig
from .logging import get_logger
from .models import AggregateResult

BELOW_MINIMUM_SCORE = "below-minimum-score"
REQUIRED_CHECK_FAILED = "required-check-failed"


@dataclass(frozen=True)
class Violation:
    """One policy violation for one dependency."""

    kind: str
    dependency: str
    message: str

    def __str__(self) -> str:
        return self.message


class PolicyEngine:
    """Applies a :class:`PolicyConfig` to aggregate results."""

    def __init__(self, policy: PolicyConfig) -> None:
        self.policy = policy
        self.logger = get_logger("policy")

    def evaluate(self, results: Iterable[AggregateResult]) -> List[Violation]:
        violations: List[Violation] = []
        for result in results:
            violations.extend(self.evaluate_one(result))
        return violations

    def evaluate_one(self, result: AggregateResult) -> List[Violation]:
        name = result.dependency.name
        violations: List[Violation] = []

        if result.inconclusive:
            self.logger.debug("No conclusive score for %s; minimum score not enforced", name)
        elif result.score < self.policy.min_score:
            violations.append(
                Violation(
                    kind=BELOW_MINIMUM_SCORE,
                    dependency=name,
                    message=(
                        f"Score of {result.score} for {name} is below the minimum score of "
                        f"{self.policy.min_score}."
                    ),
                )
            )
        else:
            self.logger.info("%s scored %d", name, result.score)

        for required in self.policy.required_checks:
            check = result.check(required.name)
            if check is None:
                self.logger.debug("No %s result for %s; requirement skipped", required.name, name)
                continue
            if check.confidence < required.min_confidence:
                self.logger.debug(
                    "%s confidence %d for %s is below %d; requirement skipped",
                    required.name,
                    check.confidence,
                    name,
                    required.min_confidence,
                )
                continue
            if not check.passed:
                violations.append(
                    Violation(
                        kind=REQUIRED_CHECK_FAILED,
                        dependency=name,
                        message=(
                            f"Required check {check.name} did not pass for {name} "
                            f"(confidence {check.confidence})."
                        ),
                    )
                )
        return violations


__all__ = ["BELOW_MINIMUM_SCORE", "PolicyEngine", "REQUIRED_CHECK_FAILED", "Violation"]
