"""Security policy presence check."""

from __future__ import annotations

from .base import Check, CheckRequest, CheckRuntimeError, max_score_result, min_score_result
from ..clients.base import RepoClientError
from ..models import CheckResult

_POLICY_LOCATIONS = ("", ".github/", "docs/")
_POLICY_NAMES = ("security.md", "security.markdown", "security.rst", "security.txt")


def is_security_policy(path: str) -> bool:
    lowered = path.lower()
    return any(lowered == f"{prefix}{name}" for prefix in _POLICY_LOCATIONS for name in _POLICY_NAMES)


class SecurityPolicyCheck(Check):
    """Passes when the repository publishes a vulnerability disclosure policy."""

    name = "Security-Policy"

    def run(self, request: CheckRequest) -> CheckResult:
        try:
            matches = request.client.list_files(is_security_policy)
        except RepoClientError as exc:
            raise CheckRuntimeError(self.name, str(exc)) from exc

        if matches:
            request.logger.debug("security policy found at %s", matches[0])
            return max_score_result(self.name, f"security policy file detected: {matches[0]}")
        return min_score_result(self.name, "security policy file not detected")


__all__ = ["SecurityPolicyCheck", "is_security_policy"]
