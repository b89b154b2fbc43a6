"""Core data models shared across scoregate components."""

from dataclasses import dataclass, field
import re
from typing import List, Optional, Tuple

MIN_SCORE = 0
MAX_SCORE = 10
INCONCLUSIVE_SCORE = -1

MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 10

_SCP_URL = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+):(?P<path>[^/].*)$")


@dataclass(frozen=True)
class Dependency:
    """A dependency declared by a manifest."""

    name: str
    ecosystem: str = ""


@dataclass(frozen=True)
class RepositoryHandle:
    """Canonical location of a dependency's source repository."""

    host: str
    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return f"{self.host}/{self.owner}/{self.name}"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check against one repository."""

    name: str
    score: int
    confidence: int
    passed: bool
    reason: str

    @property
    def inconclusive(self) -> bool:
        return self.score == INCONCLUSIVE_SCORE


@dataclass
class AggregateResult:
    """All check results collected for one resolved dependency."""

    dependency: Dependency
    repository: RepositoryHandle
    score: int
    checks: List[CheckResult] = field(default_factory=list)

    @property
    def inconclusive(self) -> bool:
        return self.score == INCONCLUSIVE_SCORE

    def check(self, name: str) -> Optional[CheckResult]:
        for result in self.checks:
            if result.name == name:
                return result
        return None


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal event recorded while running the gate."""

    kind: str
    subject: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.subject}: {self.message}"


def aggregate_score(results: List[CheckResult]) -> int:
    """Floor of the mean conclusive score, or the inconclusive sentinel."""
    scores = [result.score for result in results if not result.inconclusive]
    if not scores:
        return INCONCLUSIVE_SCORE
    return sum(scores) // len(scores)


def parse_repository_url(url: str) -> RepositoryHandle:
    """Normalise a repository URL to a ``(host, owner, name)`` handle.

    Accepts the shapes package registries publish in practice: ``https://``,
    ``git+https://``, ``git://``, ``ssh://git@``, scp-like ``git@host:owner/name``,
    and the ``github:owner/name`` shorthand. Raises ``ValueError`` when no owner
    and repository name can be extracted.
    """
    text = url.strip()
    if not text:
        raise ValueError("empty repository URL")

    if text.startswith("github:"):
        host, path = "github.com", text[len("github:"):]
    else:
        host, path = _split_host_path(text)

    host = host.lower()
    if host.startswith("www."):
        host = host[len("www."):]

    parts = [part for part in path.split("/") if part]
    if len(parts) < 2 or not host:
        raise ValueError(f"cannot extract owner and name from '{url}'")
    owner, name = parts[0], parts[1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not owner or not name:
        raise ValueError(f"cannot extract owner and name from '{url}'")
    return RepositoryHandle(host=host, owner=owner.lower(), name=name.lower())


def _split_host_path(text: str) -> Tuple[str, str]:
    if text.startswith("git+"):
        text = text[len("git+"):]
    if "://" in text:
        _, remainder = text.split("://", 1)
        authority, _, path = remainder.partition("/")
        authority = authority.rsplit("@", 1)[-1]
        host = authority.split(":", 1)[0]
        path = path.split("#", 1)[0].split("?", 1)[0]
        return host, path
    scp = _SCP_URL.match(text)
    if scp:
        return scp.group("host"), scp.group("path")
    host, _, path = text.partition("/")
    return host, path
