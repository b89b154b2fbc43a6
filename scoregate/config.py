"""Policy configuration loading for scoregate (policy YAML files)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, List, Mapping, Optional

import yaml

from .models import MAX_CONFIDENCE, MAX_SCORE, MIN_CONFIDENCE, MIN_SCORE

DEFAULT_MAX_WORKERS = 8
DEFAULT_POLICY_FILE = "scoregate.yml"

ENV_TOKEN_KEYS = ("SCOREGATE_GITHUB_TOKEN", "GITHUB_TOKEN")


class ConfigError(RuntimeError):
    """Raised when the policy file is missing or malformed."""


@dataclass(frozen=True)
class RequiredCheck:
    """A check that must pass whenever it reports enough confidence."""

    name: str
    min_confidence: int = MIN_CONFIDENCE


@dataclass(frozen=True)
class PolicyConfig:
    """Thresholds applied to every evaluated dependency."""

    min_score: int = MIN_SCORE
    required_checks: List[RequiredCheck] = field(default_factory=list)
    ignore: FrozenSet[str] = frozenset()
    max_workers: int = DEFAULT_MAX_WORKERS


def load_policy(path: Path) -> PolicyConfig:
    """Load and validate the policy file at ``path``."""
    policy_file = _resolve_policy_path(path)
    try:
        text = policy_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read policy file {policy_file}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {policy_file.name}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{policy_file.name} must contain a mapping at the root")
    return parse_policy(data)


def parse_policy(data: Mapping[str, Any]) -> PolicyConfig:
    """Build a :class:`PolicyConfig` from an already-decoded mapping."""
    min_score = _as_int(data.get("min_score", MIN_SCORE), "min_score")
    if not MIN_SCORE <= min_score <= MAX_SCORE:
        raise ConfigError(f"min_score must be between {MIN_SCORE} and {MAX_SCORE}, got {min_score}")

    required_checks = [
        _parse_required_check(index, entry)
        for index, entry in enumerate(_as_list(data.get("required_checks"), "required_checks"))
    ]

    ignore: List[str] = []
    for item in _as_list(data.get("ignore_dependencies"), "ignore_dependencies"):
        if not isinstance(item, str) or not item.strip():
            raise ConfigError("ignore_dependencies entries must be non-empty strings")
        ignore.append(item.strip())

    evaluation = data.get("evaluation") or {}
    if not isinstance(evaluation, dict):
        raise ConfigError("evaluation must be a mapping")
    max_workers = _as_int(evaluation.get("max_workers", DEFAULT_MAX_WORKERS), "evaluation.max_workers")
    if max_workers < 1:
        raise ConfigError("evaluation.max_workers must be at least 1")

    return PolicyConfig(
        min_score=min_score,
        required_checks=required_checks,
        ignore=frozenset(ignore),
        max_workers=max_workers,
    )


def github_token(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the first GitHub token found in the environment."""
    env = os.environ if environ is None else environ
    for key in ENV_TOKEN_KEYS:
        value = env.get(key)
        if value:
            return value
    return None


def _resolve_policy_path(path: Path) -> Path:
    path = path.expanduser()
    if path.is_dir():
        return (path / DEFAULT_POLICY_FILE).resolve()
    return path.resolve()


def _parse_required_check(index: int, entry: Any) -> RequiredCheck:
    if not isinstance(entry, dict):
        raise ConfigError(f"required_checks[{index}] must be a mapping")
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"required_checks[{index}].name must be a non-empty string")
    confidence = _as_int(entry.get("confidence", MIN_CONFIDENCE), f"required_checks[{index}].confidence")
    if not MIN_CONFIDENCE <= confidence <= MAX_CONFIDENCE:
        raise ConfigError(
            f"required_checks[{index}].confidence must be between "
            f"{MIN_CONFIDENCE} and {MAX_CONFIDENCE}, got {confidence}"
        )
    return RequiredCheck(name=name.strip(), min_confidence=confidence)


def _as_int(value: Any, key: str) -> int:
    # bool is an int subclass and must be rejected explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    return value


def _as_list(value: Any, key: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    return value


__all__ = [
    "ConfigError",
    "DEFAULT_MAX_WORKERS",
    "PolicyConfig",
    "RequiredCheck",
    "github_token",
    "load_policy",
    "parse_policy",
]

