"""Check plugin implementations and the check registry."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, Iterator, List, Sequence, Set

from .base import (
    Check,
    CheckRequest,
    CheckRuntimeError,
    inconclusive_result,
    max_score_result,
    min_score_result,
)
from .packaging import PackagingCheck
from .security_policy import SecurityPolicyCheck
from ..config import ConfigError

_ENTRY_POINT_GROUP = "scoregate.checks"

_BUILTIN_FACTORIES: Dict[str, Callable[[], Check]] = {
    PackagingCheck.name: PackagingCheck,
    SecurityPolicyCheck.name: SecurityPolicyCheck,
}


class RegistryError(ConfigError):
    """Raised when checks cannot be registered or selected."""


class CheckRegistry:
    """Named catalog of checks, run in registration order against every repository.

    Built once at startup and passed explicitly to the pipeline.
    """

    def __init__(self) -> None:
        self._checks: Dict[str, Check] = {}

    def register(self, check: Check) -> None:
        if not isinstance(check, Check):
            raise RegistryError(f"{check!r} does not implement the Check contract")
        if not check.name:
            raise RegistryError(f"{check.__class__.__name__} has no check name")
        if check.name in self._checks:
            raise RegistryError(f"Check name '{check.name}' is registered twice")
        self._checks[check.name] = check

    def get(self, name: str) -> Check:
        try:
            return self._checks[name]
        except KeyError:
            raise RegistryError(f"Unknown check '{name}'") from None

    def names(self) -> List[str]:
        return list(self._checks)

    def __iter__(self) -> Iterator[Check]:
        return iter(list(self._checks.values()))

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, name: object) -> bool:
        return name in self._checks


def build_registry(enabled: Sequence[str] | None = None) -> CheckRegistry:
    """Register built-in and entry-point checks, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    registry = CheckRegistry()

    def _add(factory: Callable[[], Check]) -> None:
        instance = _coerce_check(factory)
        key = instance.name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        registry.register(instance)
        if enabled_set is not None:
            enabled_set.discard(key)

    for factory in _BUILTIN_FACTORIES.values():
        _add(factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - depends on installed plugins
            raise RegistryError(f"Failed to load check entry point '{entry.name}': {exc}") from exc
        _add(loaded)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise RegistryError(f"Unknown checks requested: {missing}")

    return registry


def _coerce_check(obj: object) -> Check:
    if isinstance(obj, Check):
        return obj
    if isinstance(obj, type) and issubclass(obj, Check):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Check):
            return instance
    raise RegistryError("Check entry point must be a Check subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = [
    "Check",
    "CheckRegistry",
    "CheckRequest",
    "CheckRuntimeError",
    "PackagingCheck",
    "RegistryError",
    "SecurityPolicyCheck",
    "build_registry",
    "inconclusive_result",
    "max_score_result",
    "min_score_result",
]
