"""Parser for npm lock files (package-lock.json)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import AbstractSet, Any, Dict, Iterable, List, Set

from .base import ManifestParser, ParseError
from ..logging import get_logger
from ..models import Dependency

_NODE_MODULES = "node_modules/"


class PackageLockParser(ManifestParser):
    """Reads package names from ``package-lock.json`` (lockfile v1, v2 and v3)."""

    ecosystem = "npm"

    def __init__(self) -> None:
        self.logger = get_logger("manifests.packagelock")

    def supports(self, path: Path) -> bool:
        return path.name in {"package-lock.json", "npm-shrinkwrap.json"}

    def get_dependencies(self, path: Path, ignore: AbstractSet[str]) -> List[Dependency]:
        try:
            data = json.loads(self._read_text(path))
        except json.JSONDecodeError as exc:
            raise ParseError(f"{path.name} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError(f"{path.name} must contain a JSON object")

        packages = data.get("packages")
        if isinstance(packages, dict):
            names = _names_from_packages(packages)
        elif isinstance(data.get("dependencies"), dict):
            names = _names_from_dependencies(data["dependencies"])
        elif "packages" in data or "dependencies" in data:
            raise ParseError(f"{path.name}: 'packages' and 'dependencies' must be objects")
        else:
            names = []

        dependencies: List[Dependency] = []
        seen: Set[str] = set()
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            if name in ignore:
                self.logger.debug("Ignoring dependency %s", name)
                continue
            dependencies.append(Dependency(name=name, ecosystem=self.ecosystem))
        return dependencies


def _names_from_packages(packages: Dict[str, Any]) -> Iterable[str]:
    for key, entry in packages.items():
        if not key or _NODE_MODULES not in key:
            # "" is the root project; workspace members have no node_modules prefix.
            continue
        if isinstance(entry, dict) and entry.get("link"):
            continue
        yield key.rsplit(_NODE_MODULES, 1)[1]


def _names_from_dependencies(dependencies: Dict[str, Any]) -> Iterable[str]:
    for name, entry in dependencies.items():
        yield name
        if isinstance(entry, dict) and isinstance(entry.get("dependencies"), dict):
            yield from _names_from_dependencies(entry["dependencies"])


__all__ = ["PackageLockParser"]
