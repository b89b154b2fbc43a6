"""Parser for Go module checksum files (go.sum)."""

from __future__ import annotations

from pathlib import Path
from typing import AbstractSet, List, Set

from .base import ManifestParser, ParseError
from ..logging import get_logger
from ..models import Dependency


class GoSumParser(ManifestParser):
    """Reads module paths from ``go.sum``.

    Each module usually appears twice (the module zip and its ``/go.mod``
    pseudo-version); both collapse onto one dependency in order of first
    appearance.
    """

    ecosystem = "go"

    def __init__(self) -> None:
        self.logger = get_logger("manifests.gosum")

    def supports(self, path: Path) -> bool:
        return path.name == "go.sum"

    def get_dependencies(self, path: Path, ignore: AbstractSet[str]) -> List[Dependency]:
        dependencies: List[Dependency] = []
        seen: Set[str] = set()
        for lineno, line in enumerate(self._read_text(path).splitlines(), start=1):
            stripped = line.strip()
            if not stripped:
                continue
            fields = stripped.split()
            if len(fields) != 3:
                raise ParseError(f"{path.name}:{lineno}: expected 'module version hash', got {stripped!r}")
            module, version, checksum = fields
            if not version.startswith("v") or ":" not in checksum:
                raise ParseError(f"{path.name}:{lineno}: malformed entry for {module}")
            if module in seen:
                continue
            seen.add(module)
            if module in ignore:
                self.logger.debug("Ignoring dependency %s", module)
                continue
            dependencies.append(Dependency(name=module, ecosystem=self.ecosystem))
        return dependencies


__all__ = ["GoSumParser"]
