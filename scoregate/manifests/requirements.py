"""Parser for pinned Python requirements files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import AbstractSet, List, Set

from .base import ManifestParser, ParseError
from ..logging import get_logger
from ..models import Dependency

_NAME_PATTERN = re.compile(r"^(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)\s*(?P<rest>.*)$")
_REST_PATTERN = re.compile(r"^(\[[^\]]*\])?\s*([<>=!~]=?.*|@.*)?\s*(;.*)?$")
_URL_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://\S")
_EGG_PATTERN = re.compile(r"[#&]egg=(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)")


def normalize_name(name: str) -> str:
    """Return the PEP 503 normalised form of a distribution name."""
    return re.sub(r"[-_.]+", "-", name).lower()


class RequirementsParser(ManifestParser):
    """Reads distribution names from ``requirements*.txt`` lock files."""

    ecosystem = "pypi"

    def __init__(self) -> None:
        self.logger = get_logger("manifests.requirements")

    def supports(self, path: Path) -> bool:
        return path.name.startswith("requirements") and path.suffix == ".txt"

    def get_dependencies(self, path: Path, ignore: AbstractSet[str]) -> List[Dependency]:
        ignored = {normalize_name(name) for name in ignore}
        dependencies: List[Dependency] = []
        seen: Set[str] = set()
        for lineno, line in enumerate(_logical_lines(self._read_text(path)), start=1):
            stripped = line.split(" #", 1)[0].strip()
            if not stripped or stripped.startswith(("#", "-")):
                continue
            if _URL_PATTERN.match(stripped):
                egg = _EGG_PATTERN.search(stripped)
                if egg is None:
                    self.logger.debug("Skipping unnamed URL requirement %s", stripped)
                    continue
                raw_name = egg.group("name")
            else:
                match = _NAME_PATTERN.match(stripped)
                if not match or not _REST_PATTERN.match(match.group("rest")):
                    raise ParseError(f"{path.name}: cannot parse requirement {stripped!r} (entry {lineno})")
                raw_name = match.group("name")
            name = normalize_name(raw_name)
            if name in seen:
                continue
            seen.add(name)
            if name in ignored:
                self.logger.debug("Ignoring dependency %s", name)
                continue
            dependencies.append(Dependency(name=name, ecosystem=self.ecosystem))
        return dependencies


def _logical_lines(text: str) -> List[str]:
    lines: List[str] = []
    pending = ""
    for raw in text.splitlines():
        if raw.rstrip().endswith("\\"):
            pending += raw.rstrip()[:-1] + " "
            continue
        lines.append(pending + raw)
        pending = ""
    if pending:
        lines.append(pending)
    return lines


__all__ = ["RequirementsParser", "normalize_name"]
