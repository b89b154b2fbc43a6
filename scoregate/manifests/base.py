"""Base classes for manifest parser plugins."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import AbstractSet, List

from ..models import Dependency


class ParseError(RuntimeError):
    """Raised when a manifest cannot be read or is malformed."""


class ManifestParser(ABC):
    """Contract for parsers that turn a lock file into declared dependencies."""

    ecosystem: str = ""

    @abstractmethod
    def supports(self, path: Path) -> bool:
        """Return True when this parser understands the manifest at ``path``."""

    @abstractmethod
    def get_dependencies(self, path: Path, ignore: AbstractSet[str]) -> List[Dependency]:
        """Return declared dependencies in manifest order, minus ignored names."""

    def _read_text(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(f"Unable to read manifest {path}: {exc}") from exc
