"""Manifest parser implementations and selection."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from .base import ManifestParser, ParseError
from .gosum import GoSumParser
from .packagelock import PackageLockParser
from .requirements import RequirementsParser


def default_parsers() -> List[ManifestParser]:
    """Return one instance of every built-in parser, in selection order."""
    return [GoSumParser(), RequirementsParser(), PackageLockParser()]


def select_parser(path: Path, parsers: Sequence[ManifestParser]) -> Optional[ManifestParser]:
    """Return the first parser that supports ``path``, if any."""
    for parser in parsers:
        if parser.supports(path):
            return parser
    return None


__all__ = [
    "GoSumParser",
    "ManifestParser",
    "PackageLockParser",
    "ParseError",
    "RequirementsParser",
    "default_parsers",
    "select_parser",
]
