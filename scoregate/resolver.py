"""Resolution of dependency names to source repositories."""

from __future__ import annotations

import re
from html import unescape
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple
from urllib.parse import quote

from .logging import get_logger
from .models import Dependency, RepositoryHandle, parse_repository_url
from .transport import DEFAULT_TIMEOUT, FetchError, Fetcher, fetch_json, urllib_fetch

SUPPORTED_HOST = "github.com"

_META_TAG = re.compile(r"<meta\s+[^>]*>", re.IGNORECASE)
_META_ATTR = re.compile(r"""(name|content)\s*=\s*("[^"]*"|'[^']*')""", re.IGNORECASE)
_PYPI_URL_KEYS = (
    "source",
    "source code",
    "repository",
    "code",
    "github",
    "homepage",
    "home",
)


class MetadataError(RuntimeError):
    """Raised when a package metadata source cannot be queried."""


class ResolutionError(RuntimeError):
    """Raised when a dependency cannot be mapped to a supported repository."""


class MetadataSource(Protocol):
    """Looks up the declared source repository URL of a package."""

    def repository_url(self, name: str) -> Optional[str]:
        """Return the repository URL for ``name`` or None when none is declared."""


class _HTTPSource:
    def __init__(self, *, fetch: Fetcher | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._fetch = fetch or urllib_fetch
        self.timeout = timeout

    def _get_json(self, url: str) -> Any:
        try:
            return fetch_json(self._fetch, url, headers={"Accept": "application/json"}, timeout=self.timeout)
        except FetchError as exc:
            if exc.status == 404:
                return None
            raise MetadataError(str(exc)) from exc


class GoProxySource(_HTTPSource):
    """Resolves Go module paths, following ``go-import``/``go-source`` meta tags for vanity paths."""

    def repository_url(self, name: str) -> Optional[str]:
        if name.startswith(f"{SUPPORTED_HOST}/"):
            parts = name.split("/")
            if len(parts) >= 3:
                return "https://" + "/".join(parts[:3])
            return None

        url = f"https://{name}?go-get=1"
        try:
            raw = self._fetch(url, {"Accept": "text/html"}, self.timeout)
        except FetchError as exc:
            if exc.status == 404:
                return None
            raise MetadataError(str(exc)) from exc
        return _go_import_repo(raw.decode("utf-8", errors="replace"), name)


class PyPISource(_HTTPSource):
    """Resolves distributions through the PyPI JSON API."""

    base_url = "https://pypi.org/pypi"

    def repository_url(self, name: str) -> Optional[str]:
        payload = self._get_json(f"{self.base_url}/{quote(name)}/json")
        if not isinstance(payload, dict) or not isinstance(payload.get("info"), dict):
            return None
        info = payload["info"]
        candidates: List[str] = []
        project_urls = info.get("project_urls")
        if isinstance(project_urls, dict):
            by_key = {str(key).strip().lower(): value for key, value in project_urls.items()}
            candidates.extend(str(by_key[key]) for key in _PYPI_URL_KEYS if by_key.get(key))
            candidates.extend(str(value) for value in project_urls.values() if value)
        if info.get("home_page"):
            candidates.append(str(info["home_page"]))
        return _first_on_host(candidates) or (candidates[0] if candidates else None)


class NpmRegistrySource(_HTTPSource):
    """Resolves packages through the npm registry ``repository`` field."""

    base_url = "https://registry.npmjs.org"

    def repository_url(self, name: str) -> Optional[str]:
        payload = self._get_json(f"{self.base_url}/{quote(name, safe='@')}")
        if not isinstance(payload, dict):
            return None
        repository = payload.get("repository")
        if isinstance(repository, dict):
            repository = repository.get("url")
        if isinstance(repository, str) and repository.strip():
            return repository.strip()
        return None


def default_sources(*, fetch: Fetcher | None = None, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, MetadataSource]:
    return {
        "go": GoProxySource(fetch=fetch, timeout=timeout),
        "pypi": PyPISource(fetch=fetch, timeout=timeout),
        "npm": NpmRegistrySource(fetch=fetch, timeout=timeout),
    }


class RepositoryResolver:
    """Maps dependencies to canonical repository handles on the supported host."""

    def __init__(
        self,
        sources: Optional[Mapping[str, MetadataSource]] = None,
        *,
        supported_host: str = SUPPORTED_HOST,
    ) -> None:
        self.sources = dict(sources) if sources is not None else default_sources()
        self.supported_host = supported_host
        self.logger = get_logger("resolver")

    def resolve(self, dependency: Dependency) -> RepositoryHandle:
        source = self.sources.get(dependency.ecosystem)
        if source is None:
            raise ResolutionError(f"no metadata source for ecosystem '{dependency.ecosystem or 'unknown'}'")

        try:
            url = source.repository_url(dependency.name)
        except MetadataError as exc:
            raise ResolutionError(f"metadata lookup failed: {exc}") from exc
        if not url:
            raise ResolutionError("no source repository declared")

        try:
            handle = parse_repository_url(url)
        except ValueError as exc:
            raise ResolutionError(str(exc)) from exc
        if handle.host != self.supported_host:
            raise ResolutionError(f"unsupported repository host '{handle.host}' ({url})")

        self.logger.debug("Resolved %s to %s", dependency.name, handle)
        return handle


def _go_import_repo(html: str, module: str) -> Optional[str]:
    """Return the repository root for ``module`` from its meta tags.

    The longest matching ``go-import`` prefix wins. When no usable
    ``go-import`` tag matches, the home URL of the best ``go-source`` tag is used.
    """
    candidates: Dict[str, Tuple[str, str]] = {}
    for tag in _META_TAG.findall(html):
        attrs = {key.lower(): unescape(value[1:-1]) for key, value in _META_ATTR.findall(tag)}
        kind = attrs.get("name")
        fields = attrs.get("content", "").split()
        if kind == "go-import" and len(fields) == 3 and fields[1] != "mod":
            prefix, repo_root = fields[0], fields[2]
        elif kind == "go-source" and len(fields) == 4 and fields[1] != "_":
            prefix, repo_root = fields[0], fields[1]
        else:
            continue
        if not (module == prefix or module.startswith(f"{prefix}/")):
            continue
        best = candidates.get(kind)
        if best is None or len(prefix) > len(best[0]):
            candidates[kind] = (prefix, repo_root)
    for kind in ("go-import", "go-source"):
        if kind in candidates:
            return candidates[kind][1]
    return None


def _first_on_host(urls: Iterable[str]) -> Optional[str]:
    for url in urls:
        try:
            handle = parse_repository_url(url)
        except ValueError:
            continue
        if handle.host == SUPPORTED_HOST:
            return url
    return None


__all__ = [
    "GoProxySource",
    "MetadataError",
    "MetadataSource",
    "NpmRegistrySource",
    "PyPISource",
    "RepositoryResolver",
    "ResolutionError",
    "SUPPORTED_HOST",
    "default_sources",
]
