"""HTTP GET transport shared by metadata sources and repository clients."""

from __future__ import annotations

import http.client
import json
from typing import Any, Callable, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "scoregate"

Fetcher = Callable[[str, Mapping[str, str], float], bytes]


class FetchError(RuntimeError):
    """Raised when an HTTP request fails; ``status`` is set for HTTP error responses."""

    def __init__(self, message: str, *, url: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


def urllib_fetch(url: str, headers: Mapping[str, str], timeout: float) -> bytes:
    """Perform a GET request with ``urllib`` and return the raw body."""
    merged = {"User-Agent": USER_AGENT, **headers}
    request = Request(url, headers=merged, method="GET")
    try:
        with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
            return response.read()
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
        message = detail.strip()[:200] or exc.reason
        raise FetchError(f"GET {url} failed with status {exc.code}: {message}", url=url, status=exc.code) from exc
    except URLError as exc:
        raise FetchError(f"GET {url} failed: {exc.reason}", url=url) from exc
    except TimeoutError as exc:
        raise FetchError(f"GET {url} timed out after {timeout}s", url=url) from exc
    except (OSError, http.client.HTTPException) as exc:
        # Raised by getresponse() and read() without URLError wrapping.
        raise FetchError(f"GET {url} failed: {exc.__class__.__name__}: {exc}", url=url) from exc


def fetch_json(
    fetch: Fetcher,
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET ``url`` through ``fetch`` and decode the JSON body."""
    raw = fetch(url, dict(headers or {}), timeout)
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise FetchError(f"GET {url} returned invalid JSON", url=url) from exc


__all__ = ["DEFAULT_TIMEOUT", "FetchError", "Fetcher", "fetch_json", "urllib_fetch"]
