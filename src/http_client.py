"""Single-shot HTTP gateway and cursor pagination shared by both API clients."""

from __future__ import annotations

import asyncio
import os
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import requests

from .errors import PageFetchError

REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "90"))
BODY_METHODS = {"POST", "PUT", "PATCH"}


@dataclass(frozen=True)
class ClientProfile:
    """Headers, credentials and timeout for one API credential set."""

    headers: Mapping[str, str]
    auth: Optional[Tuple[str, str]] = None
    timeout: float = REQUEST_TIMEOUT


@dataclass(frozen=True)
class ApiResult:
    """Uniform outcome of a request: ``ok`` plus the decoded JSON payload."""

    ok: bool
    status_code: Optional[int] = None
    payload: Any = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a top-level payload field, or ``default`` for non-object payloads."""
        if isinstance(self.payload, dict):
            return self.payload.get(key, default)
        return default


@dataclass
class PageWalk:
    """Items gathered by :func:`paged_get` and how the walk ended."""

    items: List[Any] = field(default_factory=list)
    pages: int = 0
    error: Optional[PageFetchError] = None

    @property
    def failed(self) -> bool:
        """A page failed before anything was kept."""
        return self.error is not None and not self.items

    @property
    def partial(self) -> bool:
        """A page failed after earlier pages had already yielded items."""
        return self.error is not None and bool(self.items)


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        body = {}
    err = body.get("error")
    if isinstance(err, dict):
        err = err.get("message")
    return body.get("message") or err or body.get("text") or resp.reason or ""


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when a host returns an error."""
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {_error_message(resp)}")


def make_request(method: str,
                 url: str,
                 profile: ClientProfile,
                 body: Optional[Dict[str, Any]] = None) -> ApiResult:
    """Issue one request and normalize it; never raises for HTTP or transport errors."""
    method = method.upper()
    kwargs: Dict[str, Any] = {"headers": dict(profile.headers), "timeout": profile.timeout}
    if profile.auth:
        kwargs["auth"] = profile.auth
    if method in BODY_METHODS:
        kwargs["json"] = body if body is not None else {}

    try:
        resp = requests.request(method, url, **kwargs)
    except requests.RequestException as exc:
        print(f"[error] {method} {url} -> {exc}")
        return ApiResult(ok=False)

    if not 200 <= resp.status_code < 300:
        log_http_error(resp, url)
        return ApiResult(ok=False, status_code=resp.status_code)

    try:
        payload = resp.json() if resp.content else {}
    except ValueError:
        payload = {}
    return ApiResult(ok=True, status_code=resp.status_code, payload=payload)


async def paged_get(url: str,
                    profile: ClientProfile,
                    select: Callable[[Dict[str, Any]], Any],
                    executor: Optional[Executor] = None) -> PageWalk:
    """Follow ``next`` links until they run out, keeping ``select(item)`` results.

    Items for which ``select`` returns None are dropped. A failed page ends the
    walk; whatever was kept before it is returned alongside the error. Each
    blocking request runs on ``executor`` (the loop default when None).
    """
    loop = asyncio.get_running_loop()
    walk = PageWalk()
    next_url: Optional[str] = url
    while next_url:
        result = await loop.run_in_executor(executor, make_request, "GET", next_url, profile)
        if not result.ok:
            walk.error = PageFetchError(next_url, result.status_code)
            break

        walk.pages += 1
        for item in result.get("values") or []:
            kept = select(item)
            if kept is not None:
                walk.items.append(kept)
        next_url = result.get("next") or None
    return walk


__all__ = [
    "REQUEST_TIMEOUT",
    "ClientProfile",
    "ApiResult",
    "PageWalk",
    "log_http_error",
    "make_request",
    "paged_get",
]
