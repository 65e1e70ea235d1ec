"""
api.py
Minimal HTTP client for the tenant platform API.

- Joins API paths under the active profile's base URL
- Adds auth/tenant headers from the profile
- Raises HttpStatusError for status >= 400 so callers can inspect the code
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests
from google.protobuf.message import Message

from melt.config import ConfigError, Context, get_current_context


class HttpStatusError(Exception):
    def __init__(self, status_code: int, message: str, body: str = ""):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body


@dataclass
class Options:
    # request headers in
    headers: Dict[str, str] = field(default_factory=dict)
    # response headers out, keyed by canonical name (e.g. "Traceresponse")
    response_headers: Dict[str, List[str]] = field(default_factory=dict)


def canonical_header_key(key: str) -> str:
    """'traceresponse' -> 'Traceresponse', 'content-type' -> 'Content-Type'"""
    return "-".join(part.capitalize() for part in key.split("-"))


def _response_headers(r: requests.Response) -> Dict[str, List[str]]:
    # r.headers folds repeated headers into one comma-joined value; the
    # urllib3 header dict on r.raw still holds each one separately
    raw_headers = getattr(r.raw, "headers", None)
    out: Dict[str, List[str]] = {}
    for k, v in r.headers.items():
        values = [v]
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            values = list(raw_headers.getlist(k)) or values
        out[canonical_header_key(k)] = values
    return out


def _headers(ctx: Context, extra: Dict[str, str]) -> Dict[str, str]:
    headers = {"User-Agent": "melt-exporter"}
    if ctx.token:
        headers["Authorization"] = f"Bearer {ctx.token}"
    if ctx.tenant:
        headers["Appd-Tid"] = ctx.tenant
    headers.update(extra)
    return headers


def http_post(
    path: str,
    body: bytes,
    response: Optional[Message] = None,
    options: Optional[Options] = None,
    *,
    context: Optional[Context] = None,
    session: Optional[requests.Session] = None,
) -> None:
    """
    POST body to <profile url>/<path>.

    If response is a protobuf message it is filled from the response body.
    Response headers are stored on options.response_headers.
    """
    ctx = context or get_current_context()
    if not ctx.url:
        raise ConfigError(f"No URL configured for profile {ctx.name!r}; set MELT_URL")

    options = options if options is not None else Options()
    url = f"{ctx.url.rstrip('/')}/{path.lstrip('/')}"

    poster = session or requests
    r = poster.post(url, data=body, headers=_headers(ctx, options.headers), timeout=ctx.timeout_s)

    options.response_headers = _response_headers(r)

    if r.status_code >= 400:
        raise HttpStatusError(r.status_code, r.reason or "request failed", r.text)

    if response is not None and r.content:
        response.ParseFromString(r.content)
