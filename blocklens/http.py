"""Minimal JSON-over-HTTP helper.

Every upstream service is a read-only XRPC query answering JSON. Requests use
urllib; failures are raised as `UpstreamError` subclasses so callers can
decide whether a failure degrades or aborts.
"""

from __future__ import annotations

import http.client
import json
import socket
import urllib.error
from typing import Any, Mapping, Optional
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ._version import __version__
from .errors import HttpStatusError, MalformedResponseError, TransportError

USER_AGENT = f"blocklens/{__version__}"


def headers_to_dict(headers: Any) -> dict[str, str]:
    out: dict[str, str] = {}
    if headers is None:
        return out

    try:
        items = headers.items()
    except Exception:
        return out

    for k, v in items:
        if k is None:
            continue
        out[str(k)] = str(v)
    return out


def error_meta(err: Any) -> dict[str, Any]:
    """JSON-safe status + headers of an HTTPError."""
    meta: dict[str, Any] = {}
    status = getattr(err, "code", None)
    if status is not None:
        try:
            meta["status"] = int(status)
        except (TypeError, ValueError):
            pass

    h = headers_to_dict(getattr(err, "headers", None))
    if h:
        meta["headers"] = h
    return meta


def build_url(base: str, method: str, params: Mapping[str, Any]) -> str:
    """`{base}/xrpc/{method}?{params}`."""
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"{base.rstrip('/')}/xrpc/{method}?{query}"


def get_json(url: str, *, timeout: int, user_agent: Optional[str] = None) -> dict[str, Any]:
    """GET `url` and decode a JSON object body.

    Raises:
        HttpStatusError: non-2xx response.
        TransportError: connection, DNS or timeout failure.
        MalformedResponseError: body is not a JSON object.
    """
    req = Request(
        url,
        headers={"User-Agent": user_agent or USER_AGENT, "Accept": "application/json"},
    )
    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
    except urllib.error.HTTPError as e:
        raise HttpStatusError(e.code, str(e.reason), url=url, meta=error_meta(e)) from e
    except (urllib.error.URLError, http.client.HTTPException, socket.timeout, OSError) as e:
        reason = getattr(e, "reason", None) or e
        raise TransportError(f"{type(e).__name__}: {reason}", url=url) from e

    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedResponseError(f"invalid JSON: {e}", url=url) from e

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"expected a JSON object, got {type(payload).__name__}", url=url
        )
    return payload
