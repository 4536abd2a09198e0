from __future__ import annotations

"""Async HTTP client util.

Focus: GET JSON under a total time limit, mapping transport problems onto a small
exception hierarchy so callers can tell a timeout from a refused connection
from a bad status.
"""
import asyncio
from typing import Any, Dict, Mapping, Optional

import httpx


class HttpError(Exception):
    pass


class HttpTimeoutError(HttpError):
    pass


class HttpConnectionError(HttpError):
    pass


class HttpStatusError(HttpError):
    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"HTTP {status_code}: {body[:200]}")
        self.status_code = status_code
        self.body = body


class HttpPayloadError(HttpError):
    pass


async def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """GET ``url`` and decode the JSON body.

    ``timeout`` bounds the whole exchange, body included; the request is
    cancelled once it runs out.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await asyncio.wait_for(
                client.get(url, params=params, headers=headers), timeout
            )
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise HttpTimeoutError(f"no response from {url} within {timeout}s") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise HttpConnectionError(f"could not reach {url}: {e}") from e
    if not resp.is_success:
        raise HttpStatusError(resp.status_code, resp.text)
    try:
        return resp.json()
    except ValueError as e:
        raise HttpPayloadError(f"invalid JSON from {url}") from e


def describe(exc: HttpError) -> Dict[str, Any]:
    """Small dict for structured log lines."""
    info: Dict[str, Any] = {"error_type": type(exc).__name__, "error": str(exc)}
    if isinstance(exc, HttpStatusError):
        info["status_code"] = exc.status_code
    return info
