# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Transport adapters performing one HTTP request each.

The client only needs ``request()`` and ``aclose()``, described by the
``Transport`` protocol.  ``HttpxTransport`` is the default;
``AiohttpTransport`` lives in ``hal_http.aiohttp_transport`` and needs the
optional extra: ``pip install hal-http-client[aiohttp]``.

Adapters read the response body inside the request and decode it on
``Response.text()``.  Transport errors are propagated unchanged.

Logger: ``hal_http.transport``.  Completed requests are logged at DEBUG
with ``method``, ``url``, ``status`` and ``duration_ms`` extras.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import httpx

from hal_http.response import Response

__all__ = [
    "HttpxTransport",
    "Transport",
]

_logger = logging.getLogger("hal_http.transport")

# Keys owned by the verb methods; never taken from request options.
_RESERVED_OPTIONS: frozenset[str] = frozenset({"method", "url", "headers", "content", "data", "json", "body"})


@runtime_checkable
class Transport(Protocol):
    """Performs a single HTTP request."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response:
        """Send one request and return its response."""
        ...

    async def aclose(self) -> None:
        """Release any resources held by the transport."""
        ...


def _filter_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop the request options that the verb methods own."""
    if not options:
        return {}
    return {key: value for key, value in options.items() if key not in _RESERVED_OPTIONS}


def _log_completed(method: str, url: str, status: int, t0: float) -> None:
    duration_ms = (time.monotonic() - t0) * 1000
    _logger.debug(
        "HTTP %s %s -> %d (%.1fms)",
        method,
        url,
        status,
        duration_ms,
        extra={"method": method, "url": url, "status": status, "duration_ms": round(duration_ms, 2)},
    )


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    Args:
        client: An existing client to send requests with.  It is left open
            by ``aclose()``.  When omitted, a client is created on first
            use and closed by ``aclose()``.

    """

    __slots__ = ("_client", "_owns_client")

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response:
        """Send *method* to *url* via httpx.

        ``options`` are forwarded to ``AsyncClient.request`` (e.g.
        ``timeout``, ``params``, ``follow_redirects``).
        """
        t0 = time.monotonic()
        resp = await self._get_client().request(
            method,
            url,
            headers=dict(headers),
            content=body.encode() if body is not None else None,
            **_filter_options(options),
        )
        _log_completed(method, url, resp.status_code, t0)

        async def _read() -> str:
            return resp.text

        return Response(resp.status_code, dict(resp.headers), url=url, method=method, reader=_read)

    async def aclose(self) -> None:
        """Close the httpx client if this transport created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
