# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Transport adapter backed by aiohttp.

Requires the optional extra: ``pip install hal-http-client[aiohttp]``
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import aiohttp

from hal_http.response import Response
from hal_http.transport import _filter_options, _log_completed

__all__ = ["AiohttpTransport"]


class AiohttpTransport:
    """Transport backed by ``aiohttp.ClientSession``.

    Args:
        session: An existing session, left open by ``aclose()``.  When
            omitted, a session is created on first use (inside the running
            loop) and closed by ``aclose()``.

    """

    __slots__ = ("_owns_session", "_session")

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response:
        """Send *method* to *url* via aiohttp.

        ``options`` are forwarded to ``ClientSession.request`` (e.g.
        ``timeout``, ``params``, ``allow_redirects``).
        """
        t0 = time.monotonic()
        async with self._get_session().request(
            method,
            url,
            headers=dict(headers),
            data=body.encode() if body is not None else None,
            **_filter_options(options),
        ) as resp:
            content = await resp.read()
            charset = resp.charset or "utf-8"
            status = resp.status
            response_headers = dict(resp.headers)
        _log_completed(method, url, status, t0)

        async def _read() -> str:
            return content.decode(charset, errors="replace")

        return Response(status, response_headers, url=url, method=method, reader=_read)

    async def aclose(self) -> None:
        """Close the aiohttp session if this transport created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
