# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""In-memory transport for testing code that uses ``HalClient``.

Register canned responses per method and URL, then inspect what was
sent::

    stub = StubTransport()
    stub.add("GET", "http://host/me", json={"name": "Peter"})
    async with HalClient(transport=stub) as hal:
        await hal.get("http://host/me")
    assert stub.called("http://host/me")

Responses registered for the same route are served in order; the last
one is then reused for every further call.  A route can also raise an
error (to simulate a network failure) or wait on an ``asyncio.Event``
(to hold a request in flight).
"""

from __future__ import annotations

import asyncio
import json as jsonlib
from collections import Counter, deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from hal_http.response import Response

__all__ = [
    "RecordedRequest",
    "StubTransport",
]

_UNSET: Any = object()


@dataclass(frozen=True)
class RecordedRequest:
    """A request received by ``StubTransport``."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: str | None
    options: Mapping[str, Any]

    def json(self) -> Any:
        """Decode the request body (``None`` when there was none)."""
        return None if self.body is None else jsonlib.loads(self.body)


@dataclass
class _Route:
    status: int
    body: str
    headers: dict[str, str]
    error: BaseException | None
    gate: asyncio.Event | None


@dataclass
class StubTransport:
    """A ``Transport`` answering from registered routes.

    Attributes:
        requests: Every request received, in arrival order.
        events: ``("start" | "end", method, url)`` tuples marking when each
            request began and finished.
        body_reads: How often each URL's body was read.
        closed: Whether ``aclose()`` was called.

    """

    requests: list[RecordedRequest] = field(default_factory=list)
    events: list[tuple[str, str, str]] = field(default_factory=list)
    body_reads: Counter[str] = field(default_factory=Counter)
    closed: bool = False
    _routes: dict[tuple[str, str], deque[_Route]] = field(default_factory=dict, repr=False)

    def add(
        self,
        method: str,
        url: str,
        *,
        status: int = 200,
        json: Any = _UNSET,
        body: str = "",
        headers: Mapping[str, str] | None = None,
        error: BaseException | None = None,
        gate: asyncio.Event | None = None,
    ) -> StubTransport:
        """Register a response (or an error) for *method* and *url*.

        Args:
            method: HTTP method.
            url: Exact request URL.
            status: Response status.
            json: Value serialized as the body; takes precedence over *body*.
            body: Raw body text.
            headers: Response headers.
            error: Raised instead of responding.
            gate: The request waits for this event before completing.

        Returns:
            The transport, for chaining.

        """
        text = jsonlib.dumps(json) if json is not _UNSET else body
        route = _Route(status, text, dict(headers or {}), error, gate)
        self._routes.setdefault((method.upper(), url), deque()).append(route)
        return self

    def called(self, url: str, method: str | None = None) -> bool:
        """Return whether a request for *url* (and *method*, if given) was received."""
        return bool(self.calls(url, method))

    def calls(self, url: str, method: str | None = None) -> list[RecordedRequest]:
        """Return the requests received for *url* (and *method*, if given)."""
        return [
            request
            for request in self.requests
            if request.url == url and (method is None or request.method == method.upper())
        ]

    def _next_route(self, method: str, url: str) -> _Route:
        routes = self._routes.get((method, url))
        if not routes:
            raise LookupError(f"No stub response registered for {method} {url}")
        return routes.popleft() if len(routes) > 1 else routes[0]

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response:
        """Record the request and answer from the matching route."""
        self.requests.append(RecordedRequest(method, url, dict(headers), body, dict(options or {})))
        self.events.append(("start", method, url))
        try:
            route = self._next_route(method, url)
            if route.gate is not None:
                await route.gate.wait()
            if route.error is not None:
                raise route.error
        finally:
            self.events.append(("end", method, url))

        async def _read() -> str:
            self.body_reads[url] += 1
            return route.body

        return Response(route.status, dict(route.headers), url=url, method=method, reader=_read)

    async def aclose(self) -> None:
        """Mark the transport closed."""
        self.closed = True
