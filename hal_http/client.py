# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Status code driven HAL client.

``HalClient`` sends requests through a ``Transport`` and returns a
``ResponsePromise`` for each.  Responses are routed to handlers by status
with ``on()``, and HAL relations are followed with ``follow()``::

    async with HalClient(on={"5xx": report_server_error}) as hal:
        cars = await (
            hal.get("https://api.example.com/me")
            .on({"200": hal.then_follow_all("car")})
            .on({"200": lambda cars, responses: cars})
        )

Verb methods are synchronous and must be called while an event loop is
running.  They schedule the request and return immediately, which gives
two guarantees:

- concurrent GETs for the same URL and merged headers share one request
  (and one promise) until it settles;
- with ``queue_unsafe_requests=True``, PUT/POST/PATCH/DELETE run one at a
  time in submission order, whether earlier ones succeed or fail.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

import httpx

from hal_http._dispatch import Handler
from hal_http._headers import UNSAFE_METHODS, cache_key, compute_headers, lower_keys
from hal_http._template import expand_link
from hal_http.exceptions import FollowAllError, InvalidUrlError
from hal_http.promise import LogFunction, ResponsePromise, StatusDispatcher
from hal_http.representation import as_list, embedded, links, self_link
from hal_http.response import NoRelationInfo, NoRelationResponse, Response
from hal_http.transport import HttpxTransport, Transport

__all__ = [
    "HalClient",
    "create",
]

_logger = logging.getLogger("hal_http.client")

ResponseTransformer = Callable[[Any], Any]


def _identity(response: Any) -> Any:
    return response


def _check_headers(headers: Mapping[str, str] | None) -> None:
    for name, value in (headers or {}).items():
        if not isinstance(name, str) or not isinstance(value, str):
            raise TypeError(f"Header names and values must be strings, got {name!r}: {value!r}")


class HalClient:
    """HTTP client for ``application/hal+json`` APIs.

    Args:
        transport: Performs the requests.  Accepts a ``Transport`` or an
            ``httpx.AsyncClient``; defaults to an ``HttpxTransport`` owned
            (and closed) by this client.
        queue_unsafe_requests: Run unsafe requests strictly one after
            another.
        headers: Headers sent with every request.
        request_options: Extra transport options for every request (e.g.
            ``{"timeout": 10}``).
        on: Global handlers used when no local handler matches.
        response_transformer: Called with every transport response; its
            return value replaces the response.  For unsafe methods it is
            also called with the exception of a failed transport call; an
            exception it returns is raised in place of the original.
        log_error: Error message sink.  Defaults to the ``hal_http.client``
            logger.
        log_debug: Debug message sink.  Defaults to the ``hal_http.client``
            logger.

    Raises:
        TypeError: If a header is not a string or a handler is not callable.

    """

    def __init__(
        self,
        *,
        transport: Transport | httpx.AsyncClient | None = None,
        queue_unsafe_requests: bool = False,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
        on: Mapping[str, Handler] | None = None,
        response_transformer: ResponseTransformer | None = None,
        log_error: LogFunction | None = None,
        log_debug: LogFunction | None = None,
    ) -> None:
        _check_headers(headers)
        if isinstance(transport, httpx.AsyncClient):
            transport = HttpxTransport(transport)
        self._owns_transport = transport is None
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._queue_unsafe_requests = queue_unsafe_requests
        self._headers = lower_keys(headers)
        self._request_options = dict(request_options or {})
        self._transform = response_transformer or _identity
        self._dispatcher = StatusDispatcher(on, log_error=log_error, log_debug=log_debug)
        self._get_cache: dict[str, ResponsePromise[Response]] = {}
        self._unsafe_tail: ResponsePromise[Response] | None = None

    # -- Lifecycle -----------------------------------------------------------

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> HalClient:
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context manager, closing an owned transport."""
        await self.aclose()

    # -- Safe methods --------------------------------------------------------

    def get(
        self,
        target: str | Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
    ) -> ResponsePromise[Response]:
        """Send a GET, sharing the request with identical in-flight GETs.

        Args:
            target: A URL, or a representation whose self link is used.
            headers: Headers for this request only.
            request_options: Transport options for this request only.

        Returns:
            The promise of the in-flight request for the same URL and
            merged headers if there is one, otherwise a new promise.

        Raises:
            InvalidUrlError: If no URL can be taken from *target*.

        """
        url = self._extract_url(target)
        merged = compute_headers("GET", self._headers, headers)
        key = cache_key(url, merged)
        cached = self._get_cache.get(key)
        if cached is not None:
            return cached

        promise = self._promise(self._send("GET", url, merged, request_options))
        self._get_cache[key] = promise
        promise.add_done_callback(lambda settled: self._evict(key, settled))
        return promise

    def head(
        self,
        target: str | Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
    ) -> ResponsePromise[Response]:
        """Send a HEAD request (never cached, never queued)."""
        url = self._extract_url(target)
        merged = compute_headers("HEAD", self._headers, headers)
        return self._promise(self._send("HEAD", url, merged, request_options))

    # -- Unsafe methods ------------------------------------------------------

    def put(
        self,
        target: str | Mapping[str, Any],
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
    ) -> ResponsePromise[Response]:
        """Send a PUT with *data* encoded as JSON (``{}`` when omitted)."""
        return self._unsafe("PUT", target, data, headers, request_options)

    def post(
        self,
        target: str | Mapping[str, Any],
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
    ) -> ResponsePromise[Response]:
        """Send a POST with *data* encoded as JSON (``{}`` when omitted)."""
        return self._unsafe("POST", target, data, headers, request_options)

    def patch(
        self,
        target: str | Mapping[str, Any],
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
    ) -> ResponsePromise[Response]:
        """Send a PATCH with *data* (usually a JSON Patch document) encoded as JSON (``{}`` when omitted)."""
        return self._unsafe("PATCH", target, data, headers, request_options)

    def delete(
        self,
        target: str | Mapping[str, Any],
        *,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
    ) -> ResponsePromise[Response]:
        """Send a DELETE, with a JSON body only when *data* is given."""
        return self._unsafe("DELETE", target, data, headers, request_options)

    del_ = delete

    def _unsafe(
        self,
        method: str,
        target: str | Mapping[str, Any],
        data: Any,
        headers: Mapping[str, str] | None,
        request_options: Mapping[str, Any] | None,
    ) -> ResponsePromise[Response]:
        url = self._extract_url(target)
        if data is None and method != "DELETE":
            data = {}
        merged = compute_headers(method, self._headers, headers)
        if not self._queue_unsafe_requests:
            return self._promise(self._send(method, url, merged, request_options, data))

        promise = self._promise(self._send_after(self._unsafe_tail, method, url, merged, request_options, data))
        self._unsafe_tail = promise
        return promise

    async def _send_after(
        self,
        previous: ResponsePromise[Response] | None,
        method: str,
        url: str,
        headers: dict[str, str],
        request_options: Mapping[str, Any] | None,
        data: Any,
    ) -> Response:
        if previous is not None:
            await previous.settled()
        return await self._send(method, url, headers, request_options, data)

    # -- Relations -----------------------------------------------------------

    def follow(
        self,
        representation: Mapping[str, Any],
        relation: str,
        *,
        follow_all: bool = False,
        headers: Mapping[str, str] | None = None,
        request_options: Mapping[str, Any] | None = None,
        variables: Mapping[str, Any] | None = None,
        method: str = "GET",
        body: Any = None,
    ) -> ResponsePromise[Any]:
        """Follow *relation* of *representation*.

        Embedded resources are used directly (GET only) as synthetic 200
        responses.  Otherwise the linked URL(s) are requested, with
        templated links expanded from *variables*.  A relation that is
        neither embedded nor linked resolves to a ``NoRelationResponse``
        (status ``"norel"``).

        Args:
            representation: The HAL representation holding the relation.
            relation: Name of the relation.
            follow_all: Resolve every entry of the relation to a list of
                responses instead of the first entry to one response.
            headers: Headers for the request(s).
            request_options: Transport options for the request(s).
            variables: Values for templated links.
            method: HTTP method used for linked resources.
            body: Request body for unsafe methods.

        Returns:
            A promise for a ``Response``, a ``NoRelationResponse`` or, with
            *follow_all*, a list of responses in relation order.  A
            follow-all whose requests fail at the transport level rejects
            with ``FollowAllError`` once every request has settled.

        Raises:
            InvalidUrlError: If a link has no usable href.
            ValueError: If *method* is not a supported HTTP method.

        """
        method = method.upper()
        embedded_resources = embedded(representation)
        if method == "GET" and relation in embedded_resources:
            resources = as_list(embedded_resources[relation])
            if follow_all:
                return self._resolved([Response.embedded(resource) for resource in resources])
            return self._resolved(Response.embedded(resources[0] if resources else None))

        linked = links(representation)
        entries = as_list(linked[relation]) if relation in linked else []
        if follow_all and relation in linked:
            promises = [
                self._request(method, expand_link(link, variables), headers, request_options, body)
                for link in entries
            ]
            return self._promise(self._settle_all(relation, promises))
        if entries:
            promise = self._request(method, expand_link(entries[0], variables), headers, request_options, body)
            return ResponsePromise(promise, self._dispatcher)

        return self._resolved(NoRelationResponse(NoRelationInfo(relation, representation)))

    def follow_all(
        self,
        representation: Mapping[str, Any],
        relation: str,
        **options: Any,
    ) -> ResponsePromise[Any]:
        """Shortcut for ``follow(..., follow_all=True)``."""
        return self.follow(representation, relation, **{**options, "follow_all": True})

    def then_follow(self, relation: str, **options: Any) -> Callable[..., ResponsePromise[Any]]:
        """Return an ``on`` handler that follows *relation* of the parsed body."""

        def _follow(representation: Mapping[str, Any], *_response: Any) -> ResponsePromise[Any]:
            return self.follow(representation, relation, **options)

        return _follow

    def then_follow_all(self, relation: str, **options: Any) -> Callable[..., ResponsePromise[Any]]:
        """Return an ``on`` handler that follows every entry of *relation*."""

        def _follow_all(representation: Mapping[str, Any], *_response: Any) -> ResponsePromise[Any]:
            return self.follow_all(representation, relation, **options)

        return _follow_all

    def _request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        request_options: Mapping[str, Any] | None,
        body: Any,
    ) -> ResponsePromise[Response]:
        if method == "GET":
            return self.get(url, headers=headers, request_options=request_options)
        if method == "HEAD":
            return self.head(url, headers=headers, request_options=request_options)
        if method in UNSAFE_METHODS:
            return self._unsafe(method, url, body, headers, request_options)
        raise ValueError(f"Unsupported HTTP method: {method!r}")

    @staticmethod
    async def _settle_all(relation: str, promises: list[ResponsePromise[Response]]) -> list[Response]:
        outcomes = await asyncio.gather(*promises, return_exceptions=True)
        if any(isinstance(outcome, BaseException) for outcome in outcomes):
            raise FollowAllError(relation, list(outcomes))
        return list(outcomes)

    # -- Plumbing ------------------------------------------------------------

    def _extract_url(self, target: str | Mapping[str, Any]) -> str:
        url = target if isinstance(target, str) else self_link(target)
        if not url:
            self._dispatcher.log_error(f"Tried to make a request without valid url. Instead got {target!r}.")
            raise InvalidUrlError(target)
        return url

    def _promise(self, coro: Any) -> ResponsePromise[Any]:
        return ResponsePromise(coro, self._dispatcher)

    def _resolved(self, value: Any) -> ResponsePromise[Any]:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        future.set_result(value)
        return ResponsePromise(future, self._dispatcher)

    def _evict(self, key: str, settled: ResponsePromise[Response]) -> None:
        if self._get_cache.get(key) is settled:
            del self._get_cache[key]

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        request_options: Mapping[str, Any] | None,
        data: Any = None,
    ) -> Response:
        options = {**self._request_options, **(request_options or {})}
        body = json.dumps(data) if data is not None else None
        _logger.debug("Sending %s %s", method, url, extra={"method": method, "url": url})
        try:
            response = await self._transport.request(method, url, headers=headers, body=body, options=options)
        except Exception as exc:
            if method not in UNSAFE_METHODS:
                raise
            transformed = self._transform(exc)
            if isinstance(transformed, BaseException) and transformed is not exc:
                raise transformed from exc
            raise
        return self._transform(response)


def create(**options: Any) -> HalClient:
    """Create a ``HalClient``; accepts the same keywords as its constructor."""
    return HalClient(**options)
