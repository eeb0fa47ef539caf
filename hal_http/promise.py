# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Awaitable response handle with status-code driven dispatch.

Every request method of ``HalClient`` returns a ``ResponsePromise``.  It
can be awaited like a task, and ``on(handlers)`` attaches a handler map
that is resolved against the response status::

    await (
        hal.get("https://api.example.com/me")
        .on({"200": hal.then_follow("cars"), "4xx|5xx": report})
        .on({"200": lambda cars, response: cars["_embedded"]})
    )

``on`` returns a new ``ResponsePromise`` for the handler's return value,
so chains can continue.  An awaitable return value (typically another
``follow``) is awaited first.

The body of a response is read at most once, however many ``on`` calls
(on however many promises) receive it.  Once a response went unhandled,
every further ``on`` that receives it fails immediately without logging
again.  This state is kept by ``StatusDispatcher`` in a side table keyed
by response identity, so responses themselves are never modified.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import weakref
from collections.abc import Awaitable, Callable, Generator, Mapping
from typing import Any, Generic, TypeVar

from hal_http._dispatch import Handler, dispatch_status, expand_handlers, find_handler, read_json
from hal_http.exceptions import UnhandledResponseError
from hal_http.response import NoRelationResponse

__all__ = [
    "LogFunction",
    "ResponsePromise",
    "StatusDispatcher",
]

_logger = logging.getLogger("hal_http.client")

T = TypeVar("T")

LogFunction = Callable[[str], object]


class _DispatchState:
    """Body memo and terminal unhandled status of one response."""

    __slots__ = ("body", "unhandled_status")

    def __init__(self) -> None:
        self.body: asyncio.Future[Any] | None = None
        self.unhandled_status: int | str | None = None


class StatusDispatcher:
    """Global fallback handlers, loggers and per-response state of a client.

    Args:
        global_handlers: Handlers consulted when no local handler matches.
        log_error: Receives error messages.  Defaults to the
            ``hal_http.client`` logger.
        log_debug: Receives debug messages.  Defaults to the
            ``hal_http.client`` logger.

    """

    __slots__ = ("_states", "global_handlers", "log_debug", "log_error")

    def __init__(
        self,
        global_handlers: Mapping[str, Handler] | None = None,
        *,
        log_error: LogFunction | None = None,
        log_debug: LogFunction | None = None,
    ) -> None:
        self.global_handlers = expand_handlers(global_handlers)
        self.log_error: LogFunction = log_error or _logger.error
        self.log_debug: LogFunction = log_debug or _logger.debug
        self._states: weakref.WeakKeyDictionary[Any, _DispatchState] = weakref.WeakKeyDictionary()

    def state_for(self, value: Any, fallback: _DispatchState | None = None) -> _DispatchState:
        """Return the dispatch state of *value*, tracked by identity.

        Values that cannot be weakly referenced (the list of a follow-all,
        plain handler results) use *fallback*, the state of the promise
        holding them (a fresh state when there is none).
        """
        state = fallback if fallback is not None else _DispatchState()
        try:
            return self._states.setdefault(value, state)
        except TypeError:
            return state

    async def parsed_body(self, value: Any, fallback: _DispatchState | None = None) -> Any:
        """Parse the body of *value*, or of each entry of a list, in order.

        Each response body is read at most once; later calls reuse the
        parsed result.
        """
        if isinstance(value, list):
            return [await self.parsed_body(item) for item in value]
        state = self.state_for(value, fallback)
        if state.body is None:
            state.body = asyncio.ensure_future(read_json(value))
        return await asyncio.shield(state.body)

    def report_unhandled(self, value: Any, status: int | str) -> None:
        """Log a response for which no handler matched."""
        if isinstance(value, NoRelationResponse):
            self.log_error(f'An error occurred: Relation "{value.info.relation}" could not be found.')
            self.log_error(f"Representation: {json.dumps(value.info.representation, default=str)}.")
        elif getattr(value, "url", None):
            self.log_debug(f'Unhandled http status "{status}" of response for uri "{value.url}".')
        else:
            self.log_error(f'Unhandled http status "{status}" of response "{value!r}".')


class ResponsePromise(Generic[T]):
    """An awaitable wrapping an ``asyncio.Future``, extended with ``on``.

    Must be created while an event loop is running.
    """

    __slots__ = ("_dispatcher", "_future", "_state")

    def __init__(self, awaitable: Awaitable[T], dispatcher: StatusDispatcher | None = None) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError("hal_http requests must be started from a running event loop") from None
        if asyncio.isfuture(awaitable):
            self._future: asyncio.Future[T] = awaitable
        else:
            self._future = asyncio.ensure_future(awaitable, loop=loop)
        self._dispatcher = dispatcher or StatusDispatcher()
        self._state = _DispatchState()

    def __await__(self) -> Generator[Any, None, T]:
        return self._future.__await__()

    def __repr__(self) -> str:
        state = "pending"
        if self._future.cancelled():
            state = "cancelled"
        elif self._future.done():
            state = "failed" if self._future.exception() is not None else "done"
        return f"<ResponsePromise {state}>"

    # -- Future-like surface -------------------------------------------------

    def done(self) -> bool:
        """Return whether the underlying future has settled."""
        return self._future.done()

    def result(self) -> T:
        """Return the resolved value (raises like ``Future.result``)."""
        return self._future.result()

    def exception(self) -> BaseException | None:
        """Return the rejection, or ``None`` (raises like ``Future.exception``)."""
        return self._future.exception()

    def cancel(self) -> bool:
        """Cancel the underlying future."""
        return self._future.cancel()

    def add_done_callback(self, callback: Callable[[ResponsePromise[T]], object]) -> None:
        """Call *callback* with this promise once it settles."""
        self._future.add_done_callback(lambda _future: callback(self))

    async def settled(self) -> None:
        """Wait until the promise resolves or fails, without raising."""
        if not self._future.done():
            await asyncio.wait([self._future])

    # -- Dispatch ------------------------------------------------------------

    def on(self, handlers: Mapping[str, Handler] | None = None, /, **named: Handler) -> ResponsePromise[Any]:
        """Dispatch the response to the best matching handler.

        Args:
            handlers: Mapping from status pattern to handler.
            **named: Further handlers for patterns that are valid
                identifiers (``xxx``, ``norel``).

        Returns:
            A promise for the handler's return value.  It fails with
            ``UnhandledResponseError`` when nothing matches and with the
            original exception when the request itself failed.

        Raises:
            TypeError: If a handler is not callable.

        """
        local_handlers = expand_handlers({**(handlers or {}), **named})
        return ResponsePromise(self._dispatch(local_handlers), self._dispatcher)

    async def _dispatch(self, local_handlers: Mapping[str, Handler]) -> Any:
        value = await self._future
        if value is None:
            return None

        state = self._dispatcher.state_for(value, self._state)
        if state.unhandled_status is not None:
            raise UnhandledResponseError(value, state.unhandled_status)

        status = dispatch_status(value)
        handler = find_handler(status, local_handlers, self._dispatcher.global_handlers)
        if handler is None:
            state.unhandled_status = status
            self._dispatcher.report_unhandled(value, status)
            raise UnhandledResponseError(value, status)

        data = await self._dispatcher.parsed_body(value, state)

        result = handler(data, value)
        if inspect.isawaitable(result):
            result = await result
        return result
