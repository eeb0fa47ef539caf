"""Tests for ResponsePromise: chaining, body memoization and terminal state."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from hal_http import HalClient, Response, ResponsePromise, StatusDispatcher, UnhandledResponseError
from hal_http.testing import StubTransport
from tests._support import Spy, url


async def _value(value: Any) -> Any:
    return value


async def _fail(error: BaseException) -> Any:
    raise error


# ===========================================================================
# Chaining
# ===========================================================================


class TestChaining:
    """``on`` returns a new promise for the handler's result."""

    def test_handler_result_feeds_next_on(self, stub: StubTransport) -> None:
        """Plain values without a status reach only ``xxx`` handlers."""

        async def scenario() -> Any:
            hal = HalClient(transport=stub)
            return await (
                hal.get(url("/me"))
                .on({"200": lambda data, response: data["age"]})
                .on({"200": Spy(), "xxx": lambda data, age: age + 1})
            )

        assert asyncio.run(scenario()) == 35

    def test_async_handler_awaited(self, stub: StubTransport) -> None:
        """A coroutine handler's result is awaited."""

        async def handler(data: Any, response: Response) -> str:
            await asyncio.sleep(0)
            return data["name"]

        async def scenario() -> Any:
            return await HalClient(transport=stub).get(url("/me")).on({"200": handler})

        assert asyncio.run(scenario()) == "Peter"

    def test_none_ends_chain(self, stub: StubTransport) -> None:
        """A ``None`` result skips every later handler."""
        later = Spy()

        async def scenario() -> Any:
            hal = HalClient(transport=stub)
            return await hal.get(url("/me")).on({"200": lambda data, response: None}).on({"xxx": later})

        assert asyncio.run(scenario()) is None
        assert not later.called

    def test_handler_exception_propagates(self, stub: StubTransport) -> None:
        """An exception raised by a handler rejects the derived promise."""

        def handler(data: Any, response: Response) -> None:
            raise KeyError("license")

        async def scenario() -> None:
            await HalClient(transport=stub).get(url("/me")).on({"200": handler})

        with pytest.raises(KeyError, match="license"):
            asyncio.run(scenario())

    def test_mapping_and_keywords_combined(self) -> None:
        """Keyword handlers are merged with the mapping."""
        stub = StubTransport().add("GET", url("/me"), status=302)

        async def scenario() -> Any:
            hal = HalClient(transport=stub)
            return await hal.get(url("/me")).on({"200": Spy()}, xxx=lambda data, response: response.status)

        assert asyncio.run(scenario()) == 302

    def test_non_callable_handler(self, stub: StubTransport) -> None:
        """``on`` rejects non-callable handlers immediately."""

        async def scenario() -> None:
            promise = HalClient(transport=stub).get(url("/me"))
            try:
                promise.on({"200": 42})  # type: ignore[dict-item]
            finally:
                await promise

        with pytest.raises(TypeError, match="must be callable"):
            asyncio.run(scenario())


# ===========================================================================
# Per-promise dispatch state
# ===========================================================================


class TestDispatchState:
    """The body is read once and unhandled responses are terminal."""

    def test_body_read_once(self, stub: StubTransport) -> None:
        """Several ``on`` calls on one promise share a single body read."""

        async def scenario() -> list[Any]:
            promise = HalClient(transport=stub).get(url("/me"))
            first = promise.on({"200": lambda data, response: data["name"]})
            second = promise.on({"2xx": lambda data, response: data["age"]})
            results = list(await asyncio.gather(first, second))
            results.append(await promise.on({"xxx": lambda data, response: data["name"]}))
            return results

        assert asyncio.run(scenario()) == ["Peter", 34, "Peter"]
        assert stub.body_reads[url("/me")] == 1

    def test_unhandled_logged_once(self) -> None:
        """Later ``on`` calls fail without logging or calling handlers."""
        stub = StubTransport().add("GET", url("/missing"), status=404)
        log_debug, not_found = Spy(), Spy()

        async def scenario() -> None:
            promise = HalClient(transport=stub, log_debug=log_debug).get(url("/missing"))
            with pytest.raises(UnhandledResponseError):
                await promise.on({"200": Spy()})
            with pytest.raises(UnhandledResponseError) as exc_info:
                await promise.on({"404": not_found})
            assert exc_info.value.status == 404

        asyncio.run(scenario())
        assert len(log_debug.calls) == 1
        assert not not_found.called

    def test_follows_of_one_link_share_unhandled_state(self) -> None:
        """Two follows receiving the same response log it as unhandled once."""
        stub = StubTransport().add("GET", url("/x"), status=500)
        representation = {"_links": {"x": {"href": url("/x")}}}
        log_debug = Spy()

        async def scenario() -> list[Any]:
            hal = HalClient(transport=stub, log_debug=log_debug)
            first = hal.follow(representation, "x").on({})
            second = hal.follow(representation, "x").on({})
            return list(await asyncio.gather(first, second, return_exceptions=True))

        outcomes = asyncio.run(scenario())
        assert all(isinstance(outcome, UnhandledResponseError) for outcome in outcomes)
        assert outcomes[0].response is outcomes[1].response
        assert len(stub.requests) == 1
        assert len(log_debug.calls) == 1

    def test_follows_of_one_link_read_body_once(self, stub: StubTransport, hal_data: dict[str, Any]) -> None:
        """Two follows receiving the same response share one body read."""

        async def scenario() -> list[Any]:
            hal = HalClient(transport=stub)
            first = hal.follow(hal_data["ROOT"], "cars").on({"200": lambda data, response: data})
            second = hal.follow(hal_data["ROOT"], "cars").on({"200": lambda data, response: data})
            return list(await asyncio.gather(first, second))

        first, second = asyncio.run(scenario())
        assert first == second == hal_data["CARS"]
        assert stub.body_reads[url("/me/cars")] == 1

    def test_new_response_gets_fresh_state(self) -> None:
        """An unhandled response does not affect a later response for the same URL."""
        stub = StubTransport().add("GET", url("/missing"), status=404)
        not_found = Spy("handled")

        async def scenario() -> Any:
            hal = HalClient(transport=stub, log_debug=Spy())
            with pytest.raises(UnhandledResponseError):
                await hal.get(url("/missing")).on({"200": Spy()})
            return await hal.get(url("/missing")).on({"404": not_found})

        assert asyncio.run(scenario()) == "handled"
        assert len(stub.requests) == 2

    def test_list_bodies_keep_order_and_degrade_per_item(self) -> None:
        """Each list entry is parsed on its own, in order."""
        responses = [
            Response.from_text(200, '{"n": 0}'),
            Response.from_text(404, ""),
            Response.from_text(500, "not json"),
            Response.from_text(200, '{"n": 3}'),
        ]

        async def scenario() -> Any:
            return await StatusDispatcher().parsed_body(responses)

        assert asyncio.run(scenario()) == [{"n": 0}, None, None, {"n": 3}]

    def test_default_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        """Without custom log functions the ``hal_http.client`` logger is used."""

        async def scenario() -> None:
            await ResponsePromise(_value(Response(500))).on({"200": Spy()})

        with caplog.at_level(logging.ERROR, logger="hal_http.client"), pytest.raises(UnhandledResponseError):
            asyncio.run(scenario())
        assert any('Unhandled http status "500"' in r.getMessage() for r in caplog.records)

    def test_global_handlers_from_dispatcher(self) -> None:
        """A standalone promise uses the handlers of its dispatcher."""
        fallback = Spy("fallback")
        dispatcher = StatusDispatcher({"4xx|5xx": fallback})

        async def scenario() -> Any:
            return await ResponsePromise(_value(Response.from_text(503, "{}")), dispatcher).on({"200": Spy()})

        assert asyncio.run(scenario()) == "fallback"
        assert fallback.calls[0][0] == {}


# ===========================================================================
# Future-like surface
# ===========================================================================


class TestFutureSurface:
    """Methods delegated to the wrapped future."""

    def test_result_and_callbacks(self) -> None:
        """``done``, ``result`` and ``add_done_callback`` follow the future."""
        seen: list[ResponsePromise[Any]] = []

        async def scenario() -> ResponsePromise[Any]:
            promise = ResponsePromise(_value("ready"))
            promise.add_done_callback(seen.append)
            assert not promise.done()
            assert repr(promise) == "<ResponsePromise pending>"
            await promise
            await asyncio.sleep(0)
            return promise

        promise = asyncio.run(scenario())
        assert promise.done()
        assert promise.result() == "ready"
        assert promise.exception() is None
        assert seen == [promise]
        assert repr(promise) == "<ResponsePromise done>"

    def test_failure(self) -> None:
        """A failed promise exposes its exception and ``settled`` does not raise."""
        error = ConnectionResetError("reset")

        async def scenario() -> ResponsePromise[Any]:
            promise = ResponsePromise(_fail(error))
            await promise.settled()
            return promise

        promise = asyncio.run(scenario())
        assert promise.exception() is error
        assert repr(promise) == "<ResponsePromise failed>"
        with pytest.raises(ConnectionResetError):
            promise.result()

    def test_cancel(self) -> None:
        """Cancelling the promise cancels the request task."""

        async def scenario() -> ResponsePromise[Any]:
            promise = ResponsePromise(asyncio.sleep(10))
            assert promise.cancel()
            with pytest.raises(asyncio.CancelledError):
                await promise
            return promise

        assert repr(asyncio.run(scenario())) == "<ResponsePromise cancelled>"

    def test_requires_running_loop(self) -> None:
        """Creating a promise outside an event loop closes the coroutine and raises."""
        coro = _value(1)
        with pytest.raises(RuntimeError, match="running event loop"):
            ResponsePromise(coro)
        assert coro.cr_frame is None
