"""Use ``HalClient`` on top of an existing ``httpx.AsyncClient``.

Shows global headers, a global error handler, a response transformer and
queued unsafe requests.  The ``httpx.AsyncClient`` is backed by
``httpx.MockTransport`` so the example runs offline; pass a plain
``httpx.AsyncClient()`` to talk to a real server.

Run::

    python examples/httpx_transport.py
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from hal_http import HalClient, Response

API = "https://shop.example"

_orders: list[dict[str, Any]] = []


# 1. A fake server: POST creates an order, anything else is a 500.
def handle(request: httpx.Request) -> httpx.Response:
    """Answer requests like a small order service."""
    if request.method == "POST" and request.url.path == "/orders":
        order = {**json.loads(request.content), "id": len(_orders) + 1}
        _orders.append(order)
        location = f"{API}/orders/{order['id']}"
        return httpx.Response(201, json={**order, "_links": {"self": {"href": location}}})
    return httpx.Response(500, text="<html>Internal Server Error</html>")


def tag_response(response: Response) -> Response:
    """Record which API version answered."""
    response.headers = {**response.headers, "x-api-version": "1"}
    return response


def server_error(data: Any, response: Response) -> str:
    """Global fallback for server errors; the HTML body parses to None."""
    return f"Server error {response.status} (body: {data})"


# 2. Send requests one after another and route responses by status.
async def run() -> None:
    """Create two orders, then hit a failing endpoint."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(handle)) as client:
        hal = HalClient(
            transport=client,
            headers={"Authorization": "Bearer demo-token"},
            on={"5xx": server_error},
            response_transformer=tag_response,
            queue_unsafe_requests=True,
        )

        def created(order: dict[str, Any], response: Response) -> str:
            return f"Created order {order['id']} ({order['item']}) via v{response.headers['x-api-version']}"

        pending = [hal.post(f"{API}/orders", {"item": item}).on({"201": created}) for item in ("tea", "biscuits")]
        for message in await asyncio.gather(*pending):
            print(message)  # Created order 1 (tea) via v1

        print(await hal.get(f"{API}/reports").on({"200": lambda data, response: data}))


def main() -> None:
    """Run the example."""
    _orders.clear()
    asyncio.run(run())


if __name__ == "__main__":
    main()
