"""Navigate a HAL API by following relations.

Walks from an API root to a collection, fetches every linked item,
expands a templated search link and handles a missing relation.  Uses
the in-memory ``StubTransport`` so no server is needed.

Run::

    python examples/follow_relations.py
"""

from __future__ import annotations

import asyncio
from typing import Any

from hal_http import HalClient, NoRelationResponse, Response
from hal_http.testing import StubTransport

API = "https://shop.example"


# 1. Describe the API: a root, an order collection and two orders.
def build_api() -> StubTransport:
    """Return a transport serving a tiny order API."""
    stub = StubTransport()
    stub.add(
        "GET",
        f"{API}/",
        json={
            "_links": {
                "self": {"href": f"{API}/"},
                "orders": {"href": f"{API}/orders"},
                "search": {"href": API + "/orders{?status}", "templated": True},
            },
        },
    )
    stub.add(
        "GET",
        f"{API}/orders",
        json={
            "_links": {
                "self": {"href": f"{API}/orders"},
                "order": [{"href": f"{API}/orders/1"}, {"href": f"{API}/orders/2"}],
            },
        },
    )
    stub.add("GET", f"{API}/orders/1", json={"id": 1, "total": 12.5, "status": "shipped"})
    stub.add("GET", f"{API}/orders/2", json={"id": 2, "total": 40.0, "status": "open"})
    stub.add(
        "GET",
        f"{API}/orders?status=open",
        json={"_embedded": {"order": [{"id": 2, "total": 40.0, "status": "open"}]}},
    )
    stub.add("GET", f"{API}/orders/9", status=404)
    return stub


def missing(data: Any, response: NoRelationResponse) -> str:
    """Describe a relation the representation does not have."""
    return f'No "{response.info.relation}" relation'


# 2. Chain requests with status handlers.
async def run() -> None:
    """Run the walkthrough against the stubbed API."""
    async with HalClient(transport=build_api()) as hal:
        totals = await (
            hal.get(f"{API}/")
            .on({"200": hal.then_follow("orders")})
            .on({"200": hal.then_follow_all("order")})
            .on({"200": lambda orders, responses: [order["total"] for order in orders]})
        )
        print(f"Order totals: {totals}")  # [12.5, 40.0]

        root = await hal.get(f"{API}/").on({"200": lambda data, response: data})
        open_ids = await (
            hal.follow(root, "search", variables={"status": "open"})
            .on({"200": hal.then_follow_all("order")})
            .on({"200": lambda orders, responses: [order["id"] for order in orders]})
        )
        print(f"Open orders: {open_ids}")  # [2]

        print(await hal.follow(root, "invoices").on({"200": lambda data, response: data, "norel": missing}))

        def not_found(data: Any, response: Response) -> str:
            return f"Order 9: not found ({response.status})"

        print(await hal.get(f"{API}/orders/9").on({"200": lambda data, response: data, "404|410": not_found}))


def main() -> None:
    """Run the example."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
