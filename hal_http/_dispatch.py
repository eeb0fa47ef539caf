# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Status pattern matching and body parsing for ``ResponsePromise.on``.

Handler maps are keyed by status patterns: an exact code (``"404"``), a
code with its last digit wildcarded (``"20x"``), a class (``"4xx"``),
everything (``"xxx"``), the synthetic ``"norel"``, or pipe-joined
alternatives of any of these (``"200|201|204"``).

Resolution tries ``[status, "<2 digits>x", "<1 digit>xx", "xxx"]`` against
the local map and only then the same list against the global map.  A
generic local handler therefore wins over a specific global one.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from hal_http.response import NOREL, NoRelationResponse

__all__ = [
    "WILDCARD",
    "Handler",
    "candidate_keys",
    "dispatch_status",
    "expand_handlers",
    "find_handler",
    "read_json",
]

_logger = logging.getLogger("hal_http.dispatch")

WILDCARD = "xxx"

Handler = Callable[[Any, Any], Any]
"""Called as ``handler(parsed_body, response)``; may return an awaitable."""


def expand_handlers(handlers: Mapping[str, Handler] | None) -> dict[str, Handler]:
    """Split pipe-joined keys into one entry per status pattern.

    Raises:
        TypeError: If a handler is not callable.

    """
    expanded: dict[str, Handler] = {}
    for key, handler in (handlers or {}).items():
        if not callable(handler):
            raise TypeError(f"Handler for {key!r} must be callable, got {type(handler).__name__}")
        for part in str(key).split("|"):
            expanded[part.strip()] = handler
    return expanded


def candidate_keys(status: int | str) -> tuple[str, ...]:
    """Return the handler keys to try for *status*, most specific first."""
    if status == NOREL:
        return (NOREL,)
    code = str(status)
    return tuple(dict.fromkeys((code, f"{code[:2]}x", f"{code[:1]}xx", WILDCARD)))


def find_handler(
    status: int | str,
    local_handlers: Mapping[str, Handler],
    global_handlers: Mapping[str, Handler],
) -> Handler | None:
    """Return the best handler: all local candidates before any global one."""
    keys = candidate_keys(status)
    for handlers in (local_handlers, global_handlers):
        for key in keys:
            if key in handlers:
                return handlers[key]
    return None


def dispatch_status(value: Any) -> int | str:
    """Return the status used to select a handler for *value*.

    A list (the result of a follow-all) has status 200 when empty, the
    shared status when all entries agree and ``"xxx"`` otherwise.
    """
    if isinstance(value, NoRelationResponse):
        return NOREL
    if isinstance(value, list):
        if not value:
            return 200
        statuses = {getattr(item, "status", WILDCARD) for item in value}
        return statuses.pop() if len(statuses) == 1 else WILDCARD
    status = getattr(value, "status", None)
    return status if status else WILDCARD


async def read_json(response: Any) -> Any:
    """Read and parse one response body, degrading to ``None``.

    Empty bodies, values without a ``text()`` reader and bodies that are
    not valid JSON (an HTML error page, say) all yield ``None``.
    """
    reader = getattr(response, "text", None)
    if not callable(reader):
        return None
    body = await reader()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        _logger.debug(
            "Response body is not valid JSON",
            extra={"status": getattr(response, "status", None), "url": getattr(response, "url", None)},
        )
        return None

