# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Response descriptors flowing through the status dispatcher.

``Response`` is what a transport returns: a status, headers and a body
reader.  ``NoRelationResponse`` is the synthetic ``"norel"`` outcome of
following a relation that a representation does not have.  It is a
distinct type so the dispatcher can branch on it instead of on a magic
status value.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Final

__all__ = [
    "NOREL",
    "BodyReader",
    "NoRelationInfo",
    "NoRelationResponse",
    "Response",
]

NOREL: Final = "norel"

BodyReader = Callable[[], Awaitable[str]]
"""Zero-argument coroutine function returning the decoded response body."""


@dataclass(eq=False)
class Response:
    """A single HTTP response.

    Attributes:
        status: HTTP status code.
        headers: Response headers.
        url: Request URL, or ``None`` for synthesized responses.
        method: Request method, or ``None`` for synthesized responses.

    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str | None = None
    method: str | None = None
    reader: BodyReader | None = field(default=None, repr=False)

    async def text(self) -> str:
        """Read the body as text (empty string when there is no body)."""
        if self.reader is None:
            return ""
        return await self.reader()

    @classmethod
    def from_text(
        cls,
        status: int,
        body: str = "",
        *,
        headers: Mapping[str, str] | None = None,
        url: str | None = None,
        method: str | None = None,
    ) -> Response:
        """Build a response whose body is already in memory."""

        async def _read() -> str:
            return body

        return cls(status, dict(headers or {}), url=url, method=method, reader=_read)

    @classmethod
    def embedded(cls, data: Any) -> Response:
        """Synthesize a 200 response for an embedded resource."""
        return cls.from_text(200, json.dumps(data))


@dataclass(frozen=True)
class NoRelationInfo:
    """Context attached to a ``norel`` response."""

    relation: str
    representation: Any


@dataclass(eq=False)
class NoRelationResponse:
    """Synthetic response for a relation missing from a representation."""

    info: NoRelationInfo
    status: str = NOREL
    headers: Mapping[str, str] = field(default_factory=dict)

    async def text(self) -> str:
        """Return the empty body."""
        return ""
