# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Exception hierarchy for the HAL client.

Only caller misuse (``InvalidUrlError``) is raised synchronously.  The
other classes surface as rejections of a ``ResponsePromise``.  Transport
errors (``httpx.HTTPError``, ``aiohttp.ClientError``, ...) are never
wrapped and do not appear here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hal_http.response import Response

__all__ = [
    "FollowAllError",
    "HalError",
    "InvalidUrlError",
    "UnhandledResponseError",
]


class HalError(Exception):
    """Base class for all errors raised by ``hal_http``."""


class InvalidUrlError(HalError, ValueError):
    """A verb method was called without a resolvable URL.

    Attributes:
        target: The string or representation the caller passed.

    """

    def __init__(self, target: object) -> None:
        """Initialize with the offending argument."""
        self.target = target
        super().__init__("Tried to make a request without valid url")


class UnhandledResponseError(HalError):
    """No ``on`` handler (local or global) matched a response.

    Attributes:
        response: The response, or the list of responses of a follow-all.
        status: The status the dispatcher tried to match.

    """

    def __init__(self, response: Any, status: int | str) -> None:
        """Initialize with the unmatched response and its dispatch status."""
        self.response = response
        self.status = status
        super().__init__(f'Unhandled http status "{status}"')


class FollowAllError(HalError):
    """At least one request of a follow-all failed at the transport level.

    Attributes:
        relation: The relation that was followed.
        outcomes: One entry per link, in link order.  Each entry is either
            the ``Response`` of a request that completed or the exception
            raised by one that did not.

    """

    def __init__(self, relation: str, outcomes: list[Response | BaseException]) -> None:
        """Initialize with the relation and the ordered per-link outcomes."""
        self.relation = relation
        self.outcomes = outcomes
        failed = sum(1 for outcome in outcomes if isinstance(outcome, BaseException))
        super().__init__(f'{failed} of {len(outcomes)} requests for relation "{relation}" failed')

    @property
    def responses(self) -> list[Response]:
        """Responses of the requests that completed, in link order."""
        return [outcome for outcome in self.outcomes if not isinstance(outcome, BaseException)]

    @property
    def errors(self) -> list[BaseException]:
        """Exceptions of the requests that failed, in link order."""
        return [outcome for outcome in self.outcomes if isinstance(outcome, BaseException)]
