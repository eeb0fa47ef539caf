# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Default request headers per method class and GET cache keys."""

from __future__ import annotations

from collections.abc import Mapping

HAL_JSON_CONTENT_TYPE = "application/hal+json"
JSON_CONTENT_TYPE = "application/json"
JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"

DEFAULT_SAFE_HEADERS: Mapping[str, str] = {
    "accept": f"{HAL_JSON_CONTENT_TYPE}, {JSON_CONTENT_TYPE};q=0.8",
}
DEFAULT_UNSAFE_HEADERS: Mapping[str, str] = {
    **DEFAULT_SAFE_HEADERS,
    "content-type": JSON_CONTENT_TYPE,
}
DEFAULT_PATCH_HEADERS: Mapping[str, str] = {
    **DEFAULT_SAFE_HEADERS,
    "content-type": JSON_PATCH_CONTENT_TYPE,
}

SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD"})
UNSAFE_METHODS: frozenset[str] = frozenset({"PUT", "POST", "PATCH", "DELETE"})


def default_headers(method: str) -> Mapping[str, str]:
    """Return the default header set for an HTTP method."""
    method = method.upper()
    if method in SAFE_METHODS:
        return DEFAULT_SAFE_HEADERS
    if method == "PATCH":
        return DEFAULT_PATCH_HEADERS
    return DEFAULT_UNSAFE_HEADERS


def lower_keys(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Copy *headers* with lower-cased names; values keep their case."""
    if not headers:
        return {}
    return {name.lower(): value for name, value in headers.items()}


def compute_headers(
    method: str,
    global_headers: Mapping[str, str] | None = None,
    local_headers: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge defaults, client-global and per-call headers (later wins).

    Args:
        method: HTTP method selecting the default set.
        global_headers: Headers configured on the client.
        local_headers: Headers passed to a single call.

    Returns:
        A new dict with lower-cased header names.

    """
    return {
        **default_headers(method),
        **lower_keys(global_headers),
        **lower_keys(local_headers),
    }


def cache_key(url: str, headers: Mapping[str, str]) -> str:
    """Build the deterministic GET cache key for a URL and merged headers.

    Header insertion order does not matter: pairs are sorted by name.
    """
    pairs = "_".join(f"{name}={headers[name]}" for name in sorted(headers))
    return f"{url}@{pairs}"
