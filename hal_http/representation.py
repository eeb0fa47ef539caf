# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Pure helpers for inspecting HAL representations.

A representation is a JSON-like mapping.  The reserved keys ``_links``
and ``_embedded`` are navigational; every other key is domain data.

    >>> rep = {"name": "Peter", "_links": {"self": {"href": "/me"}}}
    >>> self_link(rep)
    '/me'
    >>> remove_hal_keys(rep)
    {'name': 'Peter'}
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

__all__ = [
    "LINKS_KEY",
    "EMBEDDED_KEY",
    "as_list",
    "can_follow",
    "embedded",
    "first_relation_href",
    "links",
    "remove_hal_keys",
    "self_link",
]

LINKS_KEY = "_links"
EMBEDDED_KEY = "_embedded"


def as_list(value: Any) -> list[Any]:
    """Wrap a scalar link/embedded value in a list; lists pass through."""
    return list(value) if isinstance(value, list) else [value]


def _relations(representation: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(representation, Mapping):
        return {}
    section = representation.get(key)
    return section if isinstance(section, Mapping) else {}


def links(representation: Any) -> Mapping[str, Any]:
    """Return the ``_links`` section, or an empty mapping."""
    return _relations(representation, LINKS_KEY)


def embedded(representation: Any) -> Mapping[str, Any]:
    """Return the ``_embedded`` section, or an empty mapping."""
    return _relations(representation, EMBEDDED_KEY)


def _path(obj: Any, *keys: str, default: Any = None) -> Any:
    node = obj
    for key in keys:
        if isinstance(node, Mapping) and key in node:
            node = node[key]
        else:
            return default
    return node


def remove_hal_keys(representation: Any) -> Any:
    """Return a deep copy of *representation* without ``_links`` and ``_embedded``.

    Values that are not mappings are returned unchanged.
    """
    if not isinstance(representation, Mapping):
        return representation
    stripped = copy.deepcopy(dict(representation))
    stripped.pop(LINKS_KEY, None)
    stripped.pop(EMBEDDED_KEY, None)
    return stripped


def can_follow(representation: Any, relation: str) -> bool:
    """Return whether *relation* is linked or embedded in *representation*."""
    return relation in links(representation) or relation in embedded(representation)


def first_relation_href(representation: Any, relation: str) -> str | None:
    """Return the URL of the first entry of *relation*.

    ``_links`` is checked first.  Otherwise the self link of the embedded
    resource is used (only for a single embedded resource, not a list).

    Args:
        representation: The HAL representation.
        relation: The relation name.

    Returns:
        The href, or ``None`` if neither source provides one.

    """
    linked = links(representation)
    if relation in linked:
        entries = as_list(linked[relation])
        if not entries:
            return None
        return _path(entries[0], "href")
    return _path(representation, EMBEDDED_KEY, relation, LINKS_KEY, "self", "href")


def self_link(representation: Any) -> str | None:
    """Return the href of the ``self`` relation, or ``None``."""
    return first_relation_href(representation, "self")
