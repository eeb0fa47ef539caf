# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Expansion of templated HAL links (RFC 6570 URI Templates).

Expansion itself is done by ``uritemplate``; undefined variables are
skipped as the RFC requires.

    >>> expand_template("/cars{?type}{&model}", {"type": "VW", "model": "T 1000+"})
    '/cars?type=VW&model=T%201000%2B'
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from uritemplate import URITemplate

__all__ = [
    "expand_link",
    "expand_template",
]


def expand_template(template: str, variables: Mapping[str, Any] | None = None) -> str:
    """Expand every ``{...}`` expression in *template* with *variables*."""
    return URITemplate(template).expand(dict(variables or {}))


def expand_link(link: Mapping[str, Any], variables: Mapping[str, Any] | None = None) -> str:
    """Return the href of a HAL link object, expanded when ``templated`` is true."""
    href = str(link.get("href", ""))
    if not link.get("templated"):
        return href
    return expand_template(href, variables)
