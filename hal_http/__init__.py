# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Status code driven HTTP client for HAL (``application/hal+json``) APIs."""

import contextlib
import logging

from hal_http._headers import (
    DEFAULT_PATCH_HEADERS,
    DEFAULT_SAFE_HEADERS,
    DEFAULT_UNSAFE_HEADERS,
    compute_headers,
)
from hal_http._template import expand_link, expand_template
from hal_http.client import HalClient, create
from hal_http.exceptions import (
    FollowAllError,
    HalError,
    InvalidUrlError,
    UnhandledResponseError,
)
from hal_http.promise import ResponsePromise, StatusDispatcher
from hal_http.representation import (
    can_follow,
    first_relation_href,
    remove_hal_keys,
    self_link,
)
from hal_http.response import NOREL, NoRelationInfo, NoRelationResponse, Response
from hal_http.transport import HttpxTransport, Transport

# aiohttp transport (optional, requires `pip install hal-http-client[aiohttp]`)
with contextlib.suppress(ImportError):
    from hal_http.aiohttp_transport import AiohttpTransport  # noqa: F401

__all__ = [
    # Client
    "HalClient",
    "create",
    "ResponsePromise",
    "StatusDispatcher",
    # Responses
    "NOREL",
    "NoRelationInfo",
    "NoRelationResponse",
    "Response",
    # Errors
    "FollowAllError",
    "HalError",
    "InvalidUrlError",
    "UnhandledResponseError",
    # Transports
    "HttpxTransport",
    "Transport",
    # Headers
    "DEFAULT_PATCH_HEADERS",
    "DEFAULT_SAFE_HEADERS",
    "DEFAULT_UNSAFE_HEADERS",
    "compute_headers",
    # URI templates
    "expand_link",
    "expand_template",
    # Representation helpers
    "can_follow",
    "first_relation_href",
    "remove_hal_keys",
    "self_link",
]

# Conditionally include optional names only when actually imported
if "AiohttpTransport" in dir():
    __all__.append("AiohttpTransport")

# Attach NullHandler to the package logger so library users don't get
# "No handler found" warnings.
logging.getLogger("hal_http").addHandler(logging.NullHandler())
