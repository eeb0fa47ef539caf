"""Shared fixtures: sample HAL resources and a stubbed client."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from hal_http.testing import StubTransport
from tests._support import url

_SAMPLE: dict[str, Any] = {
    "ROOT": {
        "name": "Peter",
        "age": 34,
        "_links": {
            "self": {"href": url("/me")},
            "address": [{"href": url("/me/address")}],
            "cars": [{"href": url("/me/cars")}],
            "car": [
                {"href": url("/me/cars/0")},
                {"href": url("/me/cars/1")},
            ],
            "pet": {"href": url("/me/pets/0")},
        },
        "_embedded": {
            "address": {
                "_links": {"self": {"href": url("/me/address")}},
                "street": "Mainstreet 12",
                "postalCode": "12345",
                "city": "Faketown",
            },
        },
    },
    "CARS": {
        "_links": {
            "self": {"href": url("/me/cars")},
            "carsByType": {"href": url("/me/carsByType/{type}"), "templated": True},
            "carsByModel": {"href": url("/me/carsByModel{?model}"), "templated": True},
            "carsByTypeAndModel": {"href": url("/me/carsByTypeAndModel{?type}{&model}"), "templated": True},
        },
        "_embedded": {
            "car": [
                {"_links": {"self": {"href": url("/me/cars/0")}}, "type": "VW", "model": "T3 Vanagon"},
                {"_links": {"self": {"href": url("/me/cars/1")}}, "type": "DMC", "model": "DeLorean"},
            ],
        },
    },
    "PETS": {
        "_links": {"self": {"href": url("/me/pets")}},
        "_embedded": {
            "pet": [
                {"_links": {"self": {"href": url("/me/pets/0")}}, "type": "cat", "color": "black"},
            ],
        },
    },
}


@pytest.fixture
def hal_data() -> dict[str, Any]:
    """A fresh deep copy of the sample resources for each test."""
    return copy.deepcopy(_SAMPLE)


@pytest.fixture
def stub(hal_data: dict[str, Any]) -> StubTransport:
    """A stub transport serving the sample resources."""
    transport = StubTransport()
    transport.add("GET", url("/me"), json=hal_data["ROOT"])
    transport.add("GET", url("/me/cars"), json=hal_data["CARS"])
    transport.add("GET", url("/me/cars/0"), json=hal_data["CARS"]["_embedded"]["car"][0])
    transport.add("GET", url("/me/cars/1"), json=hal_data["CARS"]["_embedded"]["car"][1])
    transport.add("GET", url("/me/pets"), json=hal_data["PETS"])
    transport.add("GET", url("/me/pets/0"), json=hal_data["PETS"]["_embedded"]["pet"][0])
    return transport
