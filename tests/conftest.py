# tests/conftest.py
"""Shared fixtures: RSA key pairs and a recording fake transport."""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from apfed.keys import generate_keypair
from apfed.transport import Response, Transport


@dataclass
class SentRequest:
    """A request seen by FakeTransport."""
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[bytes]


class FakeTransport(Transport):
    """
    Transport spy serving canned responses.

    routes maps a URL (fragment stripped) to a Response, a JSON-able
    document (served with 200), or an exception instance to raise.
    Unknown URLs get a 404 JSON error.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, Any] = routes or {}
        self.calls: List[SentRequest] = []

    def send(self, method, url, headers, body=None):
        self.calls.append(SentRequest(method, url, dict(headers), body))
        route = self.routes.get(url.split("#", 1)[0])
        if route is None:
            return Response(status=404, body=b'{"error": "Not found"}')
        if isinstance(route, Exception):
            raise route
        if isinstance(route, Response):
            return route
        return Response(status=200, body=json.dumps(route).encode())

    @property
    def last(self) -> SentRequest:
        return self.calls[-1]


@pytest.fixture(scope="session")
def keypair():
    """(private_pem, public_pem) shared across the test session."""
    return generate_keypair()


@pytest.fixture(scope="session")
def other_keypair():
    """A second, unrelated key pair."""
    return generate_keypair()


@pytest.fixture
def transport():
    return FakeTransport()
