# apfed/transport.py
"""
HTTP transport used by the federation client.

The client only needs send(method, url, headers, body) -> Response. HTTP
error statuses come back as ordinary responses; only failures to reach
the server at all raise TransportError.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class Response:
    """Status code, headers and raw body of an HTTP response."""
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)


class Transport(ABC):
    """Base class for HTTP transports."""

    @abstractmethod
    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> Response:
        """Send a request and return the response, whatever its status."""
        pass


class UrllibTransport(Transport):
    """
    Transport built on urllib.request.

    Args:
        timeout: Socket timeout in seconds
    """

    def __init__(self, timeout: float = 30):
        self.timeout = timeout

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> Response:
        try:
            req = Request(url, data=body, headers=dict(headers), method=method)
        except ValueError as e:
            raise TransportError(f"Invalid URL '{url}': {e}") from e

        logger.debug(f"{method} {url}")
        try:
            with urlopen(req, timeout=self.timeout) as response:
                return Response(
                    status=response.status,
                    body=response.read(),
                    headers=dict(response.headers.items()),
                )
        except HTTPError as e:
            try:
                error_body = e.read()
            finally:
                e.close()
            logger.debug(f"{method} {url} -> HTTP {e.code}")
            return Response(status=e.code, body=error_body, headers=dict(e.headers.items()) if e.headers else {})
        except URLError as e:
            raise TransportError(f"Failed to connect to {url}: {e.reason}") from e
        except OSError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e
