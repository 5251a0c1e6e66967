# apfed/errors.py
"""Exceptions raised by the federation client and signature codec."""


class ApfedError(Exception):
    """Base exception for apfed errors."""

    pass


class MalformedHandle(ApfedError, ValueError):
    """WebFinger handle does not match [@]user@host[:port]."""

    pass


class InvalidArgument(ApfedError, ValueError):
    """A caller passed a value that can never be a fetch target."""

    pass


class ShapeError(ApfedError, ValueError):
    """A WebFinger document field has the wrong type or is missing."""

    pass


class SignatureParseError(ApfedError, ValueError):
    """Signature header is missing keyId, headers or signature, or keyId is not a URL."""

    pass


class CryptoError(ApfedError):
    """Key material could not be loaded or used for signing."""

    pass


class TransportError(ApfedError, ConnectionError):
    """The HTTP transport could not complete the request."""

    pass
