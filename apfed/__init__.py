# apfed - ActivityPub federation handshake: WebFinger, actors, HTTP Signatures
#
# A small client/responder for talking to fediverse servers. Requests can
# be signed with an actor's RSA key, inbound requests are checked against
# the sender's published key before their payload is trusted.
#
# Core concepts:
# - KeyMaterial: key id + private key supplied per call for signing
# - SignatureParameters: the parsed Signature header
# - FederationClient: signed GET/POST, WebFinger, actors, collections
# - verify_request_signature: policy gate for inbound requests

__version__ = "0.1.0"

from .errors import (
    ApfedError,
    MalformedHandle,
    InvalidArgument,
    ShapeError,
    SignatureParseError,
    CryptoError,
    TransportError,
)
from .headers import HeaderMap
from .keys import KeyMaterial, generate_keypair, load_private_key, load_public_key
from .signatures import (
    SIGNATURE_ALGORITHM,
    SignatureParameters,
    build_signing_string,
    compute_digest,
    parse_signature_header,
    sign,
    verify,
)
from .webfinger import Webfinger, build_webfinger_url, parse_handle
from .transport import Response, Transport, UrllibTransport
from .config import ClientConfig
from .client import FederationClient
from .verifier import AttributedTo, verify_request_signature
from .actor import LocalActor

__all__ = [
    # Errors
    "ApfedError",
    "MalformedHandle",
    "InvalidArgument",
    "ShapeError",
    "SignatureParseError",
    "CryptoError",
    "TransportError",
    # Signatures
    "HeaderMap",
    "KeyMaterial",
    "generate_keypair",
    "load_private_key",
    "load_public_key",
    "SIGNATURE_ALGORITHM",
    "SignatureParameters",
    "build_signing_string",
    "compute_digest",
    "parse_signature_header",
    "sign",
    "verify",
    # Federation
    "Webfinger",
    "build_webfinger_url",
    "parse_handle",
    "Response",
    "Transport",
    "UrllibTransport",
    "ClientConfig",
    "FederationClient",
    "AttributedTo",
    "verify_request_signature",
    "LocalActor",
]
