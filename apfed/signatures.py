# apfed/signatures.py
"""
HTTP Signatures for ActivityPub.

Produces and checks the draft-cavage style Signature header used between
fediverse servers:

    Signature: keyId="<url>",headers="(request-target) date host digest",
               algorithm="rsa-sha256",signature="<base64>"

The order of the names in headers= is the order the signing string was
built in, and the verifier rebuilds it in exactly that order.
"""

import base64
import binascii
import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import CryptoError, SignatureParseError
from .headers import HeaderMap
from .keys import load_private_key

logger = logging.getLogger(__name__)

# The declared algorithm of an inbound signature is not checked; every
# signature is produced and verified as RSA-SHA256.
SIGNATURE_ALGORITHM = "rsa-sha256"

REQUEST_TARGET = "(request-target)"

_PARAM_RE = re.compile(r'(.+)="(.+)"')


@dataclass
class SignatureParameters:
    """
    Parsed Signature header.

    Attributes:
        key_id: Absolute URL of the signer's public key
        headers: Lower-cased header names, in signing order
        signature: Base64 signature value
        algorithm: Declared algorithm, informational only
    """
    key_id: str
    headers: List[str]
    signature: str
    algorithm: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)

    def to_header(self) -> str:
        """Serialize back to the Signature header wire format."""
        return (
            f'keyId="{self.key_id}",'
            f'headers="{" ".join(self.headers)}",'
            f'algorithm="{self.algorithm or SIGNATURE_ALGORITHM}",'
            f'signature="{self.signature}"'
        )


def serialize_body(body: Union[Mapping, list, str, bytes, None]) -> Optional[bytes]:
    """
    Turn a request body into the bytes that are digested and sent.

    Structured values are encoded as compact JSON.
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def compute_digest(body: Union[str, bytes]) -> str:
    """Digest header value: SHA-256=<base64 of sha256(body)>."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    digest = hashlib.sha256(body).digest()
    return "SHA-256=" + base64.b64encode(digest).decode("ascii")


def build_signing_string(ordered_headers: Union[Mapping[str, str], Iterable[Tuple[str, str]]]) -> str:
    """
    Build the string that is signed.

    Each header becomes "lower(name): value"; lines are joined with "\\n"
    in the order given.
    """
    items = ordered_headers.items() if isinstance(ordered_headers, Mapping) else ordered_headers
    return "\n".join(f"{name.lower()}: {value}" for name, value in items)


def _request_target_path(url: str) -> str:
    return urlsplit(url).path or "/"


def _http_date() -> str:
    """RFC 1123 timestamp in GMT, e.g. 'Tue, 01 Jan 2024 00:00:00 GMT'."""
    return formatdate(usegmt=True)


def sign(
    key_id: str,
    private_key_pem: Union[str, bytes],
    url: str,
    body: Union[Mapping, list, str, bytes, None] = None,
    additional_headers: Optional[Mapping[str, str]] = None,
    date: Optional[str] = None,
) -> Dict[str, str]:
    """
    Sign a request to url.

    Args:
        key_id: Public key URL advertised in the Signature header
        private_key_pem: PEM-encoded RSA private key
        url: Full request URL; its path and host are signed
        body: Request body; a Digest header is signed when non-empty
        additional_headers: Extra headers, signed after the mandatory ones
        date: Date header value (defaults to now)

    Returns:
        Headers to send, including Signature, without (request-target)

    Raises:
        CryptoError: if the private key cannot be loaded or used
    """
    private_key = load_private_key(private_key_pem)

    serialized = serialize_body(body) if body else None

    headers: Dict[str, str] = {
        REQUEST_TARGET: f"post {_request_target_path(url)}",
        "Date": date or _http_date(),
        "Host": urlsplit(url).hostname or "",
    }
    if serialized:
        headers["Digest"] = compute_digest(serialized)
    if additional_headers:
        headers.update(additional_headers)

    signing_string = build_signing_string(headers)
    signed_headers = [name.lower() for name in headers]

    try:
        signature_bytes = private_key.sign(
            signing_string.encode("utf-8"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except (ValueError, TypeError) as e:
        raise CryptoError(f"Signing failed: {e}") from e

    params = SignatureParameters(
        key_id=key_id,
        headers=signed_headers,
        signature=base64.b64encode(signature_bytes).decode("ascii"),
        algorithm=SIGNATURE_ALGORITHM,
    )
    logger.debug(f"Signed request to {url} with {key_id} over: {' '.join(signed_headers)}")

    del headers[REQUEST_TARGET]
    headers["Signature"] = params.to_header()
    return headers


def _is_absolute_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def parse_signature_header(raw: str) -> SignatureParameters:
    """
    Parse an inbound Signature header.

    Raises:
        SignatureParseError: keyId missing, keyId not a URL, or headers /
            signature missing (checked in that order)
    """
    data: Dict[str, str] = {}
    for part in raw.split(","):
        match = _PARAM_RE.search(part)
        if match:
            data[match.group(1).strip()] = match.group(2)

    if "keyId" not in data:
        raise SignatureParseError(
            f"No keyId was found in the signature header. Found: {', '.join(data)}"
        )

    if not _is_absolute_url(data["keyId"]):
        raise SignatureParseError(f"keyId is not a URL: {data['keyId']}")

    if "headers" not in data or "signature" not in data:
        raise SignatureParseError("Signature is missing headers or signature parts")

    known = {"keyId", "headers", "signature", "algorithm"}
    return SignatureParameters(
        key_id=data["keyId"],
        headers=data["headers"].split(),
        signature=data["signature"],
        algorithm=data.get("algorithm"),
        extra={k: v for k, v in data.items() if k not in known},
    )


def verify(
    headers: Union[HeaderMap, Mapping[str, Any]],
    body: Union[str, bytes],
    signature_data: SignatureParameters,
    public_key: rsa.RSAPublicKey,
    target_path: Optional[str] = None,
    strict: bool = False,
) -> bool:
    """
    Verify a request signature.

    Rebuilds the signing string from the header names listed in
    signature_data, in their listed order. The digest is recomputed from
    body rather than read from the received Digest header.

    A listed header absent from the request is left out of the rebuilt
    string unless strict is set, in which case verification fails.
    Malformed headers or body make verification fail; nothing is raised.

    Returns:
        True if the RSA-SHA256 signature matches
    """
    try:
        received = HeaderMap.coerce(headers)
        to_verify: List[Tuple[str, str]] = []

        for name in signature_data.headers:
            lname = name.lower()
            if lname == REQUEST_TARGET:
                if target_path is None:
                    logger.debug("Signature covers (request-target) but no target path was given")
                    return False
                to_verify.append((lname, f"post {target_path}"))
            elif lname == "digest":
                to_verify.append((lname, compute_digest(body)))
            else:
                value = received.first(lname)
                if value is None:
                    if strict:
                        logger.debug(f"Signed header '{lname}' missing from request")
                        return False
                    continue
                to_verify.append((lname, value))

        signing_string = build_signing_string(to_verify)
        signature_bytes = base64.b64decode(signature_data.signature)
        public_key.verify(
            signature_bytes,
            signing_string.encode("utf-8"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return True
    except (InvalidSignature, binascii.Error, ValueError, TypeError, AttributeError):
        return False
