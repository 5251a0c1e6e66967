# apfed/verifier.py
"""
Inbound request verification.

Before an inbound federated request's payload is trusted, its Signature
header has to check out against the sender's published key, and the key's
domain has to be the domain of the thing being sent:

1. signature and date headers present
2. body is a JSON object with an id
3. Signature header parses
4. object.attributedTo, if present, is on the key's domain
5. the body id is on the key's domain
6. the sender actor (keyId) can be fetched
7. the actor publishes publicKey.publicKeyPem as an RSA key
8. the RSA-SHA256 signature matches

Any failure yields False; nothing here raises.
"""

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union
from urllib.parse import urlsplit

from .errors import ApfedError
from .headers import HeaderMap
from .keys import load_public_key
from .signatures import parse_signature_header, verify

if TYPE_CHECKING:
    from .client import FederationClient

logger = logging.getLogger(__name__)


def host_of(url: Any) -> str:
    """Lower-cased host of url, or "" if there is none."""
    if not isinstance(url, str) or not url:
        return ""
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


@dataclass(frozen=True)
class AttributedTo:
    """
    object.attributedTo of an inbound activity.

    kind is one of MISSING, URL (a bare URL string) or REFERENCE (an
    object carrying an id). Anything else present but unusable is a
    REFERENCE with an empty id.
    """
    kind: str
    value: str = ""

    MISSING = "missing"
    URL = "url"
    REFERENCE = "reference"

    @classmethod
    def from_object(cls, document: Mapping[str, Any]) -> "AttributedTo":
        obj = document.get("object")
        if not isinstance(obj, Mapping) or obj.get("attributedTo") is None:
            return cls(cls.MISSING)

        attributed = obj["attributedTo"]
        if isinstance(attributed, str):
            return cls(cls.URL, attributed)
        if isinstance(attributed, Mapping) and isinstance(attributed.get("id"), str):
            return cls(cls.REFERENCE, attributed["id"])
        return cls(cls.REFERENCE, "")

    @property
    def is_missing(self) -> bool:
        return self.kind == self.MISSING

    @property
    def host(self) -> str:
        return host_of(self.value)


def _decode_body(body: Union[str, bytes]) -> Optional[Mapping[str, Any]]:
    try:
        decoded = json.loads(body)
    except (ValueError, TypeError):
        return None
    return decoded if isinstance(decoded, Mapping) else None


def verify_request_signature(
    client: "FederationClient",
    headers: Union[HeaderMap, Mapping[str, Any]],
    body: Union[str, bytes],
    target_path: Optional[str] = None,
    strict: bool = False,
) -> bool:
    """
    Decide whether an inbound request is authentically from its sender.

    Args:
        client: Used to fetch the sender actor named by keyId (unsigned)
        headers: Received headers; multi-valued headers use their first value
        body: Raw request body
        target_path: Request path, needed when (request-target) is signed
        strict: Fail when a signed header is missing from the request

    Returns:
        True only if every check passes
    """
    try:
        received = HeaderMap.coerce(headers)
    except (TypeError, ValueError, AttributeError) as e:
        logger.debug(f"Rejecting request: unreadable headers: {e}")
        return False

    signature = received.first("signature")
    date = received.first("date")
    if not signature or not date:
        logger.debug("Rejecting request: missing signature or date header")
        return False

    document = _decode_body(body)
    if document is None or document.get("id") is None:
        logger.debug("Rejecting request: body is not a JSON object with an id")
        return False

    try:
        signature_data = parse_signature_header(signature)
    except ApfedError as e:
        logger.info(f"Rejecting request: {e}")
        return False

    key_domain = host_of(signature_data.key_id)
    id_domain = host_of(document["id"])

    attributed_to = AttributedTo.from_object(document)
    if not attributed_to.is_missing:
        if not attributed_to.host or attributed_to.host != key_domain:
            logger.info(
                f"Rejecting request: attributedTo host '{attributed_to.host}' "
                f"does not match key host '{key_domain}'"
            )
            return False

    if not key_domain or not id_domain or key_domain != id_domain:
        logger.info(f"Rejecting request: id host '{id_domain}' does not match key host '{key_domain}'")
        return False

    try:
        sender = client.get_actor(signature_data.key_id)
    except Exception as e:
        logger.info(f"Rejecting request: could not fetch {signature_data.key_id}: {e}")
        return False

    if not sender or not isinstance(sender, Mapping):
        logger.info(f"Rejecting request: no actor at {signature_data.key_id}")
        return False

    public_key_info = sender.get("publicKey")
    if not isinstance(public_key_info, Mapping) or not public_key_info.get("publicKeyPem"):
        logger.info(f"Rejecting request: {signature_data.key_id} publishes no publicKeyPem")
        return False

    try:
        public_key = load_public_key(public_key_info["publicKeyPem"])
    except ApfedError as e:
        logger.info(f"Rejecting request: {e}")
        return False

    if not verify(received, body, signature_data, public_key, target_path, strict=strict):
        logger.info(f"Rejecting request: signature from {signature_data.key_id} does not verify")
        return False

    return True
