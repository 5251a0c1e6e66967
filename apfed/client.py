# apfed/client.py
"""
Federation client.

Fetches WebFinger documents, actors and their collections from remote
servers, optionally signing every request with the caller's key.

Usage:
    client = FederationClient()
    keys = KeyMaterial(key_id="https://example.com/users/me#main-key",
                       private_key=private_pem)

    actor = client.get_actor_by_handle("@alice@example.org", keys)
    outbox = client.get_actor_outbox_collection(actor, keys)
    pages = client.get_all_pages_in_collection(outbox, keys, limit=3)
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import urlencode

from .config import ClientConfig
from .errors import InvalidArgument
from .keys import KeyMaterial
from .signatures import serialize_body, sign
from .transport import Transport, UrllibTransport
from .verifier import verify_request_signature
from .webfinger import Webfinger, build_webfinger_url

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/activity+json,application/ld+json,application/json"

CONTENT_TYPE = "application/activity+json"

Document = Dict[str, Any]
Body = Union[Mapping[str, Any], str, bytes, None]
Keys = Union[KeyMaterial, Mapping[str, Any], None]


class FederationClient:
    """
    Client for ActivityPub servers.

    Args:
        transport: HTTP transport (defaults to UrllibTransport)
        config: Client settings (defaults to ClientConfig())
    """

    def __init__(self, transport: Optional[Transport] = None, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self.transport = transport or UrllibTransport(timeout=self.config.timeout)

    # --- Signed requests ---

    def sign_and_get_request(
        self,
        key_material: Keys,
        url: str,
        body: Body = None,
        additional_headers: Optional[Mapping[str, str]] = None,
    ) -> Optional[Any]:
        return self.do_signed_request("GET", key_material, url, body, additional_headers)

    def sign_and_post_request(
        self,
        key_material: Keys,
        url: str,
        body: Body = None,
        additional_headers: Optional[Mapping[str, str]] = None,
    ) -> Optional[Any]:
        return self.do_signed_request("POST", key_material, url, body, additional_headers)

    def do_signed_request(
        self,
        method: str,
        key_material: Keys,
        url: str,
        body: Body = None,
        additional_headers: Optional[Mapping[str, str]] = None,
    ) -> Optional[Any]:
        """
        Send a request, signed when complete key material is given.

        GET bodies are sent as a query string; POST/PUT bodies as JSON.

        Returns:
            Decoded JSON response. Non-200 responses carry an extra
            response.status field. None if a 200 body is not JSON.

        Raises:
            CryptoError: if the private key cannot be used
            TransportError: if the server cannot be reached
        """
        method = method.upper()
        keys = KeyMaterial.coerce(key_material)
        additional_headers = dict(additional_headers or {})
        payload = serialize_body(body) if method in ("POST", "PUT") else None

        if keys.is_complete:
            headers = sign(
                keys.key_id,
                keys.private_key,
                url,
                payload if payload is not None else body,
                additional_headers,
            )
        else:
            logger.debug(f"No key material, sending unsigned {method} {url}")
            headers = additional_headers

        if method == "GET":
            url = self._with_query(url, body)

        return self._do_call(method, url, headers, payload)

    def _with_query(self, url: str, body: Body) -> str:
        parameters = _parameters(body)
        if not parameters:
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{urlencode(parameters, doseq=True)}"

    def _do_call(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        payload: Optional[bytes],
    ) -> Optional[Any]:
        request_headers = {
            "Accept": ACCEPT_HEADER,
            "User-Agent": self.config.user_agent,
        }
        if payload is not None and not any(k.lower() == "content-type" for k in headers):
            request_headers["Content-Type"] = CONTENT_TYPE
        request_headers.update(headers)

        response = self.transport.send(method, url, request_headers, payload)

        try:
            data = json.loads(response.body) if response.body else None
        except ValueError:
            logger.debug(f"{method} {url}: response body is not JSON")
            data = None

        if response.status != 200:
            logger.debug(f"{method} {url} returned HTTP {response.status}")
            if not isinstance(data, dict):
                data = {}
            if not isinstance(data.get("response"), dict):
                data["response"] = {}
            data["response"]["status"] = response.status

        return data

    # --- WebFinger ---

    def build_webfinger_url(self, handle: str) -> str:
        return build_webfinger_url(handle)

    def get_webfinger(self, handle: str, key_material: Keys = None) -> Optional[Webfinger]:
        """
        Look up a handle via WebFinger.

        Raises:
            MalformedHandle: if handle is not [@]user@host[:port]
            ShapeError: if the returned document is malformed
        """
        data = self.sign_and_get_request(key_material, build_webfinger_url(handle))
        if data is None:
            return None
        return Webfinger.from_dict(data)

    def get_actor_by_handle(self, handle: str, key_material: Keys = None) -> Optional[Document]:
        webfinger = self.get_webfinger(handle, key_material)
        if webfinger is None:
            return None
        return self.get_actor_by_webfinger(webfinger, key_material)

    def get_actor_by_webfinger(self, webfinger: Webfinger, key_material: Keys = None) -> Optional[Document]:
        profile_id = webfinger.profile_id
        if profile_id is None:
            # Fetched anyway; the transport rejects the empty URL.
            logger.warning(f"No ActivityPub profile link for {webfinger.subject}")
            profile_id = ""
        return self.get_actor(profile_id, key_material)

    # --- Actors and collections ---

    def get_actor(self, profile_id: Optional[str], key_material: Keys = None) -> Optional[Document]:
        """
        Fetch an actor document.

        Raises:
            InvalidArgument: if profile_id is None
        """
        if profile_id is None:
            raise InvalidArgument("Invalid profile ID")
        return self.sign_and_get_request(key_material, profile_id)

    def get_actor_followers_collection(self, actor: Mapping[str, Any], key_material: Keys = None) -> Optional[Document]:
        return self._get_field(actor, "followers", key_material)

    def get_actor_following_collection(self, actor: Mapping[str, Any], key_material: Keys = None) -> Optional[Document]:
        return self._get_field(actor, "following", key_material)

    def get_actor_outbox_collection(self, actor: Mapping[str, Any], key_material: Keys = None) -> Optional[Document]:
        return self._get_field(actor, "outbox", key_material)

    def get_actor_shared_inbox_collection(self, actor: Mapping[str, Any], key_material: Keys = None) -> Optional[Document]:
        """
        Fetch the actor's shared inbox.

        ActivityPub says sharedInbox endpoints SHOULD also be publicly
        readable collections of Public objects; few servers do this.
        """
        endpoints = actor.get("endpoints")
        if not isinstance(endpoints, Mapping):
            return None
        return self._get_field(endpoints, "sharedInbox", key_material)

    def _get_field(self, document: Mapping[str, Any], name: str, key_material: Keys) -> Optional[Document]:
        url = document.get(name)
        if url is None:
            return None
        return self.sign_and_get_request(key_material, url)

    # --- Pagination ---

    def get_first_page_in_collection(self, collection: Mapping[str, Any], key_material: Keys = None) -> Document:
        return self._get_page(collection, "first", key_material)

    def get_next_page(self, collection_page: Mapping[str, Any], key_material: Keys = None) -> Document:
        return self._get_page(collection_page, "next", key_material)

    def get_previous_page(self, collection_page: Mapping[str, Any], key_material: Keys = None) -> Document:
        return self._get_page(collection_page, "prev", key_material)

    def _get_page(self, document: Mapping[str, Any], pointer: str, key_material: Keys) -> Document:
        if document.get(pointer) is None:
            return {}
        return self.sign_and_get_request(key_material, document[pointer])

    def get_all_pages_in_collection(
        self,
        collection: Mapping[str, Any],
        key_material: Keys = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """
        Walk a collection from first through next pointers.

        At most limit pages are returned; the bound also stops collections
        whose next pointers form a cycle.
        """
        if limit is None:
            limit = self.config.page_limit
        if collection.get("first") is None:
            return []

        page = self.sign_and_get_request(key_material, collection["first"])
        pages = [page]
        counter = 0

        while isinstance(page, Mapping) and page.get("next") is not None:
            counter += 1
            if counter >= limit:
                logger.debug(f"Page limit {limit} reached for {collection.get('id', collection['first'])}")
                break
            page = self.sign_and_get_request(key_material, page["next"])
            pages.append(page)

        return pages

    # --- Inbound ---

    def verify_request_signature(
        self,
        headers: Mapping[str, Any],
        body: Union[str, bytes],
        target_path: Optional[str] = None,
    ) -> bool:
        """Check an inbound request's HTTP signature. Never raises."""
        return verify_request_signature(
            self,
            headers,
            body,
            target_path=target_path,
            strict=self.config.strict_headers,
        )


def _parameters(body: Body) -> Dict[str, Any]:
    """Query parameters for a GET body: a mapping or a JSON object string."""
    if body is None:
        return {}
    if isinstance(body, (str, bytes)):
        try:
            decoded = json.loads(body)
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return dict(body)
