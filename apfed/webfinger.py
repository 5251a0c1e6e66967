# apfed/webfinger.py
"""
WebFinger discovery.

A handle such as @alice@example.com resolves to

    https://example.com/.well-known/webfinger?resource=acct:alice@example.com

and the returned JRD document points at the ActivityPub actor through its
rel="self", type="application/activity+json" link.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import MalformedHandle, ShapeError

ACTIVITY_JSON = "application/activity+json"

WEBFINGER_URL = "https://{host}{port}/.well-known/webfinger?resource=acct:{user}@{host}"

_HANDLE_RE = re.compile(r"^@?(?P<user>[\w\-.]+)@(?P<host>[\w.\-]+)(?P<port>:\d+)?$", re.ASCII)

_OPTIONAL_LINK_FIELDS = ("type", "href", "template")


def parse_handle(handle: str) -> Tuple[str, str, Optional[int]]:
    """
    Split a handle into (user, host, port).

    Raises:
        MalformedHandle: if handle is not [@]user@host[:port]
    """
    match = _HANDLE_RE.match(handle)
    if not match:
        raise MalformedHandle(f"WebFinger handle is malformed '{handle}'")
    port = match.group("port")
    return match.group("user"), match.group("host"), int(port[1:]) if port else None


def build_webfinger_url(handle: str) -> str:
    """Build the WebFinger lookup URL for a handle."""
    user, host, port = parse_handle(handle)
    return WEBFINGER_URL.format(
        host=host,
        port=f":{port}" if port is not None else "",
        user=user,
    )


@dataclass
class Webfinger:
    """
    A WebFinger JRD document.

    Links keep only rel plus whichever of type/href/template are strings.
    """
    subject: Optional[str] = None
    aliases: List[str] = field(default_factory=list)
    links: List[Dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Webfinger":
        """
        Build from a decoded JRD document.

        Raises:
            ShapeError: on a non-string subject, non-string alias, a link
                that is not an object, or a link without rel
        """
        if not isinstance(data, Mapping):
            raise ShapeError("WebFinger document must be an object")

        webfinger = cls()

        if "subject" in data:
            if not isinstance(data["subject"], str):
                raise ShapeError("WebFinger subject must be a string")
            webfinger.subject = data["subject"]

        if "aliases" in data:
            aliases = data["aliases"]
            if not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases):
                raise ShapeError("WebFinger aliases must be an array of strings")
            webfinger.aliases = list(aliases)

        if "links" in data:
            links = data["links"]
            if not isinstance(links, list):
                raise ShapeError("WebFinger links must be an array of objects")
            for link in links:
                webfinger.links.append(_parse_link(link))

        return webfinger

    @property
    def profile_id(self) -> Optional[str]:
        """Actor URL from the first self link of type application/activity+json."""
        for link in self.links:
            if link.get("rel") == "self" and link.get("type") == ACTIVITY_JSON and "href" in link:
                return link["href"]
        return None

    @property
    def handle(self) -> Optional[str]:
        """Subject without its acct: prefix."""
        if self.subject is None:
            return None
        if self.subject.startswith("acct:"):
            return self.subject[5:]
        return self.subject

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "aliases": list(self.aliases),
            "links": [dict(link) for link in self.links],
        }


def _parse_link(link: Any) -> Dict[str, str]:
    if not isinstance(link, Mapping):
        raise ShapeError("WebFinger links must be an array of objects")
    if link.get("rel") is None:
        raise ShapeError("WebFinger links object must contain 'rel' property")

    parsed = {"rel": link["rel"]}
    for key in _OPTIONAL_LINK_FIELDS:
        if isinstance(link.get(key), str):
            parsed[key] = link[key]
    return parsed
