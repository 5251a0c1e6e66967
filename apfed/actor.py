# apfed/actor.py
"""
Locally hosted actor.

A LocalActor is an identity this process can sign as and serve:
- username and domain (the domain may carry a port)
- RSA key pair in PEM form
- ActivityPub actor document and WebFinger JRD
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .keys import KeyMaterial, generate_keypair
from .webfinger import ACTIVITY_JSON


@dataclass
class LocalActor:
    """
    An ActivityPub actor served by this process.

    Attributes:
        username: Unique username (e.g., "alice")
        domain: Host the actor lives on, optionally with ":port"
        public_key: PEM-encoded public key
        private_key: PEM-encoded private key (kept secret)
        display_name: Human-readable name
        scheme: URL scheme for actor URLs
    """
    username: str
    domain: str
    public_key: str
    private_key: str
    display_name: Optional[str] = None
    scheme: str = "https"

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.domain}"

    @property
    def host(self) -> str:
        """Domain without any port."""
        return self.domain.split(":", 1)[0]

    @property
    def id(self) -> str:
        """ActivityPub actor ID (URL)."""
        return f"{self.base_url}/users/{self.username}"

    @property
    def handle(self) -> str:
        """Fediverse handle."""
        return f"@{self.username}@{self.host}"

    @property
    def inbox(self) -> str:
        return f"{self.id}/inbox"

    @property
    def outbox(self) -> str:
        return f"{self.id}/outbox"

    @property
    def followers(self) -> str:
        return f"{self.id}/followers"

    @property
    def following(self) -> str:
        return f"{self.id}/following"

    @property
    def shared_inbox(self) -> str:
        return f"{self.base_url}/inbox"

    @property
    def key_id(self) -> str:
        """Key ID for HTTP Signatures."""
        return f"{self.id}#main-key"

    def key_material(self) -> KeyMaterial:
        """Keys for signing requests as this actor."""
        return KeyMaterial(key_id=self.key_id, private_key=self.private_key)

    def to_activitypub(self) -> Dict[str, Any]:
        """Return ActivityPub JSON-LD representation."""
        return {
            "@context": [
                "https://www.w3.org/ns/activitystreams",
                "https://w3id.org/security/v1",
            ],
            "type": "Person",
            "id": self.id,
            "preferredUsername": self.username,
            "name": self.display_name or self.username,
            "inbox": self.inbox,
            "outbox": self.outbox,
            "followers": self.followers,
            "following": self.following,
            "endpoints": {
                "sharedInbox": self.shared_inbox,
            },
            "publicKey": {
                "id": self.key_id,
                "owner": self.id,
                "publicKeyPem": self.public_key,
            },
        }

    def to_webfinger(self) -> Dict[str, Any]:
        """Return the WebFinger JRD for acct:username@host."""
        return {
            "subject": f"acct:{self.username}@{self.host}",
            "aliases": [self.id],
            "links": [
                {
                    "rel": "self",
                    "type": ACTIVITY_JSON,
                    "href": self.id,
                },
            ],
        }

    @classmethod
    def create(
        cls,
        username: str,
        domain: str,
        display_name: Optional[str] = None,
        scheme: str = "https",
    ) -> "LocalActor":
        """Create a new actor with generated keys."""
        private_pem, public_pem = generate_keypair()
        return cls(
            username=username,
            domain=domain,
            public_key=public_pem,
            private_key=private_pem,
            display_name=display_name,
            scheme=scheme,
        )
