# apfed/keys.py
"""
RSA key handling for HTTP Signatures.

Keys are PEM strings supplied by the caller on every call; nothing here
stores or caches them.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .errors import CryptoError


@dataclass(frozen=True)
class KeyMaterial:
    """
    Signing identity for outbound requests.

    Attributes:
        key_id: URL of the public key (usually the actor id + "#main-key")
        private_key: PEM-encoded RSA private key
    """
    key_id: Optional[str] = None
    private_key: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """True when both fields are present, i.e. requests can be signed."""
        return bool(self.key_id) and bool(self.private_key)

    @classmethod
    def coerce(cls, value: Union["KeyMaterial", Mapping[str, Any], None]) -> "KeyMaterial":
        """Accept a KeyMaterial, a {"key_id", "private_key"} mapping, or None."""
        if isinstance(value, KeyMaterial):
            return value
        if not value:
            return cls()
        return cls(
            key_id=value.get("key_id"),
            private_key=value.get("private_key"),
        )


def _to_bytes(pem: Union[str, bytes]) -> bytes:
    return pem.encode("utf-8") if isinstance(pem, str) else pem


def generate_keypair(key_size: int = 2048) -> tuple[str, str]:
    """Generate an RSA key pair, returned as (private_pem, public_pem)."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=key_size,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem.decode("utf-8"), public_pem.decode("utf-8")


def load_private_key(pem: Union[str, bytes]) -> rsa.RSAPrivateKey:
    """
    Load a PEM private key.

    Raises:
        CryptoError: if the PEM is malformed or not an RSA key
    """
    try:
        key = serialization.load_pem_private_key(_to_bytes(pem), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"Unable to load private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoError(f"Expected an RSA private key, got {type(key).__name__}")
    return key


def load_public_key(pem: Union[str, bytes]) -> rsa.RSAPublicKey:
    """
    Load a PEM public key.

    Raises:
        CryptoError: if the PEM is malformed or not an RSA key
    """
    try:
        key = serialization.load_pem_public_key(_to_bytes(pem))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"Unable to load public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise CryptoError(f"Expected an RSA public key, got {type(key).__name__}")
    return key
