"""
=============================================================================
SERVICE KEYS AND ONION ADDRESSES
=============================================================================

An onion v3 address IS the service's Ed25519 public key, plus a checksum
and a version byte, in base32:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ONION V3 ADDRESS LAYOUT                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   base32( PUBKEY (32B) | CHECKSUM (2B) | VERSION (1B = 0x03) )       │
    │           └──────────────────┬────────────────────┘                  │
    │                        35 bytes → 56 chars, + ".onion" = 62 chars   │
    │                                                                      │
    │   CHECKSUM = SHA3-256(".onion checksum" | PUBKEY | VERSION)[:2]      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TEXT FORMAT
=============================================================================

    ed25519-sk:<64 hex chars>     private key (the 32-byte seed)
    ed25519-pk:<64 hex chars>     public key

Wherever a public key is expected a bare xxxx.onion address works too,
since the address carries the key.

=============================================================================
"""

import base64
import hashlib
from dataclasses import dataclass
from typing import Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from ..errors import KeyFormatError


PRIVATE_KEY_PREFIX = "ed25519-sk:"
PUBLIC_KEY_PREFIX = "ed25519-pk:"
ONION_SUFFIX = ".onion"
ONION_VERSION = b"\x03"
CHECKSUM_CONSTANT = b".onion checksum"

KEY_LENGTH = 32
ADDRESS_LENGTH = 56  # without the suffix


def _decode_hex_key(text: str, prefix: str) -> bytes:
    text = text.strip()
    if not text.startswith(prefix):
        raise KeyFormatError(f"expected a key starting with {prefix!r}")

    try:
        raw = bytes.fromhex(text[len(prefix):])
    except ValueError as e:
        raise KeyFormatError(f"key is not valid hex: {e}") from e

    if len(raw) != KEY_LENGTH:
        raise KeyFormatError(f"key must be {KEY_LENGTH} bytes, got {len(raw)}")
    return raw


def _checksum(public_key: bytes) -> bytes:
    return hashlib.sha3_256(CHECKSUM_CONSTANT + public_key + ONION_VERSION).digest()[:2]


def onion_address_from_public_key(public_key: bytes) -> str:
    """Canonical onion v3 host for a 32-byte Ed25519 public key."""
    if len(public_key) != KEY_LENGTH:
        raise KeyFormatError(f"public key must be {KEY_LENGTH} bytes, got {len(public_key)}")

    raw = public_key + _checksum(public_key) + ONION_VERSION
    return base64.b32encode(raw).decode("ascii").lower() + ONION_SUFFIX


def public_key_from_onion_address(address: str) -> bytes:
    """
    Recover the public key from an onion v3 address.

    Raises:
        KeyFormatError: Wrong length, bad base32, unknown version, or a
                        checksum that does not match.
    """
    host = address.strip().lower()
    if host.endswith(ONION_SUFFIX):
        host = host[:-len(ONION_SUFFIX)]

    if len(host) != ADDRESS_LENGTH:
        raise KeyFormatError(f"not an onion v3 address: {address}")

    try:
        raw = base64.b32decode(host.upper())
    except ValueError as e:
        raise KeyFormatError(f"onion address is not valid base32: {address}") from e

    public_key, checksum, version = raw[:32], raw[32:34], raw[34:]
    if version != ONION_VERSION:
        raise KeyFormatError(f"unsupported onion address version: {address}")
    if checksum != _checksum(public_key):
        raise KeyFormatError(f"onion address checksum mismatch: {address}")
    return public_key


@dataclass(frozen=True)
class ServiceKey:
    """An onion service's private key (the Ed25519 seed)."""

    seed: bytes

    @classmethod
    def generate(cls) -> "ServiceKey":
        private = Ed25519PrivateKey.generate()
        seed = private.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cls(seed)

    @property
    def public_key(self) -> bytes:
        private = Ed25519PrivateKey.from_private_bytes(self.seed)
        return private.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @property
    def onion_address(self) -> str:
        return onion_address_from_public_key(self.public_key)

    def to_text(self) -> str:
        return PRIVATE_KEY_PREFIX + self.seed.hex()

    def public_text(self) -> str:
        return PUBLIC_KEY_PREFIX + self.public_key.hex()

    def tor_key_blob(self) -> str:
        """
        The key in the form ADD_ONION takes: base64 of the 64-byte
        expanded secret key (SHA-512 of the seed, clamped).
        """
        expanded = bytearray(hashlib.sha512(self.seed).digest())
        expanded[0] &= 248
        expanded[31] &= 127
        expanded[31] |= 64
        return base64.b64encode(bytes(expanded)).decode("ascii")

    def __repr__(self) -> str:
        # Never print the seed
        return f"ServiceKey(address={self.onion_address!r})"


def parse_private_key(text: str) -> ServiceKey:
    return ServiceKey(_decode_hex_key(text, PRIVATE_KEY_PREFIX))


def parse_public_key(text: str) -> bytes:
    """Accepts "ed25519-pk:<hex>" or a bare xxxx.onion address."""
    text = text.strip()
    if text.lower().endswith(ONION_SUFFIX):
        return public_key_from_onion_address(text)
    return _decode_hex_key(text, PUBLIC_KEY_PREFIX)


def address_from_key_text(text: str) -> str:
    """The onion host a public key (or address) text refers to."""
    return onion_address_from_public_key(parse_public_key(text))


def generate_keypair() -> Tuple[str, str]:
    """Returns (private_text, public_text) for a brand new service key."""
    key = ServiceKey.generate()
    return key.to_text(), key.public_text()
