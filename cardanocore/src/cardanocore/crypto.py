"""
Cryptographic primitives: Ed25519 verification and key hashing.
"""

from __future__ import annotations

import hashlib

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from cardanocore.constants import ED25519_PUBLIC_KEY_LENGTH, ED25519_SIGNATURE_LENGTH

KEY_HASH_LENGTH = 28


def verify_ed25519(public_key: bytes, signature: bytes, message: bytes) -> bool:
    """
    Verify an Ed25519 signature.

    Args:
        public_key: 32-byte verification key
        signature: 64-byte signature
        message: The exact bytes that were signed

    Returns:
        True if signature is valid
    """
    if len(public_key) != ED25519_PUBLIC_KEY_LENGTH or len(signature) != ED25519_SIGNATURE_LENGTH:
        return False
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
        return True
    except (InvalidSignature, ValueError):
        return False


def key_hash(public_key: bytes) -> bytes:
    """Blake2b-224 of a verification key, as used for address credentials."""
    return hashlib.blake2b(public_key, digest_size=KEY_HASH_LENGTH).digest()


def address_key_hash(address: bytes) -> bytes | None:
    """
    Return the key-hash credential an address commits to, if any.

    Shelley base, pointer and enterprise addresses carry a payment credential
    right after the header byte; reward addresses carry a stake credential in
    the same place. Script credentials and Byron addresses yield None.
    """
    if len(address) < 1 + KEY_HASH_LENGTH:
        return None
    address_type = address[0] >> 4
    # Even types 0-6 use a payment key hash, type 14 a stake key hash
    if address_type in (0, 2, 4, 6, 14):
        return address[1 : 1 + KEY_HASH_LENGTH]
    return None
