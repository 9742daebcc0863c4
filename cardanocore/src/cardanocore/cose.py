"""
COSE_Sign1 decoding for CIP-8 / CIP-30 signData results.

signData returns two hex payloads:

- key: a COSE_Key map; the Ed25519 public key sits under label -2 (x).
- signature: COSE_Sign1 = [protected: bstr, unprotected: map, payload: bstr, signature: bstr]
  where the protected bstr wraps a header map carrying the signing address
  under the text label "address".

The signature is computed over the Sig_structure, which is rebuilt here
rather than transmitted:

    Sig_structure = ["Signature1", protected, external_aad, payload]
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from cardanocore.cbor import CborReader, CborWriter
from cardanocore.constants import (
    COSE_HEADER_ADDRESS,
    COSE_KEY_X,
    ED25519_PUBLIC_KEY_LENGTH,
    ED25519_SIGNATURE_LENGTH,
    MAJOR_BYTES,
    MAJOR_NEGATIVE,
    MAJOR_TAG,
    MAJOR_TEXT,
    MAJOR_UNSIGNED,
    SIG_STRUCTURE_CONTEXT,
    TAG_COSE_SIGN1,
)
from cardanocore.crypto import address_key_hash, key_hash, verify_ed25519
from cardanocore.errors import (
    MalformedEncodingError,
    MalformedEnvelopeError,
    MalformedKeyError,
    MalformedSignatureError,
    MissingAddressError,
    MissingKeyError,
    SignatureVerificationError,
)

SIGN1_ITEMS = 4


@dataclass(frozen=True)
class SignedEnvelope:
    protected_header: bytes
    # Raw CBOR of the unprotected header map; never interpreted
    unprotected: bytes
    payload: bytes
    signature: bytes


@dataclass(frozen=True)
class SignedData:
    """A decoded signData proof, ready for Ed25519 verification."""

    verification_key: bytes
    signature: bytes
    signed_bytes: bytes
    address: bytes
    payload: bytes = b""

    def verify(self) -> bool:
        return verify_ed25519(self.verification_key, self.signature, self.signed_bytes)

    def verify_or_raise(self) -> None:
        if not self.verify():
            raise SignatureVerificationError(
                f"Signature does not verify for key {self.verification_key.hex()}"
            )

    def key_matches_address(self) -> bool:
        """True if the signing key hashes to the address's key credential."""
        credential = address_key_hash(self.address)
        return credential is not None and credential == key_hash(self.verification_key)


def _read_label(reader: CborReader) -> int | str:
    start = reader.offset
    major = reader.peek_major_type()
    if major in (MAJOR_UNSIGNED, MAJOR_NEGATIVE):
        return reader.read_int()
    if major == MAJOR_TEXT:
        return reader.read_text()
    raise MalformedEncodingError(reader.stage, start, "header label must be an integer or text")


def extract_verification_key(key_bytes: bytes) -> bytes:
    """
    Find the Ed25519 public key (label -2) in a COSE_Key map.

    Entries are scanned in order and scanning stops at the first match.

    Raises:
        MalformedEncodingError: structural CBOR failure
        MalformedKeyError: the x coordinate is not a 32-byte string
        MissingKeyError: the map has no x coordinate
    """
    reader = CborReader(key_bytes, stage="cose key")
    count = reader.read_map_header()

    index = 0
    while reader.has_more(count, index):
        label = _read_label(reader)
        if label == COSE_KEY_X:
            if reader.peek_major_type() != MAJOR_BYTES:
                raise MalformedKeyError("COSE key x coordinate is not a byte string")
            x = reader.read_bytes()
            if len(x) != ED25519_PUBLIC_KEY_LENGTH:
                raise MalformedKeyError(
                    f"COSE key x coordinate must be {ED25519_PUBLIC_KEY_LENGTH} bytes, got {len(x)}"
                )
            return x
        reader.skip()
        index += 1

    raise MissingKeyError("COSE key has no x coordinate (label -2)")


def extract_address(protected_header: bytes) -> bytes:
    """
    Find the signing address in a protected header.

    Raises:
        MalformedEncodingError: structural CBOR failure
        MalformedEnvelopeError: the address is not a byte string
        MissingAddressError: no "address" label in the header
    """
    # A zero-length protected header stands for an empty map
    if not protected_header:
        raise MissingAddressError("Protected header is empty")

    reader = CborReader(protected_header, stage="protected header")
    count = reader.read_map_header()

    index = 0
    while reader.has_more(count, index):
        label = _read_label(reader)
        if label == COSE_HEADER_ADDRESS:
            if reader.peek_major_type() != MAJOR_BYTES:
                raise MalformedEnvelopeError("Protected header address is not a byte string")
            return reader.read_bytes()
        reader.skip()
        index += 1

    raise MissingAddressError("Protected header has no address")


def _read_unprotected(reader: CborReader) -> bytes:
    start = reader.offset
    count = reader.read_map_header()
    index = 0
    while reader.has_more(count, index):
        reader.skip()
        reader.skip()
        index += 1
    if count is None:
        reader.read_break()
    return reader.consumed_since(start)


def _expect_item(reader: CborReader, count: int | None) -> None:
    if count is None and reader.peek_is_break():
        raise MalformedEnvelopeError(f"COSE_Sign1 must have {SIGN1_ITEMS} items")


def decode_sign1(data: bytes) -> tuple[SignedEnvelope, bytes]:
    """
    Decode a COSE_Sign1 structure.

    Returns:
        (envelope, address) where address comes from the protected header

    Raises:
        MalformedEncodingError: structural CBOR failure
        MalformedEnvelopeError: not a 4-item COSE_Sign1, or a detached payload
        MissingAddressError: protected header without address
        MalformedSignatureError: signature is not 64 bytes
    """
    reader = CborReader(data, stage="cose sign1")

    if reader.peek_major_type() == MAJOR_TAG:
        tag = reader.read_tag()
        if tag != TAG_COSE_SIGN1:
            raise MalformedEnvelopeError(f"Unexpected tag {tag} on COSE_Sign1")

    count = reader.read_array_header()
    if count is not None and count != SIGN1_ITEMS:
        raise MalformedEnvelopeError(f"COSE_Sign1 must have {SIGN1_ITEMS} items, got {count}")

    _expect_item(reader, count)
    protected = reader.read_bytes()
    address = extract_address(protected)
    _expect_item(reader, count)
    unprotected = _read_unprotected(reader)

    _expect_item(reader, count)
    if reader.peek_is_null():
        raise MalformedEnvelopeError("Detached payloads are not supported")
    payload = reader.read_bytes()

    _expect_item(reader, count)
    signature = reader.read_bytes()
    if len(signature) != ED25519_SIGNATURE_LENGTH:
        raise MalformedSignatureError(
            f"Signature must be {ED25519_SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )

    if count is None:
        if not reader.peek_is_break():
            raise MalformedEnvelopeError(f"COSE_Sign1 must have {SIGN1_ITEMS} items")
        reader.read_break()
    reader.expect_end()

    envelope = SignedEnvelope(
        protected_header=protected,
        unprotected=unprotected,
        payload=payload,
        signature=signature,
    )
    return envelope, address


def build_sig_structure(
    protected_header: bytes, payload: bytes, external_aad: bytes = b""
) -> bytes:
    """Rebuild the exact bytes a COSE_Sign1 signature covers."""
    writer = CborWriter()
    writer.write_array_header(4)
    writer.write_text(SIG_STRUCTURE_CONTEXT)
    writer.write_bytes(protected_header)
    writer.write_bytes(external_aad)
    writer.write_bytes(payload)
    return writer.to_bytes()


def decode_signed_data(key_bytes: bytes, signature_bytes: bytes) -> SignedData:
    """
    Decode a signData result into SignedData.

    Args:
        key_bytes: COSE_Key bytes
        signature_bytes: COSE_Sign1 bytes

    Returns:
        SignedData; call verify() to check the signature
    """
    verification_key = extract_verification_key(key_bytes)
    envelope, address = decode_sign1(signature_bytes)
    signed_bytes = build_sig_structure(envelope.protected_header, envelope.payload)

    logger.debug(
        f"Decoded COSE_Sign1 for address {address.hex()}: "
        f"{len(envelope.payload)} byte payload, key {verification_key.hex()}"
    )

    return SignedData(
        verification_key=verification_key,
        signature=envelope.signature,
        signed_bytes=signed_bytes,
        address=address,
        payload=envelope.payload,
    )
