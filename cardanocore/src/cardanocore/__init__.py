"""
cardanocore - Binary formats and verification for Cardano wallet connectors

Provides CBOR decoding, multi-asset value aggregation, UTxO consolidation and
COSE_Sign1 (CIP-8) decoding and verification.
"""

__version__ = "0.4.0"

from cardanocore.cbor import CborReader, CborWriter
from cardanocore.consolidate import Consolidation, deduct_fee, group_utxos
from cardanocore.cose import (
    SignedData,
    SignedEnvelope,
    build_sig_structure,
    decode_sign1,
    decode_signed_data,
    extract_address,
    extract_verification_key,
)
from cardanocore.crypto import address_key_hash, key_hash, verify_ed25519
from cardanocore.errors import (
    CardanoCoreError,
    DecodeError,
    DomainError,
    InsufficientFundsError,
    MalformedEncodingError,
    MalformedEnvelopeError,
    MalformedKeyError,
    MalformedSignatureError,
    MissingAddressError,
    MissingKeyError,
    SignatureVerificationError,
    ValueOverflowError,
)
from cardanocore.models import (
    LegacyTransactionOutput,
    PostAlonzoTransactionOutput,
    TransactionInput,
    TransactionOutput,
    Utxo,
    output_from_cbor,
    output_to_cbor,
)
from cardanocore.value import (
    Coin,
    Multiasset,
    Value,
    ValueAccumulator,
    sumup,
    value_from_cbor,
    value_to_cbor,
)

__all__ = [
    "CardanoCoreError",
    "CborReader",
    "CborWriter",
    "Coin",
    "Consolidation",
    "DecodeError",
    "DomainError",
    "InsufficientFundsError",
    "LegacyTransactionOutput",
    "MalformedEncodingError",
    "MalformedEnvelopeError",
    "MalformedKeyError",
    "MalformedSignatureError",
    "MissingAddressError",
    "MissingKeyError",
    "Multiasset",
    "PostAlonzoTransactionOutput",
    "SignatureVerificationError",
    "SignedData",
    "SignedEnvelope",
    "TransactionInput",
    "TransactionOutput",
    "Utxo",
    "Value",
    "ValueAccumulator",
    "ValueOverflowError",
    "address_key_hash",
    "build_sig_structure",
    "decode_sign1",
    "decode_signed_data",
    "deduct_fee",
    "extract_address",
    "extract_verification_key",
    "group_utxos",
    "key_hash",
    "output_from_cbor",
    "output_to_cbor",
    "sumup",
    "value_from_cbor",
    "value_to_cbor",
    "verify_ed25519",
]
