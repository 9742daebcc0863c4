"""
Ledger, CBOR and COSE constants.
"""

from __future__ import annotations

# Ledger amounts (lovelace and native asset quantities) are unsigned 64-bit
MAX_AMOUNT = 2**64 - 1

TRANSACTION_ID_LENGTH = 32
POLICY_ID_LENGTH = 28
MAX_ASSET_NAME_LENGTH = 32

ED25519_PUBLIC_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64

# CBOR major types (RFC 8949 section 3.1)
MAJOR_UNSIGNED = 0
MAJOR_NEGATIVE = 1
MAJOR_BYTES = 2
MAJOR_TEXT = 3
MAJOR_ARRAY = 4
MAJOR_MAP = 5
MAJOR_TAG = 6
MAJOR_SIMPLE = 7

INDEFINITE = 31
BREAK = 0xFF
SIMPLE_NULL = 22

# Hostile inputs can nest arbitrarily deep; bound the generic skipper
MAX_NESTING_DEPTH = 64

# Tag wrapping embedded CBOR (inline datums, script references)
TAG_ENCODED_CBOR = 24

# COSE (RFC 9052) labels and context strings
TAG_COSE_SIGN1 = 18
COSE_KEY_X = -2
COSE_HEADER_ADDRESS = "address"
SIG_STRUCTURE_CONTEXT = "Signature1"
