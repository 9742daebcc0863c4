"""
Error types for the cardanocore package.

Two disjoint families:
- DecodeError: the wallet handed us bytes we cannot trust or understand.
- DomainError: the bytes were fine but a business rule was violated.
"""

from __future__ import annotations


class CardanoCoreError(Exception):
    pass


class DecodeError(CardanoCoreError):
    """Untrusted or unexpected input from the host wallet."""

    pass


class MalformedEncodingError(DecodeError):
    """Structural CBOR failure at a given stage and byte offset."""

    def __init__(self, stage: str, offset: int, reason: str = "malformed encoding"):
        self.stage = stage
        self.offset = offset
        self.reason = reason
        super().__init__(f"{stage}: {reason} (offset {offset})")


class MalformedEnvelopeError(DecodeError):
    pass


class MalformedKeyError(DecodeError):
    pass


class MalformedSignatureError(DecodeError):
    pass


class MissingAddressError(DecodeError):
    pass


class MissingKeyError(DecodeError):
    pass


class DomainError(CardanoCoreError):
    """Business-rule violation on otherwise well-formed data."""

    pass


class ValueOverflowError(DomainError):
    def __init__(self, what: str, limit: int):
        self.what = what
        self.limit = limit
        super().__init__(f"{what} exceeds the maximum amount {limit}")


class InsufficientFundsError(DomainError):
    def __init__(self, fee: int, available: int):
        self.fee = fee
        self.available = available
        super().__init__(f"Not enough to pay the fee ({fee}), available funds are {available}")


class SignatureVerificationError(CardanoCoreError):
    pass
