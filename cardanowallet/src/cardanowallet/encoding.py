"""
Bech32 encoding for Shelley addresses (CIP-19).

Cardano addresses routinely exceed the 90 character limit of BIP173, so the
length check is not applied here.
"""

from __future__ import annotations

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"


def bech32_polymod(values: list[int]) -> int:
    gen = [0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3]
    chk = 1
    for v in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ v
        for i in range(5):
            chk ^= gen[i] if ((top >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> list[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def bech32_create_checksum(hrp: str, data: list[int]) -> list[int]:
    polymod = bech32_polymod(bech32_hrp_expand(hrp) + data + [0] * 6) ^ 1
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def bech32_verify_checksum(hrp: str, data: list[int]) -> bool:
    return bech32_polymod(bech32_hrp_expand(hrp) + data) == 1


def convertbits(data: bytes | list[int], frombits: int, tobits: int, pad: bool = True) -> list[int]:
    """Regroup a sequence of `frombits`-wide integers into `tobits`-wide ones."""
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1

    for value in data:
        if value < 0 or value >> frombits:
            raise ValueError(f"Invalid {frombits}-bit group: {value}")
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        raise ValueError("Invalid bits")

    return ret


def encode(hrp: str, payload: bytes) -> str:
    """Encode raw bytes under a human-readable prefix."""
    data = convertbits(payload, 8, 5)
    combined = data + bech32_create_checksum(hrp, data)
    return hrp + "1" + "".join(CHARSET[d] for d in combined)


def decode(text: str) -> tuple[str, bytes]:
    """
    Decode a bech32 string into (hrp, payload).

    Raises:
        ValueError: on mixed case, unknown characters or a bad checksum
    """
    if text.lower() != text and text.upper() != text:
        raise ValueError("Mixed case bech32 string")
    text = text.lower()
    separator = text.rfind("1")
    if separator < 1 or separator + 7 > len(text):
        raise ValueError("Missing bech32 separator or checksum")

    hrp = text[:separator]
    try:
        data = [CHARSET.index(c) for c in text[separator + 1 :]]
    except ValueError as e:
        raise ValueError("Invalid bech32 character") from e
    if not bech32_verify_checksum(hrp, data):
        raise ValueError("Invalid bech32 checksum")

    return hrp, bytes(convertbits(data[:-6], 5, 8, pad=False))
