from __future__ import annotations

import re

from eth_hash.auto import keccak

_HEX_DIGITS = re.compile(r"[0-9a-f]*")


def keccak256(data: bytes) -> bytes:
    # Keccak-256, not NIST SHA3-256. Never use hashlib.sha3_256 here.
    return keccak(data)


def strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def hex_to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    digits = strip_hex_prefix(value)
    if len(digits) % 2:
        digits = "0" + digits
    return bytes.fromhex(digits)


def bytes_to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def normalize_address(address: str) -> str:
    """Lower-case, 0x-prefixed, left-padded to 20 bytes."""
    digits = strip_hex_prefix(address).lower()
    if len(digits) > 40:
        raise ValueError(f"Address longer than 20 bytes: {address}")
    if not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"Address is not hex: {address!r}")
    return "0x" + digits.rjust(40, "0")


def same_address(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    return normalize_address(a) == normalize_address(b)


def parse_amount(value: str | int) -> int:
    """Parse an output value given as a decimal string or int."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, int):
        amount = value
    else:
        text = str(value).strip()
        if text[:2] in ("0x", "0X"):
            amount = int(text, 16)
        elif text.isdigit():
            amount = int(text, 10)
        else:
            raise ValueError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {value!r}")
    return amount
