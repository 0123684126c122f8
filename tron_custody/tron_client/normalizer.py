"""
Address normalizer: TRON hex addresses to base58check.

Nodes return owner/to addresses as 21-byte hex strings prefixed with 0x41
unless the request asked for visible=true. Everything downstream compares
addresses in base58check form ("T...").
"""

from __future__ import annotations

import base58

TRON_ADDRESS_PREFIX = b"\x41"
_HEX_ADDRESS_LEN = 42


def hex_to_base58(hex_address: str) -> str:
    """Encode a 41-prefixed hex address as base58check."""
    return base58.b58encode_check(bytes.fromhex(hex_address)).decode("ascii")


def from_account_id(account_id: bytes) -> str:
    """Build a base58check address from a 20-byte account id."""
    return base58.b58encode_check(TRON_ADDRESS_PREFIX + account_id).decode("ascii")


def normalize_address(address: str | None) -> str:
    """
    Return the base58check form of address; "" for empty input.

    Hex input (41 + 40 hex chars, optional 0x) is converted; anything else is
    returned stripped, unchanged. Never raises.
    """
    if not address or not isinstance(address, str):
        return ""
    value = address.strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    if len(value) == _HEX_ADDRESS_LEN and value[:2] == "41":
        try:
            return hex_to_base58(value)
        except ValueError:
            return value
    return address.strip()


def is_valid_address(address: str) -> bool:
    """True when address is a base58check TRON address."""
    try:
        raw = base58.b58decode_check(address)
    except ValueError:
        return False
    return len(raw) == 21 and raw[:1] == TRON_ADDRESS_PREFIX
