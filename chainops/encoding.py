"""
Address and 32-byte word normalization.

All values flowing through chainops are kept in one canonical text form so
that comparisons are plain string equality:
- addresses: EIP-55 checksummed, "0x" + 40 hex digits
- words (slots, storage values): lowercase "0x" + 64 hex digits
"""

import re

from eth_abi import encode
from eth_utils import is_address, keccak, to_checksum_address

WORD_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")

ZERO_WORD = "0x" + "00" * 32


def to_address(value: object) -> str:
    """
    Normalize an address to checksum form.

    Raises:
        ValueError: If value is not a 20-byte hex address
    """
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"not a 20-byte hex address: {value!r}")
    return to_checksum_address(value)


def to_word(value: object) -> str:
    """
    Normalize a 32-byte value given as "0x" + exactly 64 hex digits.

    Raises:
        ValueError: If value is not a well-formed 32-byte hex string
    """
    if not isinstance(value, str) or not WORD_PATTERN.fullmatch(value):
        raise ValueError(f"not a 32-byte hex value: {value!r}")
    return value.lower()


def word_from_int(value: int) -> str:
    """Encode an unsigned integer as a 32-byte word."""
    if value < 0 or value >= 2**256:
        raise ValueError(f"integer out of uint256 range: {value}")
    return "0x" + encode(["uint256"], [value]).hex()


def mapping_slot(key: int, slot: int) -> str:
    """
    Storage slot of mapping[key] for a mapping declared at slot.

    Equivalent to keccak256(abi.encode(key, slot)).
    """
    return "0x" + keccak(encode(["uint256", "uint256"], [key, slot])).hex()
