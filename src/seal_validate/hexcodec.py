"""
Hex string helpers.

Transaction payloads come back from chain nodes with a "0x" prefix while
stored seal fields may or may not carry one. Every comparison between the two
goes through add_hex_prefix. Letter case is never normalized.
"""

HEX_PREFIX = "0x"


def is_hex_prefixed(value: str) -> bool:
    return isinstance(value, str) and value[:2] == HEX_PREFIX


def add_hex_prefix(value: str) -> str:
    """
    Return value with a leading "0x", adding it only when missing.

    The check is case-sensitive: "0X12" gets a second prefix.
    """
    return value if is_hex_prefixed(value) else HEX_PREFIX + value


def strip_hex_prefix(value: str) -> str:
    return value[2:] if is_hex_prefixed(value) else value


def hex_to_bytes(value: str) -> bytes:
    """
    Decode a hex digest, with or without prefix, to raw bytes.

    Raises:
        ValueError: If value is not a hex string of even length
    """
    if not isinstance(value, str):
        raise ValueError(f"expected hex string, got {type(value).__name__}")
    return bytes.fromhex(strip_hex_prefix(value))


def same_hex(onchain: str | None, stored: str | None) -> bool:
    """Compare an on-chain payload with a stored digest after prefixing both."""
    if onchain is None or stored is None:
        return False
    return add_hex_prefix(onchain) == add_hex_prefix(stored)
