"""Formatting and conversion utilities."""

from decimal import Decimal

from state_relayer.codec import from_fixed_point


def normalize_hex_str(value) -> str:
    """Normalize hex string to 0x-prefixed format."""
    if isinstance(value, (bytes, bytearray)):
        return f"0x{value.hex()}"
    if hasattr(value, "hex") and not isinstance(value, str):
        hex_str = value.hex()
        return hex_str if hex_str.startswith("0x") else f"0x{hex_str}"
    s = str(value).strip()
    if s.lower().startswith("0x"):
        return f"0x{s[2:]}"
    return f"0x{s}"


def hex_to_bytes(value) -> bytes:
    """Convert 0x-prefixed hex (or bytes) to bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(normalize_hex_str(value)[2:])


def format_fixed_point(value: int, decimals: int, *, places: int = 4) -> str:
    """Format a fixed-point integer as a human-readable decimal with thousands separators."""
    d = from_fixed_point(value, decimals)
    return f"{d:,.{places}f}"


def format_percent(value: int) -> str:
    return f"{Decimal(value):,}%"


def short_hex(value: str, *, head: int = 10, tail: int = 6) -> str:
    """Shorten an address or hash for display."""
    if len(value) <= head + tail + 3:
        return value
    return f"{value[:head]}...{value[-tail:]}"
