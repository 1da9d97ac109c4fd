"""ABI encoding and decoding of StateRelayer calls."""

from functools import lru_cache
from typing import TYPE_CHECKING, Any

from state_relayer.constants import DEFAULT_RELAYER_ADDRESS, STATE_RELAYER_ABI
from state_relayer.errors import InvalidCallData
from state_relayer.formatters import normalize_hex_str

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover
    from web3.contract import Contract  # pragma: no cover


def relayer_contract(w3: "Web3 | None" = None, address: str = DEFAULT_RELAYER_ADDRESS) -> "Contract":
    """Bind the StateRelayer ABI to `address`. Without `w3` the contract can only encode/decode."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    w3 = w3 or Web3()
    return w3.eth.contract(address=Web3.to_checksum_address(address), abi=STATE_RELAYER_ABI)


@lru_cache(maxsize=1)
def _codec_contract() -> "Contract":
    return relayer_contract()


def encode_call(fn_name: str, *args: Any) -> str:
    """Encode a StateRelayer call as 0x-prefixed calldata."""
    try:
        data = _codec_contract().encode_abi(fn_name, args=list(args))
    except Exception as ex:  # pylint: disable=broad-exception-caught
        raise InvalidCallData(f"Cannot encode {fn_name}: {ex}") from ex
    return normalize_hex_str(data)


def decode_call(data: str | bytes) -> tuple[str, dict[str, Any]]:
    """
    Decode StateRelayer calldata.

    Returns: (function name, {argument name: value})
    """
    try:
        fn, args = _codec_contract().decode_function_input(data)
    except Exception as ex:  # pylint: disable=broad-exception-caught
        raise InvalidCallData(f"Cannot decode calldata {normalize_hex_str(data)[:10]}...: {ex}") from ex
    return fn.fn_name, dict(args)


def struct_values(value: Any, names: list[str]) -> tuple:
    """Order a decoded struct's fields; web3 may decode structs as dicts or as tuples."""
    if isinstance(value, dict):
        return tuple(value[n] for n in names)
    return tuple(value)
