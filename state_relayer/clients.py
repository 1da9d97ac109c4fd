"""Relayer clients: submit StateRelayer calls to a network contract or an in-process model."""

import logging
from typing import TYPE_CHECKING, Any

from state_relayer.calldata import encode_call, relayer_contract
from state_relayer.constants import DEFAULT_TIMEOUT
from state_relayer.errors import ProtocolError, SubmissionFailure
from state_relayer.formatters import hex_to_bytes, normalize_hex_str

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover

    from state_relayer.protocol import StateRelayer  # pragma: no cover

logger = logging.getLogger(__name__)


class Web3RelayerClient:
    """Signs and sends StateRelayer transactions with a local private key."""

    def __init__(self, w3: "Web3", contract_address: str, private_key: str, *, timeout_s: int = DEFAULT_TIMEOUT):
        self.w3 = w3
        self.contract = relayer_contract(w3, contract_address)
        self.account = w3.eth.account.from_key(private_key)
        self.timeout_s = timeout_s

    @property
    def sender(self) -> str:
        return self.account.address

    def encode_call(self, fn_name: str, *args: Any) -> str:
        return encode_call(fn_name, *args)

    def send(self, fn_name: str, *args: Any) -> str:
        """Send one transaction and wait for its receipt. Returns the tx hash."""
        tx_hash: str | None = None
        try:
            fn = self.contract.get_function_by_name(fn_name)(*args)
            tx = fn.build_transaction(
                {
                    "from": self.account.address,
                    "nonce": self.w3.eth.get_transaction_count(self.account.address, "pending"),
                }
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = normalize_hex_str(self.w3.eth.send_raw_transaction(signed.raw_transaction))
            logger.info("%s sent: %s", fn_name, tx_hash)
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout_s)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            raise SubmissionFailure(f"{fn_name} failed: {ex}", function=fn_name, tx_hash=tx_hash) from ex
        if int(receipt["status"]) != 1:
            raise SubmissionFailure(f"{fn_name} reverted in tx {tx_hash}", function=fn_name, tx_hash=tx_hash)
        return tx_hash


class InProcessRelayerClient:
    """Submits calls to an in-process StateRelayer as `sender` (dry runs and tests)."""

    def __init__(self, relayer: "StateRelayer", sender: str) -> None:
        self.relayer = relayer
        self.sender = sender
        self._tx_count = 0

    def encode_call(self, fn_name: str, *args: Any) -> str:
        return encode_call(fn_name, *args)

    def send(self, fn_name: str, *args: Any) -> str:
        """Execute the encoded call; returns a local transaction reference."""
        self._tx_count += 1
        ref = f"local-{self._tx_count}"
        try:
            self.relayer.execute(self.sender, hex_to_bytes(encode_call(fn_name, *args)))
        except ProtocolError as ex:
            raise SubmissionFailure(f"{fn_name} reverted: {ex}", function=fn_name, tx_hash=ref) from ex
        return ref
