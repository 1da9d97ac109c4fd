"""
In-process model of the StateRelayer contract.

The contract stores the relayed DEX, master-node and vault records behind
OpenZeppelin-style AccessControl. Besides the granular update entry points it
exposes `batchCallByBot`, which executes a list of ABI-encoded calls against
itself inside one transaction:
- every call in the batch succeeds, or the whole transaction reverts
- a batch can never start another batch (ALREADY_IN_BATCH_CALL_BY_BOT)
- authorization inside a batch is evaluated for the original external caller

Each public entry point takes an ExecutionContext identifying that caller;
`execute()` runs raw calldata as one external transaction.
"""

import logging
import time
from collections.abc import Callable, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Iterator

from web3 import Web3

from state_relayer.calldata import decode_call, struct_values
from state_relayer.constants import (
    BATCH_CALL_BY_BOT,
    BOT_ROLE_NAME,
    DEFAULT_ADMIN_ROLE,
    DEFAULT_RELAYER_ADDRESS,
    DEX_INFO_FIELDS,
    MASTER_NODE_FIELDS,
    UPDATE_DEX_INFO,
    UPDATE_MASTER_NODE_INFORMATION,
    UPDATE_VAULT_GENERAL_INFORMATION,
    VAULT_FIELDS,
)
from state_relayer.errors import AlreadyInBatchCallByBot, InvalidCallData, Unauthorized
from state_relayer.models import (
    MasterNodeSummary,
    PairRecord,
    RelayerEvent,
    VaultSummary,
    zero_master_node_summary,
    zero_pair_record,
    zero_vault_summary,
)

logger = logging.getLogger(__name__)

BOT_ROLE = bytes(Web3.keccak(text=BOT_ROLE_NAME))


@dataclass(frozen=True)
class ExecutionContext:
    """Identity of the external account a call is executed for."""

    caller: str
    # 0 for the external transaction, +1 for every dispatch through batchCallByBot.
    depth: int = 0

    @classmethod
    def external(cls, sender: str) -> "ExecutionContext":
        return cls(caller=Web3.to_checksum_address(sender))

    @property
    def internal(self) -> bool:
        return self.depth > 0

    def nested(self) -> "ExecutionContext":
        return replace(self, depth=self.depth + 1)


@dataclass(frozen=True)
class _SavedState:
    dex_info: dict[str, PairRecord]
    master_node: MasterNodeSummary
    vault: VaultSummary
    roles: dict[bytes, set[str]]
    events_len: int


class StateRelayer:
    """The relayer contract's storage, access control and entry points."""

    def __init__(
        self,
        admin: str,
        *,
        address: str = DEFAULT_RELAYER_ADDRESS,
        bot: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.address = Web3.to_checksum_address(address)
        self._clock = clock
        self._roles: dict[bytes, set[str]] = {}
        self._dex_info: dict[str, PairRecord] = {}
        self._master_node = zero_master_node_summary()
        self._vault = zero_vault_summary()
        self._in_batch_call_by_bot = False
        self.events: list[RelayerEvent] = []

        self._grant(DEFAULT_ADMIN_ROLE, admin, sender=admin)
        if bot is not None:
            self._grant(BOT_ROLE, bot, sender=admin)

        self._handlers: dict[str, Callable[[ExecutionContext, dict[str, Any]], Any]] = {
            UPDATE_DEX_INFO: self._handle_update_dex_info,
            UPDATE_MASTER_NODE_INFORMATION: self._handle_update_master_node_information,
            UPDATE_VAULT_GENERAL_INFORMATION: self._handle_update_vault_general_information,
            BATCH_CALL_BY_BOT: lambda ctx, a: self.batch_call_by_bot(ctx, list(a["funcCalls"])),
            "grantRole": lambda ctx, a: self.grant_role(ctx, bytes(a["role"]), a["account"]),
            "revokeRole": lambda ctx, a: self.revoke_role(ctx, bytes(a["role"]), a["account"]),
            "hasRole": lambda ctx, a: self.has_role(bytes(a["role"]), a["account"]),
            "BOT_ROLE": lambda ctx, a: BOT_ROLE,
            "DEFAULT_ADMIN_ROLE": lambda ctx, a: DEFAULT_ADMIN_ROLE,
            "DEXInfoMapping": lambda ctx, a: self.dex_info(a["symbol"]),
            "masterNodeInformation": lambda ctx, a: self.master_node_information,
            "vaultInfo": lambda ctx, a: self.vault_info,
        }

    # ---- views -------------------------------------------------------------

    def has_role(self, role: bytes, account: str) -> bool:
        return Web3.to_checksum_address(account) in self._roles.get(role, set())

    def dex_info(self, symbol: str) -> PairRecord:
        return self._dex_info.get(symbol, zero_pair_record())

    @property
    def dex_symbols(self) -> list[str]:
        return list(self._dex_info.keys())

    @property
    def master_node_information(self) -> MasterNodeSummary:
        return self._master_node

    @property
    def vault_info(self) -> VaultSummary:
        return self._vault

    @property
    def in_batch_call_by_bot(self) -> bool:
        return self._in_batch_call_by_bot

    # ---- access control ----------------------------------------------------

    def _check_role(self, role: bytes, ctx: ExecutionContext) -> None:
        if self.has_role(role, ctx.caller):
            return
        # A role granted to the relayer itself applies to every call it dispatches
        # on its own behalf; any batch caller can then exercise it.
        if ctx.internal and self.has_role(role, self.address):
            return
        raise Unauthorized(ctx.caller, role)

    def _grant(self, role: bytes, account: str, *, sender: str) -> None:
        account = Web3.to_checksum_address(account)
        members = self._roles.setdefault(role, set())
        if account not in members:
            members.add(account)
            self._emit("RoleGranted", (role, account, Web3.to_checksum_address(sender)))
            if account == self.address:
                logger.warning("Role 0x%s granted to the relayer contract itself", role.hex())

    def grant_role(self, ctx: ExecutionContext, role: bytes, account: str) -> None:
        with self._transaction(ctx):
            self._check_role(DEFAULT_ADMIN_ROLE, ctx)
            self._grant(role, account, sender=ctx.caller)

    def revoke_role(self, ctx: ExecutionContext, role: bytes, account: str) -> None:
        with self._transaction(ctx):
            self._check_role(DEFAULT_ADMIN_ROLE, ctx)
            account = Web3.to_checksum_address(account)
            members = self._roles.get(role, set())
            if account in members:
                members.discard(account)
                self._emit("RoleRevoked", (role, account, ctx.caller))

    # ---- transaction / batch scoping ---------------------------------------

    def _save_state(self) -> _SavedState:
        return _SavedState(
            dex_info=dict(self._dex_info),
            master_node=self._master_node,
            vault=self._vault,
            roles={role: set(members) for role, members in self._roles.items()},
            events_len=len(self.events),
        )

    def _restore_state(self, saved: _SavedState) -> None:
        self._dex_info = saved.dex_info
        self._master_node = saved.master_node
        self._vault = saved.vault
        self._roles = saved.roles
        del self.events[saved.events_len :]

    @contextmanager
    def _transaction(self, ctx: ExecutionContext) -> Iterator[None]:
        """Revert every state change (including logs) if the external call fails."""
        if ctx.internal:
            # The outermost transaction owns the revert.
            yield
            return
        saved = self._save_state()
        try:
            yield
        except Exception:
            self._restore_state(saved)
            raise

    @contextmanager
    def _batch_scope(self) -> Iterator[None]:
        if self._in_batch_call_by_bot:
            raise AlreadyInBatchCallByBot()
        self._in_batch_call_by_bot = True
        try:
            yield
        finally:
            self._in_batch_call_by_bot = False

    def _emit(self, name: str, args: tuple) -> None:
        self.events.append(RelayerEvent(name=name, args=args, timestamp=int(self._clock())))

    # ---- relay entry points ------------------------------------------------

    def update_dex_info(self, ctx: ExecutionContext, symbols: Sequence[str], records: Sequence[PairRecord]) -> None:
        with self._transaction(ctx):
            self._check_role(BOT_ROLE, ctx)
            if len(symbols) != len(records):
                raise InvalidCallData(f"updateDEXInfo: {len(symbols)} symbols but {len(records)} records")
            for symbol, record in zip(symbols, records):
                self._dex_info[symbol] = record
            self._emit("UpdateDEXInfo", (tuple(symbols), tuple(records)))

    def update_master_node_information(self, ctx: ExecutionContext, record: MasterNodeSummary) -> None:
        with self._transaction(ctx):
            self._check_role(BOT_ROLE, ctx)
            self._master_node = record
            self._emit("UpdateMasterNodeInformation", (record,))

    def update_vault_general_information(self, ctx: ExecutionContext, record: VaultSummary) -> None:
        with self._transaction(ctx):
            self._check_role(BOT_ROLE, ctx)
            self._vault = record
            self._emit("UpdateVaultGeneralInformation", (record,))

    def batch_call_by_bot(self, ctx: ExecutionContext, calls: Sequence[str | bytes]) -> list[Any]:
        """Execute `calls` against this contract in order, all or nothing."""
        with self._transaction(ctx):
            self._check_role(BOT_ROLE, ctx)
            with self._batch_scope():
                inner = ctx.nested()
                return [self._dispatch(inner, data) for data in calls]

    # ---- calldata dispatch -------------------------------------------------

    def execute(self, sender: str, data: str | bytes) -> Any:
        """Run raw calldata as one external transaction from `sender`."""
        return self._dispatch(ExecutionContext.external(sender), data)

    def _dispatch(self, ctx: ExecutionContext, data: str | bytes) -> Any:
        fn_name, args = decode_call(data)
        handler = self._handlers.get(fn_name)
        if handler is None:
            raise InvalidCallData(f"Function {fn_name} is not callable on the relayer")
        logger.debug("dispatch %s caller=%s depth=%d", fn_name, ctx.caller, ctx.depth)
        return handler(ctx, args)

    def _handle_update_dex_info(self, ctx: ExecutionContext, args: dict[str, Any]) -> None:
        records = [PairRecord(*struct_values(v, DEX_INFO_FIELDS)) for v in args["_dexInfo"]]
        self.update_dex_info(ctx, list(args["_dex"]), records)

    def _handle_update_master_node_information(self, ctx: ExecutionContext, args: dict[str, Any]) -> None:
        record = MasterNodeSummary(*struct_values(args["_masterNodeInformation"], MASTER_NODE_FIELDS))
        self.update_master_node_information(ctx, record)

    def _handle_update_vault_general_information(self, ctx: ExecutionContext, args: dict[str, Any]) -> None:
        record = VaultSummary(*struct_values(args["_vaultInfo"], VAULT_FIELDS))
        self.update_vault_general_information(ctx, record)
