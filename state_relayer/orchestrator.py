"""Submission of a snapshot to the StateRelayer."""

import logging
import sys
from dataclasses import dataclass

from tqdm import tqdm

from state_relayer.constants import (
    BATCH_CALL_BY_BOT,
    UPDATE_DEX_INFO,
    UPDATE_MASTER_NODE_INFORMATION,
    UPDATE_VAULT_GENERAL_INFORMATION,
)
from state_relayer.errors import StateRelayerError, SubmissionFailure
from state_relayer.formatters import hex_to_bytes
from state_relayer.models import Snapshot

logger = logging.getLogger(__name__)

MODE_GRANULAR = "granular"
MODE_BATCHED = "batched"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one orchestrator run."""

    ok: bool
    mode: str
    completed: tuple[str, ...] = ()
    tx_refs: tuple[str, ...] = ()
    failed_call: str | None = None
    error_type: str | None = None
    error: str | None = None
    # For batched runs, the calls that were bundled (all or none applied).
    bundled: tuple[str, ...] = ()


def snapshot_calls(snapshot: Snapshot) -> list[tuple[str, tuple]]:
    """The relay calls for `snapshot`, in submission order: DEX, master node, vault."""
    return [
        (
            UPDATE_DEX_INFO,
            (snapshot.symbols, [r.as_abi_tuple() for r in snapshot.records]),
        ),
        (UPDATE_MASTER_NODE_INFORMATION, (snapshot.master_node_summary.as_abi_tuple(),)),
        (UPDATE_VAULT_GENERAL_INFORMATION, (snapshot.vault_summary.as_abi_tuple(),)),
    ]


class SyncOrchestrator:
    """
    Relays a snapshot through a client exposing encode_call(fn, *args) and send(fn, *args).

    Granular mode sends each update as its own transaction and stops at the first
    failure. Batched mode bundles all updates into one batchCallByBot transaction.
    Failures are never retried.
    """

    def __init__(self, client, *, batched: bool = False, progress: bool = False) -> None:
        self.client = client
        self.batched = batched
        self.progress = progress

    @property
    def mode(self) -> str:
        return MODE_BATCHED if self.batched else MODE_GRANULAR

    def run(self, snapshot: Snapshot | None) -> SyncOutcome:
        if snapshot is None:
            logger.error("No snapshot to relay; skipping submission")
            return SyncOutcome(ok=False, mode=self.mode, error_type="NoSnapshot", error="no snapshot")
        if self.batched:
            return self._run_batched(snapshot)
        return self._run_granular(snapshot)

    def _run_granular(self, snapshot: Snapshot) -> SyncOutcome:
        completed: list[str] = []
        tx_refs: list[str] = []
        calls = snapshot_calls(snapshot)
        with tqdm(
            calls, desc="⛓️  Relaying updates", unit="tx", file=sys.stderr, disable=not self.progress
        ) as pbar:
            for fn_name, args in pbar:
                pbar.set_postfix(call=fn_name)
                try:
                    tx_refs.append(self.client.send(fn_name, *args))
                except StateRelayerError as ex:
                    logger.error("%s failed, aborting cycle: %s", fn_name, ex)
                    return SyncOutcome(
                        ok=False,
                        mode=MODE_GRANULAR,
                        completed=tuple(completed),
                        tx_refs=tuple(tx_refs),
                        failed_call=fn_name,
                        error_type=_root_cause_name(ex),
                        error=str(ex),
                    )
                completed.append(fn_name)
                logger.info("%s confirmed (%s)", fn_name, tx_refs[-1])
        return SyncOutcome(ok=True, mode=MODE_GRANULAR, completed=tuple(completed), tx_refs=tuple(tx_refs))

    def _run_batched(self, snapshot: Snapshot) -> SyncOutcome:
        calls = snapshot_calls(snapshot)
        names = tuple(fn_name for fn_name, _ in calls)
        try:
            encoded = [hex_to_bytes(self.client.encode_call(fn_name, *args)) for fn_name, args in calls]
            tx_ref = self.client.send(BATCH_CALL_BY_BOT, encoded)
        except StateRelayerError as ex:
            logger.error("%s failed, no update applied: %s", BATCH_CALL_BY_BOT, ex)
            return SyncOutcome(
                ok=False,
                mode=MODE_BATCHED,
                failed_call=BATCH_CALL_BY_BOT,
                error_type=_root_cause_name(ex),
                error=str(ex),
                bundled=names,
            )
        logger.info("%s confirmed (%s) with %d calls", BATCH_CALL_BY_BOT, tx_ref, len(calls))
        return SyncOutcome(
            ok=True,
            mode=MODE_BATCHED,
            completed=(BATCH_CALL_BY_BOT,),
            tx_refs=(tx_ref,),
            bundled=names,
        )


def _root_cause_name(ex: Exception) -> str:
    """Name of the revert reason behind a SubmissionFailure, else of `ex` itself."""
    if isinstance(ex, SubmissionFailure) and isinstance(ex.__cause__, StateRelayerError):
        return type(ex.__cause__).__name__
    return type(ex).__name__
