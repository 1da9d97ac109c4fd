"""Invariant checks on a snapshot before it is relayed."""

from dataclasses import fields

from state_relayer.constants import UINT256_MAX
from state_relayer.errors import InvalidNumericInput
from state_relayer.models import Snapshot


def _out_of_range_fields(record) -> list[tuple[str, int]]:
    """(problem, value) for every field that is not a valid uint256."""
    found = []
    for f in fields(record):
        value = getattr(record, f.name)
        if value < 0:
            found.append((f"negative {f.name}", value))
        elif value > UINT256_MAX:
            found.append((f"{f.name} exceeds uint256", value))
    return found


def validate_snapshot(snapshot: Snapshot, *, warn_only: bool = False) -> list[str]:
    """
    Validate snapshot invariants.

    Every relayed field is a uint256 on-chain, so negatives and values above
    2**256 - 1 are rejected, and all pair records must share the snapshot's
    precision. Returns the list of issues found.
    If warn_only=False, raises InvalidNumericInput on the first issue.
    """
    issues: list[str] = []

    def report(msg: str, value) -> None:
        issues.append(msg)
        if not warn_only:
            raise InvalidNumericInput(value, msg)

    for symbol, record in snapshot.pair_records.items():
        for problem, value in _out_of_range_fields(record):
            report(f"Pair {symbol}: {problem}: {value}", value)
        if record.decimals != snapshot.decimals:
            report(
                f"Pair {symbol}: decimals {record.decimals} differ from snapshot decimals {snapshot.decimals}",
                record.decimals,
            )

    for label, record in (
        ("DEX summary", snapshot.dex_summary),
        ("Vault summary", snapshot.vault_summary),
        ("Master-node summary", snapshot.master_node_summary),
    ):
        for problem, value in _out_of_range_fields(record):
            report(f"{label}: {problem}: {value}", value)

    return issues
