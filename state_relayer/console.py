"""Console output formatting."""

from datetime import datetime, timezone

from state_relayer.formatters import format_fixed_point, format_percent, short_hex
from state_relayer.models import Snapshot
from state_relayer.orchestrator import SyncOutcome
from state_relayer.protocol import StateRelayer


def print_snapshot(snapshot: Snapshot, *, max_pairs: int | None = None) -> None:
    """Print a summary of the snapshot about to be relayed."""
    ts = datetime.fromtimestamp(snapshot.timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    d = snapshot.decimals
    print("=" * 70)
    print("📊 STATE RELAYER SNAPSHOT")
    print(f"   🕐 {ts}  •  denomination={snapshot.denomination}  •  decimals={d}")
    print("=" * 70)

    print("\n💧 DEX")
    print(f"   TVL in pool pairs: {format_fixed_point(snapshot.dex_summary.total_value_lock_in_pool_pair, d)}")
    print(f"   24h volume:        {format_fixed_point(snapshot.dex_summary.total_24h_volume, d)}")
    print(f"   Pairs relayed:     {len(snapshot.pair_records)}")
    print("   " + "─" * 50)
    items = list(snapshot.pair_records.items())
    shown = items if max_pairs is None else items[:max_pairs]
    for symbol, r in shown:
        print(
            f"   {symbol:<14} price={format_fixed_point(r.primary_token_price, d, places=6)}"
            f"  vol24h={format_fixed_point(r.volume_24h, d, places=2)}"
            f"  apr={format_fixed_point(r.apr, d, places=4)}"
        )
    if len(shown) < len(items):
        print(f"   ... and {len(items) - len(shown)} more")

    v = snapshot.vault_summary
    print("\n🏦 Vaults")
    print(f"   Open vaults:      {v.no_of_vaults}")
    print(f"   Loan value:       {format_fixed_point(v.total_loan_value, d, places=2)}")
    print(f"   Collateral value: {format_fixed_point(v.total_collateral_value, d, places=2)}")
    print(f"   Collateral ratio: {format_percent(v.total_collateralization_ratio)}")
    print(f"   Active auctions:  {v.active_auctions}")

    m = snapshot.master_node_summary
    print("\n🔒 Master nodes")
    print(f"   TVL:          {format_fixed_point(m.total_value_locked, d, places=2)}")
    print(f"   0-year lock:  {format_fixed_point(m.zero_year_locked, d, places=2)}")
    print(f"   5-year lock:  {format_fixed_point(m.five_year_locked, d, places=2)}")
    print(f"   10-year lock: {format_fixed_point(m.ten_year_locked, d, places=2)}")
    print("")


def print_outcome(outcome: SyncOutcome) -> None:
    """Print the result of a relay run."""
    if outcome.ok:
        print(f"✅ Relay succeeded ({outcome.mode})")
    else:
        print(f"❌ Relay failed ({outcome.mode})")
    for fn_name, ref in zip(outcome.completed, outcome.tx_refs):
        print(f"   ✔ {fn_name}: {short_hex(ref)}")
    if outcome.bundled:
        print(f"   📦 Bundled: {', '.join(outcome.bundled)}")
    if not outcome.ok:
        if outcome.failed_call:
            print(f"   ✖ {outcome.failed_call}: {outcome.error_type}")
        if outcome.error:
            print(f"   {outcome.error}")


def print_relayer_state(relayer: StateRelayer, *, decimals: int) -> None:
    """Print the state and events of an in-process relayer (dry runs)."""
    print("\n🧪 In-process relayer state")
    print(f"   Contract: {relayer.address}")
    print(f"   DEX entries: {len(relayer.dex_symbols)}")
    m = relayer.master_node_information
    print(f"   Master-node TVL: {format_fixed_point(m.total_value_locked, decimals, places=2)}")
    v = relayer.vault_info
    print(f"   Vaults: {v.no_of_vaults}  •  ratio {format_percent(v.total_collateralization_ratio)}")
    print("   Events:")
    for ev in relayer.events:
        print(f"   • {ev.name} @ {ev.timestamp}")
