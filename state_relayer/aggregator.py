"""Assembly of a relay snapshot from upstream statistics."""

import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from decimal import MAX_EMAX, MIN_EMIN, ROUND_DOWN, ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from types import MappingProxyType

from tqdm import tqdm

from state_relayer.codec import exact_sum, to_fixed_point
from state_relayer.config import RelayerConfig
from state_relayer.constants import (
    COMPOSITE_PAIR_SEPARATOR,
    FIVE_YEAR_WEEKS,
    LOCKED_BUCKET_INDEX_BY_WEEKS,
    PERCENT,
    TEN_YEAR_WEEKS,
    UINT256_DIGITS,
    ZERO_YEAR_WEEKS,
)
from state_relayer.errors import InvalidNumericInput, StateRelayerError
from state_relayer.models import (
    DexPrices,
    DexSummary,
    LockedBucket,
    MasterNodeSummary,
    PairRecord,
    PoolPairInfo,
    Snapshot,
    StatsData,
    VaultSummary,
)
from state_relayer.pricing import resolve_pair_price
from state_relayer.validation import validate_snapshot

logger = logging.getLogger(__name__)

# Truncating keeps the later half-up rounding exact; the precision covers every uint256 ratio.
RATIO_CONTEXT = Context(
    prec=2 * UINT256_DIGITS, rounding=ROUND_DOWN, Emax=MAX_EMAX, Emin=MIN_EMIN, traps=[InvalidOperation]
)


def is_primary_pair(pair: PoolPairInfo) -> bool:
    """Composite pairs (display symbol containing '/') are not relayed."""
    return COMPOSITE_PAIR_SEPARATOR not in pair.display_symbol


def build_pair_record(
    pair: PoolPairInfo,
    dex_prices: DexPrices,
    *,
    denomination: str,
    decimals: int,
    last_updated: int,
) -> PairRecord:
    """Normalize one pool pair into its on-chain record."""
    price = resolve_pair_price(pair.price_ratio_ba, pair.token_b_symbol, dex_prices, denomination=denomination)
    # Optional upstream fields encode as zero when absent (to_fixed_point(None) == 0).
    return PairRecord(
        primary_token_price=to_fixed_point(price, decimals),
        volume_24h=to_fixed_point(pair.volume_h24, decimals),
        total_liquidity=to_fixed_point(pair.total_liquidity_usd, decimals),
        apr=to_fixed_point(pair.apr_total, decimals),
        first_token_balance=to_fixed_point(pair.token_a_reserve, decimals),
        second_token_balance=to_fixed_point(pair.token_b_reserve, decimals),
        rewards=to_fixed_point(pair.apr_reward, decimals),
        commissions=to_fixed_point(pair.commission, decimals),
        last_updated=last_updated,
        decimals=decimals,
    )


def collateralization_ratio(collateral_value: Decimal, loan_value: Decimal) -> int:
    """
    Collateral over loan value as a whole percentage, rounded half up.

    With no outstanding loans the ratio is undefined; it is reported as 0.
    """
    if loan_value.is_zero():
        logger.warning("Total loan value is zero; reporting collateralization ratio as 0")
        return 0
    if collateral_value.is_zero():
        return 0
    # Bound the integer digits of the quotient before dividing.
    if collateral_value.adjusted() - loan_value.adjusted() + 3 > UINT256_DIGITS:
        raise InvalidNumericInput(
            collateral_value, f"collateralization ratio against loan {loan_value} overflows uint256"
        )
    try:
        with localcontext(RATIO_CONTEXT):
            ratio = collateral_value / loan_value * PERCENT
            return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except ArithmeticError as ex:
        raise InvalidNumericInput(collateral_value, f"cannot divide by loan value {loan_value}") from ex


def build_vault_summary(stats: StatsData, *, decimals: int, last_updated: int) -> VaultSummary:
    return VaultSummary(
        no_of_vaults=stats.open_vaults,
        total_loan_value=to_fixed_point(stats.loan_value, decimals),
        total_collateral_value=to_fixed_point(stats.collateral_value, decimals),
        total_collateralization_ratio=collateralization_ratio(stats.collateral_value, stats.loan_value),
        active_auctions=stats.open_auctions,
        last_updated=last_updated,
    )


def locked_tvl_for_term(buckets: tuple[LockedBucket, ...], weeks: int) -> Decimal | None:
    """
    Locked value for the term of `weeks` weeks.

    Buckets are matched on their `weeks` field. Payloads without it fall back to
    positional order: index 0 zero-year, index 1 ten-year, index 2 five-year.
    """
    if any(b.weeks is not None for b in buckets):
        for b in buckets:
            if b.weeks == weeks:
                return b.tvl
        return None
    idx = LOCKED_BUCKET_INDEX_BY_WEEKS[weeks]
    return buckets[idx].tvl if idx < len(buckets) else None


def build_master_node_summary(stats: StatsData, *, decimals: int, last_updated: int) -> MasterNodeSummary:
    buckets = stats.masternode_locked
    return MasterNodeSummary(
        total_value_locked=to_fixed_point(stats.tvl_masternodes, decimals),
        zero_year_locked=to_fixed_point(locked_tvl_for_term(buckets, ZERO_YEAR_WEEKS), decimals),
        five_year_locked=to_fixed_point(locked_tvl_for_term(buckets, FIVE_YEAR_WEEKS), decimals),
        ten_year_locked=to_fixed_point(locked_tvl_for_term(buckets, TEN_YEAR_WEEKS), decimals),
        last_updated=last_updated,
    )


def build_snapshot(
    stats: StatsData,
    pool_pairs: list[PoolPairInfo],
    dex_prices: DexPrices,
    *,
    denomination: str,
    decimals: int,
    timestamp: int,
) -> Snapshot:
    """
    Assemble a Snapshot from already-fetched upstream records.

    Raises on the first invalid value; never returns a partial snapshot.
    """
    primary = [p for p in pool_pairs if is_primary_pair(p)]
    skipped = len(pool_pairs) - len(primary)
    if skipped:
        logger.debug("Skipping %d composite pool pairs", skipped)

    pair_records: dict[str, PairRecord] = {}
    for pair in primary:
        if pair.display_symbol in pair_records:
            logger.warning("Duplicate pool pair %s; keeping the later entry", pair.display_symbol)
        pair_records[pair.display_symbol] = build_pair_record(
            pair, dex_prices, denomination=denomination, decimals=decimals, last_updated=timestamp
        )

    total_24h_volume = exact_sum(p.volume_h24 or Decimal(0) for p in primary)

    snapshot = Snapshot(
        dex_summary=DexSummary(
            total_value_lock_in_pool_pair=to_fixed_point(stats.tvl_dex, decimals),
            total_24h_volume=to_fixed_point(total_24h_volume, decimals),
        ),
        pair_records=MappingProxyType(pair_records),
        vault_summary=build_vault_summary(stats, decimals=decimals, last_updated=timestamp),
        master_node_summary=build_master_node_summary(stats, decimals=decimals, last_updated=timestamp),
        decimals=decimals,
        denomination=denomination,
        timestamp=timestamp,
    )
    validate_snapshot(snapshot)
    return snapshot


def fetch_upstream(source, config: RelayerConfig, *, progress: bool = False):
    """
    Fetch stats, pool pairs and denomination prices concurrently.

    `source` provides get_stats(), list_pool_pairs(limit) and list_dex_prices(denomination).
    All three calls must succeed; the first failure is re-raised.
    """
    jobs = {
        "stats": (source.get_stats, ()),
        "poolpairs": (source.list_pool_pairs, (config.pool_pair_page_size,)),
        "dexprices": (source.list_dex_prices, (config.denomination,)),
    }
    results = {}
    with ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="upstream") as pool:
        futures = {pool.submit(fn, *fn_args): name for name, (fn, fn_args) in jobs.items()}
        with tqdm(
            total=len(futures), desc="📡 Fetching upstream data", unit="req", file=sys.stderr, disable=not progress
        ) as pbar:
            for future in as_completed(futures):
                name = futures[future]
                results[name] = future.result()
                pbar.set_postfix(done=name)
                pbar.update(1)
    return results["stats"], results["poolpairs"], results["dexprices"]


def aggregate(source, config: RelayerConfig, *, now: int | None = None, progress: bool = False) -> Snapshot | None:
    """
    Run one aggregation pass against `source`.

    Returns None (after logging the cause) if any fetch, parse or numeric step fails.
    """
    timestamp = int(time.time()) if now is None else int(now)
    try:
        stats, pool_pairs, dex_prices = fetch_upstream(source, config, progress=progress)
        snapshot = build_snapshot(
            stats,
            pool_pairs,
            dex_prices,
            denomination=config.denomination,
            decimals=config.decimals,
            timestamp=timestamp,
        )
    except (StateRelayerError, ArithmeticError) as ex:
        logger.error("Aggregation aborted (%s): %s", type(ex).__name__, ex)
        return None
    logger.info(
        "Aggregated %d pairs (%d decimals, denomination %s)",
        len(snapshot.pair_records),
        snapshot.decimals,
        snapshot.denomination,
    )
    return snapshot
