"""Data models for the state relayer bot."""

from collections.abc import Mapping
from dataclasses import astuple, dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class PoolPairInfo:
    """One pool pair as returned by the upstream `poolpairs` listing.

    Fields typed `Decimal | None` are optional upstream; the aggregator decides,
    per field, what a missing value encodes to.
    """

    display_symbol: str
    token_a_symbol: str
    token_b_symbol: str
    token_a_reserve: Decimal
    token_b_reserve: Decimal
    # priceRatio.ba: how many token B one token A is worth.
    price_ratio_ba: Decimal
    commission: Decimal
    total_liquidity_usd: Decimal | None = None
    apr_total: Decimal | None = None
    apr_reward: Decimal | None = None
    volume_h24: Decimal | None = None


@dataclass(frozen=True)
class LockedBucket:
    """Master-node value locked for one staking term."""

    weeks: int | None
    count: int
    tvl: Decimal


@dataclass(frozen=True)
class StatsData:
    """The subset of the upstream `stats` payload the relay consumes."""

    tvl_dex: Decimal
    tvl_masternodes: Decimal
    loan_value: Decimal
    collateral_value: Decimal
    open_vaults: int
    open_auctions: int
    masternode_locked: tuple[LockedBucket, ...] = ()


@dataclass(frozen=True)
class DexPrices:
    """Denomination prices keyed by token symbol."""

    denomination: str
    prices: Mapping[str, Decimal] = field(default_factory=dict)

    def price_of(self, symbol: str) -> Decimal:
        """Price of `symbol` in the denomination; unknown symbols are worth zero."""
        return self.prices.get(symbol, Decimal(0))


@dataclass(frozen=True)
class PairRecord:
    """On-chain DEXInfo record. Field order matches the contract struct."""

    primary_token_price: int
    volume_24h: int
    total_liquidity: int
    apr: int
    first_token_balance: int
    second_token_balance: int
    rewards: int
    commissions: int
    last_updated: int
    decimals: int

    def as_abi_tuple(self) -> tuple[int, ...]:
        return astuple(self)


@dataclass(frozen=True)
class MasterNodeSummary:
    """On-chain MasterNodeInformation record."""

    total_value_locked: int
    zero_year_locked: int
    five_year_locked: int
    ten_year_locked: int
    last_updated: int

    def as_abi_tuple(self) -> tuple[int, ...]:
        return astuple(self)


@dataclass(frozen=True)
class VaultSummary:
    """On-chain VaultGeneralInformation record."""

    no_of_vaults: int
    total_loan_value: int
    total_collateral_value: int
    # Integer percentage, e.g. 234 for 234%.
    total_collateralization_ratio: int
    active_auctions: int
    last_updated: int

    def as_abi_tuple(self) -> tuple[int, ...]:
        return astuple(self)


@dataclass(frozen=True)
class DexSummary:
    """Pool-pair totals; reported alongside the pair records."""

    total_value_lock_in_pool_pair: int
    total_24h_volume: int


@dataclass(frozen=True)
class Snapshot:
    """Everything one synchronization cycle relays."""

    dex_summary: DexSummary
    # Read-only mapping, insertion order is the upstream listing order.
    pair_records: Mapping[str, PairRecord]
    vault_summary: VaultSummary
    master_node_summary: MasterNodeSummary
    decimals: int
    denomination: str
    timestamp: int

    @property
    def symbols(self) -> list[str]:
        return list(self.pair_records.keys())

    @property
    def records(self) -> list[PairRecord]:
        return list(self.pair_records.values())


def zero_pair_record() -> PairRecord:
    """The value of an unset DEXInfoMapping entry."""
    return PairRecord(0, 0, 0, 0, 0, 0, 0, 0, 0, 0)


def zero_master_node_summary() -> MasterNodeSummary:
    return MasterNodeSummary(0, 0, 0, 0, 0)


def zero_vault_summary() -> VaultSummary:
    return VaultSummary(0, 0, 0, 0, 0, 0)


@dataclass(frozen=True)
class RelayerEvent:
    """A log emitted by the StateRelayer."""

    name: str
    args: tuple
    timestamp: int
