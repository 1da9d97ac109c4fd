"""Parsing of upstream API payloads into typed records."""

from decimal import Decimal
from typing import Any

from state_relayer.codec import as_int, to_decimal
from state_relayer.errors import MalformedPayloadError
from state_relayer.models import DexPrices, LockedBucket, PoolPairInfo, StatsData


def unwrap_data(payload: Any, *, what: str) -> Any:
    """Return the `data` member of an API response envelope."""
    if not isinstance(payload, dict) or "data" not in payload:
        raise MalformedPayloadError(f"Unexpected {what} response (expected an object with 'data')")
    return payload["data"]


def _require(obj: dict[str, Any], path: str, *, what: str) -> Any:
    """Walk a dotted path through nested dicts, failing on the first missing member."""
    cur: Any = obj
    for part in path.split("."):
        if not isinstance(cur, dict) or cur.get(part) is None:
            raise MalformedPayloadError(f"{what}: missing field '{path}'")
        cur = cur[part]
    return cur


def _optional(obj: dict[str, Any], path: str) -> Any:
    cur: Any = obj
    for part in path.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(part)
        if cur is None:
            return None
    return cur


def _optional_decimal(obj: dict[str, Any], path: str) -> Decimal | None:
    value = _optional(obj, path)
    return None if value is None else to_decimal(value)


def parse_pool_pair(entry: dict[str, Any]) -> PoolPairInfo:
    """Parse one element of the `poolpairs` listing."""
    if not isinstance(entry, dict):
        raise MalformedPayloadError("poolpair: expected an object")
    what = f"poolpair {entry.get('displaySymbol') or entry.get('id') or '?'}"
    return PoolPairInfo(
        display_symbol=str(_require(entry, "displaySymbol", what=what)),
        token_a_symbol=str(_require(entry, "tokenA.symbol", what=what)),
        token_b_symbol=str(_require(entry, "tokenB.symbol", what=what)),
        token_a_reserve=to_decimal(_require(entry, "tokenA.reserve", what=what)),
        token_b_reserve=to_decimal(_require(entry, "tokenB.reserve", what=what)),
        price_ratio_ba=to_decimal(_require(entry, "priceRatio.ba", what=what)),
        commission=to_decimal(_require(entry, "commission", what=what)),
        total_liquidity_usd=_optional_decimal(entry, "totalLiquidity.usd"),
        apr_total=_optional_decimal(entry, "apr.total"),
        apr_reward=_optional_decimal(entry, "apr.reward"),
        volume_h24=_optional_decimal(entry, "volume.h24"),
    )


def parse_pool_pairs(payload: Any) -> list[PoolPairInfo]:
    data = unwrap_data(payload, what="poolpairs")
    if not isinstance(data, list):
        raise MalformedPayloadError("Unexpected poolpairs response (expected a list)")
    return [parse_pool_pair(entry) for entry in data]


def parse_locked_bucket(entry: Any) -> LockedBucket:
    if not isinstance(entry, dict):
        raise MalformedPayloadError("masternodes.locked: expected an object")
    weeks = entry.get("weeks")
    return LockedBucket(
        weeks=None if weeks is None else as_int(weeks),
        count=as_int(entry.get("count")),
        tvl=to_decimal(_require(entry, "tvl", what="masternodes.locked")),
    )


def parse_stats(payload: Any) -> StatsData:
    """Parse the `stats` response."""
    data = unwrap_data(payload, what="stats")
    if not isinstance(data, dict):
        raise MalformedPayloadError("Unexpected stats response (expected an object)")
    locked = _optional(data, "masternodes.locked") or []
    if not isinstance(locked, list):
        raise MalformedPayloadError("stats: 'masternodes.locked' is not a list")
    return StatsData(
        tvl_dex=to_decimal(_require(data, "tvl.dex", what="stats")),
        tvl_masternodes=to_decimal(_require(data, "tvl.masternodes", what="stats")),
        loan_value=to_decimal(_require(data, "loan.value.loan", what="stats")),
        collateral_value=to_decimal(_require(data, "loan.value.collateral", what="stats")),
        open_vaults=as_int(_require(data, "loan.count.openVaults", what="stats")),
        open_auctions=as_int(_require(data, "loan.count.openAuctions", what="stats")),
        masternode_locked=tuple(parse_locked_bucket(b) for b in locked),
    )


def parse_dex_prices(payload: Any, *, denomination: str) -> DexPrices:
    """Parse the `poolpairs/dexprices` response into symbol -> denomination price."""
    data = unwrap_data(payload, what="dexprices")
    if not isinstance(data, dict):
        raise MalformedPayloadError("Unexpected dexprices response (expected an object)")
    raw = data.get("dexPrices") or {}
    if not isinstance(raw, dict):
        raise MalformedPayloadError("dexprices: 'dexPrices' is not an object")
    prices: dict[str, Decimal] = {}
    for symbol, entry in raw.items():
        # Entries are {token: {...}, denominationPrice: "1.23"}; a bare number is also accepted.
        price = entry.get("denominationPrice") if isinstance(entry, dict) else entry
        prices[str(symbol)] = to_decimal(price)
    return DexPrices(denomination=denomination, prices=prices)
