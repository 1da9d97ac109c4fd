"""Pair price resolution against the reference denomination."""

from decimal import Decimal

from state_relayer.codec import exact_mul
from state_relayer.models import DexPrices


def resolve_pair_price(
    price_ratio_ba: Decimal,
    token_b_symbol: str,
    dex_prices: DexPrices,
    *,
    denomination: str,
) -> Decimal:
    """
    Price of a pair's token A expressed in `denomination`.

    `price_ratio_ba` is token B per token A. When token B is the denomination the
    ratio already is the price. A zero ratio is passed through as-is. Otherwise the
    price is chained through token B's own denomination price (zero if unknown).
    """
    if token_b_symbol == denomination or price_ratio_ba.is_zero():
        return price_ratio_ba
    return exact_mul(dex_prices.price_of(token_b_symbol), price_ratio_ba)
