"""
Signals derived from fetched token data. Everything here is pure: same input, same output, no I/O.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Union

from token_provider.models import (
    TREND_WINDOWS,
    DexScreenerData,
    HighValueHolder,
    HolderRecord,
    HolderTrend,
    SecurityData,
    TradeData,
)

DEFAULT_TREND_THRESHOLD = 10.0
DEFAULT_HIGH_VALUE_USD = Decimal("5")
DEFAULT_HIGH_SUPPLY_FRACTION = Decimal("0.02")


def to_fixed(value: Union[Decimal, float, int, str], places: int) -> str:
    """Fixed-point string rounded half-up, e.g. to_fixed(Decimal("1.005"), 2) == "1.01" """
    quantum = Decimal(1).scaleb(-places)
    return f"{Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP):f}"


def analyze_holder_distribution(trade_data: TradeData, threshold: float = DEFAULT_TREND_THRESHOLD) -> HolderTrend:
    """Average the unique-wallet change percents over the six windows and classify the result"""
    changes = [trade_data.unique_wallet_change(window) for window in TREND_WINDOWS]
    valid_changes = [change for change in changes if change is not None]

    if not valid_changes:
        return HolderTrend.STABLE

    average_change = sum(valid_changes) / len(valid_changes)

    if average_change > threshold:
        return HolderTrend.INCREASING
    if average_change < -threshold:
        return HolderTrend.DECREASING
    return HolderTrend.STABLE


def filter_high_value_holders(
    holders: Iterable[HolderRecord], price: Optional[Decimal], threshold: Decimal = DEFAULT_HIGH_VALUE_USD
) -> List[HighValueHolder]:
    # without a price nothing can be valued
    if price is None:
        return []

    high_value_holders = []
    for holder in holders:
        balance_usd = Decimal(holder.balance) * price
        if balance_usd > threshold:
            high_value_holders.append(
                HighValueHolder(holder_address=holder.address, balance_usd=to_fixed(balance_usd, 2))
            )
    return high_value_holders


def count_high_supply_holders(
    holders: Iterable[HolderRecord], security: SecurityData, fraction: Decimal = DEFAULT_HIGH_SUPPLY_FRACTION
) -> int:
    """
    Count holders owning more than `fraction` of the supply.

    Total supply is approximated as owner balance + creator balance. This is not the circulating
    supply, so the count is a rough signal. Without a positive approximation the count is 0.
    """
    if security.owner_balance is None or security.creator_balance is None:
        return 0

    total_supply = security.owner_balance + security.creator_balance
    if total_supply <= 0:
        return 0

    return sum(1 for holder in holders if Decimal(holder.balance) / total_supply > fraction)


def check_recent_trades(trade_data: TradeData) -> bool:
    return trade_data.volume_24h_usd is not None and trade_data.volume_24h_usd > 0


def is_dex_screener_listed(dex_data: DexScreenerData) -> bool:
    return len(dex_data.pairs) > 0


def is_dex_screener_paid(dex_data: DexScreenerData) -> bool:
    return any(pair.boosts is not None and pair.boosts.active > 0 for pair in dex_data.pairs)
