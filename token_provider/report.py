import logging
from decimal import Decimal
from typing import Any, List

from token_provider.analytics import DEFAULT_HIGH_SUPPLY_FRACTION, DEFAULT_HIGH_VALUE_USD, to_fixed
from token_provider.models import ProcessedTokenData

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def _display(value: Any) -> str:
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, Decimal):
        return f"{value:f}"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _percent(value: Any) -> str:
    return NOT_AVAILABLE if value is None else f"{_display(value)}%"


def _usd(value: Any, places: int) -> str:
    return NOT_AVAILABLE if value is None else f"${to_fixed(value, places)}"


def format_token_data(
    data: ProcessedTokenData,
    high_value_usd_threshold: Decimal = DEFAULT_HIGH_VALUE_USD,
    high_supply_fraction: Decimal = DEFAULT_HIGH_SUPPLY_FRACTION,
) -> str:
    """Render the composite token data as a labeled plain-text report"""
    security = data.security
    trade = data.trade_data
    parts: List[str] = []

    parts.append("**Token Security and Trade Report**\n")
    parts.append(f"Token Address: {data.token_address}\n\n")

    # Security Data
    parts.append("**Ownership Distribution:**\n")
    parts.append(f"- Owner Balance: {_display(security.owner_balance)}\n")
    parts.append(f"- Creator Balance: {_display(security.creator_balance)}\n")
    parts.append(f"- Owner Percentage: {_percent(security.owner_percentage)}\n")
    parts.append(f"- Creator Percentage: {_percent(security.creator_percentage)}\n")
    parts.append(f"- Top 10 Holders Balance: {_display(security.top10_holder_balance)}\n")
    parts.append(f"- Top 10 Holders Percentage: {_percent(security.top10_holder_percent)}\n\n")

    # Trade Data
    parts.append("**Trade Data:**\n")
    parts.append(f"- Holders: {_display(trade.holder)}\n")
    parts.append(f"- Unique Wallets (24h): {_display(trade.unique_wallet_24h)}\n")
    parts.append(f"- Price Change (24h): {_percent(trade.price_change_24h_percent)}\n")
    parts.append(f"- Price Change (12h): {_percent(trade.price_change_12h_percent)}\n")
    parts.append(f"- Volume (24h USD): {_usd(trade.volume_24h_usd, 2)}\n")
    parts.append(f"- Current Price: {_usd(trade.price, 2)}\n\n")

    parts.append(f"**Holder Distribution Trend:** {data.holder_distribution_trend.value}\n\n")

    parts.append(f"**High-Value Holders (>${_display(high_value_usd_threshold)} USD):**\n")
    if not data.high_value_holders:
        parts.append("- No high-value holders found or data not available.\n")
    for holder in data.high_value_holders:
        parts.append(f"- {holder.holder_address}: ${holder.balance_usd}\n")
    parts.append("\n")

    parts.append(f"**Recent Trades (Last 24h):** {'Yes' if data.recent_trades else 'No'}\n\n")

    supply_percent = _display((high_supply_fraction * 100).normalize())
    parts.append(f"**Holders with >{supply_percent}% Supply:** {data.high_supply_holders_count}\n\n")

    # DexScreener Status
    parts.append(f"**DexScreener Listing:** {'Yes' if data.is_dex_screener_listed else 'No'}\n")
    if data.is_dex_screener_listed:
        pairs = data.dex_screener_data.pairs
        parts.append(f"- Listing Type: {'Paid' if data.is_dex_screener_paid else 'Free'}\n")
        parts.append(f"- Number of DexPairs: {len(pairs)}\n\n")
        parts.append("**DexScreener Pairs:**\n")
        for index, pair in enumerate(pairs, start=1):
            parts.append(f"\n**Pair {index}:**\n")
            parts.append(f"- DEX: {_display(pair.dex_id)}\n")
            parts.append(f"- URL: {_display(pair.url)}\n")
            parts.append(f"- Price USD: {_usd(pair.price_usd, 6)}\n")
            parts.append(f"- Volume (24h USD): {_usd(pair.volume.h24 if pair.volume else None, 2)}\n")
            parts.append(f"- Boosts Active: {_display(pair.boosts.active if pair.boosts else None)}\n")
            parts.append(f"- Liquidity USD: {_usd(pair.liquidity.usd if pair.liquidity else None, 2)}\n")
    parts.append("\n")

    output = "".join(parts)
    logger.debug(f"Formatted token data:\n{output}")
    return output
