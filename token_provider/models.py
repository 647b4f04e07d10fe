from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Windows the holder distribution trend is averaged over
TREND_WINDOWS = ("30m", "1h", "2h", "4h", "8h", "24h")


class HolderTrend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class SecurityData(BaseModel):
    """Ownership snapshot from the token security endpoint"""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    owner_balance: Optional[Decimal] = None
    creator_balance: Optional[Decimal] = None
    owner_percentage: Optional[float] = None
    creator_percentage: Optional[float] = None
    top10_holder_balance: Optional[Decimal] = None
    top10_holder_percent: Optional[float] = None


class TradeData(BaseModel):
    """
    Flat trade record from the trade-data endpoint.
    Only the fields the analytics and the report read are declared, the rest are kept as extras.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    address: Optional[str] = None
    holder: Optional[int] = None
    market: Optional[int] = None
    last_trade_unix_time: Optional[int] = None
    last_trade_human_time: Optional[str] = None
    price: Optional[Decimal] = None

    price_change_30m_percent: Optional[float] = None
    price_change_1h_percent: Optional[float] = None
    price_change_2h_percent: Optional[float] = None
    price_change_4h_percent: Optional[float] = None
    price_change_8h_percent: Optional[float] = None
    price_change_12h_percent: Optional[float] = None
    price_change_24h_percent: Optional[float] = None

    unique_wallet_30m: Optional[int] = None
    unique_wallet_1h: Optional[int] = None
    unique_wallet_2h: Optional[int] = None
    unique_wallet_4h: Optional[int] = None
    unique_wallet_8h: Optional[int] = None
    unique_wallet_24h: Optional[int] = None

    unique_wallet_30m_change_percent: Optional[float] = None
    unique_wallet_1h_change_percent: Optional[float] = None
    unique_wallet_2h_change_percent: Optional[float] = None
    unique_wallet_4h_change_percent: Optional[float] = None
    unique_wallet_8h_change_percent: Optional[float] = None
    unique_wallet_24h_change_percent: Optional[float] = None

    volume_24h_usd: Optional[Decimal] = None

    def unique_wallet_change(self, window: str) -> Optional[float]:
        return getattr(self, f"unique_wallet_{window}_change_percent")


class _PairModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="allow")


class PairVolume(_PairModel):
    h24: Optional[Decimal] = None


class PairLiquidity(_PairModel):
    usd: Optional[Decimal] = None


class PairBoosts(_PairModel):
    active: int = 0


class DexScreenerPair(_PairModel):
    chain_id: Optional[str] = None
    dex_id: Optional[str] = None
    url: Optional[str] = None
    pair_address: Optional[str] = None
    price_usd: Optional[Decimal] = None
    volume: Optional[PairVolume] = None
    liquidity: Optional[PairLiquidity] = None
    boosts: Optional[PairBoosts] = None


class DexScreenerData(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    schema_version: Optional[str] = None
    pairs: Tuple[DexScreenerPair, ...] = ()


class HolderRecord(BaseModel):
    """One owner address with its balance summed over all of its token accounts"""

    model_config = ConfigDict(frozen=True)

    address: str
    balance: str


class HighValueHolder(BaseModel):
    model_config = ConfigDict(frozen=True)

    holder_address: str
    balance_usd: str


class ProcessedTokenData(BaseModel):
    model_config = ConfigDict(frozen=True)

    token_address: str
    security: SecurityData
    trade_data: TradeData
    dex_screener_data: DexScreenerData
    holder_distribution_trend: HolderTrend
    high_value_holders: Tuple[HighValueHolder, ...]
    recent_trades: bool
    high_supply_holders_count: int
    is_dex_screener_listed: bool
    is_dex_screener_paid: bool
