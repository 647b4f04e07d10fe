import asyncio
from typing import List, Optional

import aiohttp
from loguru import logger

from decorators import monitor_execution
from token_provider import analytics
from token_provider.cache import TwoTierCache
from token_provider.config import ProviderConfig
from token_provider.models import (
    DexScreenerData,
    HighValueHolder,
    HolderRecord,
    HolderTrend,
    ProcessedTokenData,
    SecurityData,
    TradeData,
)
from token_provider.providers.birdeye_provider import BirdeyeProvider
from token_provider.providers.dexscreener_provider import DexScreenerProvider
from token_provider.providers.helius_holder_provider import HeliusHolderProvider
from token_provider.report import format_token_data

UNAVAILABLE_MESSAGE = "Unable to fetch token information. Please try again later."


class TokenProvider:
    """
    Builds token security and trade reports from Birdeye, DexScreener and Helius data.

    One instance owns one two-tier cache, so reuse the instance across requests to keep
    the memory tier warm. Creating the instance creates the cache directory.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        cache: Optional[TwoTierCache] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or ProviderConfig.from_env()
        self.cache = cache or TwoTierCache.create(self.config.cache_dir, self.config.cache_ttl_seconds)

        self.birdeye = BirdeyeProvider(self.config, self.cache, session)
        self.dexscreener = DexScreenerProvider(self.config, self.cache, session)
        self.holders = HeliusHolderProvider(self.config, self.cache, session)
        self._providers = [self.birdeye, self.dexscreener, self.holders]

    # ------------------------------------------------------------------------
    #                      FETCHING (two-tier cached)
    # ------------------------------------------------------------------------
    async def fetch_token_security(self, token_address: str) -> SecurityData:
        return await self.birdeye.fetch_token_security(token_address)

    async def fetch_token_trade_data(self, token_address: str) -> TradeData:
        return await self.birdeye.fetch_token_trade_data(token_address)

    async def fetch_dex_screener_data(self, token_address: str) -> DexScreenerData:
        return await self.dexscreener.fetch_dex_screener_data(token_address)

    async def fetch_holder_list(self, token_address: str) -> List[HolderRecord]:
        return await self.holders.fetch_holder_list(token_address)

    # ------------------------------------------------------------------------
    #                      ANALYTICS
    # ------------------------------------------------------------------------
    def analyze_holder_distribution(self, trade_data: TradeData) -> HolderTrend:
        return analytics.analyze_holder_distribution(trade_data, self.config.trend_threshold_percent)

    async def filter_high_value_holders(self, token_address: str, trade_data: TradeData) -> List[HighValueHolder]:
        holders = await self.fetch_holder_list(token_address)
        return analytics.filter_high_value_holders(holders, trade_data.price, self.config.high_value_usd_threshold)

    def check_recent_trades(self, trade_data: TradeData) -> bool:
        return analytics.check_recent_trades(trade_data)

    async def count_high_supply_holders(self, token_address: str, security: SecurityData) -> int:
        holders = await self.fetch_holder_list(token_address)
        return analytics.count_high_supply_holders(holders, security, self.config.high_supply_fraction)

    @monitor_execution()
    async def get_processed_token_data(self, token_address: str) -> ProcessedTokenData:
        """Fetch everything concurrently and derive the signals. Any failed fetch aborts the whole result."""
        logger.info(f"Processing token data | Token: {token_address}")

        tasks = [
            asyncio.ensure_future(self.fetch_token_security(token_address)),
            asyncio.ensure_future(self.fetch_token_trade_data(token_address)),
            asyncio.ensure_future(self.fetch_dex_screener_data(token_address)),
            asyncio.ensure_future(self.fetch_holder_list(token_address)),
        ]
        try:
            security, trade_data, dex_data, holders = await asyncio.gather(*tasks)
        except BaseException:
            # First failure wins, the remaining fetches must not outlive the session
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return ProcessedTokenData(
            token_address=token_address,
            security=security,
            trade_data=trade_data,
            dex_screener_data=dex_data,
            holder_distribution_trend=self.analyze_holder_distribution(trade_data),
            high_value_holders=analytics.filter_high_value_holders(
                holders, trade_data.price, self.config.high_value_usd_threshold
            ),
            recent_trades=self.check_recent_trades(trade_data),
            high_supply_holders_count=analytics.count_high_supply_holders(
                holders, security, self.config.high_supply_fraction
            ),
            is_dex_screener_listed=analytics.is_dex_screener_listed(dex_data),
            is_dex_screener_paid=analytics.is_dex_screener_paid(dex_data),
        )

    def format_token_data(self, data: ProcessedTokenData) -> str:
        return format_token_data(data, self.config.high_value_usd_threshold, self.config.high_supply_fraction)

    async def get_formatted_token_report(self, token_address: str) -> str:
        """Main entry point. Never raises: failures degrade to a fixed apology string."""
        try:
            logger.info(f"Generating formatted token report | Token: {token_address}")
            processed_data = await self.get_processed_token_data(token_address)
            report = self.format_token_data(processed_data)
            memory = self.cache.memory
            logger.info(
                f"Token report ready | Token: {token_address} | "
                f"Memory cache hits: {memory.hits} | Memory cache misses: {memory.misses}"
            )
            return report
        except Exception as e:
            logger.error(f"Error generating token report | Token: {token_address} | Error: {str(e)}")
            return UNAVAILABLE_MESSAGE

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def cleanup(self):
        for provider in self._providers:
            await provider.cleanup()


async def get_token_report(token_address: str, config: Optional[ProviderConfig] = None) -> str:
    """One-shot report for callers that do not keep a provider around"""
    try:
        async with TokenProvider(config) as provider:
            return await provider.get_formatted_token_report(token_address)
    except Exception as e:
        logger.error(f"Error fetching token data | Token: {token_address} | Error: {str(e)}")
        return UNAVAILABLE_MESSAGE
