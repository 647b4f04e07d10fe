import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from token_provider.cache import TwoTierCache
from token_provider.exceptions import CacheIOError, DataShapeError, UpstreamError
from token_provider.models import HolderTrend
from token_provider.token_provider import UNAVAILABLE_MESSAGE, TokenProvider, get_token_report

from .conftest import DEX_RESPONSE, TOKEN_ADDRESS, FakeResponse, FakeSession, holder_page, ok

EXPECTED_REPORT = f"""**Token Security and Trade Report**
Token Address: {TOKEN_ADDRESS}

**Ownership Distribution:**
- Owner Balance: 100
- Creator Balance: 50
- Owner Percentage: 0.5%
- Creator Percentage: 0.25%
- Top 10 Holders Balance: 900
- Top 10 Holders Percentage: 45.5%

**Trade Data:**
- Holders: 1234
- Unique Wallets (24h): 200
- Price Change (24h): 12.5%
- Price Change (12h): N/A
- Volume (24h USD): $15000.46
- Current Price: $2.00

**Holder Distribution Trend:** increasing

**High-Value Holders (>$5 USD):**
- addr1: $10.00

**Recent Trades (Last 24h):** Yes

**Holders with >2% Supply:** 1

**DexScreener Listing:** Yes
- Listing Type: Paid
- Number of DexPairs: 1

**DexScreener Pairs:**

**Pair 1:**
- DEX: raydium
- URL: https://dexscreener.com/solana/pair1
- Price USD: $2.000000
- Volume (24h USD): $15000.50
- Boosts Active: 1
- Liquidity USD: $50000.00

"""


@pytest.fixture
def provider(config, cache, fake_session):
    return TokenProvider(config, cache, fake_session)


class TestProcessedTokenData:
    @pytest.mark.asyncio
    async def test_composite_fields(self, provider, upstreams, mock_sleep):
        data = await provider.get_processed_token_data(TOKEN_ADDRESS)

        assert data.token_address == TOKEN_ADDRESS
        assert data.holder_distribution_trend == HolderTrend.INCREASING
        assert data.high_supply_holders_count == 1
        assert [(h.holder_address, h.balance_usd) for h in data.high_value_holders] == [("addr1", "10.00")]
        assert data.recent_trades is True
        assert data.is_dex_screener_listed is True
        assert data.is_dex_screener_paid is True
        assert data.trade_data.trade_24h == 480

    @pytest.mark.asyncio
    async def test_upstream_requests(self, provider, upstreams, mock_sleep):
        await provider.get_processed_token_data(TOKEN_ADDRESS)

        security_call = upstreams.calls_to("token_security")[0]
        assert security_call["params"] == {"address": TOKEN_ADDRESS}
        assert security_call["headers"]["x-chain"] == "solana"
        assert security_call["headers"]["X-API-KEY"] == "birdeye-key"
        assert upstreams.calls_to("dex/search")[0]["params"] == {"q": TOKEN_ADDRESS}
        assert "X-API-KEY" not in upstreams.calls_to("helius")[0]["headers"]

    @pytest.mark.asyncio
    async def test_malformed_security_response_is_not_retried(self, provider, fake_session, mock_sleep):
        fake_session.add("token_security", ok({"success": False, "data": None}))
        fake_session.add("trade-data", ok({"success": True, "data": {"price": 1}}))
        fake_session.add("dex/search", ok(DEX_RESPONSE))
        fake_session.add("helius", ok(holder_page([])))

        with pytest.raises(DataShapeError):
            await provider.get_processed_token_data(TOKEN_ADDRESS)

        assert len(fake_session.calls_to("token_security")) == 1

    @pytest.mark.asyncio
    async def test_unlisted_token(self, provider, fake_session, upstreams, mock_sleep):
        fake_session.routes["dex/search"] = [ok({"schemaVersion": "1.0.0", "pairs": None})]

        data = await provider.get_processed_token_data(TOKEN_ADDRESS)
        report = provider.format_token_data(data)

        assert data.is_dex_screener_listed is False
        assert report.endswith("**DexScreener Listing:** No\n\n")

    @pytest.mark.asyncio
    async def test_holder_helpers_reuse_cached_list(self, provider, upstreams, mock_sleep):
        security = await provider.fetch_token_security(TOKEN_ADDRESS)
        trade = await provider.fetch_token_trade_data(TOKEN_ADDRESS)

        assert await provider.count_high_supply_holders(TOKEN_ADDRESS, security) == 1
        assert len(await provider.filter_high_value_holders(TOKEN_ADDRESS, trade)) == 1
        assert len(upstreams.calls_to("helius")) == 1

    @pytest.mark.asyncio
    async def test_keyword_calls_are_cached_per_token(self, provider, fake_session, mock_sleep):
        fake_session.add(
            "token_security",
            ok({"success": True, "data": {"ownerBalance": 111}}),
            ok({"success": True, "data": {"ownerBalance": 222}}),
        )

        first = await provider.birdeye.fetch_token_security(token_address="TOKEN_A")
        second = await provider.birdeye.fetch_token_security(token_address="TOKEN_B")
        positional = await provider.birdeye.fetch_token_security("TOKEN_A")

        assert first.owner_balance == 111
        assert second.owner_balance == 222
        assert positional.owner_balance == 111
        assert len(fake_session.calls_to("token_security")) == 2
        assert provider.cache.get("token_security_TOKEN_B") is not None

    @pytest.mark.asyncio
    async def test_failed_fetch_cancels_the_others(self, provider):
        cancelled = []

        async def never_finishes(token_address):
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(token_address)
                raise

        provider.fetch_token_security = AsyncMock(side_effect=UpstreamError("HTTP error! status: 500"))
        provider.fetch_token_trade_data = never_finishes
        provider.fetch_dex_screener_data = never_finishes
        provider.fetch_holder_list = never_finishes

        with pytest.raises(UpstreamError):
            await provider.get_processed_token_data(TOKEN_ADDRESS)

        assert cancelled == [TOKEN_ADDRESS] * 3


class TestFormattedReport:
    @pytest.mark.asyncio
    async def test_full_report(self, provider, upstreams, mock_sleep):
        assert await provider.get_formatted_token_report(TOKEN_ADDRESS) == EXPECTED_REPORT

    @pytest.mark.asyncio
    async def test_repeated_reports_are_identical_and_cached(self, provider, upstreams, mock_sleep):
        first = await provider.get_formatted_token_report(TOKEN_ADDRESS)
        request_count = len(upstreams.calls)
        second = await provider.get_formatted_token_report(TOKEN_ADDRESS)

        assert first == second
        assert len(upstreams.calls) == request_count

    @pytest.mark.asyncio
    async def test_persistent_tier_serves_a_new_instance(self, config, clock, provider, upstreams, mock_sleep):
        first = await provider.get_formatted_token_report(TOKEN_ADDRESS)

        fresh_cache = TwoTierCache.create(config.cache_dir, config.cache_ttl_seconds, clock=clock)
        offline = FakeSession()
        second = await TokenProvider(config, fresh_cache, offline).get_formatted_token_report(TOKEN_ADDRESS)

        assert second == first
        assert offline.calls == []

    @pytest.mark.asyncio
    async def test_memory_cache_stats_are_logged(self, provider, upstreams, mock_sleep):
        await provider.get_formatted_token_report(TOKEN_ADDRESS)
        with patch("token_provider.token_provider.logger") as mock_logger:
            await provider.get_formatted_token_report(TOKEN_ADDRESS)

        messages = [call.args[0] for call in mock_logger.info.call_args_list]
        assert any("Memory cache hits: 4 | Memory cache misses: 4" in message for message in messages)

    @pytest.mark.asyncio
    async def test_failure_degrades_to_apology(self, provider, fake_session, upstreams, mock_sleep):
        fake_session.routes["token_security"] = [FakeResponse(500, "down")]

        assert await provider.get_formatted_token_report(TOKEN_ADDRESS) == UNAVAILABLE_MESSAGE
        assert len(fake_session.calls_to("token_security")) == 3

    @pytest.mark.asyncio
    async def test_holder_failure_degrades_to_apology(self, provider, fake_session, upstreams, mock_sleep):
        fake_session.routes["helius"] = [FakeResponse(503, "unavailable")]

        assert await provider.get_formatted_token_report(TOKEN_ADDRESS) == UNAVAILABLE_MESSAGE


class TestGetTokenReport:
    @pytest.mark.asyncio
    async def test_returns_report(self, config):
        with patch.object(TokenProvider, "get_formatted_token_report", new=AsyncMock(return_value="report")):
            assert await get_token_report(TOKEN_ADDRESS, config) == "report"

    @pytest.mark.asyncio
    async def test_construction_failure_degrades_to_apology(self, config):
        with patch.object(TokenProvider, "__init__", side_effect=CacheIOError("read-only disk")):
            assert await get_token_report(TOKEN_ADDRESS, config) == UNAVAILABLE_MESSAGE
