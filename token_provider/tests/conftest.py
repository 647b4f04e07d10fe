"""
Shared fixtures for token provider tests.
Upstreams are replaced by FakeSession, which answers aiohttp-style requests from canned responses.
"""
import json
from unittest.mock import AsyncMock, patch

import pytest

from token_provider.cache import TwoTierCache
from token_provider.config import ProviderConfig

TOKEN_ADDRESS = "2weMjPLLybRMMva1fM3U31goWWrCpF59CHWNhnCJ9Vyh"


class FakeResponse:
    def __init__(self, status=200, body=None):
        self.status = status
        self._body = body if isinstance(body, str) else json.dumps(body)

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession. Requests are routed by URL substring; each route
    serves its responses in order and keeps repeating the last one.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.closed = False

    def add(self, url_part, *responses):
        self.routes.setdefault(url_part, []).extend(responses)
        return self

    def calls_to(self, url_part):
        return [call for call in self.calls if url_part in call["url"]]

    def request(self, method, url, headers=None, params=None, json=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "params": params, "json": json})
        for url_part, responses in self.routes.items():
            if url_part in url:
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected request to {url}")

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


# ============================================================================
# CANNED UPSTREAM PAYLOADS
# ============================================================================

SECURITY_RESPONSE = {
    "success": True,
    "data": {
        "ownerBalance": 100,
        "creatorBalance": 50,
        "ownerPercentage": 0.5,
        "creatorPercentage": 0.25,
        "top10HolderBalance": 900,
        "top10HolderPercent": 45.5,
    },
}

TRADE_RESPONSE = {
    "success": True,
    "data": {
        "address": TOKEN_ADDRESS,
        "holder": 1234,
        "market": 3,
        "price": 2,
        "price_change_24h_percent": 12.5,
        "unique_wallet_24h": 200,
        "unique_wallet_30m_change_percent": 20,
        "unique_wallet_1h_change_percent": 15,
        "volume_24h_usd": 15000.456,
        "trade_24h": 480,
    },
}

DEX_RESPONSE = {
    "schemaVersion": "1.0.0",
    "pairs": [
        {
            "chainId": "solana",
            "dexId": "raydium",
            "url": "https://dexscreener.com/solana/pair1",
            "pairAddress": "pair1",
            "priceUsd": "2.000000123",
            "volume": {"h24": 15000.5, "h6": 3000},
            "liquidity": {"usd": 50000},
            "boosts": {"active": 1},
        }
    ],
}


def holder_page(accounts, cursor=None):
    result = {"total": len(accounts), "limit": 1000, "token_accounts": accounts}
    if cursor:
        result["cursor"] = cursor
    return {"jsonrpc": "2.0", "id": "test", "result": result}


def ok(body):
    return FakeResponse(200, body)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    return ProviderConfig(
        cache_dir=str(tmp_path / "cache"),
        birdeye_api_key="birdeye-key",
        helius_api_key="helius-key",
    )


@pytest.fixture
def cache(config, clock):
    return TwoTierCache.create(config.cache_dir, config.cache_ttl_seconds, clock=clock)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def upstreams(fake_session):
    """All four upstreams answering with healthy payloads, holders in a single page"""
    fake_session.add("token_security", ok(SECURITY_RESPONSE))
    fake_session.add("trade-data", ok(TRADE_RESPONSE))
    fake_session.add("dex/search", ok(DEX_RESPONSE))
    fake_session.add("helius", ok(holder_page([{"owner": "addr1", "amount": 5}])))
    return fake_session


@pytest.fixture
def mock_sleep():
    """Skip real backoff waits and record the requested delays"""
    with patch("decorators.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep
