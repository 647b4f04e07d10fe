import os
from decimal import Decimal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()


class ProviderConfig(BaseModel):
    """
    Upstream endpoints, API keys and the fixed policy constants.

    The holder page cap bounds worst-case latency and upstream cost of a single report,
    and the retry constants keep back-off timing deterministic. Both are meant to stay.
    """

    model_config = ConfigDict(frozen=True)

    birdeye_api_url: str = "https://public-api.birdeye.so"
    birdeye_api_key: str = ""
    chain: str = "solana"
    dexscreener_api_url: str = "https://api.dexscreener.com"
    helius_rpc_url: str = "https://mainnet.helius-rpc.com"
    helius_api_key: str = ""

    cache_dir: str = "./cache"
    cache_ttl_seconds: int = 300

    max_retries: int = 3
    retry_delay: float = 2.0  # seconds, doubled after every failed attempt

    high_value_usd_threshold: Decimal = Decimal("5")
    high_supply_fraction: Decimal = Decimal("0.02")
    trend_threshold_percent: float = 10.0
    holder_page_size: int = 1000
    max_holder_pages: int = 2

    report_timeout_seconds: float = 60.0

    @classmethod
    def from_env(cls, **overrides) -> "ProviderConfig":
        """Build a config from environment variables (and .env), falling back to defaults"""
        env = {
            "birdeye_api_url": os.getenv("BIRDEYE_API_URL"),
            # missing keys are sent as empty strings, the upstream decides what to do with them
            "birdeye_api_key": os.getenv("BIRDEYE_API_KEY", ""),
            "chain": os.getenv("TOKEN_PROVIDER_CHAIN"),
            "dexscreener_api_url": os.getenv("DEXSCREENER_API_URL"),
            "helius_rpc_url": os.getenv("HELIUS_RPC_URL"),
            "helius_api_key": os.getenv("HELIUS_API_KEY", ""),
            "cache_dir": os.getenv("TOKEN_PROVIDER_CACHE_DIR"),
            "cache_ttl_seconds": os.getenv("TOKEN_PROVIDER_CACHE_TTL"),
            "max_retries": os.getenv("TOKEN_PROVIDER_MAX_RETRIES"),
            "retry_delay": os.getenv("TOKEN_PROVIDER_RETRY_DELAY"),
            "report_timeout_seconds": os.getenv("TOKEN_PROVIDER_REPORT_TIMEOUT"),
        }
        values = {k: v for k, v in env.items() if v is not None}
        values.update(overrides)
        return cls(**values)
