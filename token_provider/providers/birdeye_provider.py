import logging
from typing import Any, Dict

from pydantic import TypeAdapter

from decorators import with_cache
from token_provider.base_provider import BaseProvider
from token_provider.exceptions import DataShapeError
from token_provider.models import SecurityData, TradeData

logger = logging.getLogger(__name__)

TOKEN_SECURITY_ENDPOINT = "/defi/token_security"
TOKEN_TRADE_DATA_ENDPOINT = "/defi/v3/token/trade-data/single"


class BirdeyeProvider(BaseProvider):
    """Token security and trade data from the Birdeye public API"""

    def get_default_headers(self) -> Dict[str, str]:
        return {"x-chain": self.config.chain, "X-API-KEY": self.config.birdeye_api_key or ""}

    def _unwrap(self, response: Any, label: str) -> Dict:
        # Birdeye answers {"success": bool, "data": {...}}, anything else is a hard failure
        if not isinstance(response, dict) or not response.get("success") or not response.get("data"):
            raise DataShapeError(f"No {label} data available")
        return response["data"]

    # ------------------------------------------------------------------------
    #                      BIRDEYE API-SPECIFIC METHODS
    # ------------------------------------------------------------------------
    @with_cache("token_security", TypeAdapter(SecurityData))
    async def fetch_token_security(self, token_address: str) -> SecurityData:
        logger.info(f"Fetching security data for token: {token_address}")

        url = f"{self.config.birdeye_api_url}{TOKEN_SECURITY_ENDPOINT}"
        response = await self._api_request(url=url, params={"address": token_address})

        security = self._validate(SecurityData, self._unwrap(response, "token security"), "token security")
        logger.info(f"Token security data fetched for {token_address}")
        return security

    @with_cache("token_trade_data", TypeAdapter(TradeData))
    async def fetch_token_trade_data(self, token_address: str) -> TradeData:
        logger.info(f"Fetching trade data for token: {token_address}")

        url = f"{self.config.birdeye_api_url}{TOKEN_TRADE_DATA_ENDPOINT}"
        response = await self._api_request(url=url, params={"address": token_address})

        return self._validate(TradeData, self._unwrap(response, "token trade"), "token trade")
