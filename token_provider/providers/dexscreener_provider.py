import logging
from typing import Dict

from pydantic import TypeAdapter

from decorators import with_cache
from token_provider.base_provider import BaseProvider
from token_provider.exceptions import DataShapeError
from token_provider.models import DexScreenerData

logger = logging.getLogger(__name__)


class DexScreenerProvider(BaseProvider):
    """
    DEX pairs for a token from the DexScreener search API.
    A token with no pairs is a valid, unlisted answer rather than an error.
    """

    def get_default_headers(self) -> Dict[str, str]:
        return {}

    @with_cache("dex_screener_data", TypeAdapter(DexScreenerData))
    async def fetch_dex_screener_data(self, token_address: str) -> DexScreenerData:
        logger.info(f"Fetching DexScreener data for token: {token_address}")

        url = f"{self.config.dexscreener_api_url}/latest/dex/search"
        result = await self._api_request(url=url, params={"q": token_address})

        if not isinstance(result, dict):
            raise DataShapeError("No DexScreener data available")

        pairs = result.get("pairs") or []
        if not isinstance(pairs, list):
            raise DataShapeError(f"Unexpected DexScreener pairs format: {type(pairs).__name__}")

        if pairs:
            logger.info(f"Found {len(pairs)} pairs for token: {token_address}")
        else:
            logger.warning(f"No pairs found for token: {token_address}")

        return self._validate(
            DexScreenerData, {"schemaVersion": result.get("schemaVersion"), "pairs": pairs}, "DexScreener"
        )
