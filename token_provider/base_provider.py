from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, TypeVar

import aiohttp
from loguru import logger
from pydantic import BaseModel, ValidationError

from token_provider.cache import TwoTierCache
from token_provider.config import ProviderConfig
from token_provider.exceptions import DataShapeError
from token_provider.fetcher import ResilientFetcher

M = TypeVar("M", bound=BaseModel)


class BaseProvider(ABC):
    """Base class for all upstream data providers"""

    def __init__(
        self, config: ProviderConfig, cache: TwoTierCache, session: Optional[aiohttp.ClientSession] = None
    ):
        self.provider_name: str = self.__class__.__name__
        self.config = config
        self.cache = cache

        self.fetcher = ResilientFetcher(
            default_headers=self.get_default_headers(),
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            session=session,
        )

    @abstractmethod
    def get_default_headers(self) -> Dict[str, str]:
        """Return the headers every request to this upstream must carry"""
        pass

    async def _api_request(
        self, url: str, method: str = "GET", headers: Dict = None, params: Dict = None, json_data: Dict = None
    ) -> Any:
        """
        Generic API request method that can be used by child classes.
        Retries transient failures and raises the last error once attempts run out.

        Args:
            url: The API endpoint URL
            method: HTTP method (GET, POST, etc.)
            headers: HTTP headers, merged over the provider defaults
            params: URL parameters
            json_data: JSON payload for POST/PUT requests

        Returns:
            Decoded JSON body
        """
        return await self.fetcher.fetch_with_retry(url, method=method, headers=headers, params=params, json_data=json_data)

    def _validate(self, model: Type[M], payload: Any, label: str) -> M:
        """Turn an untrusted upstream payload into a model or fail with DataShapeError"""
        if not isinstance(payload, dict):
            raise DataShapeError(f"No {label} data available")
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise DataShapeError(f"Malformed {label} data: {e}") from e

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def cleanup(self):
        """Close the HTTP session owned by this provider"""
        try:
            await self.fetcher.close()
        except Exception as e:
            logger.error(f"Cleanup failed | Provider: {self.provider_name} | Error: {str(e)}")
