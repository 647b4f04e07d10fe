import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp
from multidict import CIMultiDict

from decorators import with_retry
from token_provider.exceptions import DataShapeError, UpstreamError

logger = logging.getLogger(__name__)


class ResilientFetcher:
    """
    HTTP JSON client with bounded retries and exponential backoff.

    Every request carries the fetcher's required headers merged with the call-specific ones,
    call-specific keys winning. Non-2xx statuses and transport failures raise UpstreamError and
    are retried; a 2xx body that is not JSON raises DataShapeError straight away.
    """

    def __init__(
        self,
        default_headers: Optional[Dict[str, str]] = None,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.default_headers = dict(default_headers or {})
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session
        self._owns_session = session is None

        self.fetch_with_retry = with_retry(max_retries=max_retries, delay=retry_delay, retry_on=(UpstreamError,))(
            self._fetch_once
        )

    def build_headers(self, headers: Optional[Dict[str, str]] = None) -> CIMultiDict:
        # Header names are case-insensitive, a later "accept" replaces an earlier "Accept"
        merged = CIMultiDict({"Accept": "application/json"})
        merged.update(self.default_headers)
        merged.update(headers or {})
        return merged

    async def _fetch_once(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not self.session:
            self.session = aiohttp.ClientSession()
            self._owns_session = True

        logger.info(f"Fetching data from {method.upper()} {url}")
        try:
            async with self.session.request(
                method.upper(), url, headers=self.build_headers(headers), params=params, json=json_data
            ) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"Request to {url} failed: {e!r}") from e

        if not 200 <= status < 300:
            raise UpstreamError(f"HTTP error! status: {status}, message: {body}", status=status, body=body)

        try:
            return json.loads(body)
        except ValueError as e:
            raise DataShapeError(f"Response from {url} is not valid JSON: {e}") from e

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None
