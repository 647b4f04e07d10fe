import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

import pydash as _py
from pydantic import TypeAdapter

from decorators import with_cache
from token_provider.base_provider import BaseProvider
from token_provider.exceptions import AggregationError, DataShapeError, TokenProviderError, UpstreamError
from token_provider.models import HolderRecord

logger = logging.getLogger(__name__)


def merge_token_accounts(balances: Dict[str, Decimal], accounts: Iterable[Dict[str, Any]]) -> Dict[str, Decimal]:
    """Add each account's amount onto its owner's running balance. Order of pages does not matter."""
    for account in accounts:
        owner = _py.get(account, "owner")
        amount = _py.get(account, "amount")
        if not owner or amount is None:
            raise DataShapeError(f"Token account without owner or amount: {account}")
        try:
            balances[owner] = balances.get(owner, Decimal(0)) + Decimal(str(amount))
        except InvalidOperation as e:
            raise DataShapeError(f"Invalid amount {amount!r} for owner {owner}") from e
    return balances


def to_holder_records(balances: Dict[str, Decimal]) -> List[HolderRecord]:
    return [HolderRecord(address=address, balance=f"{balance:f}") for address, balance in balances.items()]


class HeliusHolderProvider(BaseProvider):
    """
    Pulls token accounts through the Helius getTokenAccounts RPC, cursor page by cursor page,
    and folds them into one balance per owner address.
    """

    def get_default_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _fetch_page(self, token_address: str, cursor: Optional[str]) -> Dict[str, Any]:
        params = {"mint": token_address, "limit": self.config.holder_page_size, "displayOptions": {}}
        if cursor:
            params["cursor"] = cursor

        payload = {
            "jsonrpc": "2.0",
            "id": f"get-token-accounts-{uuid.uuid4()}",
            "method": "getTokenAccounts",
            "params": params,
        }
        data = await self._api_request(
            url=f"{self.config.helius_rpc_url}/",
            method="POST",
            params={"api-key": self.config.helius_api_key or ""},
            json_data=payload,
        )

        if not isinstance(data, dict):
            raise DataShapeError(f"Unexpected RPC response format: {type(data).__name__}")
        if data.get("error"):
            raise UpstreamError(f"RPC error: {data['error']}")
        return data

    @with_cache("holder_list", TypeAdapter(List[HolderRecord]))
    async def fetch_holder_list(self, token_address: str) -> List[HolderRecord]:
        """
        Query the HELIUS API for every token account of the mint and merge balances by owner.

        Stops on an empty page, a missing cursor, or after max_holder_pages pages. The page cap is a
        deliberate latency and cost bound, not an error. Any failure discards what was collected so far.
        """
        logger.info(f"Querying token holders for address: {token_address}")
        balances: Dict[str, Decimal] = {}
        cursor = None
        page = 1

        try:
            while page <= self.config.max_holder_pages:
                logger.info(f"Fetching holders - Page {page}")
                data = await self._fetch_page(token_address, cursor)

                accounts = _py.get(data, "result.token_accounts")
                if not accounts:
                    logger.info(f"No more holders found. Total pages fetched: {page - 1}")
                    break
                if not isinstance(accounts, list):
                    raise DataShapeError(f"Unexpected token_accounts format: {type(accounts).__name__}")

                logger.info(f"Processing {len(accounts)} holders from page {page}")
                merge_token_accounts(balances, accounts)

                cursor = _py.get(data, "result.cursor")
                if not cursor:
                    break
                page += 1
            else:
                logger.info(f"Reached holder page cap of {self.config.max_holder_pages} pages")

        except TokenProviderError as e:
            logger.error(f"Error fetching holder list from Helius: {str(e)}")
            raise AggregationError(f"Failed to fetch holder list for {token_address}: {str(e)}") from e

        holders = to_holder_records(balances)
        logger.info(f"Total unique holders fetched: {len(holders)}")
        return holders
