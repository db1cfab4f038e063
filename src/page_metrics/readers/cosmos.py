from __future__ import annotations

import asyncio
from typing import Any

import backoff
import requests

from ..constants import (
    COSMOS_DENOM_DECIMALS,
    DEFAULT_COSMOS_DECIMALS,
    IBC_SYMBOL_PLACEHOLDER,
    OSMOSIS_NATIVE_DENOM,
)
from ..errors import ApiError, ConnectivityError, DataShapeError, PageMetricsError
from ..logger import get_logger
from ..settings import CosmosSettings, Network
from .base import ChainReader, CosmosPoolState, PoolRef, TokenMetadata

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
TRANSPORT_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


class CosmosChainReader(ChainReader):
    """Chain reader for Osmosis over the LCD REST gateway and the analytics API.

    Holds no connection state: each call is an independent HTTP GET, retried
    with exponential backoff on transport errors and throttling responses.
    """

    def __init__(
        self,
        config: CosmosSettings,
        *,
        http_timeout: float = 10.0,
        max_tries: int = 3,
    ):
        super().__init__(Network.OSMOSIS)
        self.config = config
        self.lcd_url = config.lcd_base_url
        self.analytics_url = config.analytics_api_url
        self._http_timeout = http_timeout
        self._max_tries = max_tries

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        """GET ``url`` and decode the JSON body.

        Raises:
            ConnectivityError: Request failed, or a transient failure persisted
                across all retries.
            ApiError: Non-2xx response.
            DataShapeError: Body is not valid JSON.
        """

        def _on_backoff(details: Any) -> None:
            logger.warning(
                "Request to %s failed (attempt %d of %d): %s",
                url,
                details["tries"],
                self._max_tries,
                details.get("exception"),
            )

        @backoff.on_exception(
            backoff.expo,
            (*TRANSPORT_ERRORS, ApiError),
            max_tries=self._max_tries,
            giveup=lambda e: (
                isinstance(e, ApiError) and e.status_code not in RETRYABLE_STATUS_CODES
            ),
            jitter=backoff.full_jitter,
            on_backoff=_on_backoff,
        )
        async def _fetch() -> requests.Response:
            logger.debug("GET %s %s", url, params or "")
            response = await asyncio.to_thread(
                requests.get, url, params=params, timeout=self._http_timeout
            )
            if not 200 <= response.status_code < 300:
                raise ApiError(response.status_code, url, response.text[:200])
            return response

        try:
            response = await _fetch()
        except requests.exceptions.RequestException as exc:
            raise ConnectivityError(
                self.network,
                primary_error=exc,
                message=f"osmosis: request to {url} failed: {exc}",
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise DataShapeError(f"Invalid JSON from {url}") from exc

    async def _get_balances(self, address: str) -> dict[str, int]:
        data = await self._get_json(
            f"{self.lcd_url}/cosmos/bank/v1beta1/balances/{address}"
        )
        try:
            return {
                entry["denom"]: int(entry["amount"]) for entry in data["balances"]
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise DataShapeError(f"Unexpected balances response: {data!r}") from exc

    async def get_balance(self, address: str) -> int:
        balances = await self._get_balances(address)
        return balances.get(OSMOSIS_NATIVE_DENOM, 0)

    async def get_token_balance(self, token: str, owner: str) -> int:
        balances = await self._get_balances(owner)
        return balances.get(token, 0)

    def get_decimals(self, denom: str) -> int:
        return COSMOS_DENOM_DECIMALS.get(denom, DEFAULT_COSMOS_DECIMALS)

    async def resolve_symbol(self, denom: str) -> str:
        if denom == OSMOSIS_NATIVE_DENOM:
            return "OSMO"

        if denom.startswith("ibc/"):
            ibc_hash = denom.split("/", 1)[1]
            try:
                data = await self._get_json(f"{self.analytics_url}/tokens/v2/{ibc_hash}")
            except PageMetricsError as exc:
                logger.warning(
                    "Failed to resolve IBC symbol for %s, using %r: %s",
                    denom,
                    IBC_SYMBOL_PLACEHOLDER,
                    exc,
                )
                return IBC_SYMBOL_PLACEHOLDER
            # the analytics API answers with either an object or a one-element list
            if isinstance(data, list):
                data = data[0] if data else {}
            symbol = data.get("symbol") if isinstance(data, dict) else None
            if not symbol:
                logger.warning(
                    "No symbol for %s in analytics API, using %r",
                    denom,
                    IBC_SYMBOL_PLACEHOLDER,
                )
                return IBC_SYMBOL_PLACEHOLDER
            return str(symbol)

        if denom.startswith("u"):
            return denom[1:].upper()
        return denom

    async def get_total_supply(self, denom: str) -> int:
        data = await self._get_json(
            f"{self.lcd_url}/cosmos/bank/v1beta1/supply/by_denom",
            params={"denom": denom},
        )
        try:
            return int(data["amount"]["amount"])
        except (KeyError, TypeError, ValueError) as exc:
            raise DataShapeError(f"Unexpected supply response: {data!r}") from exc

    async def get_token_metadata(self, token: str) -> TokenMetadata:
        symbol, total_supply = await asyncio.gather(
            self.resolve_symbol(token), self.get_total_supply(token)
        )
        return TokenMetadata(
            decimals=self.get_decimals(token),
            symbol=symbol,
            total_supply=total_supply,
        )

    async def get_pool_state(self, pool: PoolRef | str) -> CosmosPoolState:
        pool_id = pool.address if isinstance(pool, PoolRef) else str(pool)
        data = await self._get_json(
            f"{self.lcd_url}/osmosis/gamm/v1beta1/pools/{pool_id}"
        )
        try:
            pool_assets = data["pool"]["pool_assets"]
            assets = {
                entry["token"]["denom"]: int(entry["token"]["amount"])
                for entry in pool_assets
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise DataShapeError(
                f"Invalid pool data structure for pool {pool_id}"
            ) from exc
        return CosmosPoolState(pool_id=pool_id, assets=assets)

    async def get_block_height(self) -> int:
        data = await self._get_json(
            f"{self.lcd_url}/cosmos/base/tendermint/v1beta1/blocks/latest"
        )
        try:
            return int(data["block"]["header"]["height"])
        except (KeyError, TypeError, ValueError) as exc:
            raise DataShapeError(f"Unexpected latest block response: {data!r}") from exc

    async def call_raw(self, target: Any, method: Any, args: tuple = ()) -> Any:
        """Analytics API reads keyed by method name.

        Supported methods are ``pool_info`` (target is a pool id) and
        ``token_price`` (target is a denom).
        """
        if method == "pool_info":
            return await self._get_json(f"{self.analytics_url}/pools/v2/{target}")
        if method == "token_price":
            return await self._get_json(
                f"{self.analytics_url}/tokens/v2/price/{target}"
            )
        raise NotImplementedError(f"Method {method!r} is not supported on Osmosis")
