from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

import requests
from web3 import Web3
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    MismatchedABI,
    ProviderConnectionError,
    TooManyRequests,
    Web3Exception,
    Web3RPCError,
    Web3ValidationError,
)

from ..abi import (
    load_erc20_abi,
    load_uniswap_v2_pair_abi,
    load_uniswap_v3_pool_abi,
)
from ..connections import ConnectionManager
from ..errors import ConnectivityError, DataShapeError
from ..logger import get_logger
from ..settings import Network
from .base import ChainReader, PoolRef, PoolState, TokenMetadata, V2PoolState, V3PoolState

logger = get_logger(__name__)

T = TypeVar("T")

# matched before TRANSPORT_ERRORS: ContractLogicError is a Web3RPCError
CONTRACT_ERRORS = (
    ContractLogicError,
    BadFunctionCallOutput,
    MismatchedABI,
    Web3ValidationError,
)
TRANSPORT_ERRORS = (
    ProviderConnectionError,
    Web3RPCError,
    TooManyRequests,
    requests.exceptions.RequestException,
    TimeoutError,
)


def _decode_symbol(raw: Any) -> str:
    # some older tokens return bytes32 instead of string
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).rstrip(b"\x00").decode("utf-8", errors="replace")
    return str(raw)


class EvmChainReader(ChainReader):
    """Chain reader for EVM networks backed by the shared ConnectionManager."""

    def __init__(
        self,
        network: Network,
        connections: ConnectionManager,
        max_concurrent_calls: int = 5,
    ):
        super().__init__(network)
        self._connections = connections
        self._rpc_sem = asyncio.Semaphore(max_concurrent_calls)

    async def _call(self, fn: Callable[[Web3], T], what: str) -> T:
        """Run one blocking web3 read on the current live connection."""
        connection = await self._connections.acquire_with_retry(self.network)
        async with self._rpc_sem:
            try:
                return await asyncio.to_thread(fn, connection.w3)
            except CONTRACT_ERRORS as exc:
                raise DataShapeError(
                    f"{self.network.value}: {what} returned unexpected data: {exc}"
                ) from exc
            except TRANSPORT_ERRORS as exc:
                logger.warning(
                    "RPC call %s on %s failed, dropping connection: %s",
                    what,
                    self.network.value,
                    exc,
                )
                self._connections.invalidate(self.network)
                raise ConnectivityError(
                    self.network,
                    primary_error=exc,
                    message=f"{self.network.value}: {what} failed: {exc}",
                ) from exc
            except Web3Exception as exc:
                raise DataShapeError(
                    f"{self.network.value}: {what} was rejected by web3: {exc}"
                ) from exc

    async def get_balance(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        balance = await self._call(
            lambda w3: w3.eth.get_balance(checksum), f"get_balance({checksum})"
        )
        return int(balance)

    async def get_token_balance(self, token: str, owner: str) -> int:
        token_checksum = Web3.to_checksum_address(token)
        owner_checksum = Web3.to_checksum_address(owner)
        abi = load_erc20_abi()

        def _read(w3: Web3) -> int:
            contract = w3.eth.contract(address=token_checksum, abi=abi)
            return contract.functions.balanceOf(owner_checksum).call()

        return int(await self._call(_read, f"balanceOf({token_checksum})"))

    async def get_token_metadata(self, token: str) -> TokenMetadata:
        checksum = Web3.to_checksum_address(token)
        abi = load_erc20_abi()

        def _reader(fn_name: str) -> Callable[[Web3], Any]:
            def _read(w3: Web3) -> Any:
                contract = w3.eth.contract(address=checksum, abi=abi)
                return getattr(contract.functions, fn_name)().call()

            return _read

        decimals, symbol, total_supply = await asyncio.gather(
            self._call(_reader("decimals"), f"decimals({checksum})"),
            self._call(_reader("symbol"), f"symbol({checksum})"),
            self._call(_reader("totalSupply"), f"totalSupply({checksum})"),
        )
        return TokenMetadata(
            decimals=int(decimals),
            symbol=_decode_symbol(symbol),
            total_supply=int(total_supply),
        )

    async def get_pool_state(self, pool: PoolRef) -> PoolState:
        checksum = Web3.to_checksum_address(pool.address)
        if pool.kind == "v2":
            return await self._get_v2_state(checksum)
        if pool.kind == "v3":
            return await self._get_v3_state(checksum)
        raise ValueError(f"Unsupported EVM pool kind: {pool.kind!r}")

    async def _get_v2_state(self, address: str) -> V2PoolState:
        abi = load_uniswap_v2_pair_abi()

        def _read(w3: Web3) -> tuple[Any, str, str]:
            pair = w3.eth.contract(address=address, abi=abi)
            return (
                pair.functions.getReserves().call(),
                pair.functions.token0().call(),
                pair.functions.token1().call(),
            )

        reserves, token0, token1 = await self._call(_read, f"v2 pool {address}")
        try:
            reserve0, reserve1, block_timestamp_last = reserves
        except (TypeError, ValueError) as exc:
            raise DataShapeError(f"Malformed getReserves() output: {reserves!r}") from exc
        return V2PoolState(
            reserve0=int(reserve0),
            reserve1=int(reserve1),
            block_timestamp_last=int(block_timestamp_last),
            token0=token0,
            token1=token1,
        )

    async def _get_v3_state(self, address: str) -> V3PoolState:
        abi = load_uniswap_v3_pool_abi()

        def _read(w3: Web3) -> tuple[Any, Any, str, str]:
            pool = w3.eth.contract(address=address, abi=abi)
            return (
                pool.functions.slot0().call(),
                pool.functions.liquidity().call(),
                pool.functions.token0().call(),
                pool.functions.token1().call(),
            )

        slot0, liquidity, token0, token1 = await self._call(
            _read, f"v3 pool {address}"
        )
        try:
            sqrt_price_x96, tick = slot0[0], slot0[1]
        except (TypeError, IndexError) as exc:
            raise DataShapeError(f"Malformed slot0() output: {slot0!r}") from exc
        return V3PoolState(
            sqrt_price_x96=int(sqrt_price_x96),
            tick=int(tick),
            liquidity=int(liquidity),
            token0=token0,
            token1=token1,
        )

    async def call_raw(
        self,
        target: str,
        method: str | dict[str, Any],
        args: tuple = (),
        abi: list[dict[str, Any]] | None = None,
    ) -> Any:
        """Call a view function by ABI fragment, or by name within a full ABI.

        Args:
            target: Contract address.
            method: Either a single ABI function fragment, or a function name
                that must be present in ``abi``.
            args: Positional arguments for the call.
            abi: Full contract ABI, required when ``method`` is a name.
        """
        if isinstance(method, dict):
            fn_abi = [method]
            fn_name = method.get("name")
        else:
            if abi is None:
                raise ValueError("call_raw by function name requires an abi")
            fn_abi = abi
            fn_name = method
        if not fn_name:
            raise ValueError("ABI fragment has no function name")

        checksum = Web3.to_checksum_address(target)

        def _read(w3: Web3) -> Any:
            contract = w3.eth.contract(address=checksum, abi=fn_abi)
            return getattr(contract.functions, fn_name)(*args).call()

        return await self._call(_read, f"{fn_name}() on {checksum}")
