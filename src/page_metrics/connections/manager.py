"""Per-network Web3 connection lifecycle: probe, failover, cache, retry."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from eth_typing import URI
from web3 import Web3

from ..errors import ConnectivityError
from ..logger import get_logger
from ..settings import EVM_NETWORKS, MetricsSettings, Network, redact_url

logger = get_logger(__name__)

ConnectionFactory = Callable[[str, float], Any]
Sleep = Callable[[float], Awaitable[Any]]


class EndpointRole(str, Enum):
    PRIMARY = "primary"
    BACKUP = "backup"


@dataclass(frozen=True)
class Endpoints:
    primary: str
    backup: str | None = None
    chain_id: int | None = None


@dataclass(frozen=True)
class Connection:
    """A probed, live client for one network."""

    network: Network
    url: str
    role: EndpointRole
    w3: Any


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0

    @classmethod
    def from_settings(cls, settings: MetricsSettings) -> RetryPolicy:
        return cls(
            max_retries=settings.retry.max_retries,
            initial_delay=settings.retry.initial_delay,
            backoff_factor=settings.retry.backoff_factor,
        )

    def delays(self) -> list[float]:
        """Waits between consecutive attempts; one fewer than the attempt count."""
        return [
            self.initial_delay * self.backoff_factor**attempt
            for attempt in range(self.max_retries)
        ]


def web3_http_factory(url: str, timeout: float) -> Web3:
    return Web3(Web3.HTTPProvider(URI(url), request_kwargs={"timeout": timeout}))


class ConnectionManager:
    """Hands out live connections, failing over from primary to backup.

    A connection is created lazily, validated by fetching the latest block number
    (and the chain id, when the endpoints name one), then cached until someone invalidates it. Refreshes for one network are
    serialized by a per-network lock; callers arriving during a refresh wait and
    reuse the connection it publishes.
    """

    def __init__(
        self,
        endpoints: Mapping[Network, Endpoints],
        *,
        probe_timeout: float = 10.0,
        retry_policy: RetryPolicy | None = None,
        connection_factory: ConnectionFactory = web3_http_factory,
        sleep: Sleep = asyncio.sleep,
    ):
        self._endpoints = dict(endpoints)
        self._probe_timeout = probe_timeout
        self._retry_policy = retry_policy or RetryPolicy()
        self._connection_factory = connection_factory
        self._sleep = sleep
        self._cache: dict[Network, Connection] = {}
        self._locks: dict[Network, asyncio.Lock] = {}

    @classmethod
    def from_settings(cls, settings: MetricsSettings, **kwargs: Any) -> ConnectionManager:
        endpoints = {}
        for network in EVM_NETWORKS:
            net_cfg = settings.evm_network(network)
            endpoints[network] = Endpoints(
                primary=net_cfg.primary_rpc_url,
                backup=net_cfg.backup_rpc_url,
                chain_id=net_cfg.chain_id,
            )
        kwargs.setdefault("probe_timeout", settings.probe_timeout_seconds)
        kwargs.setdefault("retry_policy", RetryPolicy.from_settings(settings))
        return cls(endpoints, **kwargs)

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def cached(self, network: Network) -> Connection | None:
        return self._cache.get(network)

    def _lock_for(self, network: Network) -> asyncio.Lock:
        lock = self._locks.get(network)
        if lock is None:
            lock = self._locks[network] = asyncio.Lock()
        return lock

    async def acquire(self, network: Network) -> Connection:
        """Return the live connection for ``network``, connecting if needed.

        Raises:
            ConnectivityError: If neither the primary nor the backup endpoint
                answers the liveness probe, or no endpoint is configured.
        """
        connection = self._cache.get(network)
        if connection is not None:
            return connection

        async with self._lock_for(network):
            # a concurrent caller may have published while we waited
            connection = self._cache.get(network)
            if connection is not None:
                return connection

            connection = await self._connect(network)
            self._cache[network] = connection
            return connection

    async def _connect(self, network: Network) -> Connection:
        endpoints = self._endpoints.get(network)
        if endpoints is None:
            raise ConnectivityError(
                network, message=f"No RPC endpoints configured for {network.value}"
            )

        try:
            return await self._open(
                network, endpoints.primary, EndpointRole.PRIMARY, endpoints.chain_id
            )
        except Exception as exc:
            primary_error = exc
            logger.warning(
                "Primary RPC for %s unavailable (%s): %s",
                network.value,
                redact_url(endpoints.primary),
                exc,
            )

        if not endpoints.backup:
            raise ConnectivityError(network, primary_error) from primary_error

        try:
            connection = await self._open(
                network, endpoints.backup, EndpointRole.BACKUP, endpoints.chain_id
            )
        except Exception as backup_error:
            raise ConnectivityError(
                network, primary_error, backup_error
            ) from backup_error

        logger.warning(
            "Failed over to backup RPC for %s (%s)",
            network.value,
            redact_url(endpoints.backup),
        )
        return connection

    async def _open(
        self,
        network: Network,
        url: str,
        role: EndpointRole,
        chain_id: int | None = None,
    ) -> Connection:
        w3 = self._connection_factory(url, self._probe_timeout)
        async with asyncio.timeout(self._probe_timeout):
            block_number = await asyncio.to_thread(w3.eth.get_block_number)
            if chain_id is not None:
                actual = await asyncio.to_thread(lambda: w3.eth.chain_id)
                if actual != chain_id:
                    raise ConnectivityError(
                        network,
                        message=(
                            f"{redact_url(url)} serves chain {actual}, "
                            f"expected {chain_id} for {network.value}"
                        ),
                    )
        logger.debug(
            "Connected to %s %s RPC at block %s", network.value, role.value, block_number
        )
        return Connection(network=network, url=url, role=role, w3=w3)

    async def acquire_with_retry(
        self,
        network: Network,
        max_retries: int | None = None,
        initial_delay: float | None = None,
    ) -> Connection:
        """Acquire a connection, retrying with exponential backoff.

        Makes at most ``max_retries + 1`` attempts. After failed attempt ``k`` it
        waits ``initial_delay * backoff_factor ** k`` and drops any cached entry
        before trying again.

        Raises:
            ConnectivityError: The error from the final attempt.
        """
        policy = RetryPolicy(
            max_retries=(
                self._retry_policy.max_retries if max_retries is None else max_retries
            ),
            initial_delay=(
                self._retry_policy.initial_delay
                if initial_delay is None
                else initial_delay
            ),
            backoff_factor=self._retry_policy.backoff_factor,
        )

        delays = policy.delays()
        attempt = 0
        while True:
            try:
                return await self.acquire(network)
            except ConnectivityError as exc:
                if attempt >= len(delays):
                    logger.error(
                        "Giving up on %s after %d attempts: %s",
                        network.value,
                        attempt + 1,
                        exc,
                    )
                    raise
                delay = delays[attempt]
                attempt += 1
                logger.warning(
                    "Connection to %s failed, retry %d/%d in %.2fs",
                    network.value,
                    attempt,
                    policy.max_retries,
                    delay,
                )
                await self._sleep(delay)
                self.invalidate(network)

    def invalidate(self, network: Network | None = None) -> None:
        """Drop the cached connection for ``network``, or every one when None."""
        if network is None:
            self._cache.clear()
            return
        self._cache.pop(network, None)
