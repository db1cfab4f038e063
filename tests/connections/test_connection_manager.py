import asyncio
import time
from unittest.mock import MagicMock

import pytest

from page_metrics.connections import (
    ConnectionManager,
    EndpointRole,
    Endpoints,
    RetryPolicy,
)
from page_metrics.errors import ConnectivityError
from page_metrics.settings import MetricsSettings, Network

PRIMARY = "https://primary.example"
BACKUP = "https://backup.example"


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


def make_factory(outcomes: dict, calls: list[str]):
    """Build a connection factory whose probe result is looked up per URL.

    An outcome may be a block number, an exception, or a callable used as the
    probe side effect.
    """

    def factory(url: str, timeout: float):
        calls.append(url)
        w3 = MagicMock(name=f"w3<{url}>")
        outcome = outcomes[url]
        if isinstance(outcome, int):
            w3.eth.get_block_number.return_value = outcome
        else:
            w3.eth.get_block_number.side_effect = outcome
        return w3

    return factory


def make_manager(outcomes: dict, calls: list[str], **kwargs) -> ConnectionManager:
    kwargs.setdefault("sleep", RecordingSleep())
    return ConnectionManager(
        {Network.ETHEREUM: Endpoints(primary=PRIMARY, backup=BACKUP)},
        probe_timeout=1.0,
        connection_factory=make_factory(outcomes, calls),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_acquire_uses_primary_and_caches():
    calls: list[str] = []
    manager = make_manager({PRIMARY: 100, BACKUP: 100}, calls)

    first = await manager.acquire(Network.ETHEREUM)
    second = await manager.acquire(Network.ETHEREUM)

    assert first.role is EndpointRole.PRIMARY
    assert first.url == PRIMARY
    assert second is first
    assert calls == [PRIMARY]


@pytest.mark.asyncio
async def test_failover_to_backup_is_cached_without_reprobing_primary():
    calls: list[str] = []
    manager = make_manager(
        {PRIMARY: ConnectionError("primary down"), BACKUP: 100}, calls
    )

    first = await manager.acquire(Network.ETHEREUM)
    second = await manager.acquire(Network.ETHEREUM)

    assert first.role is EndpointRole.BACKUP
    assert first.url == BACKUP
    assert second is first
    assert calls == [PRIMARY, BACKUP]
    assert manager.cached(Network.ETHEREUM) is first


@pytest.mark.asyncio
async def test_both_endpoints_down_raises_connectivity_error():
    calls: list[str] = []
    primary_error = ConnectionError("primary down")
    backup_error = ConnectionError("backup down")
    manager = make_manager({PRIMARY: primary_error, BACKUP: backup_error}, calls)

    with pytest.raises(ConnectivityError) as exc_info:
        await manager.acquire(Network.ETHEREUM)

    assert exc_info.value.network is Network.ETHEREUM
    assert exc_info.value.primary_error is primary_error
    assert exc_info.value.backup_error is backup_error
    assert manager.cached(Network.ETHEREUM) is None


@pytest.mark.asyncio
async def test_missing_backup_raises_after_primary_failure():
    calls: list[str] = []
    manager = ConnectionManager(
        {Network.BASE: Endpoints(primary=PRIMARY)},
        connection_factory=make_factory({PRIMARY: ConnectionError("down")}, calls),
    )

    with pytest.raises(ConnectivityError) as exc_info:
        await manager.acquire(Network.BASE)

    assert exc_info.value.backup_error is None
    assert calls == [PRIMARY]


@pytest.mark.asyncio
async def test_network_without_endpoints_fails_immediately():
    calls: list[str] = []
    manager = make_manager({PRIMARY: 1, BACKUP: 1}, calls)

    with pytest.raises(ConnectivityError):
        await manager.acquire(Network.OSMOSIS)

    assert calls == []


@pytest.mark.asyncio
async def test_probe_timeout_fails_over_to_backup():
    calls: list[str] = []

    def slow_probe():
        time.sleep(0.3)
        return 1

    manager = ConnectionManager(
        {Network.ETHEREUM: Endpoints(primary=PRIMARY, backup=BACKUP)},
        probe_timeout=0.05,
        connection_factory=make_factory({PRIMARY: slow_probe, BACKUP: 100}, calls),
    )

    connection = await manager.acquire(Network.ETHEREUM)

    assert connection.role is EndpointRole.BACKUP
    assert calls == [PRIMARY, BACKUP]


@pytest.mark.asyncio
async def test_retry_waits_grow_exponentially_then_raise():
    calls: list[str] = []
    sleep = RecordingSleep()
    manager = make_manager(
        {PRIMARY: ConnectionError("down"), BACKUP: ConnectionError("down")},
        calls,
        sleep=sleep,
    )

    with pytest.raises(ConnectivityError):
        await manager.acquire_with_retry(
            Network.ETHEREUM, max_retries=2, initial_delay=0.1
        )

    assert sleep.calls == pytest.approx([0.1, 0.2])
    # three attempts, each probing primary then backup
    assert calls == [PRIMARY, BACKUP] * 3


@pytest.mark.asyncio
async def test_retry_with_zero_retries_makes_a_single_attempt():
    calls: list[str] = []
    sleep = RecordingSleep()
    manager = make_manager(
        {PRIMARY: ConnectionError("down"), BACKUP: ConnectionError("down")},
        calls,
        sleep=sleep,
    )

    with pytest.raises(ConnectivityError):
        await manager.acquire_with_retry(Network.ETHEREUM, max_retries=0)

    assert sleep.calls == []
    assert calls == [PRIMARY, BACKUP]


@pytest.mark.asyncio
async def test_retry_recovers_on_later_attempt():
    calls: list[str] = []
    sleep = RecordingSleep()
    attempts = {"n": 0}

    def flaky_probe():
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise ConnectionError("first attempt fails")
        return 123

    manager = make_manager(
        {PRIMARY: flaky_probe, BACKUP: ConnectionError("down")},
        calls,
        sleep=sleep,
        retry_policy=RetryPolicy(max_retries=3, initial_delay=0.5, backoff_factor=3.0),
    )

    connection = await manager.acquire_with_retry(Network.ETHEREUM)

    assert connection.role is EndpointRole.PRIMARY
    assert sleep.calls == [0.5]


@pytest.mark.asyncio
async def test_concurrent_acquires_share_one_probe():
    calls: list[str] = []

    def slow_probe():
        time.sleep(0.05)
        return 1

    manager = make_manager({PRIMARY: slow_probe, BACKUP: 1}, calls)

    connections = await asyncio.gather(
        *(manager.acquire(Network.ETHEREUM) for _ in range(5))
    )

    assert calls == [PRIMARY]
    assert all(c is connections[0] for c in connections)


@pytest.mark.asyncio
async def test_invalidate_forces_a_new_probe():
    calls: list[str] = []
    manager = make_manager({PRIMARY: 1, BACKUP: 1}, calls)

    await manager.acquire(Network.ETHEREUM)
    manager.invalidate(Network.ETHEREUM)
    await manager.acquire(Network.ETHEREUM)
    manager.invalidate()
    await manager.acquire(Network.ETHEREUM)

    assert calls == [PRIMARY, PRIMARY, PRIMARY]


def test_invalidate_unknown_network_is_a_noop():
    manager = ConnectionManager({})

    manager.invalidate(Network.OPTIMISM)
    manager.invalidate()


def test_retry_policy_delays():
    policy = RetryPolicy(max_retries=3, initial_delay=1.0, backoff_factor=2.0)

    assert policy.delays() == [1.0, 2.0, 4.0]


def test_from_settings_wires_endpoints_and_policy():
    settings = MetricsSettings(
        retry={"max_retries": 1, "initial_delay": 0.25},
        probe_timeout_seconds=3.0,
    )

    manager = ConnectionManager.from_settings(settings)

    assert manager.retry_policy == RetryPolicy(
        max_retries=1, initial_delay=0.25, backoff_factor=2.0
    )
    assert manager._endpoints[Network.BASE].chain_id == 8453


@pytest.mark.asyncio
async def test_primary_on_wrong_chain_fails_over_to_backup():
    calls: list[str] = []
    factory = make_factory({PRIMARY: 100, BACKUP: 100}, calls)

    def chain_factory(url: str, timeout: float):
        w3 = factory(url, timeout)
        w3.eth.chain_id = 10 if url == PRIMARY else 1
        return w3

    manager = ConnectionManager(
        {Network.ETHEREUM: Endpoints(primary=PRIMARY, backup=BACKUP, chain_id=1)},
        probe_timeout=1.0,
        connection_factory=chain_factory,
    )

    connection = await manager.acquire(Network.ETHEREUM)

    assert connection.role is EndpointRole.BACKUP
    assert calls == [PRIMARY, BACKUP]


@pytest.mark.asyncio
async def test_wrong_chain_on_both_endpoints_raises():
    def factory(url: str, timeout: float):
        w3 = MagicMock(name=f"w3<{url}>")
        w3.eth.get_block_number.return_value = 100
        w3.eth.chain_id = 56
        return w3

    manager = ConnectionManager(
        {Network.ETHEREUM: Endpoints(primary=PRIMARY, backup=BACKUP, chain_id=1)},
        probe_timeout=1.0,
        connection_factory=factory,
    )

    with pytest.raises(ConnectivityError) as exc_info:
        await manager.acquire(Network.ETHEREUM)

    assert "expected 1" in str(exc_info.value.primary_error)
    assert manager.cached(Network.ETHEREUM) is None
