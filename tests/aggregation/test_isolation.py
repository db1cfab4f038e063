import asyncio
import logging

import pytest

from page_metrics.aggregation import gather_isolated
from page_metrics.settings import Network


async def value(result):
    await asyncio.sleep(0)
    return result


async def fail(message: str):
    await asyncio.sleep(0)
    raise RuntimeError(message)


@pytest.mark.asyncio
async def test_all_operations_succeed():
    results = await gather_isolated(
        {Network.ETHEREUM: value(1), Network.BASE: value(2)}, default=0
    )

    assert results.values == {Network.ETHEREUM: 1, Network.BASE: 2}
    assert results.ok
    assert results.failed == frozenset()


@pytest.mark.asyncio
async def test_failure_is_replaced_by_default(caplog):
    with caplog.at_level(logging.ERROR):
        results = await gather_isolated(
            {Network.ETHEREUM: value(1), Network.OPTIMISM: fail("rpc down")},
            default=0,
            label="TVL fetch",
        )

    assert results.values == {Network.ETHEREUM: 1, Network.OPTIMISM: 0}
    assert results.failed == frozenset({Network.OPTIMISM})
    assert isinstance(results.errors[Network.OPTIMISM], RuntimeError)
    assert not results.ok
    assert "TVL fetch failed for optimism: rpc down" in caplog.text


@pytest.mark.asyncio
async def test_cancellation_is_not_absorbed():
    async def cancelled():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await gather_isolated(
            {Network.ETHEREUM: value(1), Network.BASE: cancelled()}, default=0
        )


@pytest.mark.asyncio
async def test_empty_batch():
    results = await gather_isolated({}, default=0)

    assert results.values == {}
    assert results.ok
