import logging
from unittest.mock import MagicMock, patch

import backoff
import pytest
import requests

from page_metrics.constants import (
    OSMOSIS_NATIVE_DENOM,
    OSMOSIS_PAGE_DENOM,
    OSMOSIS_USDC_DENOM,
)
from page_metrics.errors import ApiError, ConnectivityError, DataShapeError
from page_metrics.readers import CosmosChainReader, CosmosPoolState, PoolRef
from page_metrics.settings import CosmosSettings, Network

LCD = "https://lcd.test"
ANALYTICS = "https://analytics.test"
PAGE_HASH = OSMOSIS_PAGE_DENOM.split("/", 1)[1]


def make_response(status: int = 200, payload=None, text: str = ""):
    response = MagicMock()
    response.status_code = status
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def route(routes: dict):
    """requests.get replacement that answers from a url -> response (or list) map."""

    def _get(url, params=None, timeout=None):
        outcome = routes[url]
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return _get


@pytest.fixture(autouse=True)
def no_backoff_wait(monkeypatch):
    monkeypatch.setattr(backoff, "full_jitter", lambda value: 0)


@pytest.fixture
def reader():
    config = CosmosSettings(lcd_base_url=LCD, analytics_api_url=ANALYTICS)
    return CosmosChainReader(config, http_timeout=1.0, max_tries=3)


def pool_payload(*assets: tuple[str, str]) -> dict:
    return {
        "pool": {
            "pool_assets": [
                {"token": {"denom": denom, "amount": amount}, "weight": "1"}
                for denom, amount in assets
            ]
        }
    }


@pytest.mark.asyncio
async def test_get_pool_state_parses_assets(reader):
    routes = {
        f"{LCD}/osmosis/gamm/v1beta1/pools/1344": make_response(
            payload=pool_payload(
                (OSMOSIS_PAGE_DENOM, "500000000000"), (OSMOSIS_NATIVE_DENOM, "2000000")
            )
        )
    }
    with patch("page_metrics.readers.cosmos.requests.get", side_effect=route(routes)):
        state = await reader.get_pool_state(PoolRef("1344"))

    assert state == CosmosPoolState(
        pool_id="1344",
        assets={OSMOSIS_PAGE_DENOM: 500_000_000_000, OSMOSIS_NATIVE_DENOM: 2_000_000},
    )


@pytest.mark.asyncio
async def test_get_pool_state_rejects_missing_assets(reader):
    routes = {
        f"{LCD}/osmosis/gamm/v1beta1/pools/1344": make_response(
            payload={"pool": {"@type": "concentrated"}}
        )
    }
    with patch("page_metrics.readers.cosmos.requests.get", side_effect=route(routes)):
        with pytest.raises(DataShapeError):
            await reader.get_pool_state("1344")


@pytest.mark.asyncio
async def test_client_error_raises_api_error_without_retry(reader):
    url = f"{LCD}/osmosis/gamm/v1beta1/pools/9"
    routes = {url: make_response(status=404, text="not found")}
    with patch(
        "page_metrics.readers.cosmos.requests.get", side_effect=route(routes)
    ) as mock_get:
        with pytest.raises(ApiError) as exc_info:
            await reader.get_pool_state("9")

    assert exc_info.value.status_code == 404
    assert exc_info.value.url == url
    assert mock_get.call_count == 1


@pytest.mark.asyncio
async def test_server_error_is_retried(reader):
    url = f"{LCD}/cosmos/base/tendermint/v1beta1/blocks/latest"
    routes = {
        url: [
            make_response(status=503),
            make_response(payload={"block": {"header": {"height": "12345"}}}),
        ]
    }
    with patch(
        "page_metrics.readers.cosmos.requests.get", side_effect=route(routes)
    ) as mock_get:
        height = await reader.get_block_height()

    assert height == 12345
    assert mock_get.call_count == 2


@pytest.mark.asyncio
async def test_transport_errors_exhaust_retries(reader):
    url = f"{LCD}/cosmos/bank/v1beta1/balances/osmo1xyz"
    with patch(
        "page_metrics.readers.cosmos.requests.get",
        side_effect=requests.exceptions.ConnectionError("refused"),
    ) as mock_get:
        with pytest.raises(ConnectivityError) as exc_info:
            await reader.get_balance("osmo1xyz")

    assert exc_info.value.network is Network.OSMOSIS
    assert mock_get.call_count == 3
    mock_get.assert_called_with(url, params=None, timeout=1.0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.ChunkedEncodingError("connection broken"),
        requests.exceptions.TooManyRedirects("exceeded 30 redirects"),
        requests.exceptions.InvalidURL("bad host"),
    ],
)
async def test_other_request_errors_fail_without_retry(reader, error):
    with patch(
        "page_metrics.readers.cosmos.requests.get", side_effect=error
    ) as mock_get:
        with pytest.raises(ConnectivityError) as exc_info:
            await reader.get_block_height()

    assert exc_info.value.primary_error is error
    assert mock_get.call_count == 1


@pytest.mark.asyncio
async def test_invalid_json_raises_data_shape_error(reader):
    routes = {
        f"{LCD}/cosmos/base/tendermint/v1beta1/blocks/latest": make_response(
            payload=ValueError("Expecting value")
        )
    }
    with patch("page_metrics.readers.cosmos.requests.get", side_effect=route(routes)):
        with pytest.raises(DataShapeError):
            await reader.get_block_height()


@pytest.mark.asyncio
async def test_balances_default_to_zero_for_missing_denom(reader):
    routes = {
        f"{LCD}/cosmos/bank/v1beta1/balances/osmo1xyz": make_response(
            payload={"balances": [{"denom": OSMOSIS_NATIVE_DENOM, "amount": "42"}]}
        )
    }
    with patch("page_metrics.readers.cosmos.requests.get", side_effect=route(routes)):
        assert await reader.get_balance("osmo1xyz") == 42
        assert await reader.get_token_balance(OSMOSIS_PAGE_DENOM, "osmo1xyz") == 0


@pytest.mark.asyncio
async def test_token_metadata_for_ibc_denom(reader):
    routes = {
        f"{ANALYTICS}/tokens/v2/{PAGE_HASH}": make_response(
            payload=[{"symbol": "PAGE", "price": 0.01}]
        ),
        f"{LCD}/cosmos/bank/v1beta1/supply/by_denom": make_response(
            payload={"amount": {"denom": OSMOSIS_PAGE_DENOM, "amount": "1000"}}
        ),
    }
    with patch("page_metrics.readers.cosmos.requests.get", side_effect=route(routes)):
        metadata = await reader.get_token_metadata(OSMOSIS_PAGE_DENOM)

    assert metadata.decimals == 8
    assert metadata.symbol == "PAGE"
    assert metadata.total_supply == 1000


@pytest.mark.asyncio
async def test_unresolvable_ibc_symbol_uses_placeholder(reader, caplog):
    routes = {f"{ANALYTICS}/tokens/v2/ABC": make_response(status=404)}
    with patch("page_metrics.readers.cosmos.requests.get", side_effect=route(routes)):
        with caplog.at_level(logging.WARNING, logger="page_metrics.readers.cosmos"):
            symbol = await reader.resolve_symbol("ibc/ABC")

    assert symbol == "IBC"
    assert "ibc/ABC" in caplog.text


@pytest.mark.asyncio
async def test_symbol_resolution_without_http(reader):
    with patch("page_metrics.readers.cosmos.requests.get") as mock_get:
        assert await reader.resolve_symbol(OSMOSIS_NATIVE_DENOM) == "OSMO"
        assert await reader.resolve_symbol("uatom") == "ATOM"
        assert await reader.resolve_symbol("gamm/pool/1") == "gamm/pool/1"

    mock_get.assert_not_called()


def test_decimals_from_registry_with_default(reader):
    assert reader.get_decimals(OSMOSIS_PAGE_DENOM) == 8
    assert reader.get_decimals(OSMOSIS_USDC_DENOM) == 6
    assert reader.get_decimals("ibc/UNKNOWN") == 6


@pytest.mark.asyncio
async def test_call_raw_pool_info_and_token_price(reader):
    routes = {
        f"{ANALYTICS}/pools/v2/1344": make_response(payload=[{"liquidity": 1.5}]),
        f"{ANALYTICS}/tokens/v2/price/PAGE": make_response(payload={"price": 0.02}),
    }
    with patch("page_metrics.readers.cosmos.requests.get", side_effect=route(routes)):
        assert await reader.call_raw("1344", "pool_info") == [{"liquidity": 1.5}]
        assert await reader.call_raw("PAGE", "token_price") == {"price": 0.02}


@pytest.mark.asyncio
async def test_call_raw_unsupported_method(reader):
    with pytest.raises(NotImplementedError):
        await reader.call_raw("1344", "swap")
