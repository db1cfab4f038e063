from __future__ import annotations

from decimal import Decimal

from ...domain import PriceSnapshot
from ...errors import PriceUnavailableError
from ...logger import get_logger
from ...processors.liquidity import pool_tvl
from ...readers import ChainReader, TokenDeployment
from ...units import to_decimal
from ..pools import read_page_pool
from .base import BaseTVLAdapter

logger = get_logger(__name__)


class EvmPoolTVLAdapter(BaseTVLAdapter):
    """Value of the PAGE/WETH pool on one EVM network.

    PAGE is priced at the network's own PAGE/USD price, WETH at ETH/USD.
    """

    def __init__(self, reader: ChainReader, deployment: TokenDeployment):
        super().__init__(reader.network)
        self.reader = reader
        self.deployment = deployment

    @property
    def adapter_name(self) -> str:
        return f"{self.network.value}_{self.deployment.pool.kind}_tvl"

    async def fetch_tvl(self, prices: PriceSnapshot) -> Decimal:
        if self.network not in prices.prices:
            raise PriceUnavailableError(self.network)
        page_price = to_decimal(prices.prices[self.network])
        eth_price = to_decimal(prices.native_price)

        view = await read_page_pool(self.reader, self.deployment)
        page_amount, weth_amount = view.base_and_quote_amounts()
        tvl = pool_tvl(page_amount, page_price, weth_amount, eth_price)
        logger.debug(
            "%s pool holds %s PAGE and %s WETH, TVL $%s",
            self.network.value,
            page_amount,
            weth_amount,
            tvl,
        )
        return tvl
