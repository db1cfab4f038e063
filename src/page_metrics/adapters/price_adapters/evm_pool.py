from __future__ import annotations

from decimal import Decimal

from ...logger import get_logger
from ...readers import ChainReader, TokenDeployment
from ..pools import read_page_pool
from .base import BasePriceAdapter

logger = get_logger(__name__)


class EvmPoolPriceAdapter(BasePriceAdapter):
    """PAGE/USD from a PAGE/WETH pool: WETH per PAGE times ETH/USD.

    Works for both constant-product pairs (price from reserves) and
    concentrated-liquidity pools (price from ``sqrtPriceX96``).
    """

    def __init__(self, reader: ChainReader, deployment: TokenDeployment):
        super().__init__(reader.network)
        self.reader = reader
        self.deployment = deployment

    @property
    def adapter_name(self) -> str:
        return f"{self.network.value}_{self.deployment.pool.kind}_pool"

    async def fetch_price(self, native_price: Decimal) -> Decimal:
        view = await read_page_pool(self.reader, self.deployment)
        weth_per_page = view.quote_per_base()
        price = weth_per_page * native_price
        logger.debug(
            "%s: %s WETH per PAGE, PAGE/USD %s",
            self.network.value,
            weth_per_page,
            price,
        )
        return self.validate_price(price)
