from __future__ import annotations

from decimal import Decimal

from ...constants import ETH_USDC_POOL_BASE, WETH_ADDRESSES
from ...errors import DataShapeError
from ...logger import get_logger
from ...readers import ChainReader, PoolRef
from ...settings import Network
from ..pools import read_pair_pool

logger = get_logger(__name__)


class EthUsdAdapter:
    """ETH/USD reference price from the WETH/USDC concentrated-liquidity pool on Base."""

    def __init__(
        self,
        reader: ChainReader,
        pool_address: str = ETH_USDC_POOL_BASE,
        weth_address: str = WETH_ADDRESSES[Network.BASE.value],
    ):
        self.reader = reader
        self.pool = PoolRef(address=pool_address, kind="v3")
        self.weth_address = weth_address

    @property
    def adapter_name(self) -> str:
        return "eth_usd"

    async def fetch_native_price(self) -> Decimal:
        """Fetch USDC per WETH.

        Raises:
            DataShapeError: If the pool yields a non-positive price.
        """
        view = await read_pair_pool(self.reader, self.pool, self.weth_address)
        price = view.quote_per_base()
        if not price.is_finite() or price <= 0:
            raise DataShapeError(
                f"Invalid ETH/USD price from {self.pool.address}: {price}"
            )
        logger.debug("ETH/USD from %s: %s", self.pool.address, price)
        return price
