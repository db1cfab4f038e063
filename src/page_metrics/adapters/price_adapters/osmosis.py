from __future__ import annotations

from decimal import Decimal

from ...logger import get_logger
from ...readers import CosmosChainReader
from ...settings import CosmosSettings
from ..pools import read_osmosis_pools
from .base import BasePriceAdapter

logger = get_logger(__name__)


class OsmosisPriceAdapter(BasePriceAdapter):
    """PAGE/USD on Osmosis via the PAGE/OSMO pool and the OSMO/USDC pool.

    Independent of the ETH reference price.
    """

    def __init__(self, reader: CosmosChainReader, config: CosmosSettings):
        super().__init__(reader.network)
        self.reader = reader
        self.config = config

    @property
    def adapter_name(self) -> str:
        return "osmosis_gamm"

    async def fetch_price(self, native_price: Decimal) -> Decimal:
        pools = await read_osmosis_pools(self.reader, self.config)
        pricing = pools.pricing
        logger.debug(
            "osmosis: OSMO/USD %s, PAGE/USD %s", pricing.osmo_usd, pricing.page_usd
        )
        return self.validate_price(pricing.page_usd)
