from __future__ import annotations

from decimal import Decimal

from ...domain import PriceSnapshot
from ...logger import get_logger
from ...readers import CosmosChainReader
from ...settings import CosmosSettings
from ..pools import read_osmosis_pools
from .base import BaseTVLAdapter

logger = get_logger(__name__)


class OsmosisTVLAdapter(BaseTVLAdapter):
    """Value of the PAGE/OSMO pool, both sides priced from the pools themselves."""

    def __init__(self, reader: CosmosChainReader, config: CosmosSettings):
        super().__init__(reader.network)
        self.reader = reader
        self.config = config

    @property
    def adapter_name(self) -> str:
        return "osmosis_gamm_tvl"

    async def fetch_tvl(self, prices: PriceSnapshot) -> Decimal:
        pools = await read_osmosis_pools(self.reader, self.config)
        tvl = pools.tvl
        logger.debug(
            "osmosis pool %s holds %s PAGE and %s OSMO, TVL $%s",
            self.config.pool_id,
            pools.page_amount,
            pools.osmo_amount,
            tvl,
        )
        return tvl
