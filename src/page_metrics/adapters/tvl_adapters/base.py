from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...domain import PriceSnapshot
from ...settings import Network


class BaseTVLAdapter(ABC):
    """Abstract base class for per-network TVL sources."""

    def __init__(self, network: Network):
        self.network = network

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    async def fetch_tvl(self, prices: PriceSnapshot) -> Decimal:
        """Fetch the USD value locked in PAGE liquidity on this network."""
        ...
