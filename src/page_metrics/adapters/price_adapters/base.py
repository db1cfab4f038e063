from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...errors import DataShapeError
from ...settings import Network


class BasePriceAdapter(ABC):
    """Abstract base class for PAGE/USD price sources, one per network."""

    def __init__(self, network: Network):
        self.network = network

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    async def fetch_price(self, native_price: Decimal) -> Decimal:
        """Fetch the PAGE/USD price on this adapter's network.

        Args:
            native_price: ETH/USD reference price, for sources quoted in WETH.
        """
        ...

    def validate_price(self, price: Decimal) -> Decimal:
        """Raise if the price is not a positive finite number, else return it."""
        if not price.is_finite() or price <= 0:
            raise DataShapeError(
                f"{self.adapter_name} produced a non-positive price for "
                f"{self.network.value}: {price}"
            )
        return price
