from .base import BasePriceAdapter
from .eth_usd import EthUsdAdapter
from .evm_pool import EvmPoolPriceAdapter
from .osmosis import OsmosisPriceAdapter

__all__ = [
    "BasePriceAdapter",
    "EthUsdAdapter",
    "EvmPoolPriceAdapter",
    "OsmosisPriceAdapter",
]
