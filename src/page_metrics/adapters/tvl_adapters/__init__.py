from .base import BaseTVLAdapter
from .evm_pool import EvmPoolTVLAdapter
from .osmosis import OsmosisTVLAdapter

__all__ = ["BaseTVLAdapter", "EvmPoolTVLAdapter", "OsmosisTVLAdapter"]
