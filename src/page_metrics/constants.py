"""Deployment constants for the PAGE token and its liquidity pools."""

from typing import Literal, TypedDict

PoolType = Literal["v2", "v3"]

class TokenDeploymentConfig(TypedDict):
    """PAGE deployment on one EVM network and the pool that prices it."""

    address: str
    decimals: int
    pool_address: str
    pool_type: PoolType

class EvmEndpoints(TypedDict):
    primary: str
    backup: str
    chain_id: int

EVM_ENDPOINTS: dict[str, EvmEndpoints] = {
    "ethereum": {
        "primary": "https://eth.drpc.org",
        "backup": "https://eth.llamarpc.com",
        "chain_id": 1,
    },
    "optimism": {
        "primary": "https://mainnet.optimism.io",
        "backup": "https://optimism.llamarpc.com",
        "chain_id": 10,
    },
    "base": {
        "primary": "https://mainnet.base.org",
        "backup": "https://base.publicnode.com",
        "chain_id": 8453,
    },
}

PAGE_DEPLOYMENTS: dict[str, TokenDeploymentConfig] = {
    "ethereum": {
        "address": "0x60e683C6514Edd5F758A55b6f393BeBBAfaA8d5e",
        "decimals": 8,
        "pool_address": "0x9a25d21e204f10177738edb0c3345bd88478aaa2",
        "pool_type": "v2",
    },
    "optimism": {
        "address": "0xe67E77c47a37795c0ea40A038F7ab3d76492e803",
        "decimals": 8,
        "pool_address": "0x5421DA31D54640b58355d8D16D78af84D34D2405",
        "pool_type": "v2",
    },
    "base": {
        "address": "0xc4730f86d1F86cE0712a7b17EE919Db7dEFad7FE",
        "decimals": 8,
        "pool_address": "0xb05113fbB5f2551Dc6f10EF3C4EfFB9C03C0E3E9",
        "pool_type": "v3",
    },
}

WETH_ADDRESSES: dict[str, str] = {
    "ethereum": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    "optimism": "0x4200000000000000000000000000000000000006",
    "base": "0x4200000000000000000000000000000000000006",
}

# WETH/USDC concentrated-liquidity pool on Base, used as the ETH/USD reference
ETH_USDC_POOL_BASE = "0xd0b53D9277642d899DF5C87A3966A349A798F224"
USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"

# Osmosis
OSMOSIS_CHAIN_ID = "osmosis-1"
OSMOSIS_LCD_URL = "https://lcd.osmosis.zone"
OSMOSIS_ANALYTICS_URL = "https://api-osmosis.imperator.co"
OSMOSIS_NATIVE_DENOM = "uosmo"
OSMOSIS_PAGE_DENOM = (
    "ibc/23A62409E4AD8133116C249B1FA38EED30E500A115D7B153109462CD82C1CD99"
)
OSMOSIS_USDC_DENOM = (
    "ibc/D189335C6E4A68B513C10AB227BF1C1D38C746766278BA3EEB4FB14124F1D858"
)
OSMOSIS_PAGE_POOL_ID = "1344"
OSMOSIS_OSMO_USDC_POOL_ID = "678"

DEFAULT_COSMOS_DECIMALS = 6
IBC_SYMBOL_PLACEHOLDER = "IBC"

COSMOS_DENOM_DECIMALS: dict[str, int] = {
    OSMOSIS_NATIVE_DENOM: 6,
    OSMOSIS_PAGE_DENOM: 8,
    OSMOSIS_USDC_DENOM: 6,
}

# Supply figures are fixed, not read on-chain
CIRCULATING_SUPPLY = 42_500_000
TOTAL_SUPPLY = 100_000_000

CACHE_TTL_MS = 300_000
