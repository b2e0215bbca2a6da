"""Runtime configuration read from the environment and optional env files."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

DEFAULT_CEX_API_URL = "https://api.coinbase.com/v2/exchange-rates?currency=ETH"
DEFAULT_PORT = 8000
DEFAULT_GAS_UNISWAP_V4_SWAP_SINGLE_BASE = 120000
DEFAULT_GAS_UNISWAP_V4_SETTLE_TAKE_OVERHEAD = 20000
DEFAULT_GAS_UNISWAP_V4_HOOK_OVERHEAD = 0
DEFAULT_GAS_AERODROME_SWAP = 185000

# Earlier files win: values already present are never overridden.
_ENV_FILES = ("secrets.env", "addresses.env", "config/addresses.env", ".env")
_UINT_PATTERN = re.compile(r"\+?[0-9]+")


class ConfigError(Exception):
    """Raised when a required configuration value is missing."""


def _load_env_files() -> None:
    for name in _ENV_FILES:
        path = find_dotenv(name, usecwd=True)
        if path:
            load_dotenv(path, override=False)


def _required(name: str) -> str:
    value = os.environ.get(name)
    if value is None:
        raise ConfigError(f"{name} must be set")
    return value


def _unsigned(name: str, default: int, bits: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not _UINT_PATTERN.fullmatch(raw):
        return default
    value = int(raw)
    return value if value < (1 << bits) else default


@dataclass(frozen=True)
class Config:
    """Service settings: RPC endpoints, addresses and gas constants."""

    ethereum_rpc_url: str
    base_rpc_url: str
    uniswap_state_view: str
    cex_api_url: str
    port: int
    eth_weth_address: str
    eth_usdc_address: str
    base_weth_address: str
    base_usdc_address: str
    uniswap_universal_router: str
    aerodrome_factory_address: str
    aerodrome_weth_usdc_volatile_pool: str | None
    gas_uniswap_v4_swap_single_base: int
    gas_uniswap_v4_settle_take_overhead: int
    gas_uniswap_v4_hook_overhead: int
    gas_aerodrome_swap: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load env files, then build the configuration from the environment."""
        _load_env_files()
        return cls(
            ethereum_rpc_url=_required("ETHEREUM_RPC_URL"),
            base_rpc_url=_required("BASE_RPC_URL"),
            uniswap_state_view=_required("UNISWAP_V4_STATE_VIEW"),
            cex_api_url=os.environ.get("CEX_API_URL", DEFAULT_CEX_API_URL),
            port=_unsigned("PORT", DEFAULT_PORT, 16),
            eth_weth_address=_required("ETH_WETH_ADDRESS"),
            eth_usdc_address=_required("ETH_USDC_ADDRESS"),
            base_weth_address=_required("BASE_WETH_ADDRESS"),
            base_usdc_address=_required("BASE_USDC_ADDRESS"),
            uniswap_universal_router=_required("UNISWAP_V4_UNIVERSAL_ROUTER"),
            aerodrome_factory_address=_required("AERODROME_FACTORY_ADDRESS"),
            aerodrome_weth_usdc_volatile_pool=os.environ.get(
                "AERODROME_WETH_USDC_VOLATILE_POOL"
            ),
            gas_uniswap_v4_swap_single_base=_unsigned(
                "GAS_UNISWAP_V4_SWAP_SINGLE_BASE",
                DEFAULT_GAS_UNISWAP_V4_SWAP_SINGLE_BASE,
                64,
            ),
            gas_uniswap_v4_settle_take_overhead=_unsigned(
                "GAS_UNISWAP_V4_SETTLE_TAKE_OVERHEAD",
                DEFAULT_GAS_UNISWAP_V4_SETTLE_TAKE_OVERHEAD,
                64,
            ),
            gas_uniswap_v4_hook_overhead=_unsigned(
                "GAS_UNISWAP_V4_HOOK_OVERHEAD",
                DEFAULT_GAS_UNISWAP_V4_HOOK_OVERHEAD,
                64,
            ),
            gas_aerodrome_swap=_unsigned(
                "GAS_AERODROME_SWAP", DEFAULT_GAS_AERODROME_SWAP, 64
            ),
        )