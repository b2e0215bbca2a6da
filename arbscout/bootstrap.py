"""Application state assembled from the configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .abi import parse_address
from .cex_client import CexClient
from .config import Config
from .providers import JsonRpcProvider, create_base_provider, create_ethereum_provider


@dataclass(frozen=True)
class AppState:
    """Providers, clients, parsed addresses and gas constants used by the service."""

    eth_provider: JsonRpcProvider
    base_provider: JsonRpcProvider
    cex_client: CexClient
    uniswap_state_view: str
    eth_weth_address: str
    eth_usdc_address: str
    base_weth_address: str
    base_usdc_address: str
    uniswap_universal_router: str
    aerodrome_factory_address: str
    aerodrome_weth_usdc_volatile_pool: str | None
    gas_uniswap_v4_total: int
    gas_aerodrome_swap: int

    @classmethod
    def from_config(cls, config: Config) -> "AppState":
        """Validate addresses, then build providers and clients from ``config``."""
        uniswap_state_view = parse_address(config.uniswap_state_view)
        addresses = {
            "eth_weth_address": parse_address(config.eth_weth_address),
            "eth_usdc_address": parse_address(config.eth_usdc_address),
            "base_weth_address": parse_address(config.base_weth_address),
            "base_usdc_address": parse_address(config.base_usdc_address),
            "uniswap_universal_router": parse_address(config.uniswap_universal_router),
            "aerodrome_factory_address": parse_address(config.aerodrome_factory_address),
        }
        pool = config.aerodrome_weth_usdc_volatile_pool
        volatile_pool = parse_address(pool) if pool is not None else None

        eth_provider = create_ethereum_provider(config.ethereum_rpc_url)
        base_provider = create_base_provider(config.base_rpc_url)

        return cls(
            eth_provider=eth_provider,
            base_provider=base_provider,
            cex_client=CexClient(config.cex_api_url),
            uniswap_state_view=uniswap_state_view,
            aerodrome_weth_usdc_volatile_pool=volatile_pool,
            gas_uniswap_v4_total=(
                config.gas_uniswap_v4_swap_single_base
                + config.gas_uniswap_v4_settle_take_overhead
                + config.gas_uniswap_v4_hook_overhead
            ),
            gas_aerodrome_swap=config.gas_aerodrome_swap,
            **addresses,
        )