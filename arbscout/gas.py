"""Gas cost estimates for Ethereum L1 and Base (OP Stack L2)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from .abi import AbiError, decode_values, encode_call
from .providers import RpcError

# OP Stack GasPriceOracle predeploy, the same address on every OP chain.
GAS_PRICE_ORACLE = "0x420000000000000000000000000000000000000F"

# Typical swap calldata size, used to price the L1 data fee on Base.
SAMPLE_CALLDATA = b"0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef"

_GET_L1_FEE = "getL1Fee(bytes)"
_WEI_PER_GWEI = 1_000_000_000
_U64_LIMIT = 1 << 64
_U128_LIMIT = 1 << 128
_U256_LIMIT = 1 << 256


@dataclass(frozen=True)
class GasEstimate:
    """Gas cost of one transaction on one chain."""

    gas_limit: int
    gas_price: int
    l1_data_fee: int
    total_wei: int
    total_eth: float
    total_usd: float


def _u64(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if not 0 <= value < _U64_LIMIT:
        raise ValueError(f"{name} must fit in 64 unsigned bits: {value}")
    return value


def _checked_mul(a: int, b: int) -> int:
    product = a * b
    return product if product < _U256_LIMIT else 0


def _checked_add(a: int, b: int) -> int:
    total = a + b
    return total if total < _U256_LIMIT else 0


def wei_to_eth(value: int) -> float:
    """Convert wei to ETH as a float (lossy, for reporting)."""
    if not 0 <= value < _U128_LIMIT:
        raise OverflowError(f"wei amount out of range: {value}")
    return float(value) / 1e18


def _estimate(gas_limit: int, gas_price: int, l1_data_fee: int, eth_price_usd: float) -> GasEstimate:
    execution = _checked_mul(gas_price, gas_limit)
    total_wei = _checked_add(execution, l1_data_fee)
    total_eth = wei_to_eth(total_wei)
    return GasEstimate(
        gas_limit=gas_limit,
        gas_price=gas_price,
        l1_data_fee=l1_data_fee,
        total_wei=total_wei,
        total_eth=total_eth,
        total_usd=total_eth * eth_price_usd,
    )


async def estimate_eth_cost_usd(provider: Any, gas_units: int, eth_price_usd: float) -> GasEstimate:
    """Estimate the cost on Ethereum L1 for a fixed gas limit."""
    gas_limit = _u64("gas_units", gas_units)
    gas_price = await provider.get_gas_price()
    return _estimate(gas_limit, gas_price, 0, eth_price_usd)


async def _l1_data_fee(provider: Any, sample_calldata: bytes) -> int:
    raw = await provider.call(GAS_PRICE_ORACLE, encode_call(_GET_L1_FEE, bytes(sample_calldata)))
    try:
        (fee,) = decode_values(["uint256"], raw)
    except AbiError as exc:
        raise RpcError("malformed getL1Fee response") from exc
    return fee


async def estimate_base_cost_usd(
    provider: Any,
    gas_units: int,
    sample_calldata: bytes,
    eth_price_usd: float,
) -> GasEstimate:
    """Estimate the cost on Base: L2 execution plus the L1 data fee."""
    gas_limit = _u64("gas_units", gas_units)
    gas_price, l1_data_fee = await asyncio.gather(
        provider.get_gas_price(), _l1_data_fee(provider, sample_calldata)
    )
    return _estimate(gas_limit, gas_price, l1_data_fee, eth_price_usd)


async def estimate_simple_gas_costs(
    eth_provider: Any,
    base_provider: Any,
    eth_price_usd: float,
    gas_uniswap_units: int,
    gas_aerodrome_units: int,
) -> tuple[GasEstimate, GasEstimate]:
    """Estimate the Ethereum and Base costs concurrently."""
    eth_estimate, base_estimate = await asyncio.gather(
        estimate_eth_cost_usd(eth_provider, gas_uniswap_units, eth_price_usd),
        estimate_base_cost_usd(base_provider, gas_aerodrome_units, SAMPLE_CALLDATA, eth_price_usd),
    )
    return eth_estimate, base_estimate


def create_test_gas_estimate(gas_price_gwei: int, gas_limit: int, eth_price_usd: float) -> GasEstimate:
    """Build an L1-style estimate (no data fee) from a gas price in gwei."""
    gwei = _u64("gas_price_gwei", gas_price_gwei)
    limit = _u64("gas_limit", gas_limit)
    gas_price = _checked_mul(gwei, _WEI_PER_GWEI)
    return _estimate(limit, gas_price, 0, eth_price_usd)