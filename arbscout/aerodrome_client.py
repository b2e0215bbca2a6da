"""State snapshots of Aerodrome volatile (constant-product) pools on Base."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .abi import ZERO_ADDRESS, AbiError, decode_values, encode_call, parse_address
from .providers import RpcError

logger = logging.getLogger(__name__)

WETH_DECIMALS = 18
USDC_DECIMALS = 6

_GET_POOL = "getPool(address,address,bool)"
_GET_FEE = "getFee(address,bool)"
_TOKEN0 = "token0()"
_TOKEN1 = "token1()"
_GET_RESERVES = "getReserves()"

_U32_LIMIT = 1 << 32
_U256_LIMIT = 1 << 256


class PoolNotFoundError(LookupError):
    """Raised when the factory has no volatile pool for the token pair."""


@dataclass(frozen=True)
class VolatilePairSnapshot:
    """Tokens, reserves, decimals and fee of a volatile pair at one moment."""

    token0: str
    token1: str
    reserve0: int
    reserve1: int
    decimals0: int
    decimals1: int
    fee_bps: int


def _u256(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if not 0 <= value < _U256_LIMIT:
        raise ValueError(f"{name} must fit in 256 unsigned bits: {value}")
    return value


def build_pair_snapshot(
    token0: str,
    token1: str,
    reserve0: int,
    reserve1: int,
    fee_raw: int,
    weth: str,
) -> tuple[VolatilePairSnapshot, bool]:
    """Build a snapshot from raw pool values; also says whether token0 is WETH.

    Decimals are assigned by position: WETH has 18, the other token 6.
    """
    token0 = parse_address(token0)
    token1 = parse_address(token1)
    fee = _u256("fee_raw", fee_raw)
    if fee >= _U32_LIMIT:
        raise OverflowError(f"fee does not fit in 32 bits: {fee}")
    token0_is_weth = token0 == parse_address(weth)
    snapshot = VolatilePairSnapshot(
        token0=token0,
        token1=token1,
        reserve0=_u256("reserve0", reserve0),
        reserve1=_u256("reserve1", reserve1),
        decimals0=WETH_DECIMALS if token0_is_weth else USDC_DECIMALS,
        decimals1=USDC_DECIMALS if token0_is_weth else WETH_DECIMALS,
        fee_bps=fee,
    )
    return snapshot, token0_is_weth


def _decode(types: Sequence[str], raw: bytes, what: str) -> tuple[Any, ...]:
    try:
        return decode_values(types, raw)
    except AbiError as exc:
        raise RpcError(f"malformed {what} response") from exc


async def _discover_pool(provider: Any, factory: str, weth: str, usdc: str) -> str:
    raw = await provider.call(factory, encode_call(_GET_POOL, weth, usdc, False))
    (pool,) = _decode(["address"], raw, "getPool")
    if pool == ZERO_ADDRESS:
        raise PoolNotFoundError("Aerodrome volatile pool not found")
    return pool


async def load_volatile_pair_snapshot(
    provider: Any,
    weth: str,
    usdc: str,
    factory_address: str,
    pool_address: str | None = None,
) -> tuple[VolatilePairSnapshot, bool]:
    """Read the WETH/USDC volatile pool's tokens, reserves and fee in one multicall.

    Without ``pool_address`` the pool is discovered through the factory.
    """
    weth = parse_address(weth)
    usdc = parse_address(usdc)
    factory = parse_address(factory_address)

    if pool_address is not None:
        pool = parse_address(pool_address)
        logger.debug("Using provided Aerodrome pool address: %s", pool)
    else:
        logger.debug("Discovering Aerodrome pool via factory")
        pool = await _discover_pool(provider, factory, weth, usdc)

    token0_raw, token1_raw, reserves_raw, fee_raw = await provider.multicall(
        [
            (pool, encode_call(_TOKEN0)),
            (pool, encode_call(_TOKEN1)),
            (pool, encode_call(_GET_RESERVES)),
            (factory, encode_call(_GET_FEE, pool, False)),
        ]
    )
    (token0,) = _decode(["address"], token0_raw, "token0")
    (token1,) = _decode(["address"], token1_raw, "token1")
    reserve0, reserve1, _timestamp = _decode(
        ["uint256", "uint256", "uint256"], reserves_raw, "getReserves"
    )
    (fee,) = _decode(["uint256"], fee_raw, "getFee")

    snapshot, token0_is_weth = build_pair_snapshot(
        token0, token1, reserve0, reserve1, fee, weth
    )
    logger.debug(
        "Fetched Aerodrome state - reserves: %s / %s, fee_bps: %s",
        snapshot.reserve0,
        snapshot.reserve1,
        snapshot.fee_bps,
    )
    return snapshot, token0_is_weth