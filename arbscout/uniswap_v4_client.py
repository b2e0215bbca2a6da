"""Snapshots of Uniswap V4 ETH/USDC pools read through the StateView contract."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .abi import ZERO_ADDRESS, AbiError, decode_values, encode_arguments, encode_call, keccak256, parse_address
from .providers import RpcError

logger = logging.getLogger(__name__)

DEFAULT_WORD_RANGE = 24
DEFAULT_TICKINFO_CHUNK_SIZE = 4096
DEFAULT_PARALLEL_CHUNKS = 6

SYNTHETIC_WIDE_RANGE = 12_000
SYNTHETIC_LIQUIDITY = 10**24
_SYNTHETIC_BANDS = 10

_GET_SLOT0 = "getSlot0(bytes32)"
_GET_LIQUIDITY = "getLiquidity(bytes32)"
_GET_TICK_BITMAP = "getTickBitmap(bytes32,int16)"
_GET_TICK_INFO = "getTickInfo(bytes32,int24)"

_POOL_KEY = "(address,address,uint24,int24,address)"
_I16_MIN = -(1 << 15)
_I16_MAX = (1 << 15) - 1
_BITS_PER_WORD = 256


@dataclass(frozen=True)
class V4PoolSnapshot:
    """Pool key, current price state and initialized tick liquidity deltas."""

    currency0: str
    currency1: str
    fee_ppm: int
    tick_spacing: int
    hooks: str
    sqrt_price_x96: int
    tick: int
    liquidity: int
    tick_data: tuple[tuple[int, int], ...]


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def _wrap_i16(value: int) -> int:
    return ((value - _I16_MIN) % (1 << 16)) + _I16_MIN


def order_currencies(usdc_address: str) -> tuple[str, str, bool]:
    """Order native ETH (the zero address) and USDC; also says whether ETH is currency0."""
    eth = ZERO_ADDRESS
    usdc = parse_address(usdc_address)
    if eth < usdc:
        return eth, usdc, True
    return usdc, eth, False


def compute_pool_id(
    currency0: str, currency1: str, fee_ppm: int, tick_spacing: int, hooks: str
) -> bytes:
    """The V4 pool id: keccak256 of the ABI-encoded pool key."""
    encoded = encode_arguments(
        [_POOL_KEY], [(currency0, currency1, fee_ppm, tick_spacing, hooks)]
    )
    return keccak256(encoded)


def word_positions(current_tick: int, tick_spacing: int, word_range: int) -> list[int]:
    """Bitmap word positions within ``word_range`` words of the current tick's word."""
    if tick_spacing == 0:
        raise ValueError("tick_spacing must be non-zero")
    current_word = _wrap_i16(_trunc_div(_trunc_div(current_tick, tick_spacing), _BITS_PER_WORD))
    return [
        min(max(current_word + offset, _I16_MIN), _I16_MAX)
        for offset in range(-word_range, word_range + 1)
    ]


def ticks_from_bitmaps(
    positions: Sequence[int], bitmaps: Sequence[int], tick_spacing: int
) -> list[int]:
    """Ticks whose bits are set in the bitmap words, in word then bit order."""
    return [
        word_pos * _BITS_PER_WORD * tick_spacing + bit * tick_spacing
        for word_pos, word in zip(positions, bitmaps, strict=True)
        if word
        for bit in range(_BITS_PER_WORD)
        if (word >> bit) & 1
    ]


def synthetic_tick_data(current_tick: int) -> list[tuple[int, int]]:
    """Wide nested liquidity bands around the current tick, used when no tick is found."""
    per_band = SYNTHETIC_LIQUIDITY // _SYNTHETIC_BANDS
    step = SYNTHETIC_WIDE_RANGE // 5
    data: list[tuple[int, int]] = []
    for i in range(_SYNTHETIC_BANDS):
        data.append((current_tick - SYNTHETIC_WIDE_RANGE + i * step, per_band))
        data.append((current_tick + SYNTHETIC_WIDE_RANGE - i * step, -per_band))
    return data


def chunked(ticks: Sequence[int], size: int) -> list[list[int]]:
    """Split ``ticks`` into consecutive lists of at most ``size`` items."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [list(ticks[start : start + size]) for start in range(0, len(ticks), size)]


def _decode(types: Sequence[str], raw: bytes, what: str) -> tuple[Any, ...]:
    try:
        return decode_values(types, raw)
    except AbiError as exc:
        raise RpcError(f"malformed {what} response") from exc


async def fetch_tick_data(
    provider: Any,
    state_view_addr: str,
    pool_id: bytes,
    current_tick: int,
    tick_spacing: int,
    word_range: int = DEFAULT_WORD_RANGE,
    chunk_size: int = DEFAULT_TICKINFO_CHUNK_SIZE,
    parallel_chunks: int = DEFAULT_PARALLEL_CHUNKS,
    multicall_addr: str | None = None,
) -> list[tuple[int, int]]:
    """Net liquidity of initialized ticks near the current tick.

    Bitmaps are read in one multicall; tick infos in chunks, at most
    ``parallel_chunks`` at a time. Falls back to synthetic bands when no bit is set.
    """
    if parallel_chunks < 1:
        raise ValueError("parallel_chunks must be positive")
    state_view = parse_address(state_view_addr)
    positions = word_positions(current_tick, tick_spacing, word_range)

    raw_bitmaps = await provider.multicall(
        [(state_view, encode_call(_GET_TICK_BITMAP, pool_id, wp)) for wp in positions],
        multicall_addr,
    )
    bitmaps = [_decode(["uint256"], raw, "getTickBitmap")[0] for raw in raw_bitmaps]

    candidates = ticks_from_bitmaps(positions, bitmaps, tick_spacing)
    if not candidates:
        return synthetic_tick_data(current_tick)

    limiter = asyncio.Semaphore(parallel_chunks)

    async def load_chunk(ticks: list[int]) -> list[tuple[int, int]]:
        async with limiter:
            raws = await provider.multicall(
                [(state_view, encode_call(_GET_TICK_INFO, pool_id, t)) for t in ticks],
                multicall_addr,
            )
        infos = [
            _decode(["uint128", "int128", "uint256", "uint256"], raw, "getTickInfo")
            for raw in raws
        ]
        return [
            (tick, liquidity_net)
            for tick, (liquidity_gross, liquidity_net, _f0, _f1) in zip(ticks, infos, strict=True)
            if liquidity_gross > 0
        ]

    results = await asyncio.gather(
        *(load_chunk(chunk) for chunk in chunked(sorted(set(candidates)), chunk_size))
    )
    return [entry for chunk in results for entry in chunk]


async def load_v4_pool_snapshot(
    provider: Any,
    state_view_addr: str,
    usdc_addr: str,
    fee_ppm: int,
    tick_spacing: int,
    multicall_addr: str | None = None,
) -> tuple[V4PoolSnapshot, bool]:
    """Read the ETH/USDC pool's price, liquidity and ticks; also says whether ETH is token0."""
    state_view = parse_address(state_view_addr)
    currency0, currency1, token0_is_eth = order_currencies(usdc_addr)
    hooks = ZERO_ADDRESS
    pool_id = compute_pool_id(currency0, currency1, fee_ppm, tick_spacing, hooks)

    slot0_raw, liquidity_raw = await provider.multicall(
        [
            (state_view, encode_call(_GET_SLOT0, pool_id)),
            (state_view, encode_call(_GET_LIQUIDITY, pool_id)),
        ],
        multicall_addr,
    )
    sqrt_price_x96, current_tick = _decode(["uint160", "int24"], slot0_raw, "getSlot0")
    (liquidity,) = _decode(["uint128"], liquidity_raw, "getLiquidity")
    logger.debug("V4 state - tick: %s, liquidity: %s", current_tick, liquidity)

    tick_data = await fetch_tick_data(
        provider,
        state_view,
        pool_id,
        current_tick,
        tick_spacing,
        DEFAULT_WORD_RANGE,
        DEFAULT_TICKINFO_CHUNK_SIZE,
        DEFAULT_PARALLEL_CHUNKS,
        multicall_addr,
    )

    snapshot = V4PoolSnapshot(
        currency0=currency0,
        currency1=currency1,
        fee_ppm=fee_ppm,
        tick_spacing=tick_spacing,
        hooks=hooks,
        sqrt_price_x96=sqrt_price_x96,
        tick=current_tick,
        liquidity=liquidity,
        tick_data=tuple(tick_data),
    )
    return snapshot, token0_is_eth