import pytest

from arbscout.abi import ZERO_ADDRESS, encode_arguments, function_selector
from arbscout.aerodrome_client import (
    PoolNotFoundError,
    VolatilePairSnapshot,
    build_pair_snapshot,
    load_volatile_pair_snapshot,
)
from arbscout.providers import RpcError

WETH = "0x" + "00" * 20
USDC = "0x" + "11" * 20
FACTORY = "0x" + "22" * 20
POOL = "0x" + "55" * 20
OTHER = "0x" + "33" * 20
U256_MAX = (1 << 256) - 1
U32_MAX = (1 << 32) - 1

BASE_WETH = "0x4200000000000000000000000000000000000006"
BASE_USDC = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"


class FakeChain:
    def __init__(self, token0, token1, reserves, fee, discovered=POOL, malformed=False):
        self.token0 = token0
        self.token1 = token1
        self.reserves = reserves
        self.fee = fee
        self.discovered = discovered
        self.malformed = malformed
        self.calls = []
        self.multicalls = []

    def _answer(self, to, data):
        selector = bytes(data[:4])
        if selector == function_selector("getPool(address,address,bool)"):
            assert to == FACTORY
            return encode_arguments(["address"], [self.discovered])
        if selector == function_selector("token0()"):
            return encode_arguments(["address"], [self.token0])
        if selector == function_selector("token1()"):
            return encode_arguments(["address"], [self.token1])
        if selector == function_selector("getReserves()"):
            if self.malformed:
                return b"\x01"
            return encode_arguments(["uint256", "uint256", "uint256"], [*self.reserves, 12345])
        if selector == function_selector("getFee(address,bool)"):
            assert to == FACTORY
            return encode_arguments(["uint256"], [self.fee])
        raise AssertionError(f"unexpected call to {to}")

    async def call(self, to, data):
        self.calls.append((to, bytes(data)))
        return self._answer(to, data)

    async def multicall(self, calls, multicall_address=None):
        calls = list(calls)
        self.multicalls.append(calls)
        return [self._answer(to, data) for to, data in calls]


def test_token0_is_weth_assigns_weth_decimals_first():
    reserve0 = 1000 * 10**18
    reserve1 = 3_500_000 * 10**6
    pair, token0_is_weth = build_pair_snapshot(WETH, USDC, reserve0, reserve1, 30, WETH)
    assert token0_is_weth is True
    assert pair == VolatilePairSnapshot(
        token0=WETH,
        token1=USDC,
        reserve0=reserve0,
        reserve1=reserve1,
        decimals0=18,
        decimals1=6,
        fee_bps=30,
    )


def test_token1_is_weth_swaps_decimals():
    pair, token0_is_weth = build_pair_snapshot(
        USDC, WETH, 3_500_000 * 10**6, 1000 * 10**18, 25, WETH
    )
    assert token0_is_weth is False
    assert (pair.token0, pair.token1) == (USDC, WETH)
    assert (pair.decimals0, pair.decimals1) == (6, 18)
    assert pair.fee_bps == 25


def test_other_token_is_not_weth():
    _, token0_is_weth = build_pair_snapshot(OTHER, USDC, 1, 1, 30, WETH)
    assert token0_is_weth is False


def test_weth_comparison_ignores_case():
    _, token0_is_weth = build_pair_snapshot(
        "0x" + "AB" * 20, USDC, 1, 1, 30, "0x" + "ab" * 20
    )
    assert token0_is_weth is True


@pytest.mark.parametrize(
    "fee_raw, expected",
    [(30, 30), (25, 25), (100, 100), (0, 0), (1, 1), (1000, 1000), (U32_MAX, U32_MAX)],
)
def test_fee_conversion(fee_raw, expected):
    pair, _ = build_pair_snapshot(WETH, USDC, 1000, 2000, fee_raw, WETH)
    assert pair.fee_bps == expected


def test_fee_over_32_bits_is_rejected():
    with pytest.raises(OverflowError):
        build_pair_snapshot(WETH, USDC, 1000, 2000, U32_MAX + 1, WETH)


@pytest.mark.parametrize(
    "reserve0, reserve1",
    [
        (10**18, 3_500 * 10**6),
        (100 * 10**18, 350_000 * 10**6),
        (10_000 * 10**18, 35_000_000 * 10**6),
        (1, 1),
        (U256_MAX, 1),
        (1, U256_MAX),
    ],
)
def test_reserves_are_kept(reserve0, reserve1):
    pair, _ = build_pair_snapshot(WETH, USDC, reserve0, reserve1, 30, WETH)
    assert (pair.reserve0, pair.reserve1) == (reserve0, reserve1)


@pytest.mark.parametrize("reserve", [-1, 1 << 256])
def test_reserves_out_of_range_are_rejected(reserve):
    with pytest.raises(ValueError):
        build_pair_snapshot(WETH, USDC, reserve, 1, 30, WETH)


def test_same_tokens_are_allowed():
    pair, _ = build_pair_snapshot(USDC, USDC, 1000, 2000, 30, WETH)
    assert pair.token0 == pair.token1


def test_invalid_address_is_rejected():
    with pytest.raises(ValueError):
        build_pair_snapshot("not_an_address", USDC, 1, 1, 30, WETH)


@pytest.mark.asyncio
async def test_load_with_provided_pool_skips_discovery():
    chain = FakeChain(BASE_WETH, BASE_USDC, (1000 * 10**18, 3_500_000 * 10**6), 30)
    pair, token0_is_weth = await load_volatile_pair_snapshot(
        chain, BASE_WETH, BASE_USDC, FACTORY, POOL
    )
    assert chain.calls == []
    assert [to for to, _ in chain.multicalls[0]] == [POOL, POOL, POOL, FACTORY]
    assert token0_is_weth is True
    assert pair == VolatilePairSnapshot(
        token0=BASE_WETH,
        token1=BASE_USDC,
        reserve0=1000 * 10**18,
        reserve1=3_500_000 * 10**6,
        decimals0=18,
        decimals1=6,
        fee_bps=30,
    )


@pytest.mark.asyncio
async def test_load_discovers_pool_via_factory():
    chain = FakeChain(BASE_USDC, BASE_WETH, (3_500_000 * 10**6, 1000 * 10**18), 5)
    pair, token0_is_weth = await load_volatile_pair_snapshot(
        chain, BASE_WETH, BASE_USDC, FACTORY, None
    )
    assert len(chain.calls) == 1
    assert chain.calls[0][0] == FACTORY
    assert all(to == POOL for to, _ in chain.multicalls[0][:3])
    assert token0_is_weth is False
    assert (pair.decimals0, pair.decimals1) == (6, 18)
    assert pair.fee_bps == 5


@pytest.mark.asyncio
async def test_load_raises_when_pool_not_found():
    chain = FakeChain(BASE_WETH, BASE_USDC, (1, 1), 30, discovered=ZERO_ADDRESS)
    with pytest.raises(PoolNotFoundError, match="Aerodrome volatile pool not found"):
        await load_volatile_pair_snapshot(chain, BASE_WETH, BASE_USDC, FACTORY, None)
    assert chain.multicalls == []


@pytest.mark.asyncio
async def test_load_rejects_malformed_response():
    chain = FakeChain(BASE_WETH, BASE_USDC, (1, 1), 30, malformed=True)
    with pytest.raises(RpcError):
        await load_volatile_pair_snapshot(chain, BASE_WETH, BASE_USDC, FACTORY, POOL)