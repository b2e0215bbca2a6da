# arbscout

`arbscout` gathers the data needed to judge an ETH/USDC arbitrage between
Uniswap v4 on Ethereum and the Aerodrome volatile pool on Base. It can:

- read a reference ETH price in USD from a centralised exchange,
- load a Uniswap v4 pool snapshot (price, liquidity and initialised ticks),
- load an Aerodrome volatile pair snapshot (reserves, decimals and fee),
- estimate gas costs on Ethereum and on Base, including Base's L1 data fee.

All network access goes through plain JSON-RPC and HTTPS over `httpx`.
Contract calls are ABI-encoded by the package itself, and related reads are
batched through Multicall3 (`aggregate3`).

## Configuration

`Config.from_env()` reads settings from the environment. Before reading, it
loads `secrets.env`, `addresses.env`, `config/addresses.env` and `.env` if
they are found; values already in the environment are never overridden, and
earlier files win over later ones. A missing required setting raises
`ConfigError`.

Required:

| Variable | Meaning |
| --- | --- |
| `ETHEREUM_RPC_URL` | Ethereum JSON-RPC endpoint |
| `BASE_RPC_URL` | Base JSON-RPC endpoint |
| `UNISWAP_V4_STATE_VIEW` | Uniswap v4 StateView contract |
| `ETH_WETH_ADDRESS`, `ETH_USDC_ADDRESS` | token addresses on Ethereum |
| `BASE_WETH_ADDRESS`, `BASE_USDC_ADDRESS` | token addresses on Base |
| `UNISWAP_V4_UNIVERSAL_ROUTER` | Uniswap universal router |
| `AERODROME_FACTORY_ADDRESS` | Aerodrome pool factory |

Optional, with defaults:

| Variable | Default |
| --- | --- |
| `CEX_API_URL` | Coinbase's public ETH exchange-rates endpoint |
| `PORT` | `8000` |
| `AERODROME_WETH_USDC_VOLATILE_POOL` | unset (the pool is discovered through the factory) |
| `GAS_UNISWAP_V4_SWAP_SINGLE_BASE` | `120000` |
| `GAS_UNISWAP_V4_SETTLE_TAKE_OVERHEAD` | `20000` |
| `GAS_UNISWAP_V4_HOOK_OVERHEAD` | `0` |
| `GAS_AERODROME_SWAP` | `185000` |

A numeric setting that is not a valid unsigned integer of the right size
falls back to its default.

`AppState.from_config(config)` validates every address, then builds two
`JsonRpcProvider` instances, a `CexClient`, the parsed (lower-case)
addresses and the gas totals. `gas_uniswap_v4_total` is the sum of the three
Uniswap gas settings. Invalid addresses raise `AbiError`; an invalid RPC URL
raises `ValueError`.

## Usage

```python
import asyncio

from arbscout.bootstrap import AppState
from arbscout.config import Config
from arbscout.gas import estimate_simple_gas_costs
from arbscout.aerodrome_client import load_volatile_pair_snapshot
from arbscout.uniswap_v4_client import load_v4_pool_snapshot


async def main():
    state = AppState.from_config(Config.from_env())
    try:
        eth_price = await state.cex_client.get_coinbase_price()

        eth_gas, base_gas = await estimate_simple_gas_costs(
            state.eth_provider,
            state.base_provider,
            eth_price,
            state.gas_uniswap_v4_total,
            state.gas_aerodrome_swap,
        )
        print(f"Ethereum swap gas: ${eth_gas.total_usd:.2f}")
        print(f"Base swap gas:     ${base_gas.total_usd:.2f}")

        v4_pool, eth_is_token0 = await load_v4_pool_snapshot(
            state.eth_provider, state.uniswap_state_view, state.eth_usdc_address, 3000, 60
        )
        pair, weth_is_token0 = await load_volatile_pair_snapshot(
            state.base_provider,
            state.base_weth_address,
            state.base_usdc_address,
            state.aerodrome_factory_address,
            state.aerodrome_weth_usdc_volatile_pool,
        )
        print(v4_pool.tick, v4_pool.liquidity, pair.reserve0, pair.reserve1, pair.fee_bps)
    finally:
        await state.eth_provider.aclose()
        await state.base_provider.aclose()


asyncio.run(main())
```

`load_volatile_pair_snapshot` raises `PoolNotFoundError` when the factory
has no volatile WETH/USDC pool. It assigns 18 decimals to WETH and 6 to the
other token by position.

`load_v4_pool_snapshot` orders native ETH (the zero address) and USDC into
the pool key, derives the pool id with `compute_pool_id`, and reads slot0
and liquidity in one multicall. `fetch_tick_data` then reads tick bitmaps
for 24 words either side of the current word, and the tick infos of every
set bit in chunks of 4096, at most 6 chunks at a time, keeping ticks with
non-zero gross liquidity. If no bit is set it falls back to
`synthetic_tick_data`, ten wide nested liquidity bands around the current
tick.

Lower-level pieces are available on their own:

- `arbscout.abi`: `parse_address`, `format_address` (EIP-55 checksum),
  `keccak256`, `function_selector`, `encode_arguments`, `decode_values` and
  `encode_call` (`AbiError` on bad input),
- `arbscout.providers`: `JsonRpcProvider` with `request`, `get_gas_price`,
  `call`, `multicall` and `aclose`, usable as an async context manager
  (`RpcError` on node errors or failed sub-calls),
- `arbscout.gas`: `GasEstimate`, `wei_to_eth` and `create_test_gas_estimate`
  for building estimates offline,
- `arbscout.cex_client`: `parse_coinbase_price` to read the USD rate from an
  exchange-rates payload (`CexError` when it is missing or malformed),
- `arbscout.uniswap_v4_client`: the pure helpers `order_currencies`,
  `word_positions`, `ticks_from_bitmaps` and `chunked`.

## What it does not do

`arbscout` is a data-gathering library. It does not:

- look up bridge fees between Ethereum and Base,
- simulate swaps against the pool snapshots or search for an optimal trade
  size,
- run an HTTP service; `Config.port` is read but nothing listens on it,
- provide a command-line program,
- send transactions.

## Tests

The tests are in `tests/` and use pytest, pytest-asyncio and respx, which
are listed in the `test` extra:

```
pip install -e ".[test]"
pytest
```