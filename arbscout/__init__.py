"""Price, pool-state and gas data for ETH/USDC arbitrage between Ethereum and Base."""

__version__ = "0.1.0"