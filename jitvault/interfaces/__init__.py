"""Protocol interfaces for the external services the vault talks to."""
from .lending_pool import LendingPool
from .pool_manager import PoolManager, SwapHooks
from .price_oracle import ExchangeRateSource, PriceOracle
from .token_bank import TokenBank

__all__ = [
    "ExchangeRateSource",
    "LendingPool",
    "PoolManager",
    "PriceOracle",
    "SwapHooks",
    "TokenBank",
]
