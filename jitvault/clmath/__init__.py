"""Integer concentrated-liquidity math (Q64.96 sqrt prices)."""
from .liquidity_amounts import get_amounts_for_liquidity, get_liquidity_for_amounts
from .sqrt_price_math import get_amount0_delta, get_amount1_delta
from .swap_math import MAX_FEE_PIPS, compute_swap_step
from .tick_math import (
    MAX_SQRT_PRICE,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MIN_TICK,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
)

__all__ = [
    "MAX_FEE_PIPS",
    "MAX_SQRT_PRICE",
    "MAX_TICK",
    "MIN_SQRT_PRICE",
    "MIN_TICK",
    "compute_swap_step",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_amounts_for_liquidity",
    "get_liquidity_for_amounts",
    "get_sqrt_price_at_tick",
    "get_tick_at_sqrt_price",
]
