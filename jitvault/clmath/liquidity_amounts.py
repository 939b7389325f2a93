"""Conversion between token amounts and liquidity for a tick range."""
from __future__ import annotations

from .full_math import Q96, check_uint, mul_div
from .sqrt_price_math import get_amount0_delta, get_amount1_delta


def get_liquidity_for_amount0(sqrt_price_a_x96: int, sqrt_price_b_x96: int, amount0: int) -> int:
    sqrt_a, sqrt_b = sorted((sqrt_price_a_x96, sqrt_price_b_x96))
    if sqrt_a == sqrt_b:
        return 0
    intermediate = mul_div(sqrt_a, sqrt_b, Q96)
    return check_uint(mul_div(amount0, intermediate, sqrt_b - sqrt_a), 128)


def get_liquidity_for_amount1(sqrt_price_a_x96: int, sqrt_price_b_x96: int, amount1: int) -> int:
    sqrt_a, sqrt_b = sorted((sqrt_price_a_x96, sqrt_price_b_x96))
    if sqrt_a == sqrt_b:
        return 0
    return check_uint(mul_div(amount1, Q96, sqrt_b - sqrt_a), 128)


def get_liquidity_for_amounts(
    sqrt_price_x96: int,
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    amount0: int,
    amount1: int,
) -> int:
    """Largest liquidity the given amounts can back for the range [a, b].

    Below the range only currency0 counts, above it only currency1, and
    inside it the tighter of the two sides wins.
    """
    sqrt_a, sqrt_b = sorted((sqrt_price_a_x96, sqrt_price_b_x96))
    if sqrt_price_x96 <= sqrt_a:
        return get_liquidity_for_amount0(sqrt_a, sqrt_b, amount0)
    if sqrt_price_x96 < sqrt_b:
        liquidity0 = get_liquidity_for_amount0(sqrt_price_x96, sqrt_b, amount0)
        liquidity1 = get_liquidity_for_amount1(sqrt_a, sqrt_price_x96, amount1)
        return min(liquidity0, liquidity1)
    return get_liquidity_for_amount1(sqrt_a, sqrt_b, amount1)


def get_amounts_for_liquidity(
    sqrt_price_x96: int,
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    liquidity: int,
    round_up: bool = False,
) -> tuple[int, int]:
    """Token amounts represented by ``liquidity`` over [a, b] at the current price."""
    sqrt_a, sqrt_b = sorted((sqrt_price_a_x96, sqrt_price_b_x96))
    if sqrt_price_x96 <= sqrt_a:
        return get_amount0_delta(sqrt_a, sqrt_b, liquidity, round_up), 0
    if sqrt_price_x96 < sqrt_b:
        return (
            get_amount0_delta(sqrt_price_x96, sqrt_b, liquidity, round_up),
            get_amount1_delta(sqrt_a, sqrt_price_x96, liquidity, round_up),
        )
    return 0, get_amount1_delta(sqrt_a, sqrt_b, liquidity, round_up)
