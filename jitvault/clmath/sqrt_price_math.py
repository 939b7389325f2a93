"""Token amount deltas between sqrt prices and next-price computation."""
from __future__ import annotations

from ..errors import ArithmeticOverflow
from .full_math import (
    Q96,
    check_uint,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
)


def _sorted(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def get_amount0_delta(
    sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity: int, round_up: bool
) -> int:
    """Amount of currency0 spanned by ``liquidity`` between two prices."""
    sqrt_a, sqrt_b = _sorted(sqrt_price_a_x96, sqrt_price_b_x96)
    if sqrt_a <= 0:
        raise ArithmeticOverflow("sqrt price must be positive")
    if liquidity == 0 or sqrt_a == sqrt_b:
        return 0

    numerator1 = liquidity << 96
    numerator2 = sqrt_b - sqrt_a
    if round_up:
        return div_rounding_up(mul_div_rounding_up(numerator1, numerator2, sqrt_b), sqrt_a)
    return mul_div(numerator1, numerator2, sqrt_b) // sqrt_a


def get_amount1_delta(
    sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity: int, round_up: bool
) -> int:
    """Amount of currency1 spanned by ``liquidity`` between two prices."""
    sqrt_a, sqrt_b = _sorted(sqrt_price_a_x96, sqrt_price_b_x96)
    if liquidity == 0 or sqrt_a == sqrt_b:
        return 0
    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_b - sqrt_a, Q96)
    return mul_div(liquidity, sqrt_b - sqrt_a, Q96)


def _next_sqrt_price_from_amount0(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    # Rounds up so the price never moves further than the amount allows.
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << 96
    product = amount * sqrt_price_x96
    if add:
        return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 + product)
    if numerator1 <= product:
        raise ArithmeticOverflow("amount0 exceeds available liquidity")
    return check_uint(
        mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 - product), 160
    )


def _next_sqrt_price_from_amount1(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    # Rounds down so the price never moves further than the amount allows.
    if add:
        return check_uint(sqrt_price_x96 + mul_div(amount, Q96, liquidity), 160)
    quotient = mul_div_rounding_up(amount, Q96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise ArithmeticOverflow("amount1 exceeds available liquidity")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool
) -> int:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ArithmeticOverflow("price and liquidity must be positive")
    if zero_for_one:
        return _next_sqrt_price_from_amount0(sqrt_price_x96, liquidity, amount_in, True)
    return _next_sqrt_price_from_amount1(sqrt_price_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int, liquidity: int, amount_out: int, zero_for_one: bool
) -> int:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ArithmeticOverflow("price and liquidity must be positive")
    if zero_for_one:
        return _next_sqrt_price_from_amount1(sqrt_price_x96, liquidity, amount_out, False)
    return _next_sqrt_price_from_amount0(sqrt_price_x96, liquidity, amount_out, False)

