"""Single constant-liquidity swap step."""
from __future__ import annotations

from ..errors import ArithmeticOverflow
from .full_math import mul_div, mul_div_rounding_up
from .sqrt_price_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)

MAX_FEE_PIPS = 1_000_000


def compute_swap_step(
    sqrt_price_current_x96: int,
    sqrt_price_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
) -> tuple[int, int, int, int]:
    """Swap within one liquidity range toward ``sqrt_price_target_x96``.

    ``amount_remaining`` is negative for exact input and positive for exact
    output. The direction is implied by the target being below (0 -> 1) or
    above (1 -> 0) the current price.

    Returns:
        ``(sqrt_price_next_x96, amount_in, amount_out, fee_amount)``
    """
    if not 0 <= fee_pips < MAX_FEE_PIPS:
        raise ArithmeticOverflow(f"fee {fee_pips} out of range")

    zero_for_one = sqrt_price_current_x96 >= sqrt_price_target_x96
    exact_in = amount_remaining < 0

    if exact_in:
        amount_remaining_less_fee = mul_div(
            -amount_remaining, MAX_FEE_PIPS - fee_pips, MAX_FEE_PIPS
        )
        if zero_for_one:
            amount_in = get_amount0_delta(
                sqrt_price_target_x96, sqrt_price_current_x96, liquidity, True
            )
        else:
            amount_in = get_amount1_delta(
                sqrt_price_current_x96, sqrt_price_target_x96, liquidity, True
            )
        if amount_remaining_less_fee >= amount_in:
            sqrt_price_next_x96 = sqrt_price_target_x96
            fee_amount = mul_div_rounding_up(amount_in, fee_pips, MAX_FEE_PIPS - fee_pips)
        else:
            amount_in = amount_remaining_less_fee
            sqrt_price_next_x96 = get_next_sqrt_price_from_input(
                sqrt_price_current_x96, liquidity, amount_remaining_less_fee, zero_for_one
            )
            fee_amount = -amount_remaining - amount_in
        if zero_for_one:
            amount_out = get_amount1_delta(
                sqrt_price_next_x96, sqrt_price_current_x96, liquidity, False
            )
        else:
            amount_out = get_amount0_delta(
                sqrt_price_current_x96, sqrt_price_next_x96, liquidity, False
            )
    else:
        if zero_for_one:
            amount_out = get_amount1_delta(
                sqrt_price_target_x96, sqrt_price_current_x96, liquidity, False
            )
        else:
            amount_out = get_amount0_delta(
                sqrt_price_current_x96, sqrt_price_target_x96, liquidity, False
            )
        if amount_remaining >= amount_out:
            sqrt_price_next_x96 = sqrt_price_target_x96
        else:
            amount_out = amount_remaining
            sqrt_price_next_x96 = get_next_sqrt_price_from_output(
                sqrt_price_current_x96, liquidity, amount_remaining, zero_for_one
            )
        if zero_for_one:
            amount_in = get_amount0_delta(
                sqrt_price_next_x96, sqrt_price_current_x96, liquidity, True
            )
        else:
            amount_in = get_amount1_delta(
                sqrt_price_current_x96, sqrt_price_next_x96, liquidity, True
            )
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, MAX_FEE_PIPS - fee_pips)

    return sqrt_price_next_x96, amount_in, amount_out, fee_amount
