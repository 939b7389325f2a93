"""Cap/sizing of JIT liquidity for a single swap."""
from __future__ import annotations

import logging

from .clmath import MAX_SQRT_PRICE, MIN_SQRT_PRICE, compute_swap_step
from .clmath.full_math import check_uint
from .config import BPS
from .models import LiquidityCaps, PoolDescriptor, SwapParams

logger = logging.getLogger(__name__)

DEFAULT_LEVERAGE_BPS = 20_000


def compute_band(tick: int, tick_spacing: int) -> tuple[int, int]:
    """Fixed-width band one spacing wide, just below the current tick.

    The lower bound is ``tick`` floored to a spacing multiple and moved down
    one spacing; the upper bound is one spacing above that.
    """
    if tick_spacing <= 0:
        raise ValueError("tick_spacing must be positive")
    tick_lower = (tick // tick_spacing) * tick_spacing - tick_spacing
    return tick_lower, tick_lower + tick_spacing


def compute_step_out(
    key: PoolDescriptor,
    params: SwapParams,
    sqrt_price_x96: int,
    liquidity: int,
) -> int:
    """Output the pool alone would release in one step toward the price boundary."""
    target = MIN_SQRT_PRICE + 1 if params.zero_for_one else MAX_SQRT_PRICE - 1
    _, _, amount_out, _ = compute_swap_step(
        sqrt_price_x96, target, liquidity, params.amount_specified, key.fee
    )
    return amount_out


def _leveraged(reserves: int, leverage_bps: int) -> int:
    return check_uint(reserves * leverage_bps) // BPS


def compute_caps(
    key: PoolDescriptor,
    params: SwapParams,
    sqrt_price_x96: int,
    liquidity: int,
    reserves0: int,
    reserves1: int,
    leverage_bps: int = DEFAULT_LEVERAGE_BPS,
) -> LiquidityCaps:
    """Per-asset liquidity caps in canonical pool order.

    The side the swap pays into is the leveraged reserve. The side the pool
    pays out of is additionally clamped to ``step_out``, so it collapses to
    zero whenever the pool alone would release nothing.

    Raises:
        ArithmeticOverflow: a leveraged reserve does not fit in 256 bits.
    """
    step_out = compute_step_out(key, params, sqrt_price_x96, liquidity)
    if params.zero_for_one:
        reserves_in, reserves_out = reserves0, reserves1
    else:
        reserves_in, reserves_out = reserves1, reserves0

    cap_in = _leveraged(reserves_in, leverage_bps)
    cap_out = min(_leveraged(reserves_out, leverage_bps), step_out)

    if params.zero_for_one:
        caps = LiquidityCaps(cap0=cap_in, cap1=cap_out, step_out=step_out)
    else:
        caps = LiquidityCaps(cap0=cap_out, cap1=cap_in, step_out=step_out)
    logger.debug(
        "Caps for %s/%s (zero_for_one=%s): cap0=%d cap1=%d step_out=%d",
        key.currency0, key.currency1, params.zero_for_one,
        caps.cap0, caps.cap1, step_out,
    )
    return caps
