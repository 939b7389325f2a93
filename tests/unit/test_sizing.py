"""Unit tests for JIT cap/sizing."""
from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from jitvault.clmath import get_sqrt_price_at_tick
from jitvault.clmath.full_math import MAX_UINT256, Q96
from jitvault.errors import ArithmeticOverflow
from jitvault.models import PoolDescriptor, SwapParams
from jitvault.sizing import compute_band, compute_caps, compute_step_out

KEY = PoolDescriptor("RETH", "WETH", fee=3000, tick_spacing=10)

reserves = st.integers(min_value=0, max_value=10**30)
leverage = st.integers(min_value=1, max_value=100_000)
amounts = st.integers(min_value=1, max_value=10**24)


class TestComputeBand:
    @pytest.mark.parametrize(
        "tick, expected",
        [
            (0, (-10, 0)),
            (7, (-10, 0)),
            (10, (0, 10)),
            (-1, (-20, -10)),
            (-10, (-20, -10)),
            (953, (940, 950)),
        ],
    )
    def test_floors_then_shifts_down(self, tick: int, expected: tuple[int, int]) -> None:
        assert compute_band(tick, 10) == expected

    def test_band_is_one_spacing_wide(self) -> None:
        lower, upper = compute_band(-12345, 60)
        assert upper - lower == 60
        assert lower % 60 == 0

    def test_non_positive_spacing_raises(self) -> None:
        with pytest.raises(ValueError):
            compute_band(0, 0)


class TestStepOut:
    def test_zero_liquidity_releases_nothing(self) -> None:
        params = SwapParams(zero_for_one=True, amount_specified=-(10**18))
        assert compute_step_out(KEY, params, Q96, 0) == 0

    def test_exact_output_is_fully_served_by_deep_pool(self) -> None:
        params = SwapParams(zero_for_one=False, amount_specified=10**15)
        assert compute_step_out(KEY, params, Q96, 10**24) == 10**15

    def test_exact_input_net_of_fee(self) -> None:
        params = SwapParams(zero_for_one=True, amount_specified=-(10**15))
        out = compute_step_out(KEY, params, Q96, 10**24)
        # 0.3% fee at ~1:1 price in a deep pool
        assert 996 * 10**12 < out < 997 * 10**12


class TestComputeCaps:
    def test_reference_scenario(self) -> None:
        params = SwapParams(zero_for_one=True, amount_specified=-1)
        caps = compute_caps(KEY, params, Q96, 50, 5, 10, 20_000)
        assert caps.step_out == 0
        assert caps.cap0 == 10
        assert caps.cap1 == min(caps.step_out, 20) == 0

    def test_output_side_clamped_to_step_out(self) -> None:
        params = SwapParams(zero_for_one=True, amount_specified=-(10**15))
        caps = compute_caps(KEY, params, Q96, 10**24, 10**18, 10**18)
        assert caps.cap0 == 2 * 10**18
        assert caps.cap1 == caps.step_out < 10**15

    def test_orientation_follows_pool_order(self) -> None:
        params = SwapParams(zero_for_one=False, amount_specified=-(10**15))
        caps = compute_caps(KEY, params, Q96, 10**24, 10**18, 3 * 10**18)
        assert caps.cap1 == 6 * 10**18
        assert caps.cap0 == caps.step_out

    def test_zero_reserve_gives_zero_cap(self) -> None:
        params = SwapParams(zero_for_one=True, amount_specified=-(10**15))
        caps = compute_caps(KEY, params, Q96, 10**24, 0, 10**18)
        assert caps.cap0 == 0
        assert caps.cap1 > 0

    def test_overflow_raises(self) -> None:
        params = SwapParams(zero_for_one=True, amount_specified=-1)
        with pytest.raises(ArithmeticOverflow):
            compute_caps(KEY, params, Q96, 50, MAX_UINT256, 0, 20_000)

    @given(
        reserves_in=reserves,
        reserves_out=reserves,
        leverage_bps=leverage,
        amount=amounts,
        zero_for_one=st.booleans(),
        liquidity=st.integers(min_value=0, max_value=10**26),
    )
    def test_cap_formulas(
        self,
        reserves_in: int,
        reserves_out: int,
        leverage_bps: int,
        amount: int,
        zero_for_one: bool,
        liquidity: int,
    ) -> None:
        params = SwapParams(zero_for_one=zero_for_one, amount_specified=-amount)
        sqrt_price = get_sqrt_price_at_tick(953)
        if zero_for_one:
            caps = compute_caps(
                KEY, params, sqrt_price, liquidity, reserves_in, reserves_out, leverage_bps
            )
            cap_in, cap_out = caps.cap0, caps.cap1
        else:
            caps = compute_caps(
                KEY, params, sqrt_price, liquidity, reserves_out, reserves_in, leverage_bps
            )
            cap_in, cap_out = caps.cap1, caps.cap0

        assert cap_in == reserves_in * leverage_bps // 10_000
        assert cap_out == min(reserves_out * leverage_bps // 10_000, caps.step_out)
        if caps.step_out == 0:
            assert cap_out == 0
        if reserves_in == 0:
            assert cap_in == 0
        if reserves_out == 0:
            assert cap_out == 0
