"""Concentrated-liquidity pool engine with swap hooks and delta settlement.

Every swap gets a fresh ``SwapCycle`` which is handed to both hook callbacks.
Callers that modify liquidity accrue signed currency deltas; they must be
brought back to zero with ``settle`` / ``take`` before the swap returns.
State changes are not rolled back when a swap fails.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from ..clmath import (
    MAX_SQRT_PRICE,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MIN_TICK,
    compute_swap_step,
    get_amount0_delta,
    get_amount1_delta,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
)
from ..clmath.full_math import Q128
from ..errors import ArithmeticOverflow, CurrencyNotSettled, PoolNotInitialized
from ..interfaces.pool_manager import SwapHooks
from ..interfaces.token_bank import TokenBank
from ..models import BalanceDelta, PoolDescriptor, SwapCycle, SwapParams

logger = logging.getLogger(__name__)

_MOD_256 = 1 << 256


@dataclass
class _TickInfo:
    liquidity_gross: int = 0
    liquidity_net: int = 0
    fee_growth_outside0: int = 0
    fee_growth_outside1: int = 0


@dataclass
class _Position:
    liquidity: int = 0
    fee_growth_inside0_last: int = 0
    fee_growth_inside1_last: int = 0


@dataclass
class _PoolState:
    sqrt_price_x96: int
    tick: int
    liquidity: int = 0
    fee_growth_global0: int = 0
    fee_growth_global1: int = 0
    ticks: dict[int, _TickInfo] = field(default_factory=dict)
    positions: dict[tuple[str, int, int], _Position] = field(default_factory=dict)


class InMemoryPoolManager:
    """Single-process pool engine holding all pools' tokens in one account."""

    def __init__(self, bank: TokenBank, address: str = "pool-manager") -> None:
        self._bank = bank
        self.address = address
        self._pools: dict[PoolDescriptor, _PoolState] = {}
        self._hooks: dict[str, SwapHooks] = {}
        self._deltas: dict[tuple[str, str], int] = defaultdict(int)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def register_hooks(self, address: str, hooks: SwapHooks) -> None:
        self._hooks[address] = hooks

    def initialize(self, key: PoolDescriptor, sqrt_price_x96: int) -> int:
        if key in self._pools:
            raise ValueError(f"Pool {key} already initialized")
        if key.currency0 >= key.currency1:
            raise ValueError("Pool currencies must be sorted")
        if key.tick_spacing <= 0:
            raise ValueError("tick_spacing must be positive")
        tick = get_tick_at_sqrt_price(sqrt_price_x96)
        self._pools[key] = _PoolState(sqrt_price_x96=sqrt_price_x96, tick=tick)
        logger.info("Initialized pool %s/%s at tick %d", key.currency0, key.currency1, tick)
        return tick

    def _state(self, key: PoolDescriptor) -> _PoolState:
        try:
            return self._pools[key]
        except KeyError:
            raise PoolNotInitialized(f"Pool {key} is not initialized") from None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_slot0(self, key: PoolDescriptor) -> tuple[int, int]:
        state = self._state(key)
        return state.sqrt_price_x96, state.tick

    def get_liquidity(self, key: PoolDescriptor) -> int:
        return self._state(key).liquidity

    def position_liquidity(
        self, owner: str, key: PoolDescriptor, tick_lower: int, tick_upper: int
    ) -> int:
        position = self._state(key).positions.get((owner, tick_lower, tick_upper))
        return position.liquidity if position else 0

    def open_delta(self, account: str, currency: str) -> int:
        return self._deltas.get((account, currency), 0)

    # ------------------------------------------------------------------
    # Liquidity
    # ------------------------------------------------------------------

    def modify_liquidity(
        self,
        caller: str,
        key: PoolDescriptor,
        tick_lower: int,
        tick_upper: int,
        liquidity_delta: int,
    ) -> BalanceDelta:
        """Add (positive) or remove (negative) liquidity; accrued fees are paid out."""
        state = self._state(key)
        if not MIN_TICK <= tick_lower < tick_upper <= MAX_TICK:
            raise ValueError(f"Invalid tick range [{tick_lower}, {tick_upper}]")
        if tick_lower % key.tick_spacing or tick_upper % key.tick_spacing:
            raise ValueError("Ticks must be multiples of the tick spacing")

        fees0, fees1 = self._update_position(
            state, caller, tick_lower, tick_upper, liquidity_delta
        )

        amount0 = amount1 = 0
        if liquidity_delta != 0:
            round_up = liquidity_delta > 0
            liquidity = abs(liquidity_delta)
            sqrt_lower = get_sqrt_price_at_tick(tick_lower)
            sqrt_upper = get_sqrt_price_at_tick(tick_upper)
            if state.tick < tick_lower:
                amount0 = get_amount0_delta(sqrt_lower, sqrt_upper, liquidity, round_up)
            elif state.tick < tick_upper:
                amount0 = get_amount0_delta(
                    state.sqrt_price_x96, sqrt_upper, liquidity, round_up
                )
                amount1 = get_amount1_delta(
                    sqrt_lower, state.sqrt_price_x96, liquidity, round_up
                )
                state.liquidity += liquidity_delta
            else:
                amount1 = get_amount1_delta(sqrt_lower, sqrt_upper, liquidity, round_up)

        sign = -1 if liquidity_delta > 0 else 1
        delta = BalanceDelta(sign * amount0 + fees0, sign * amount1 + fees1)
        self._account(caller, key, delta)
        logger.debug(
            "%s modified [%d, %d] by %d: delta (%d, %d)",
            caller, tick_lower, tick_upper, liquidity_delta, delta.amount0, delta.amount1,
        )
        return delta

    def _update_position(
        self,
        state: _PoolState,
        owner: str,
        tick_lower: int,
        tick_upper: int,
        liquidity_delta: int,
    ) -> tuple[int, int]:
        position_key = (owner, tick_lower, tick_upper)
        position = state.positions.get(position_key, _Position())
        if position.liquidity + liquidity_delta < 0:
            raise ArithmeticOverflow("liquidity underflow")

        if liquidity_delta != 0:
            self._update_tick(state, tick_lower, liquidity_delta, upper=False)
            self._update_tick(state, tick_upper, liquidity_delta, upper=True)

        inside0, inside1 = self._fee_growth_inside(state, tick_lower, tick_upper)
        fees0 = ((inside0 - position.fee_growth_inside0_last) % _MOD_256) * position.liquidity // Q128
        fees1 = ((inside1 - position.fee_growth_inside1_last) % _MOD_256) * position.liquidity // Q128

        position.liquidity += liquidity_delta
        position.fee_growth_inside0_last = inside0
        position.fee_growth_inside1_last = inside1
        if position.liquidity:
            state.positions[position_key] = position
        else:
            state.positions.pop(position_key, None)

        if liquidity_delta < 0:
            for tick in (tick_lower, tick_upper):
                if state.ticks[tick].liquidity_gross == 0:
                    del state.ticks[tick]
        return fees0, fees1

    @staticmethod
    def _update_tick(state: _PoolState, tick: int, liquidity_delta: int, upper: bool) -> None:
        info = state.ticks.get(tick)
        if info is None:
            info = _TickInfo()
            # Growth below a freshly initialized tick is attributed to "outside".
            if tick <= state.tick:
                info.fee_growth_outside0 = state.fee_growth_global0
                info.fee_growth_outside1 = state.fee_growth_global1
            state.ticks[tick] = info
        info.liquidity_gross += liquidity_delta
        info.liquidity_net += -liquidity_delta if upper else liquidity_delta

    @staticmethod
    def _fee_growth_inside(state: _PoolState, tick_lower: int, tick_upper: int) -> tuple[int, int]:
        lower = state.ticks.get(tick_lower, _TickInfo())
        upper = state.ticks.get(tick_upper, _TickInfo())
        inside: list[int] = []
        for global_growth, lower_out, upper_out in (
            (state.fee_growth_global0, lower.fee_growth_outside0, upper.fee_growth_outside0),
            (state.fee_growth_global1, lower.fee_growth_outside1, upper.fee_growth_outside1),
        ):
            below = lower_out if state.tick >= tick_lower else global_growth - lower_out
            above = upper_out if state.tick < tick_upper else global_growth - upper_out
            inside.append((global_growth - below - above) % _MOD_256)
        return inside[0], inside[1]

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _account(self, caller: str, key: PoolDescriptor, delta: BalanceDelta) -> None:
        self._deltas[(caller, key.currency0)] += delta.amount0
        self._deltas[(caller, key.currency1)] += delta.amount1

    def settle(self, caller: str, currency: str, amount: int) -> None:
        """Pay ``amount`` of ``currency`` from ``caller`` into the pool."""
        self._bank.transfer(currency, caller, self.address, amount)
        self._deltas[(caller, currency)] += amount

    def take(self, caller: str, currency: str, recipient: str, amount: int) -> None:
        """Send ``amount`` of ``currency`` owed to ``caller`` to ``recipient``."""
        self._bank.transfer(currency, self.address, recipient, amount)
        self._deltas[(caller, currency)] -= amount

    def settle_all(self, caller: str) -> None:
        """Pay every debt and collect every credit ``caller`` has open."""
        for (account, currency), amount in list(self._deltas.items()):
            if account != caller:
                continue
            if amount < 0:
                self.settle(caller, currency, -amount)
            elif amount > 0:
                self.take(caller, currency, caller, amount)

    def _check_settled(self) -> None:
        open_deltas = {k: v for k, v in self._deltas.items() if v}
        if open_deltas:
            raise CurrencyNotSettled(f"Unsettled deltas: {open_deltas}")
        self._deltas.clear()

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    def swap(self, sender: str, key: PoolDescriptor, params: SwapParams) -> BalanceDelta:
        """Run hooks around a swap, pay the sender and verify settlement."""
        state = self._state(key)
        if params.amount_specified == 0:
            raise ValueError("amount_specified must be non-zero")

        cycle = SwapCycle()
        hooks = self._hooks.get(key.hooks) if key.hooks else None
        permissions = hooks.get_hook_permissions() if hooks else None

        if hooks and permissions and permissions.before_swap:
            hooks.before_swap(sender, key, params, cycle)

        delta = self._swap(state, key, params)
        self._account(sender, key, delta)

        if hooks and permissions and permissions.after_swap:
            hooks.after_swap(sender, key, params, delta, cycle)

        self.settle_all(sender)
        self._check_settled()
        logger.info(
            "Swap %s/%s by %s: delta (%d, %d), tick %d",
            key.currency0, key.currency1, sender, delta.amount0, delta.amount1, state.tick,
        )
        return delta

    def _swap(self, state: _PoolState, key: PoolDescriptor, params: SwapParams) -> BalanceDelta:
        zero_for_one = params.zero_for_one
        limit = params.sqrt_price_limit_x96 or (
            MIN_SQRT_PRICE + 1 if zero_for_one else MAX_SQRT_PRICE - 1
        )
        if zero_for_one and not MIN_SQRT_PRICE < limit < state.sqrt_price_x96:
            raise ValueError(f"Price limit {limit} already exceeded")
        if not zero_for_one and not state.sqrt_price_x96 < limit < MAX_SQRT_PRICE:
            raise ValueError(f"Price limit {limit} already exceeded")

        exact_in = params.amount_specified < 0
        remaining = params.amount_specified
        calculated = 0

        while remaining != 0 and state.sqrt_price_x96 != limit:
            start = state.sqrt_price_x96
            tick_next, initialized = self._next_initialized_tick(state, zero_for_one)
            sqrt_next = get_sqrt_price_at_tick(tick_next)
            target = max(sqrt_next, limit) if zero_for_one else min(sqrt_next, limit)

            state.sqrt_price_x96, amount_in, amount_out, fee_amount = compute_swap_step(
                start, target, state.liquidity, remaining, key.fee
            )
            if exact_in:
                remaining += amount_in + fee_amount
                calculated += amount_out
            else:
                remaining -= amount_out
                calculated -= amount_in + fee_amount

            if state.liquidity > 0 and fee_amount:
                growth = fee_amount * Q128 // state.liquidity
                if zero_for_one:
                    state.fee_growth_global0 = (state.fee_growth_global0 + growth) % _MOD_256
                else:
                    state.fee_growth_global1 = (state.fee_growth_global1 + growth) % _MOD_256

            if state.sqrt_price_x96 == sqrt_next:
                if initialized:
                    info = state.ticks[tick_next]
                    info.fee_growth_outside0 = (state.fee_growth_global0 - info.fee_growth_outside0) % _MOD_256
                    info.fee_growth_outside1 = (state.fee_growth_global1 - info.fee_growth_outside1) % _MOD_256
                    net = info.liquidity_net
                    state.liquidity += -net if zero_for_one else net
                state.tick = tick_next - 1 if zero_for_one else tick_next
            elif state.sqrt_price_x96 != start:
                state.tick = get_tick_at_sqrt_price(state.sqrt_price_x96)

        consumed = params.amount_specified - remaining
        if zero_for_one == exact_in:
            return BalanceDelta(consumed, calculated)
        return BalanceDelta(calculated, consumed)

    @staticmethod
    def _next_initialized_tick(state: _PoolState, zero_for_one: bool) -> tuple[int, bool]:
        if zero_for_one:
            below = [t for t in state.ticks if t <= state.tick]
            return (max(below), True) if below else (MIN_TICK, False)
        above = [t for t in state.ticks if t > state.tick]
        return (min(above), True) if above else (MAX_TICK, False)
