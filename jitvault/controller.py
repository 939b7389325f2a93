"""Swap-cycle controller: injects vault liquidity around a single swap.

The pool engine calls ``before_swap`` and ``after_swap`` back to back inside
one swap and hands both the same ``SwapCycle``. The controller keeps no
per-swap attributes of its own; everything it needs between the two calls
lives on the cycle.
"""
from __future__ import annotations

import logging

from .clmath import get_liquidity_for_amounts, get_sqrt_price_at_tick
from .errors import ArithmeticOverflow, InsufficientLiquidity
from .interfaces.pool_manager import PoolManager
from .models import (
    AFTER_SWAP_NOOP,
    BEFORE_SWAP_NOOP,
    BalanceDelta,
    CycleState,
    HookPermissions,
    HookResult,
    PoolDescriptor,
    SupportedAsset,
    SwapCycle,
    SwapParams,
)
from .sizing import DEFAULT_LEVERAGE_BPS, compute_band, compute_caps
from .vault import Vault

logger = logging.getLogger(__name__)


class JitController:
    """Before/after-swap hooks backed by a ``Vault``.

    The controller's ``address`` must be the vault ledger's authority, since
    funding a band withdraws from the ledger to that account.
    """

    def __init__(
        self,
        vault: Vault,
        pool_manager: PoolManager,
        address: str,
        leverage_bps: int = DEFAULT_LEVERAGE_BPS,
    ) -> None:
        self.vault = vault
        self.pool_manager = pool_manager
        self.address = address
        self.leverage_bps = leverage_bps

    def get_hook_permissions(self) -> HookPermissions:
        return HookPermissions(before_swap=True, after_swap=True)

    @staticmethod
    def _is_supported_pair(key: PoolDescriptor) -> bool:
        return SupportedAsset.is_supported(key.currency0) and SupportedAsset.is_supported(
            key.currency1
        )

    # ------------------------------------------------------------------
    # Pre-swap: size, mint, fund
    # ------------------------------------------------------------------

    def before_swap(
        self, sender: str, key: PoolDescriptor, params: SwapParams, cycle: SwapCycle
    ) -> HookResult:
        if not self._is_supported_pair(key):
            logger.debug("Skipping unsupported pair %s/%s", key.currency0, key.currency1)
            return BEFORE_SWAP_NOOP

        sqrt_price_x96, tick = self.pool_manager.get_slot0(key)
        pool_liquidity = self.pool_manager.get_liquidity(key)
        tick_lower, tick_upper = compute_band(tick, key.tick_spacing)

        try:
            liquidity = self._size(
                key, params, sqrt_price_x96, pool_liquidity, tick_lower, tick_upper, cycle
            )
        except InsufficientLiquidity as exc:
            logger.debug("Skipping injection: %s", exc)
            cycle.clear()
            return BEFORE_SWAP_NOOP
        except ArithmeticOverflow as exc:
            logger.warning("JIT sizing aborted for %s/%s: %s", key.currency0, key.currency1, exc)
            cycle.clear()
            return BEFORE_SWAP_NOOP

        if liquidity == 0:
            cycle.clear()
            return BEFORE_SWAP_NOOP

        delta = self.pool_manager.modify_liquidity(
            self.address, key, tick_lower, tick_upper, liquidity
        )
        self._fund(key, delta)
        cycle.record(tick_lower, tick_upper, liquidity)
        logger.info(
            "Injected %d liquidity into [%d, %d] for %s swap of %d",
            liquidity, tick_lower, tick_upper, sender, params.amount_specified,
        )
        return BEFORE_SWAP_NOOP

    def _size(
        self,
        key: PoolDescriptor,
        params: SwapParams,
        sqrt_price_x96: int,
        pool_liquidity: int,
        tick_lower: int,
        tick_upper: int,
        cycle: SwapCycle,
    ) -> int:
        reserves0 = self.vault.reserves(key.currency0)
        reserves1 = self.vault.reserves(key.currency1)
        caps = compute_caps(
            key,
            params,
            sqrt_price_x96,
            pool_liquidity,
            reserves0,
            reserves1,
            self.leverage_bps,
        )
        if caps.is_zero:
            logger.debug("Both caps are zero; no injection")
            return 0
        cycle.state = CycleState.SIZED

        sqrt_lower = get_sqrt_price_at_tick(tick_lower)
        sqrt_upper = get_sqrt_price_at_tick(tick_upper)
        liquidity = get_liquidity_for_amounts(
            sqrt_price_x96, sqrt_lower, sqrt_upper, caps.cap0, caps.cap1
        )
        # Leverage is not borrowed, so the band can only hold what reserves fund.
        fundable = get_liquidity_for_amounts(
            sqrt_price_x96, sqrt_lower, sqrt_upper, reserves0, reserves1
        )
        if fundable < liquidity:
            logger.debug(
                "Reserves bound liquidity to %d (caps allow %d at %d bps)",
                fundable, liquidity, self.leverage_bps,
            )
            liquidity = fundable
        if liquidity == 0:
            raise InsufficientLiquidity(
                f"band [{tick_lower}, {tick_upper}] rounds to zero liquidity "
                f"(caps {caps.cap0}/{caps.cap1})"
            )
        return liquidity

    def _fund(self, key: PoolDescriptor, delta: BalanceDelta) -> None:
        for currency, amount in ((key.currency0, delta.amount0), (key.currency1, delta.amount1)):
            if amount >= 0:
                continue
            owed = -amount
            self.vault.withdraw_from_ledger(self.address, currency, owed)
            self.pool_manager.settle(self.address, currency, owed)

    # ------------------------------------------------------------------
    # Post-swap: burn, collect, resupply
    # ------------------------------------------------------------------

    def after_swap(
        self,
        sender: str,
        key: PoolDescriptor,
        params: SwapParams,
        delta: BalanceDelta,
        cycle: SwapCycle,
    ) -> HookResult:
        if not cycle.is_active:
            return AFTER_SWAP_NOOP

        burned = self.pool_manager.modify_liquidity(
            self.address, key, cycle.tick_lower, cycle.tick_upper, -cycle.liquidity
        )
        for currency, amount in ((key.currency0, burned.amount0), (key.currency1, burned.amount1)):
            if amount <= 0:
                continue
            self.pool_manager.take(self.address, currency, self.vault.address, amount)
            self.vault.supply_to_ledger(self.address, currency)
        cycle.state = CycleState.SETTLED
        logger.info(
            "Removed %d liquidity from [%d, %d]: returned (%d, %d)",
            cycle.liquidity, cycle.tick_lower, cycle.tick_upper,
            burned.amount0, burned.amount1,
        )
        cycle.clear()
        return AFTER_SWAP_NOOP
