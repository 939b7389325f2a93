"""Pool engine protocols — concentrated-liquidity pool and its swap hooks."""
from typing import Protocol

from ..models import (
    BalanceDelta,
    HookPermissions,
    HookResult,
    PoolDescriptor,
    SwapCycle,
    SwapParams,
)


class PoolManager(Protocol):
    """Abstract interface for the market-making pool engine."""

    def get_slot0(self, key: PoolDescriptor) -> tuple[int, int]: ...

    def get_liquidity(self, key: PoolDescriptor) -> int: ...

    def modify_liquidity(
        self,
        caller: str,
        key: PoolDescriptor,
        tick_lower: int,
        tick_upper: int,
        liquidity_delta: int,
    ) -> BalanceDelta: ...

    def settle(self, caller: str, currency: str, amount: int) -> None: ...

    def take(self, caller: str, currency: str, recipient: str, amount: int) -> None: ...


class SwapHooks(Protocol):
    """Callbacks a pool engine invokes around each swap."""

    def get_hook_permissions(self) -> HookPermissions: ...

    def before_swap(
        self, sender: str, key: PoolDescriptor, params: SwapParams, cycle: SwapCycle
    ) -> HookResult: ...

    def after_swap(
        self,
        sender: str,
        key: PoolDescriptor,
        params: SwapParams,
        delta: BalanceDelta,
        cycle: SwapCycle,
    ) -> HookResult: ...
